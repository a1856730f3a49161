"""
FileSystemGate Pydantic models.

Defines the data root, listing entries, operation results, and the typed
query models accepted by the HTTP layer.
"""

import os
from enum import Enum
from typing import Optional, Any, Dict
from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_CHUNK_SIZE = 64 * 1024


class ErrorKind(str, Enum):
    """Failure categories reported by file operations."""
    INVALID_PATH = "invalid_path"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    NOT_A_DIRECTORY = "not_a_directory"
    NOT_A_FILE = "not_a_file"
    INVALID_SOURCE = "invalid_source"
    INTERNAL_IO = "internal_io"


class DataRoot(BaseModel):
    """The directory every operation is confined to. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Absolute, normalized root directory")
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)

    @field_validator("path")
    @classmethod
    def _normalize(cls, value: str) -> str:
        if not value:
            raise ValueError("Root path must not be empty")
        return os.path.normpath(os.path.abspath(os.path.expanduser(value)))


class FileEntry(BaseModel):
    """One child of a listed directory."""
    name: str
    size: int
    is_dir: bool
    mime: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")


class OperationResult(BaseModel):
    """Result of a file system operation."""
    success: bool
    operation: str = Field(description="Operation type: list/mkdir/rmdir/rm/move/copy/upload/download")
    path: str = Field(description="Client-supplied path the operation targeted")
    message: str = ""
    data: Optional[Any] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return self.model_dump(mode="json")

    @classmethod
    def ok(
        cls,
        operation: str,
        path: str,
        message: str = "",
        data: Any = None,
    ) -> "OperationResult":
        """Create a successful result."""
        return cls(success=True, operation=operation, path=path, message=message, data=data)

    @classmethod
    def fail(
        cls,
        operation: str,
        path: str,
        kind: ErrorKind,
        error: str,
    ) -> "OperationResult":
        """Create a failed result."""
        return cls(success=False, operation=operation, path=path, kind=kind, error=error)


# ==================== Request models ====================


class PathQuery(BaseModel):
    """Query for operations that target a single path."""
    path: str


class MoveQuery(BaseModel):
    """Query for move and copy."""
    source: str
    destination: str


class DownloadQuery(BaseModel):
    """Query for downloads."""
    path: str
    peek: bool = False
