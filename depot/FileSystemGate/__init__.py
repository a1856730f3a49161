"""
FileSystemGate - Confined file system access for Depot.

Provides:
- Lexical path resolution that never escapes the data root
- List, mkdir, rmdir, rm, move, and recursive copy
- Streaming upload into exclusively created files
- Lazy chunked downloads

Usage:
    from depot.FileSystemGate import FileSystemGate, DataRoot

    gate = FileSystemGate(DataRoot(path="/srv/data"))

    result = await gate.list_dir("photos")
    result = await gate.mkdir("photos/2024")
    result = await gate.upload("photos/2024/a.jpg", request.stream())
    result, download = await gate.download("photos/2024/a.jpg")
"""

import asyncio
import os
from typing import Any, AsyncIterable, Dict, List, Optional, Tuple

from depot.shared.gate import GateLogger, build_health_status

from .models import (
    DataRoot,
    ErrorKind,
    FileEntry,
    OperationResult,
    PathQuery,
    MoveQuery,
    DownloadQuery,
    DEFAULT_CHUNK_SIZE,
)
from .security import resolve_path, is_within_root
from .operations import (
    list_directory as op_list_directory,
    make_directory as op_make_directory,
    remove_directory as op_remove_directory,
    remove_file as op_remove_file,
    move_path as op_move_path,
)
from .copy import copy_path as op_copy_path
from .transfer import (
    FileDownload,
    upload_file as op_upload_file,
    open_download as op_open_download,
)

# Logger for this gate
_log = GateLogger.get("FileSystemGate")


class FileSystemGate:
    """
    Main interface for file operations under one data root.

    The root is fixed at construction. Blocking filesystem work runs in
    worker threads so request handlers never stall the event loop.
    """

    def __init__(self, root: DataRoot):
        if not os.path.exists(root.path):
            raise FileNotFoundError(f"Data directory does not exist: {root.path}")
        if not os.path.isdir(root.path):
            raise NotADirectoryError(f"Data path is not a directory: {root.path}")

        self._root = root
        _log.info(f"Serving {root.path}")

    @property
    def root(self) -> DataRoot:
        return self._root

    # ==================== File Operations ====================

    async def list_dir(self, path: str = "") -> OperationResult:
        """List the direct children of a directory."""
        return await asyncio.to_thread(op_list_directory, self._root.path, path)

    async def mkdir(self, path: str) -> OperationResult:
        """Create a single directory level."""
        return await asyncio.to_thread(op_make_directory, self._root.path, path)

    async def rmdir(self, path: str) -> OperationResult:
        """Delete a directory with all its contents."""
        return await asyncio.to_thread(op_remove_directory, self._root.path, path)

    async def remove_file(self, path: str) -> OperationResult:
        """Delete a single file."""
        return await asyncio.to_thread(op_remove_file, self._root.path, path)

    async def move(self, source: str, destination: str) -> OperationResult:
        """Rename a file or directory."""
        return await asyncio.to_thread(op_move_path, self._root.path, source, destination)

    async def copy(self, source: str, destination: str) -> OperationResult:
        """Copy a file or directory tree."""
        return await asyncio.to_thread(
            op_copy_path, self._root.path, source, destination, self._root.chunk_size
        )

    async def upload(self, path: str, stream: AsyncIterable[bytes]) -> OperationResult:
        """Stream a request body into a new file."""
        return await op_upload_file(self._root, path, stream)

    async def download(
        self,
        path: str,
        peek: bool = False
    ) -> Tuple[OperationResult, Optional[FileDownload]]:
        """Open a file for a streamed response."""
        return await op_open_download(self._root, path, peek)

    # ==================== Health Checks ====================

    def is_healthy(self) -> bool:
        """Check if the gate is operational."""
        return all(self._health_checks().values())

    def _health_checks(self) -> Dict[str, bool]:
        path = self._root.path
        return {
            "root_exists": os.path.isdir(path),
            "root_readable": os.access(path, os.R_OK),
            "root_writable": os.access(path, os.W_OK),
        }

    def get_health_status(self) -> Dict[str, Any]:
        """Get detailed health information."""
        return build_health_status(
            gate_name="FileSystemGate",
            initialized=True,
            dependencies=["filesystem"],
            checks=self._health_checks(),
            details={
                "root": self._root.path,
                "chunk_size": self._root.chunk_size,
            },
        )

    def get_dependencies(self) -> List[str]:
        """List external dependencies."""
        return ["filesystem"]


__all__ = [
    # Main class
    "FileSystemGate",
    # Models
    "DataRoot",
    "ErrorKind",
    "FileEntry",
    "OperationResult",
    "PathQuery",
    "MoveQuery",
    "DownloadQuery",
    "FileDownload",
    "DEFAULT_CHUNK_SIZE",
    # Path resolution
    "resolve_path",
    "is_within_root",
]
