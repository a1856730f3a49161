"""
FileSystemGate file operations.

Provides list, mkdir, rmdir, rm, and move operations on resolver-validated
paths. These are blocking calls; FileSystemGate runs them in worker threads.
"""

import errno
import mimetypes
import os
import shutil
from typing import List, Optional, Tuple

from depot.shared.gate import GateLogger

from .models import ErrorKind, FileEntry, OperationResult
from .security import resolve_path, is_within_root

_log = GateLogger.get("FileSystemGate")

DEFAULT_MIME_TYPE = "application/octet-stream"


def guess_mime_type(name: str) -> str:
    """Best-effort content type from a file name's extension."""
    mime, _ = mimetypes.guess_type(name, strict=False)
    return mime or DEFAULT_MIME_TYPE


def _rejected(operation: str, relative_path: str, error: str) -> OperationResult:
    _log.warning(f"{operation}: rejected path {relative_path!r}")
    return OperationResult.fail(operation, relative_path, ErrorKind.INVALID_PATH, error)


def describe_error(error: BaseException) -> str:
    """Client-safe description of an error. Never includes server paths."""
    return getattr(error, "strerror", None) or type(error).__name__


def _io_failure(
    operation: str,
    relative_path: str,
    message: str,
    cause: Optional[BaseException] = None
) -> OperationResult:
    if cause is not None:
        _log.error(f"{operation} {relative_path!r}: {message}: {cause!r}")
        message = f"{message}: {describe_error(cause)}"
    else:
        _log.error(f"{operation} {relative_path!r}: {message}")
    return OperationResult.fail(operation, relative_path, ErrorKind.INTERNAL_IO, message)


def list_directory(root: str, relative_path: str = "") -> OperationResult:
    """
    List the direct children of a directory.

    Order is whatever the filesystem returns. A metadata failure on any
    entry aborts the whole listing.

    Args:
        root: Normalized data root
        relative_path: Path relative to the root ("" lists the root)

    Returns:
        OperationResult with a list of FileEntry dicts in data
    """
    is_valid, resolved, error = resolve_path(root, relative_path, allow_root=True)
    if not is_valid:
        return _rejected("list", relative_path, error)

    if not os.path.exists(resolved):
        return OperationResult.fail("list", relative_path, ErrorKind.NOT_FOUND, "Path not found")

    if not os.path.isdir(resolved):
        return OperationResult.fail(
            "list", relative_path, ErrorKind.NOT_A_DIRECTORY, "Path is not a directory"
        )

    try:
        files: List[FileEntry] = []
        with os.scandir(resolved) as entries:
            for entry in entries:
                stat = entry.stat()
                is_dir = entry.is_dir()
                files.append(FileEntry(
                    name=entry.name,
                    size=stat.st_size,
                    is_dir=is_dir,
                    mime=None if is_dir else guess_mime_type(entry.name),
                ))
    except OSError as e:
        return _io_failure("list", relative_path, "Failed to read directory", e)

    return OperationResult.ok(
        "list",
        relative_path,
        message="Directory listed successfully",
        data=[f.to_dict() for f in files],
    )


def make_directory(root: str, relative_path: str) -> OperationResult:
    """
    Create exactly one directory level. The parent must already exist.

    Args:
        root: Normalized data root
        relative_path: Path relative to the root

    Returns:
        OperationResult
    """
    is_valid, resolved, error = resolve_path(root, relative_path)
    if not is_valid:
        return _rejected("mkdir", relative_path, error)

    if os.path.lexists(resolved):
        return OperationResult.fail(
            "mkdir", relative_path, ErrorKind.ALREADY_EXISTS, "Directory already exists"
        )

    try:
        os.mkdir(resolved)
    except FileExistsError:
        return OperationResult.fail(
            "mkdir", relative_path, ErrorKind.ALREADY_EXISTS, "Directory already exists"
        )
    except OSError as e:
        return _io_failure("mkdir", relative_path, "Failed to create directory", e)

    _log.info(f"Created directory {relative_path!r}")
    return OperationResult.ok("mkdir", relative_path, message="Directory created successfully")


def remove_directory(root: str, relative_path: str) -> OperationResult:
    """
    Delete a directory and everything in it. Irreversible.

    Args:
        root: Normalized data root
        relative_path: Path relative to the root

    Returns:
        OperationResult
    """
    is_valid, resolved, error = resolve_path(root, relative_path)
    if not is_valid:
        return _rejected("rmdir", relative_path, error)

    if not os.path.lexists(resolved):
        return OperationResult.fail("rmdir", relative_path, ErrorKind.NOT_FOUND, "Directory not found")

    if not os.path.isdir(resolved):
        return OperationResult.fail(
            "rmdir", relative_path, ErrorKind.NOT_A_DIRECTORY, "Directory not found"
        )

    try:
        shutil.rmtree(resolved)
    except OSError as e:
        return _io_failure("rmdir", relative_path, "Failed to delete directory", e)

    _log.info(f"Deleted directory {relative_path!r}")
    return OperationResult.ok("rmdir", relative_path, message="Directory deleted successfully")


def remove_file(root: str, relative_path: str) -> OperationResult:
    """
    Delete exactly one file.

    Args:
        root: Normalized data root
        relative_path: Path relative to the root

    Returns:
        OperationResult
    """
    is_valid, resolved, error = resolve_path(root, relative_path)
    if not is_valid:
        return _rejected("rm", relative_path, error)

    if not os.path.lexists(resolved):
        return OperationResult.fail("rm", relative_path, ErrorKind.NOT_FOUND, "File not found")

    if not os.path.isfile(resolved):
        return OperationResult.fail("rm", relative_path, ErrorKind.NOT_A_FILE, "File not found")

    try:
        os.remove(resolved)
    except OSError as e:
        return _io_failure("rm", relative_path, "Failed to delete file", e)

    _log.info(f"Deleted file {relative_path!r}")
    return OperationResult.ok("rm", relative_path, message="File deleted successfully")


def resolve_pair(
    root: str,
    source_path: str,
    dest_path: str,
    operation: str,
    missing_source: str = "Source path not found"
) -> Tuple[Optional[OperationResult], str, str]:
    """
    Resolve and check a source/destination pair for move and copy.

    The source must exist and the destination must not. missing_source is
    the message reported when the source is absent.

    Returns:
        Tuple of (failure or None, resolved source, resolved destination)
    """
    src_ok, source, _ = resolve_path(root, source_path)
    dst_ok, dest, _ = resolve_path(root, dest_path)
    if not src_ok or not dst_ok:
        return _rejected(operation, f"{source_path} -> {dest_path}", "Invalid paths"), source, dest

    if not os.path.lexists(source):
        return OperationResult.fail(
            operation, source_path, ErrorKind.NOT_FOUND, missing_source
        ), source, dest

    if os.path.lexists(dest):
        return OperationResult.fail(
            operation, dest_path, ErrorKind.ALREADY_EXISTS, "Destination path already exists"
        ), source, dest

    return None, source, dest


def move_path(root: str, source_path: str, dest_path: str) -> OperationResult:
    """
    Rename a file or directory inside the root.

    Atomic within one volume. A root spanning volumes makes cross-device
    moves fail; there is no copy-and-delete fallback.

    Args:
        root: Normalized data root
        source_path: Source path relative to the root
        dest_path: Destination path relative to the root

    Returns:
        OperationResult
    """
    failure, source, dest = resolve_pair(root, source_path, dest_path, "move")
    if failure is not None:
        return failure

    if os.path.isdir(source) and is_within_root(source, dest):
        return OperationResult.fail(
            "move", dest_path, ErrorKind.INVALID_PATH,
            "Cannot move a directory into itself"
        )

    try:
        os.rename(source, dest)
    except OSError as e:
        if e.errno == errno.EXDEV:
            return _io_failure("move", source_path, "Cannot move across filesystems")
        return _io_failure("move", source_path, "Failed to move directory", e)

    _log.info(f"Moved {source_path!r} to {dest_path!r}")
    return OperationResult.ok("move", dest_path, message="Directory moved successfully")
