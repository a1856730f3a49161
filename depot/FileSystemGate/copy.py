"""
FileSystemGate copy engine.

Copies a file, or a whole directory tree, to a destination that does not
exist yet. Trees are walked depth-first over an explicit stack of
(source, destination) directory pairs rather than by recursion.

A failure part-way through leaves whatever was already copied on disk;
there is no rollback.
"""

import os
import shutil

from depot.shared.gate import GateLogger

from .models import DEFAULT_CHUNK_SIZE, ErrorKind, OperationResult
from .operations import resolve_pair, _io_failure
from .security import is_within_root

_log = GateLogger.get("FileSystemGate")


def copy_file_bytes(source: str, destination: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
    """Copy one file byte-for-byte. Fails if destination already exists."""
    with open(source, "rb") as src, open(destination, "xb") as dst:
        shutil.copyfileobj(src, dst, chunk_size)


def copy_tree(source: str, destination: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """
    Recreate a directory tree at destination.

    Each destination directory is created before its children are visited.
    Entries that are not directories (symlinks included) are copied as files.

    Args:
        source: Existing source directory
        destination: Destination directory; must not exist
        chunk_size: Buffer size for file copies

    Returns:
        Number of files copied

    Raises:
        OSError: On the first failure; earlier copies are left in place
    """
    copied = 0
    pending = [(source, destination)]

    while pending:
        src_dir, dst_dir = pending.pop()
        os.mkdir(dst_dir)

        with os.scandir(src_dir) as entries:
            for entry in entries:
                target = os.path.join(dst_dir, entry.name)
                if entry.is_dir(follow_symlinks=False):
                    pending.append((entry.path, target))
                else:
                    copy_file_bytes(entry.path, target, chunk_size)
                    copied += 1

    return copied


def copy_path(
    root: str,
    source_path: str,
    dest_path: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE
) -> OperationResult:
    """
    Copy a file or directory inside the root.

    Args:
        root: Normalized data root
        source_path: Source path relative to the root
        dest_path: Destination path relative to the root
        chunk_size: Buffer size for file copies

    Returns:
        OperationResult
    """
    failure, source, dest = resolve_pair(
        root, source_path, dest_path, "copy", missing_source="Source file not found"
    )
    if failure is not None:
        return failure

    if os.path.isdir(source):
        # Copying into its own subtree would keep finding the new copy
        if is_within_root(source, dest):
            return OperationResult.fail(
                "copy", dest_path, ErrorKind.INVALID_PATH,
                "Cannot copy a directory into itself"
            )
        try:
            copied = copy_tree(source, dest, chunk_size)
        except OSError as e:
            _log.warning(f"Copy of {source_path!r} failed part-way; partial tree left at {dest_path!r}")
            return _io_failure("copy", source_path, "Failed to copy directory", e)

        _log.info(f"Copied directory {source_path!r} to {dest_path!r} ({copied} files)")
        return OperationResult.ok("copy", dest_path, message="Directory copied successfully")

    if os.path.isfile(source):
        try:
            copy_file_bytes(source, dest, chunk_size)
        except FileExistsError:
            return OperationResult.fail(
                "copy", dest_path, ErrorKind.ALREADY_EXISTS, "Destination path already exists"
            )
        except OSError as e:
            return _io_failure("copy", source_path, "Failed to copy file", e)

        _log.info(f"Copied file {source_path!r} to {dest_path!r}")
        return OperationResult.ok("copy", dest_path, message="File copied successfully")

    return OperationResult.fail(
        "copy", source_path, ErrorKind.INVALID_SOURCE, "Source is not a file or directory"
    )
