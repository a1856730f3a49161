"""
FileSystemGate security module.

Resolves client-supplied relative paths against the data root and rejects
anything that escapes it. Resolution is purely lexical: nothing here touches
the filesystem, so it works for paths that do not exist yet.
"""

import os
from typing import Tuple, Optional


INVALID_PATH = "Invalid path"


def normalize_path(path: str) -> str:
    """
    Normalize a path lexically.

    Args:
        path: Raw path string

    Returns:
        Path with "." and ".." segments collapsed
    """
    return os.path.normpath(path)


def is_within_root(root: str, target: str) -> bool:
    """
    Check that target is root or a descendant of it.

    Compares whole path segments, so "/data" does not contain "/database".

    Args:
        root: Normalized absolute root path
        target: Normalized absolute path to check

    Returns:
        True if target is contained in root
    """
    try:
        return os.path.commonpath([root, target]) == root
    except ValueError:
        # Different drives on Windows, or mixed absolute/relative paths
        return False


def resolve_path(
    root: str,
    relative_path: str,
    allow_root: bool = False
) -> Tuple[bool, str, Optional[str]]:
    """
    Resolve a client path against the data root.

    Args:
        root: Normalized absolute root path
        relative_path: Untrusted path relative to the root
        allow_root: Accept a path that resolves to the root itself. Only
            read-only operations (listing) pass True.

    Returns:
        Tuple of (is_valid, resolved_path, error_message)
    """
    relative_path = relative_path or ""

    if "\x00" in relative_path:
        return False, "", INVALID_PATH

    # Absolute client paths are treated as relative to the root
    relative_path = relative_path.lstrip("/\\")

    resolved = normalize_path(os.path.join(root, relative_path))

    if not is_within_root(root, resolved):
        return False, resolved, INVALID_PATH

    if not allow_root and resolved == root:
        return False, resolved, INVALID_PATH

    return True, resolved, None
