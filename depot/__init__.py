"""
Depot - file management over HTTP, confined to a single data directory.
"""

from depot import Config
from depot import FileSystemGate

__version__ = "0.1.0"

__all__ = ["Config", "FileSystemGate", "__version__"]
