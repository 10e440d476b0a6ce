"""
File sources the server reads from.

    base.py    FileSystem / FileHandle / FileInfo contract, NotFound
    local.py   LocalFileSystem backed by a directory on disk
"""

from .base import FileHandle, FileInfo, FileSystem, NotFound, StorageError
from .local import LocalFileHandle, LocalFileSystem

__all__ = [
    "FileHandle",
    "FileInfo",
    "FileSystem",
    "NotFound",
    "StorageError",
    "LocalFileHandle",
    "LocalFileSystem",
]
