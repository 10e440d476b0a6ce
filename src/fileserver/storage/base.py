"""
=============================================================================
STORAGE INTERFACE
=============================================================================

The file handler never touches the OS directly. It talks to a FileSystem,
which hands out FileHandles:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     STORAGE CONTRACT                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   FileSystem.open("/docs/a.txt")  →  FileHandle   | raises NotFound │
    │                                                                      │
    │   FileHandle.stat()               →  FileInfo(name, is_directory,   │
    │                                               modified_at, size)    │
    │   FileHandle.read(size=-1)        →  bytes                          │
    │   FileHandle.read_dir(n)          →  up to n FileInfo, [] at end    │
    │   FileHandle.close()                                                │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Names passed to open() are always canonical: rooted at "/", no "." or
".." segments, no repeated or trailing slashes.

Any failure to open or stat is a StorageError; the handler answers every
one of them with 404 and never retries.

=============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


class StorageError(Exception):
    """Base class for storage failures."""


class NotFound(StorageError):
    """The requested name does not exist or cannot be opened."""


@dataclass(frozen=True)
class FileInfo:
    """
    Metadata for a file or directory.

    Attributes:
        name: Base name ("a.txt"; "/" for the root).
        is_directory: True for directories.
        modified_at: Aware UTC modification time, None when unknown.
        size: Size in bytes (0 for directories).
    """

    name: str
    is_directory: bool
    modified_at: Optional[datetime] = None
    size: int = 0


class FileHandle(ABC):
    """An open file or directory. Use as a context manager."""

    @abstractmethod
    def stat(self) -> FileInfo:
        """Metadata for this handle. Raises StorageError on failure."""

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        """Read up to `size` bytes, or everything left when negative."""

    @abstractmethod
    def read_dir(self, n: int) -> List[FileInfo]:
        """
        Next batch of at most `n` directory entries.

        Returns an empty list once the directory is exhausted.
        Raises StorageError if the handle is not a directory or the
        listing fails part way.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the handle. Safe to call twice."""

    def __enter__(self) -> "FileHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class FileSystem(ABC):
    """A hierarchical source of files."""

    @abstractmethod
    def open(self, name: str) -> FileHandle:
        """
        Open a canonical name.

        Raises:
            NotFound: If the name does not exist or cannot be opened.
        """
