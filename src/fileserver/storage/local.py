"""
=============================================================================
LOCAL DIRECTORY STORAGE
=============================================================================

Serves a directory tree from the local disk.

    LocalFileSystem("/srv/www").open("/docs/a.txt")
        → /srv/www/docs/a.txt

=============================================================================
CONTAINMENT
=============================================================================

Canonical names cannot contain "..", so lexical escapes are impossible by
construction. Symlinks are the remaining way out of the tree:

    /srv/www/secret → /etc

Every name is resolved with os.path.realpath() and rejected unless the
result still lives under the (resolved) root. A rejected name looks
exactly like a missing one: NotFound.

=============================================================================
"""

from datetime import datetime, timezone
from typing import List, Optional
import logging
import os
import posixpath

from .base import FileHandle, FileInfo, FileSystem, NotFound, StorageError


logger = logging.getLogger(__name__)


def _info_from_stat(name: str, st: os.stat_result, is_directory: bool) -> FileInfo:
    return FileInfo(
        name=name,
        is_directory=is_directory,
        modified_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        size=0 if is_directory else st.st_size,
    )


class LocalFileHandle(FileHandle):
    """
    Handle on a local file or directory.

    Files are opened eagerly in binary mode. Directories are listed
    lazily on the first read_dir() call, sorted by name, and then handed
    out in batches.
    """

    def __init__(self, name: str, full_path: str):
        self.name = name
        self.full_path = full_path
        self._file = None
        self._entries: Optional[List[FileInfo]] = None
        self._offset = 0
        self._closed = False

        try:
            os.stat(full_path)
        except OSError as e:
            raise NotFound(name) from e

        self._is_directory = os.path.isdir(full_path)
        if not self._is_directory:
            try:
                self._file = open(full_path, "rb")
            except OSError as e:
                raise NotFound(name) from e

    def stat(self) -> FileInfo:
        if self._closed:
            raise StorageError(f"{self.name}: handle is closed")
        try:
            st = os.fstat(self._file.fileno()) if self._file else os.stat(self.full_path)
        except OSError as e:
            raise StorageError(f"{self.name}: {e}") from e
        base = posixpath.basename(self.name) or "/"
        return _info_from_stat(base, st, self._is_directory)

    def read(self, size: int = -1) -> bytes:
        if self._is_directory:
            raise StorageError(f"{self.name}: is a directory")
        if self._closed:
            raise StorageError(f"{self.name}: handle is closed")
        try:
            return self._file.read(size)
        except OSError as e:
            raise StorageError(f"{self.name}: {e}") from e

    def read_dir(self, n: int) -> List[FileInfo]:
        if not self._is_directory:
            raise StorageError(f"{self.name}: not a directory")

        if self._entries is None:
            self._entries = self._list()

        batch = self._entries[self._offset:self._offset + n]
        self._offset += len(batch)
        return batch

    def _list(self) -> List[FileInfo]:
        entries = []
        try:
            with os.scandir(self.full_path) as it:
                for entry in it:
                    try:
                        st = entry.stat()
                        is_directory = entry.is_dir()
                    except OSError:
                        # Dangling symlink: list it as what it is
                        st = entry.stat(follow_symlinks=False)
                        is_directory = False
                    entries.append(_info_from_stat(entry.name, st, is_directory))
        except OSError as e:
            raise StorageError(f"{self.name}: {e}") from e

        entries.sort(key=lambda info: info.name)
        return entries

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._file is not None:
            self._file.close()


class LocalFileSystem(FileSystem):
    """
    FileSystem rooted at a local directory.

    Args:
        root: Directory to serve. Must exist.

    Raises:
        ValueError: If root is not a directory.
    """

    def __init__(self, root: str):
        self.root = os.path.realpath(root)
        if not os.path.isdir(self.root):
            raise ValueError(f"Not a directory: {root}")

    def resolve(self, name: str) -> str:
        """
        Map a canonical name to a path on disk.

        Raises:
            NotFound: For NUL bytes or paths resolving outside the root.
        """
        if "\x00" in name:
            raise NotFound(name)

        relative = name.lstrip("/")
        full_path = os.path.realpath(os.path.join(self.root, *relative.split("/")) if relative else self.root)

        if full_path != self.root and os.path.commonpath([self.root, full_path]) != self.root:
            logger.debug(f"Rejecting {name!r}: resolves outside {self.root}")
            raise NotFound(name)

        return full_path

    def open(self, name: str) -> LocalFileHandle:
        return LocalFileHandle(name, self.resolve(name))

    def __repr__(self) -> str:
        return f"LocalFileSystem({self.root!r})"
