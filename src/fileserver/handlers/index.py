"""
Directory index lookup.

A request for a directory is answered with its index page when one
exists, and with a generated listing otherwise.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from ..storage.base import FileHandle, FileInfo, FileSystem, StorageError
from .paths import clean_path


logger = logging.getLogger(__name__)


@dataclass
class ResolvedIndex:
    """An open index page standing in for its directory."""

    path: str
    handle: FileHandle
    info: FileInfo


def resolve_index(root: FileSystem, directory: str, index_page: str) -> Optional[ResolvedIndex]:
    """
    Open `<directory><index_page>` if it exists as a regular file.

    The caller owns the returned handle. Absence is not remembered: every
    call goes back to storage.

    Args:
        root: Storage to look in.
        directory: Canonical directory name ("/" or "/docs").
        index_page: Index suffix, e.g. "/index.html".

    Returns:
        The open index, or None when there is none.
    """
    path = clean_path(directory + index_page)

    try:
        handle = root.open(path)
    except StorageError:
        return None

    try:
        info = handle.stat()
    except StorageError as e:
        logger.debug(f"Ignoring index {path}: {e}")
        handle.close()
        return None

    if info.is_directory:
        handle.close()
        return None

    return ResolvedIndex(path=path, handle=handle, info=info)
