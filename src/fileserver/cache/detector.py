"""
=============================================================================
CHANGE DETECTION
=============================================================================

Keeps the content cache honest when files change on disk.

A background thread wakes every `interval` seconds and re-stats the
source of every cached entry:

    for key, entry in cache.items():
        open(entry.source_path) + stat()
            failed            → invalidate    (deleted or unreadable)
            now a directory   → invalidate
            mtime or size ≠   → invalidate    (edited)
            otherwise         → keep

Invalidated keys are simply dropped. The next request for them misses,
reads the file again and re-populates the cache.

=============================================================================
CONTROL SURFACE
=============================================================================

    detector.start()
        │
        │   stop_event   ◄── caller sets it to ask for shutdown
        │   done_event   ──► set by the thread once it has exited
        │
    detector.stop(timeout)   == stop_event.set(); done_event.wait(timeout)

=============================================================================
"""

from typing import List, Optional
import logging
import threading

from ..storage.base import FileSystem, StorageError
from .content_cache import CachedFile, ContentCache


logger = logging.getLogger(__name__)


class ChangeDetector:
    """
    Background invalidation of stale cache entries.

    Args:
        cache: Cache to sweep.
        root: Storage the cached files were read from.
        interval: Seconds between sweeps.
    """

    def __init__(self, cache: ContentCache, root: FileSystem, interval: float = 1.0):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")

        self.cache = cache
        self.root = root
        self.interval = interval

        self.stop_event = threading.Event()
        self.done_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.sweeps = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "ChangeDetector":
        if self._thread is not None:
            raise RuntimeError("Change detector already started")

        self._thread = threading.Thread(
            target=self._run,
            name="ChangeDetector",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Change detector started (every {self.interval}s)")
        return self

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Ask the thread to exit and wait for it.

        Returns:
            True once the thread has finished, False on timeout.
        """
        self.stop_event.set()
        if self._thread is None:
            self.done_event.set()
        return self.done_event.wait(timeout)

    def _run(self) -> None:
        try:
            while not self.stop_event.wait(self.interval):
                try:
                    self.run_once()
                except Exception as e:
                    logger.exception(f"Change detection sweep failed: {e}")
        finally:
            self.done_event.set()
            logger.debug("Change detector stopped")

    def run_once(self) -> List[str]:
        """
        Sweep every cached entry once.

        Returns:
            Keys that were invalidated.
        """
        invalidated = []

        for key, entry in self.cache.items():
            if self.stop_event.is_set():
                break
            if self._changed(key, entry) and self.cache.invalidate(key, expected=entry):
                invalidated.append(key)

        self.sweeps += 1
        if invalidated:
            logger.info(f"Invalidated {len(invalidated)} changed file(s): {', '.join(invalidated)}")
        return invalidated

    def _changed(self, key: str, entry: CachedFile) -> bool:
        path = entry.source_path or key
        try:
            with self.root.open(path) as handle:
                info = handle.stat()
        except StorageError as e:
            logger.debug(f"{path} is gone: {e}")
            return True

        if info.is_directory:
            return True
        return info.modified_at != entry.modified_at or info.size != entry.size
