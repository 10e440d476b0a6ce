"""
=============================================================================
IN-MEMORY CONTENT CACHE
=============================================================================

Maps a canonical request path to a snapshot of the file that was served
for it:

    "/docs"        →  CachedFile(name="index.html", content=b"<html>...",
                                 source_path="/docs/index.html",
                                 is_directory=True)
    "/a.txt"       →  CachedFile(name="a.txt", content=b"hello", ...)

=============================================================================
CONSISTENCY
=============================================================================

Entries are frozen dataclasses holding immutable bytes. insert() publishes
a whole entry under the lock, so a reader sees either the previous entry
or the new one, never a mix. Two requests racing to fill the same key both
succeed; the later insert wins.

No storage I/O ever happens while the lock is held: callers read the file
first and insert the finished snapshot afterwards.

=============================================================================
EVICTION
=============================================================================

Least-recently-used, with a byte budget:

    OrderedDict (oldest first)
    ┌────────┬────────┬────────┬────────┐
    │ /old   │ /b.css │ /a.js  │ /new   │   lookup() moves a key to the end
    └────────┴────────┴────────┴────────┘   insert() evicts from the front
        ▲                                   until the budget holds
        └── evicted first

Optional extras: a maximum entry count, and a TTL after which an entry is
treated as absent. A single entry larger than the whole budget is not
cached at all.

=============================================================================
"""

from collections import OrderedDict
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
import logging
import threading
import time


logger = logging.getLogger(__name__)

MB = 1 << 20

DEFAULT_MAX_BYTES = 265 * MB


@dataclass(frozen=True)
class CachedFile:
    """
    Snapshot of a served regular file.

    Attributes:
        name: Served name; its extension picks the Content-Type.
        modified_at: File mtime at capture, None when unknown.
        size: Size reported by storage at capture.
        content: The complete body.
        source_path: Storage path that was read. Differs from the cache
                     key when a directory was served through its index.
        is_directory: The cache key names a directory.
        cached_at: Cache clock reading at insertion.
    """

    name: str
    modified_at: Optional[datetime]
    size: int
    content: bytes
    source_path: str = ""
    is_directory: bool = False
    cached_at: float = 0.0


class ContentCache:
    """
    Thread-safe LRU cache of CachedFile entries.

    Args:
        max_bytes: Budget for the summed content length. None disables it.
        max_entries: Maximum number of entries. None disables it.
        ttl: Seconds after insertion an entry stays valid. None disables it.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        max_bytes: Optional[int] = DEFAULT_MAX_BYTES,
        max_entries: Optional[int] = None,
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_bytes = max_bytes
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock

        self._entries: "OrderedDict[str, CachedFile]" = OrderedDict()
        self._lock = threading.Lock()
        self._bytes = 0

        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0

    def lookup(self, key: str) -> Optional[CachedFile]:
        """Entry for `key`, or None. Counts as a use for LRU ordering."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            if self._expired(entry):
                self._remove(key)
                self.expirations += 1
                self.misses += 1
                logger.debug(f"Expired {key}")
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            return entry

    def insert(self, key: str, entry: CachedFile) -> bool:
        """
        Insert or replace the entry for `key`.

        Returns:
            False when the entry alone exceeds the byte budget and was not
            stored; True otherwise.
        """
        size = len(entry.content)
        if self.max_bytes is not None and size > self.max_bytes:
            logger.debug(f"Not caching {key}: {size} bytes exceeds budget of {self.max_bytes}")
            return False

        entry = replace(entry, cached_at=self._clock())

        with self._lock:
            if key in self._entries:
                self._remove(key)
            self._entries[key] = entry
            self._bytes += size
            self._evict()

        logger.debug(f"Cached {key} ({size} bytes)")
        return True

    def invalidate(self, key: str, expected: Optional[CachedFile] = None) -> bool:
        """
        Drop the entry for `key`.

        With `expected`, only drop it if it is still that exact entry, so
        a snapshot replaced in the meantime survives.

        Returns:
            True if an entry was removed.
        """
        with self._lock:
            current = self._entries.get(key)
            if current is None:
                return False
            if expected is not None and current is not expected:
                return False
            self._remove(key)

        logger.debug(f"Invalidated {key}")
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._bytes = 0

    def keys(self) -> List[str]:
        """Cached keys, least recently used first."""
        with self._lock:
            return list(self._entries)

    def items(self) -> List[Tuple[str, CachedFile]]:
        """Snapshot of (key, entry) pairs; does not affect LRU order."""
        with self._lock:
            return list(self._entries.items())

    @property
    def total_bytes(self) -> int:
        return self._bytes

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "bytes": self._bytes,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "expirations": self.expirations,
            }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # ─────────────────────────────────────────────────────────────────────
    # Internals (lock held)
    # ─────────────────────────────────────────────────────────────────────

    def _expired(self, entry: CachedFile) -> bool:
        return self.ttl is not None and self._clock() - entry.cached_at >= self.ttl

    def _remove(self, key: str) -> None:
        entry = self._entries.pop(key)
        self._bytes -= len(entry.content)

    def _evict(self) -> None:
        while self._entries and self._over_budget():
            key, entry = self._entries.popitem(last=False)
            self._bytes -= len(entry.content)
            self.evictions += 1
            logger.debug(f"Evicted {key} ({len(entry.content)} bytes)")

    def _over_budget(self) -> bool:
        if self.max_bytes is not None and self._bytes > self.max_bytes:
            return True
        return self.max_entries is not None and len(self._entries) > self.max_entries
