"""
Unit tests for the in-memory content cache.
"""

import threading

from conftest import MTIME, FakeClock
from fileserver.cache.content_cache import DEFAULT_MAX_BYTES, MB, CachedFile, ContentCache


def entry(content: bytes = b"hello", name: str = "a.txt", **kwargs) -> CachedFile:
    return CachedFile(name=name, modified_at=MTIME, size=len(content), content=content, **kwargs)


class TestContentCache:
    """Tests for lookup, insert and invalidation."""

    def test_default_budget(self):
        assert ContentCache().max_bytes == DEFAULT_MAX_BYTES == 265 * MB

    def test_lookup_miss(self):
        cache = ContentCache()

        assert cache.lookup("/a.txt") is None
        assert cache.stats()["misses"] == 1

    def test_insert_and_lookup(self):
        cache = ContentCache()
        cache.insert("/a.txt", entry())

        found = cache.lookup("/a.txt")

        assert found.content == b"hello"
        assert found.name == "a.txt"
        assert "/a.txt" in cache
        assert len(cache) == 1
        assert cache.stats()["hits"] == 1

    def test_insert_replaces(self):
        cache = ContentCache()
        cache.insert("/a.txt", entry(b"old"))
        cache.insert("/a.txt", entry(b"newer"))

        assert cache.lookup("/a.txt").content == b"newer"
        assert cache.total_bytes == 5
        assert len(cache) == 1

    def test_insert_stamps_cached_at(self):
        clock = FakeClock(start=42.0)
        cache = ContentCache(clock=clock)
        cache.insert("/a.txt", entry())

        assert cache.lookup("/a.txt").cached_at == 42.0

    def test_invalidate(self):
        cache = ContentCache()
        cache.insert("/a.txt", entry())

        assert cache.invalidate("/a.txt") is True
        assert cache.invalidate("/a.txt") is False
        assert cache.lookup("/a.txt") is None
        assert cache.total_bytes == 0

    def test_invalidate_expected_spares_newer_entry(self):
        """A sweep holding a stale snapshot must not drop its replacement."""
        cache = ContentCache()
        cache.insert("/a.txt", entry(b"v1"))
        stale = cache.items()[0][1]
        cache.insert("/a.txt", entry(b"v2"))

        assert cache.invalidate("/a.txt", expected=stale) is False
        assert cache.lookup("/a.txt").content == b"v2"

        current = cache.items()[0][1]
        assert cache.invalidate("/a.txt", expected=current) is True

    def test_clear(self):
        cache = ContentCache()
        cache.insert("/a.txt", entry())
        cache.insert("/b.txt", entry())
        cache.clear()

        assert len(cache) == 0
        assert cache.total_bytes == 0

    def test_items_do_not_touch_lru_order(self):
        cache = ContentCache()
        cache.insert("/a", entry())
        cache.insert("/b", entry())
        cache.items()

        assert cache.keys() == ["/a", "/b"]


class TestEviction:
    """Tests for LRU eviction and bounds."""

    def test_byte_budget_evicts_least_recently_used(self):
        cache = ContentCache(max_bytes=10)
        cache.insert("/a", entry(b"aaaa"))
        cache.insert("/b", entry(b"bbbb"))
        cache.lookup("/a")
        cache.insert("/c", entry(b"cccc"))

        assert cache.keys() == ["/a", "/c"]
        assert cache.total_bytes == 8
        assert cache.stats()["evictions"] == 1

    def test_oversized_entry_is_not_cached(self):
        cache = ContentCache(max_bytes=4)
        cache.insert("/small", entry(b"ab"))

        assert cache.insert("/big", entry(b"too large")) is False
        assert "/big" not in cache
        assert "/small" in cache

    def test_max_entries(self):
        cache = ContentCache(max_entries=2)
        for key in ("/a", "/b", "/c"):
            cache.insert(key, entry())

        assert cache.keys() == ["/b", "/c"]

    def test_unbounded(self):
        cache = ContentCache(max_bytes=None)
        assert cache.insert("/big", entry(b"x" * 1024)) is True

    def test_total_bytes_tracks_content(self):
        cache = ContentCache()
        cache.insert("/a", entry(b"12345"))
        cache.insert("/b", entry(b"123"))

        assert cache.total_bytes == 8
        assert cache.stats()["bytes"] == 8


class TestExpiry:
    """Tests for the optional TTL."""

    def test_entry_expires(self):
        clock = FakeClock()
        cache = ContentCache(ttl=10.0, clock=clock)
        cache.insert("/a.txt", entry())

        clock.advance(9)
        assert cache.lookup("/a.txt") is not None

        clock.advance(1)
        assert cache.lookup("/a.txt") is None
        assert "/a.txt" not in cache
        assert cache.stats()["expirations"] == 1

    def test_reinsert_restarts_ttl(self):
        clock = FakeClock()
        cache = ContentCache(ttl=10.0, clock=clock)
        cache.insert("/a.txt", entry())
        clock.advance(8)
        cache.insert("/a.txt", entry())
        clock.advance(8)

        assert cache.lookup("/a.txt") is not None


class TestConcurrency:
    """Tests for concurrent access."""

    def test_concurrent_inserts_and_lookups(self):
        cache = ContentCache(max_bytes=64)
        errors = []

        def worker(n: int):
            try:
                for i in range(200):
                    key = f"/{(n + i) % 10}"
                    cache.insert(key, entry(bytes([n]) * 8))
                    found = cache.lookup(key)
                    if found is not None:
                        assert len(found.content) == 8
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert cache.total_bytes <= 64
        assert cache.total_bytes == sum(len(e.content) for _, e in cache.items())
