"""
In-memory caching of served files.

    content_cache.py   CachedFile, ContentCache (LRU, byte budget, TTL)
    detector.py        ChangeDetector (background invalidation)
"""

from .content_cache import CachedFile, ContentCache, DEFAULT_MAX_BYTES
from .detector import ChangeDetector

__all__ = [
    "CachedFile",
    "ContentCache",
    "DEFAULT_MAX_BYTES",
    "ChangeDetector",
]
