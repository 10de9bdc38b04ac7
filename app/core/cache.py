"""
Caching Module

In-memory TTL cache for read-mostly course content:
- Ordered video lists per course
- Question sets per video

Content is authored by admins and read on every learner request, so it is
cached on the read side and explicitly invalidated by every admin write.
Per-user progress is never cached.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from app.core.config import settings


T = TypeVar('T')


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL support."""
    value: T
    expires_at: float

    def is_expired(self) -> bool:
        """Check if the entry has expired."""
        return time.time() > self.expires_at


class TTLCache(Generic[T]):
    """
    TTL cache with LRU eviction.

    Keys are stringified so UUID and str ids hit the same entry.
    """

    def __init__(self, max_size: int = 1000, default_ttl: int = 300):
        """
        Initialize the cache.

        Args:
            max_size: Maximum number of entries.
            default_ttl: Default time-to-live in seconds.
        """
        self._cache: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._hits = 0
        self._misses = 0

    def get(self, key: Any) -> Optional[T]:
        """
        Get a value from the cache.

        Returns:
            Cached value or None if not found/expired.
        """
        key = str(key)
        entry = self._cache.get(key)

        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired():
            del self._cache[key]
            self._misses += 1
            return None

        self._cache.move_to_end(key)
        self._hits += 1
        return entry.value

    def set(self, key: Any, value: T, ttl: Optional[int] = None) -> None:
        """
        Set a value in the cache.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Optional TTL override in seconds.
        """
        key = str(key)
        expires_at = time.time() + (ttl or self._default_ttl)

        if key in self._cache:
            del self._cache[key]

        # Evict least recently used entries at capacity
        while len(self._cache) >= self._max_size:
            self._cache.popitem(last=False)

        self._cache[key] = CacheEntry(value=value, expires_at=expires_at)

    def delete(self, key: Any) -> bool:
        """
        Delete a key from the cache.

        Returns:
            True if deleted, False if not found.
        """
        key = str(key)
        if key in self._cache:
            del self._cache[key]
            return True
        return False

    def clear(self) -> None:
        """Clear all entries from the cache."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> Dict[str, Any]:
        """Hit/miss counts and hit rate."""
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0.0
        return {
            "size": len(self._cache),
            "max_size": self._max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate_percent": round(hit_rate, 2),
        }


# ============== Global Cache Instances ==============

# Ordered video snapshots keyed by course id
course_videos_cache: TTLCache[List[Any]] = TTLCache(
    max_size=settings.CACHE_MAX_SIZE,
    default_ttl=settings.CACHE_TTL_SECONDS,
)

# Ordered question snapshots keyed by video id
video_questions_cache: TTLCache[List[Any]] = TTLCache(
    max_size=settings.CACHE_MAX_SIZE,
    default_ttl=settings.CACHE_TTL_SECONDS,
)


# ============== Invalidation Helpers ==============
# Invalidation is local to this process; see Settings.CACHE_TTL_SECONDS.

def invalidate_course(course_id: Any) -> None:
    """Drop cached content for a course after an admin write."""
    course_videos_cache.delete(course_id)


def invalidate_video(video_id: Any, course_id: Any = None) -> None:
    """Drop cached questions for a video (and its course's video list)."""
    video_questions_cache.delete(video_id)
    if course_id is not None:
        course_videos_cache.delete(course_id)


def get_cache_stats() -> Dict[str, Any]:
    """Get statistics for all caches."""
    return {
        "course_videos_cache": course_videos_cache.stats(),
        "video_questions_cache": video_questions_cache.stats(),
    }
