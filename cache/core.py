"""
Core caching functionality for the analytics read path.

This module provides a short-TTL in-memory cache that sits in front of
store queries. Expired entries are retained so a failing loader can fall
back to the last good value instead of surfacing an error.
"""
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from analytics.constants import CACHE_MAX_SIZE, CACHE_TTL
from analytics.errors import CacheLoadError

from .monitoring import CacheMonitor

logger = structlog.get_logger()


@dataclass
class CacheEntry:
    """A cached value with the time it was stored."""
    value: Any
    stored_at: float
    ttl: float

    def age(self, now: float) -> float:
        return now - self.stored_at

    def is_fresh(self, now: float) -> bool:
        return self.age(now) < self.ttl


class Cache:
    """
    In-memory read cache with per-key TTL and stale fallback.

    One instance is constructed per process and passed to the readers that
    need it. The clock is injected so tests can move time deterministically.
    """

    def __init__(self, default_ttl: float = CACHE_TTL, max_size: int = CACHE_MAX_SIZE,
                 clock: Callable[[], float] = time.monotonic,
                 monitor: Optional[CacheMonitor] = None):
        """
        Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds for cached items
            max_size: Maximum number of items to store in the cache
            clock: Monotonic time source in seconds
            monitor: Metrics recorder, or None to use a fresh one
        """
        self._cache: Dict[str, CacheEntry] = {}
        self._default_ttl = default_ttl
        self._max_size = max_size
        self._clock = clock
        self._monitor = monitor or CacheMonitor()
        self._hits = 0
        self._misses = 0
        self._stale_served = 0

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get an entry from the cache, fresh or not.

        Args:
            key: Cache key to retrieve

        Returns:
            The cache entry, or None if the key was never stored
        """
        return self._cache.get(key)

    def put(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value, resetting its age.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds, or None to use default
        """
        # Enforce max size by removing oldest entry if needed
        if len(self._cache) >= self._max_size and key not in self._cache:
            oldest_key = min(self._cache.items(), key=lambda item: item[1].stored_at)[0]
            del self._cache[oldest_key]

        self._cache[key] = CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self._default_ttl if ttl is None else ttl,
        )
        self._monitor.update_size(len(self._cache))

    def delete(self, key: str) -> bool:
        """
        Delete a key from the cache.

        Returns:
            True if deleted, False if key not found
        """
        if key in self._cache:
            del self._cache[key]
            self._monitor.update_size(len(self._cache))
            return True
        return False

    def flush(self) -> None:
        """Clear all keys and counters."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0
        self._stale_served = 0
        self._monitor.update_size(0)

    async def cached_read(self, key: str, loader: Callable[[], Awaitable[Any]],
                          ttl: Optional[float] = None) -> Any:
        """
        Return the cached value for key, loading it on a miss.

        A fresh entry is returned without calling the loader. Otherwise the
        loader is awaited: on success its result is stored and returned; on
        failure the previous value, however old, is returned if one exists.
        Concurrent misses on the same key each call the loader.

        Args:
            key: Cache key, one per query shape
            loader: Coroutine function producing the value
            ttl: Time-to-live in seconds, or None to use default

        Returns:
            The fresh, cached or stale value

        Raises:
            CacheLoadError: If the loader fails and nothing was cached before
        """
        entry = self._cache.get(key)
        if entry is not None and entry.is_fresh(self._clock()):
            self._hits += 1
            self._monitor.record_hit()
            logger.debug("cache_hit", key=key)
            return entry.value

        self._misses += 1
        self._monitor.record_miss()
        try:
            value = await loader()
        except Exception as e:
            self._monitor.record_load_failure()
            # Re-read: a concurrent load may have stored a value meanwhile
            previous = self._cache.get(key)
            if previous is None:
                logger.error("cache_load_failed", key=key, error=str(e))
                raise CacheLoadError(key) from e
            self._stale_served += 1
            self._monitor.record_stale()
            logger.warning("cache_serving_stale",
                           key=key,
                           age=round(previous.age(self._clock()), 3),
                           error=str(e))
            return previous.value

        self.put(key, value, ttl)
        logger.debug("cache_miss", key=key)
        return value

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        total_requests = self._hits + self._misses
        hit_ratio = self._hits / total_requests if total_requests > 0 else 0

        return {
            'size': len(self._cache),
            'max_size': self._max_size,
            'default_ttl': self._default_ttl,
            'hits': self._hits,
            'misses': self._misses,
            'stale_served': self._stale_served,
            'hit_ratio': hit_ratio,
            'items': list(self._cache.keys())
        }


def cache_key(*args: Any, **kwargs: Any) -> str:
    """
    Generate a cache key from arguments.

    The first argument is the prefix/namespace; the remaining arguments and
    keyword arguments describe the query shape.

    Returns:
        A string to use as a cache key
    """
    if not args:
        return ""

    key_parts = [str(arg) for arg in args]

    # Add kwargs to key (sorted for consistency)
    for k, v in sorted(kwargs.items()):
        key_parts.append(f"{k}={v}")

    # Join with colons for readability
    return ":".join(key_parts)
