"""
In-Memory TTL Cache
===================

A small, thread-safe in-memory cache with a fixed time-to-live.

Used for process-local, advisory values such as the current weather
conditions, where the goal is to bound the rate of outbound calls rather
than to share state between processes.

Usage:
    from utils.cache import TTLCache

    cache = TTLCache(ttl_seconds=600)
    weather = cache.get_or_compute("current", fetch_weather)
"""

import time
from typing import Any, Callable, Optional, TypeVar
from threading import Lock

T = TypeVar('T')


class TTLCache:
    """
    Thread-safe in-memory cache with configurable TTL.

    Attributes:
        _cache: Dictionary storing (value, timestamp) tuples
        _lock: Threading lock for thread safety
        _ttl: Time-to-live in seconds
    """

    def __init__(self, ttl_seconds: int = 600):
        self._cache: dict[str, tuple[Any, float]] = {}
        self._lock = Lock()
        self._ttl = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def get(self, key: str) -> Optional[Any]:
        """
        Get cached value if still within the TTL.

        Args:
            key: Cache key

        Returns:
            Cached value if valid, None otherwise
        """
        with self._lock:
            if key in self._cache:
                value, timestamp = self._cache[key]
                if time.time() - timestamp < self._ttl:
                    return value
        return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = (value, time.time())

    def get_or_compute(self, key: str, compute_fn: Callable[[], Optional[T]]) -> Optional[T]:
        """
        Get cached value or compute and cache a new one.

        A None result from compute_fn is not cached, so a failed lookup is
        retried on the next call instead of being pinned for the full TTL.

        Args:
            key: Cache key
            compute_fn: Function to compute value if not cached

        Returns:
            Cached or computed value (None if compute_fn produced nothing)
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        # Compute outside the lock so slow upstream calls don't block readers
        result = compute_fn()
        if result is not None:
            self.set(key, result)
        return result

    def invalidate(self, key: Optional[str] = None) -> None:
        """
        Clear cache entry or all entries.

        Args:
            key: Specific key to invalidate, or None to clear all
        """
        with self._lock:
            if key is not None:
                self._cache.pop(key, None)
            else:
                self._cache.clear()
