"""
TTL cache for derived characters.

The calculator depends on the ``CalculationCache`` interface only, so a
shared backend (Redis, memcached) can replace the in-memory one without
touching business logic. ``InMemoryCalculationCache`` stores derived
characters per process with TTL-based expiration and substring-pattern
invalidation (e.g. drop every entry of one character after an edit).
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger("pathfinder-engine")


class CalculationCache(ABC):
    """Asynchronous key/value cache with per-entry time to live."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or an expired entry."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value for ``ttl`` seconds, replacing any existing entry."""

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove one entry. Returns True if it existed."""

    @abstractmethod
    async def invalidate(self, pattern: str) -> int:
        """Remove every entry whose key contains ``pattern``. Returns the count."""


@dataclass
class CacheEntry:
    """Single cache entry with TTL metadata.

    Attributes:
        key: Cache key identifier.
        value: Cached object.
        created_at: Clock reading when the entry was stored.
        ttl: Time to live in seconds.
    """
    key: str
    value: Any
    created_at: float
    ttl: float


@dataclass
class CacheStats:
    """Statistics for the calculation cache.

    Attributes:
        total_entries: Number of entries currently in cache.
        hit_count: Number of successful cache lookups.
        miss_count: Number of failed cache lookups.
        expired_count: Number of entries that expired on access or cleanup.
        invalidated_count: Number of entries explicitly removed.
        hit_rate: Ratio of hits to total lookups (0.0-1.0).
    """
    total_entries: int
    hit_count: int
    miss_count: int
    expired_count: int
    invalidated_count: int
    hit_rate: float


class InMemoryCalculationCache(CalculationCache):
    """Process-local TTL cache.

    Usage:
        cache = InMemoryCalculationCache()
        await cache.set("derived-character:abc:...", derived, ttl=300)
        derived = await cache.get("derived-character:abc:...")
        await cache.invalidate("derived-character:abc:")
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize the cache.

        Args:
            clock: Monotonic time source in seconds; injectable for tests.
        """
        self._cache: dict[str, CacheEntry] = {}
        self._clock = clock
        self._hit_count = 0
        self._miss_count = 0
        self._expired_count = 0
        self._invalidated_count = 0

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            self._miss_count += 1
            return None

        if self._is_expired(entry):
            del self._cache[key]
            self._expired_count += 1
            self._miss_count += 1
            logger.debug(f"Calculation cache: entry '{key}' expired")
            return None

        self._hit_count += 1
        return entry.value

    async def set(self, key: str, value: Any, ttl: float) -> None:
        self._cache[key] = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=ttl,
        )
        logger.debug(f"Calculation cache: stored '{key}' (TTL: {ttl}s)")

    async def remove(self, key: str) -> bool:
        if key in self._cache:
            del self._cache[key]
            self._invalidated_count += 1
            return True
        return False

    async def invalidate(self, pattern: str) -> int:
        matching_keys = [key for key in self._cache if pattern in key]

        for key in matching_keys:
            del self._cache[key]
            self._invalidated_count += 1

        if matching_keys:
            logger.debug(
                f"Calculation cache: invalidated {len(matching_keys)} entries "
                f"matching pattern '{pattern}'"
            )

        return len(matching_keys)

    def cleanup_expired(self) -> int:
        """Remove all expired entries.

        Returns:
            Number of expired entries removed.
        """
        expired_keys = [key for key, entry in self._cache.items() if self._is_expired(entry)]

        for key in expired_keys:
            del self._cache[key]
            self._expired_count += 1

        return len(expired_keys)

    def get_stats(self) -> CacheStats:
        total_lookups = self._hit_count + self._miss_count
        hit_rate = self._hit_count / total_lookups if total_lookups > 0 else 0.0

        return CacheStats(
            total_entries=len(self._cache),
            hit_count=self._hit_count,
            miss_count=self._miss_count,
            expired_count=self._expired_count,
            invalidated_count=self._invalidated_count,
            hit_rate=hit_rate,
        )

    def _is_expired(self, entry: CacheEntry) -> bool:
        return (self._clock() - entry.created_at) > entry.ttl

    @property
    def size(self) -> int:
        """Return the number of entries currently in the cache."""
        return len(self._cache)


__all__ = [
    "CalculationCache",
    "InMemoryCalculationCache",
    "CacheEntry",
    "CacheStats",
]
