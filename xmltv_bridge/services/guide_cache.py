"""
Guide Cache

In-process TTL cache with lazy eviction and single-flight rebuilds.
"""
import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    value: T
    expires_at: float


class TTLCache:
    """
    Key/value store with per-entry expiry.

    Entries are read while now <= expires_at. Expired entries are removed by
    the first read that finds them and by a sweep on every write; there is
    no background task. get_or_compute holds a per-key asyncio.Lock so
    concurrent misses on the same key run the factory once and latecomers
    reuse its result. The lock is dropped once no caller is waiting on it.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key for ttl_seconds (last write wins)."""
        self._evict_expired()
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def get(self, key: str) -> Any | None:
        """Cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            logger.debug("Cache entry expired: %s", key)
            return None
        return entry.value

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %s expired cache entries", len(expired))

    def delete(self, key: str) -> bool:
        """Remove key, returning whether it was present."""
        return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def is_computing(self, key: str) -> bool:
        """True while a rebuild for key is in flight."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    async def get_or_compute(
        self,
        key: str,
        ttl_seconds: float,
        factory: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Return the cached value or build it once.

        Args:
            key: Cache key
            ttl_seconds: Lifetime of a freshly computed value
            factory: Async callable producing the value

        Returns:
            Cached or freshly computed value

        Raises:
            Any exception raised by factory (nothing is cached in that case)
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        if lock.locked():
            logger.info("Rebuild of %s already in progress, waiting for it", key)

        try:
            async with lock:
                cached = self.get(key)
                if cached is not None:
                    return cached

                value = await factory()
                self.set(key, value, ttl_seconds)
                return value
        finally:
            self._waiters[key] -= 1
            if not self._waiters[key]:
                del self._waiters[key]
                del self._locks[key]
