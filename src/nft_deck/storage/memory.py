"""In-memory storage adapter"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from cachetools import TLRUCache
from loguru import logger

from .base import StorageAdapter

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


@dataclass
class _Flight:
    """A loader run shared by every concurrent miss on one key"""
    task: "asyncio.Task[Any]"
    waiters: int = field(default=0)


class MemoryStorage(StorageAdapter):
    """
    Process-wide in-memory TTL cache

    Each entry carries its own expiry. Expiry is lazy: a read at or after
    ``expires_at`` evicts the entry and reports a miss. Concurrent misses on
    the same key share one loader run. Not thread-safe; meant for a single
    asyncio event loop.
    """

    def __init__(self, max_size: int = 10000, timer: Callable[[], float] = time.monotonic):
        self._timer = timer
        self.cache: TLRUCache = TLRUCache(
            maxsize=max_size,
            ttu=lambda _key, entry, _now: entry.expires_at,
            timer=timer,
        )
        self._in_flight: Dict[str, _Flight] = {}

    def get_cache_nowait(self, key: str, default: Any = None) -> Any:
        """Synchronous read; expired entries are evicted"""
        entry: Optional[CacheEntry] = self.cache.get(key)
        if entry is None:
            # TLRUCache hides expired entries from reads without dropping them
            self.cache.expire()
            return default
        if self._timer() >= entry.expires_at:
            self.cache.pop(key, None)
            return default
        return entry.value

    def set_cache_nowait(self, key: str, value: Any, ttl: float) -> None:
        self.cache[key] = CacheEntry(value=value, expires_at=self._timer() + ttl)

    async def get_cache(self, key: str) -> Optional[Any]:
        """Get cached value"""
        return self.get_cache_nowait(key)

    async def set_cache(self, key: str, value: Any, ttl: float) -> None:
        """Set cached value with TTL"""
        self.set_cache_nowait(key, value, ttl)

    async def delete_cache(self, key: str) -> None:
        """Delete cached value"""
        self.cache.pop(key, None)

    def clear(self) -> None:
        self.cache.clear()

    async def get_or_set(self, key: str, ttl: float, loader: Callable[[], Awaitable[T]]) -> T:
        """
        Return the cached value for ``key``; on a miss await ``loader()``,
        store its result for ``ttl`` seconds and return it.

        Loader errors propagate and nothing is cached. If every caller
        waiting on a load is cancelled, the load itself is cancelled.
        """
        cached = self.get_cache_nowait(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"Cache hit for {key}")
            return cached

        flight = self._in_flight.get(key)
        if flight is None or flight.task.done():
            flight = _Flight(task=asyncio.ensure_future(self._load(key, ttl, loader)))
            self._in_flight[key] = flight
            flight.task.add_done_callback(lambda _task, f=flight: self._forget(key, f))
        else:
            logger.debug(f"Joining in-flight load for {key}")

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if flight.waiters == 1 and not flight.task.done():
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    async def _load(self, key: str, ttl: float, loader: Callable[[], Awaitable[T]]) -> T:
        value = await loader()
        self.set_cache_nowait(key, value, ttl)
        return value

    def _forget(self, key: str, flight: _Flight) -> None:
        if self._in_flight.get(key) is flight:
            del self._in_flight[key]
        # Consume the outcome so an unobserved failure is not reported twice
        if not flight.task.cancelled():
            flight.task.exception()
