"""In-process TTL cache with periodic eviction.

The cache holds disposable projections of durable data. Values are
copied on ``put`` and on ``get``, so callers never share state with an
entry. The map is mutated without locking: concurrent ``put`` calls on one
key let the last writer win. There is no size bound; expiry is the only
thing keeping the map small, so callers must not build keys from
unbounded input.
"""

import asyncio
import copy
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from gymtrack_sync.config import settings
from gymtrack_sync.entities import CacheEntry
from gymtrack_sync.models import CacheStats

logger = logging.getLogger(__name__)

SweepCallback = Callable[[CacheStats], Awaitable[None]]


def create_cache_key(base_name: str, *parts: str | int | None) -> str:
    """Build a cache key like ``workouts:u1`` from non-empty parts."""
    valid_parts = [str(part) for part in parts if part is not None]
    return ":".join([base_name, *valid_parts])


class CacheManager:
    """TTL key-value cache owned by one service instance.

    Construct one per service (or facade) rather than sharing a module-level
    instance; tests pass their own ``clock`` to control expiry.

    Example:
        ```python
        cache = CacheManager(ttl=60)
        cache.put("profile:u1", {"uid": "u1"})
        cache.get("profile:u1")  # {"uid": "u1"}

        await cache.start()  # background sweep every sweep_interval seconds
        await cache.stop()
        ```
    """

    def __init__(
        self,
        ttl: float | None = None,
        sweep_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_sweep: SweepCallback | None = None,
    ) -> None:
        """Initialize the cache manager.

        Args:
            ttl: Default time-to-live in seconds. Defaults to settings.cache_ttl.
            sweep_interval: Seconds between background sweeps. Defaults to settings.
            clock: Monotonic time source in seconds.
            on_sweep: Optional coroutine called with stats after each background sweep.
        """
        self._entries: dict[str, CacheEntry] = {}
        self._ttl = ttl or settings.cache_ttl
        self._sweep_interval = sweep_interval or settings.cache_sweep_interval
        self._clock = clock
        self._on_sweep = on_sweep
        self._stats = CacheStats()
        self._task: asyncio.Task[None] | None = None

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value, overwriting any existing entry.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time-to-live in seconds. Defaults to the manager's TTL.
        """
        now = self._clock()
        self._entries[key] = CacheEntry(
            data=copy.deepcopy(value),
            stored_at=now,
            expires_at=now + (ttl if ttl is not None else self._ttl),
        )

    def get(self, key: str) -> Any | None:
        """Return a copy of a cached value, or None on miss.

        An expired entry is evicted on access.
        """
        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            logger.debug("Cache miss for %s", key)
            return None

        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            self._stats.misses += 1
            self._stats.evictions += 1
            logger.debug("Cache entry expired for %s", key)
            return None

        self._stats.hits += 1
        logger.debug("Cache hit for %s", key)
        return copy.deepcopy(entry.data)

    def invalidate(self, key: str) -> None:
        """Drop a single entry."""
        self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with ``prefix``.

        Returns:
            Number of entries dropped
        """
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def invalidate_all(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def sweep(self) -> int:
        """Evict all expired entries, accessed or not.

        Returns:
            Number of entries evicted
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]

        self._stats.evictions += len(expired)
        self._stats.last_sweep_at = now
        if expired:
            logger.debug("Cache sweep evicted %d entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        """Get a snapshot of the cache counters."""
        return CacheStats(
            entries=len(self._entries),
            hits=self._stats.hits,
            misses=self._stats.misses,
            evictions=self._stats.evictions,
            last_sweep_at=self._stats.last_sweep_at,
        )

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()
            if self._on_sweep is not None:
                try:
                    await self._on_sweep(self.stats())
                except Exception:
                    logger.warning("Cache sweep callback failed", exc_info=True)

    async def start(self, on_sweep: SweepCallback | None = None) -> None:
        """Start the background sweep task. No-op if already running.

        Args:
            on_sweep: Replaces the callback given at construction, if set.
        """
        if on_sweep is not None:
            self._on_sweep = on_sweep
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        """Cancel the background sweep task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        """Whether the background sweep task is active."""
        return self._task is not None and not self._task.done()

    @property
    def ttl(self) -> float:
        """Get the default time-to-live in seconds."""
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())
