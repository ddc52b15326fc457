"""
Read-through cache in front of the bulk inventory read

Concurrent readers share one in-flight request. ``invalidate`` drops the
cached value and the in-flight request, then announces the invalidation on
the event bus with the caller's origin tag, so a fetch issued after
``invalidate`` never returns the entry it replaced.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from inventario_dashboard.core.config import CONFIG
from inventario_dashboard.events.bus import EventBus, EventKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheState:
    """Snapshot of the cache for diagnostics."""

    has_value: bool
    fetched_at: Optional[float]
    is_valid: bool
    in_flight: bool


class ReadThroughCache(Generic[T]):
    """
    TTL cache with request coalescing.

    Args:
        fetcher: coroutine function producing a fresh value
        ttl_seconds: lifetime of a cached value
        bus: when given, ``invalidate`` publishes "cache-invalidated"
        clock: monotonic time source (injectable for tests)
        name: label used in log lines
    """

    def __init__(
        self,
        fetcher: Callable[[], Awaitable[T]],
        *,
        ttl_seconds: float = CONFIG.cache.inventory_ttl_seconds,
        bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "inventario",
    ) -> None:
        self._fetcher = fetcher
        self._ttl = float(ttl_seconds)
        self._bus = bus
        self._clock = clock
        self._name = name
        self._value: Optional[T] = None
        self._fetched_at: Optional[float] = None
        self._inflight: Optional[asyncio.Future] = None
        self._generation = 0

    def is_valid(self) -> bool:
        if self._fetched_at is None:
            return False
        return (self._clock() - self._fetched_at) < self._ttl

    async def get(self) -> T:
        """Return the cached value, or fetch it (once for concurrent callers)."""
        if self.is_valid():
            logger.debug(f"[{self._name}] cache hit")
            return self._value  # type: ignore[return-value]

        if self._inflight is None:
            logger.debug(f"[{self._name}] cache miss, fetching")
            self._inflight = asyncio.ensure_future(self._fetch(self._generation))
        return await self._inflight

    async def _fetch(self, generation: int) -> T:
        try:
            value = await self._fetcher()
            # A value fetched before an invalidation is returned but not kept
            if generation == self._generation:
                self._value = value
                self._fetched_at = self._clock()
            return value
        finally:
            if generation == self._generation:
                self._inflight = None

    def invalidate(self, origin: str = "manual") -> None:
        """Drop the cached value and announce it as coming from ``origin``."""
        self._generation += 1
        self._value = None
        self._fetched_at = None
        self._inflight = None
        logger.info(f"[{self._name}] cache invalidated by {origin}")

        if self._bus is not None:
            self._bus.publish(EventKind.CACHE_INVALIDATED, {"cache": self._name}, origin=origin)

    def state(self) -> CacheState:
        return CacheState(
            has_value=self._fetched_at is not None,
            fetched_at=self._fetched_at,
            is_valid=self.is_valid(),
            in_flight=self._inflight is not None,
        )
