"""
Read-through cache tests
"""
from __future__ import annotations

import asyncio

from inventario_dashboard.data_sources import ReadThroughCache
from inventario_dashboard.events import EventBus, EventKind


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class CountingFetcher:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        return f"value-{self.calls}"


def test_value_is_reused_until_ttl_expires():
    clock = FakeClock()
    fetcher = CountingFetcher()
    cache = ReadThroughCache(fetcher, ttl_seconds=300, clock=clock)

    async def scenario():
        first = await cache.get()
        clock.now += 299
        second = await cache.get()
        clock.now += 2
        third = await cache.get()
        return first, second, third

    assert asyncio.run(scenario()) == ("value-1", "value-1", "value-2")
    assert fetcher.calls == 2


def test_concurrent_readers_share_one_request():
    fetcher = CountingFetcher()
    cache = ReadThroughCache(fetcher, ttl_seconds=300)

    async def scenario():
        return await asyncio.gather(cache.get(), cache.get(), cache.get())

    assert asyncio.run(scenario()) == ["value-1"] * 3
    assert fetcher.calls == 1


def test_invalidate_forces_refetch_and_announces_origin():
    bus = EventBus()
    seen = []
    bus.subscribe(EventKind.CACHE_INVALIDATED, seen.append)
    fetcher = CountingFetcher()
    cache = ReadThroughCache(fetcher, ttl_seconds=300, bus=bus, name="InventarioService")

    async def scenario():
        await cache.get()
        cache.invalidate("InventoryStore#abc")
        return await cache.get()

    assert asyncio.run(scenario()) == "value-2"
    assert len(seen) == 1
    assert seen[0].origin == "InventoryStore#abc"
    assert seen[0].payload == {"cache": "InventarioService"}


def test_fetch_started_before_invalidate_is_not_kept():
    fetcher = CountingFetcher()
    cache = ReadThroughCache(fetcher, ttl_seconds=300)

    async def scenario():
        stale = asyncio.ensure_future(cache.get())
        await asyncio.sleep(0)
        cache.invalidate("test")
        stale_value = await stale
        return stale_value, cache.state()

    stale_value, state = asyncio.run(scenario())

    assert stale_value == "value-1"
    assert not state.has_value
    assert not state.is_valid


def test_failed_fetch_is_not_cached():
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise ConnectionError("down")
        return "ok"

    cache = ReadThroughCache(flaky, ttl_seconds=300)

    async def scenario():
        try:
            await cache.get()
        except ConnectionError:
            pass
        return await cache.get()

    assert asyncio.run(scenario()) == "ok"
    assert len(attempts) == 2
