import asyncio

import pytest

from analytics.errors import CacheLoadError, PersistenceError
from cache.core import Cache, cache_key


class CountingLoader:
    """Loader that returns successive values and can be switched to fail."""

    def __init__(self):
        self.calls = 0
        self.fail = False

    async def __call__(self):
        self.calls += 1
        if self.fail:
            raise PersistenceError("store unavailable")
        return f"value-{self.calls}"


def test_cache_basic_operations(clock):
    """Test basic cache operations."""
    cache = Cache(default_ttl=30, clock=clock)

    # Test put and get
    cache.put("test_key", "test_value")
    entry = cache.get("test_key")
    assert entry.value == "test_value"
    assert entry.is_fresh(clock())

    # Expired entries are kept
    clock.advance(31)
    entry = cache.get("test_key")
    assert entry.value == "test_value"
    assert not entry.is_fresh(clock())
    assert entry.age(clock()) == 31

    # Test delete
    assert cache.delete("test_key")
    assert cache.get("test_key") is None
    assert not cache.delete("test_key")


def test_cache_max_size(clock):
    small_cache = Cache(max_size=3, clock=clock)
    for i in range(1, 4):
        small_cache.put(f"key{i}", f"val{i}")
        clock.advance(1)

    # This should evict the oldest item (key1)
    small_cache.put("key4", "val4")
    assert small_cache.get("key1") is None
    assert small_cache.get("key2").value == "val2"
    assert small_cache.get_stats()["size"] == 3


def test_cached_read_hits_within_ttl(read_cache, clock):
    """Two reads within the TTL call the loader once."""
    loader = CountingLoader()

    async def scenario():
        first = await read_cache.cached_read("network:latest", loader)
        clock.advance(10)
        second = await read_cache.cached_read("network:latest", loader)
        return first, second

    first, second = asyncio.run(scenario())
    assert first == second == "value-1"
    assert loader.calls == 1
    stats = read_cache.get_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_cached_read_reloads_after_ttl(read_cache, clock):
    loader = CountingLoader()

    async def scenario():
        await read_cache.cached_read("validators:active", loader)
        clock.advance(30)
        return await read_cache.cached_read("validators:active", loader)

    assert asyncio.run(scenario()) == "value-2"
    assert loader.calls == 2


def test_stale_fallback_on_loader_failure(read_cache, clock):
    """A failed reload after expiry returns the previous value."""
    loader = CountingLoader()

    async def scenario():
        first = await read_cache.cached_read("dapps:active", loader)
        clock.advance(60)
        loader.fail = True
        return first, await read_cache.cached_read("dapps:active", loader)

    first, stale = asyncio.run(scenario())
    assert stale == first == "value-1"
    assert loader.calls == 2
    assert read_cache.get_stats()["stale_served"] == 1


def test_successful_reload_resets_age(read_cache, clock):
    loader = CountingLoader()

    async def scenario():
        await read_cache.cached_read("k", loader)
        clock.advance(45)
        await read_cache.cached_read("k", loader)

    asyncio.run(scenario())
    assert read_cache.get("k").age(clock()) == 0


def test_load_failure_without_previous_value(read_cache):
    loader = CountingLoader()
    loader.fail = True

    with pytest.raises(CacheLoadError) as exc_info:
        asyncio.run(read_cache.cached_read("transactions:recent:20", loader))
    assert exc_info.value.key == "transactions:recent:20"
    assert isinstance(exc_info.value.__cause__, PersistenceError)


def test_cached_read_custom_ttl(read_cache, clock):
    loader = CountingLoader()

    async def scenario():
        await read_cache.cached_read("short", loader, ttl=5)
        clock.advance(6)
        return await read_cache.cached_read("short", loader, ttl=5)

    assert asyncio.run(scenario()) == "value-2"


def test_cached_none_is_a_hit(read_cache):
    calls = []

    async def loader():
        calls.append(1)
        return None

    async def scenario():
        await read_cache.cached_read("network:latest", loader)
        return await read_cache.cached_read("network:latest", loader)

    assert asyncio.run(scenario()) is None
    assert len(calls) == 1


def test_flush(read_cache):
    read_cache.put("a", 1)
    read_cache.put("b", 2)
    read_cache.flush()
    stats = read_cache.get_stats()
    assert stats["size"] == 0
    assert stats["items"] == []


def test_cache_key():
    assert cache_key("network", "latest") == "network:latest"
    assert cache_key("network", "history", 24) == "network:history:24"
    assert cache_key("transactions", limit=20) == "transactions:limit=20"
    assert cache_key() == ""
