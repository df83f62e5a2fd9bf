"""Tests for the cached read API."""
import pytest

from analytics.errors import CacheLoadError, PersistenceError
from analytics.service import AnalyticsService

HOUR = 3600


def test_repeated_reads_within_ttl_query_store_once(run_with_store, generator, read_cache, clock):
    async def scenario(store):
        calls = []
        original = store.active_validators

        async def counting():
            calls.append(1)
            return await original()
        store.active_validators = counting

        await store.replace_validators(generator.validators())
        service = AnalyticsService(store, read_cache, generator, clock=clock)
        first = await service.get_active_validators()
        clock.advance(5)
        second = await service.get_active_validators()
        return calls, first, second

    calls, first, second = run_with_store(scenario)
    assert len(calls) == 1
    assert first == second


def test_stale_value_served_when_store_fails(run_with_store, generator, read_cache, clock):
    """A store failure after expiry serves the previous snapshot instead of an error."""
    async def scenario(store):
        await store.add_network_snapshot(generator.network_snapshot())
        service = AnalyticsService(store, read_cache, generator, clock=clock)
        first = await service.get_latest_network_snapshot()

        async def broken():
            raise PersistenceError("connection lost")
        store.latest_network_snapshot = broken
        clock.advance(60)
        return first, await service.get_latest_network_snapshot()

    first, stale = run_with_store(scenario)
    assert stale == first


def test_store_failure_without_cached_value(run_with_store, generator, read_cache, clock):
    async def scenario(store):
        async def broken():
            raise PersistenceError("connection lost")
        store.active_dapps = broken
        service = AnalyticsService(store, read_cache, generator, clock=clock)
        with pytest.raises(CacheLoadError):
            await service.get_active_dapps()

    run_with_store(scenario)


def test_network_history_uses_hours_window(run_with_store, generator, read_cache, clock):
    async def scenario(store):
        for age in (30 * HOUR, 5 * HOUR, 1 * HOUR):
            await store.add_network_snapshot(
                generator.network_snapshot().model_copy(update={"timestamp": clock() - age}))
        service = AnalyticsService(store, read_cache, generator, clock=clock)
        return await service.get_network_history(24), await service.get_network_history(2)

    day, recent = run_with_store(scenario)
    assert len(day) == 2
    assert len(recent) == 1
    assert "network:history:24" in read_cache.get_stats()["items"]


def test_network_history_key_ignores_number_type(run_with_store, generator, read_cache, clock):
    """24 and 24.0 hours are the same query shape."""
    async def scenario(store):
        await store.add_network_snapshot(generator.network_snapshot())
        calls = []
        original = store.network_history

        async def counting(since):
            calls.append(since)
            return await original(since)
        store.network_history = counting

        service = AnalyticsService(store, read_cache, generator, clock=clock)
        await service.get_network_history(24)
        await service.get_network_history(24.0)
        await service.get_network_history(1.5)
        return calls

    calls = run_with_store(scenario)
    assert len(calls) == 2
    items = read_cache.get_stats()["items"]
    assert "network:history:24" in items
    assert "network:history:24.0" not in items
    assert "network:history:1.5" in items


def test_recent_transactions_key_per_limit(run_with_store, generator, read_cache, clock):
    async def scenario(store):
        await store.insert_transactions(generator.transactions(30))
        service = AnalyticsService(store, read_cache, generator, clock=clock)
        return await service.get_recent_transactions(5), await service.get_recent_transactions(20)

    five, twenty = run_with_store(scenario)
    assert len(five) == 5
    assert len(twenty) == 20
    items = read_cache.get_stats()["items"]
    assert "transactions:recent:5" in items
    assert "transactions:recent:20" in items


def test_address_transactions_without_feed(run_with_store, generator, read_cache, clock):
    async def scenario(store):
        service = AnalyticsService(store, read_cache, generator, clock=clock)
        return await service.get_address_transactions("0xAbC", 7)

    records = run_with_store(scenario)
    assert len(records) == 7
    assert all(tx.from_address == "0xAbC" for tx in records)
    assert [tx.timestamp for tx in records] == sorted((tx.timestamp for tx in records), reverse=True)
