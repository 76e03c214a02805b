"""
Unit Tests for MaintenanceSweeper

Tests expired / corrupted removal, the eviction cap, idempotence and the
periodic maintenance task.
"""

import asyncio

import pytest

from fairway_cache.core.config.constants import CacheExpiration, StorageTier
from fairway_cache.core.exceptions import ConfigurationError
from fairway_cache.infrastructure.cache.sweeper import MaintenanceSweeper


def fill(store, fake_clock, count, tier=StorageTier.DURABLE, prefix="item"):
    for i in range(count):
        store.set_data(f"{prefix}_{i}", i, ttl_ms=CacheExpiration.LONG, tier=tier)
        fake_clock.advance(1)


@pytest.mark.unit
class TestSweep:
    """Test one maintenance pass."""

    def test_removes_expired_entries(self, store, sweeper, fake_clock):
        store.set_data("short", 1, ttl_ms=1_000)
        store.set_data("long", 2, ttl_ms=CacheExpiration.LONG)
        fake_clock.advance(1_000)

        report = sweeper.sweep()

        assert report.expired == 1
        assert store.read_entry("short") is None
        assert store.get_data("long") == 2

    def test_removes_corrupted_entries(self, store, sweeper, registry, namespace):
        registry.backend(StorageTier.DURABLE).set(namespace.key("broken"), "not json")
        store.set_data("fine", 1)

        report = sweeper.sweep(StorageTier.DURABLE)

        assert report.corrupted == 1
        assert registry.backend(StorageTier.DURABLE).get(namespace.key("broken")) is None
        assert store.get_data("fine") == 1

    def test_eviction_cap_keeps_newest_floor(self, store, sweeper, fake_clock):
        fill(store, fake_clock, 60)

        report = sweeper.sweep()

        assert report.evicted == 30
        assert len(store.namespace_keys(StorageTier.DURABLE)) == 30
        assert store.get_data("item_0") is None
        assert store.get_data("item_29") is None
        assert store.get_data("item_30") == 30
        assert store.get_data("item_59") == 59

    def test_at_ceiling_nothing_evicted(self, store, sweeper, fake_clock):
        fill(store, fake_clock, 50)

        assert sweeper.sweep().evicted == 0
        assert len(store.namespace_keys(StorageTier.DURABLE)) == 50

    def test_ceiling_applies_per_tier(self, store, sweeper, fake_clock):
        fill(store, fake_clock, 40, tier=StorageTier.DURABLE)
        fill(store, fake_clock, 40, tier=StorageTier.SESSION)

        report = sweeper.sweep()

        assert report.evicted == 0
        assert report.by_tier["durable"]["retained"] == 40
        assert report.by_tier["session"]["retained"] == 40

    def test_sweep_is_idempotent(self, store, sweeper, fake_clock):
        fill(store, fake_clock, 70)
        store.set_data("stale", 1, ttl_ms=1)
        fake_clock.advance(10)

        first = sweeper.sweep()
        second = sweeper.sweep()

        assert first.removed > 0
        assert second.removed == 0
        assert second.retained == first.retained

    def test_foreign_keys_untouched(self, store, sweeper, registry, fake_clock):
        durable = registry.backend(StorageTier.DURABLE)
        durable.set("golf_app_v0.9.0_old", "not even json")
        fill(store, fake_clock, 60)

        sweeper.sweep()

        assert durable.get("golf_app_v0.9.0_old") == "not even json"

    def test_prune_delegates_to_store(self, store, sweeper, fake_clock):
        fill(store, fake_clock, 10)

        assert sweeper.prune(StorageTier.DURABLE) == 2
        assert len(store.namespace_keys(StorageTier.DURABLE)) == 8

    def test_invalid_bounds_rejected(self, store):
        with pytest.raises(ConfigurationError):
            MaintenanceSweeper(store, ceiling=10, floor=10)


@pytest.mark.unit
class TestPeriodicMaintenance:
    """Test the background maintenance loop."""

    async def test_first_sweep_runs_immediately(self, store, sweeper, fake_clock):
        store.set_data("short", 1, ttl_ms=1)
        fake_clock.advance(10)

        sweeper.start_periodic(interval_s=3600)
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert store.read_entry("short") is None
        assert sweeper.running

        await sweeper.stop()
        assert not sweeper.running

    async def test_start_is_idempotent(self, sweeper):
        first = sweeper.start_periodic(interval_s=3600)
        second = sweeper.start_periodic(interval_s=3600)

        assert first is second
        await sweeper.stop()

    async def test_repeats_on_interval(self, store, sweeper, fake_clock):
        sweeper.start_periodic(interval_s=0.01)
        await asyncio.sleep(0.02)

        store.set_data("short", 1, ttl_ms=1)
        fake_clock.advance(10)
        await asyncio.sleep(0.05)

        assert store.read_entry("short") is None
        await sweeper.stop()

    async def test_zero_interval_sweeps_once_without_a_task(self, store, sweeper, fake_clock):
        store.set_data("short", 1, ttl_ms=1)
        fake_clock.advance(10)

        task = sweeper.start_periodic(interval_s=0)

        assert task is None
        assert not sweeper.running
        assert store.read_entry("short") is None
        await sweeper.stop()
