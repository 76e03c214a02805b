"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from fairway_cache.infrastructure.cache.cache_store import CacheStore  # noqa: E402
from fairway_cache.infrastructure.cache.namespace import KeyNamespace  # noqa: E402
from fairway_cache.infrastructure.cache.sweeper import MaintenanceSweeper  # noqa: E402
from fairway_cache.infrastructure.storage.registry import StorageRegistry  # noqa: E402
from fairway_cache.revalidation.connectivity import ConnectivityReconciler  # noqa: E402
from fairway_cache.revalidation.orchestrator import StaleWhileRevalidateOrchestrator  # noqa: E402
from tests.test_fixtures.clock import FakeClock  # noqa: E402

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (see pyproject.toml)


# ============================================================================
# Clock & Namespace Fixtures
# ============================================================================


@pytest.fixture
def fake_clock():
    """
    Controllable epoch-millisecond clock.

    Starts at a fixed instant; tests move it with fake_clock.advance(ms).
    """
    return FakeClock(start_ms=1_700_000_000_000)


@pytest.fixture
def namespace():
    """Default golf_app / v1.0.0 namespace."""
    return KeyNamespace("golf_app", "v1.0.0")


# ============================================================================
# Storage & Store Fixtures
# ============================================================================


@pytest.fixture
def registry():
    """Every storage tier held in process memory."""
    return StorageRegistry.in_memory()


@pytest.fixture
def store(registry, namespace, fake_clock):
    """Cache store over in-memory tiers, driven by the fake clock."""
    return CacheStore(registry, namespace, clock=fake_clock)


@pytest.fixture
def sweeper(store):
    """Sweeper with the default 50 / 30 bounds."""
    return MaintenanceSweeper(store, ceiling=50, floor=30)


# ============================================================================
# Revalidation Fixtures
# ============================================================================


@pytest.fixture
async def orchestrator(store):
    """
    Orchestrator with automatic hard-error retry disabled.

    Background work is drained after each test so no task outlives its loop.
    """
    orchestrator = StaleWhileRevalidateOrchestrator(store, hard_error_retry_delay_s=None)
    yield orchestrator
    await orchestrator.close()


@pytest.fixture
async def reconciler(orchestrator):
    reconciler = ConnectivityReconciler(orchestrator)
    yield reconciler
    await reconciler.stop()


# ============================================================================
# Mock Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def mock_redis():
    """
    Synchronous redis.Redis mock backed by a dict.

    Supports get / set / delete / scan_iter, which is all RedisStorage uses.
    """
    client = MagicMock()
    client.data = {}

    def mock_get(key):
        return client.data.get(key)

    def mock_set(key, value):
        client.data[key] = value
        return True

    def mock_delete(*keys):
        removed = 0
        for key in keys:
            if client.data.pop(key, None) is not None:
                removed += 1
        return removed

    def mock_scan_iter(match="*", count=None):
        prefix = match[:-1] if match.endswith("*") else match
        return iter([key for key in list(client.data) if key.startswith(prefix)])

    client.get.side_effect = mock_get
    client.set.side_effect = mock_set
    client.delete.side_effect = mock_delete
    client.scan_iter.side_effect = mock_scan_iter
    return client
