"""
fairway-cache

Client-side data cache with offline resilience: namespaced TTL entries over
pluggable storage tiers, stale-while-revalidate loading and connectivity
reconciliation.
"""

from fairway_cache.bootstrap import (
    CacheRuntime,
    close_cache_runtime,
    create_cache_runtime,
    get_cache_runtime,
    init_cache_runtime,
)
from fairway_cache.core.config import CacheExpiration, StorageTier
from fairway_cache.infrastructure.cache import CacheStore, KeyNamespace, MaintenanceSweeper
from fairway_cache.revalidation import (
    ConnectivityReconciler,
    FetchErr,
    FetchOk,
    FetchPhase,
    LoadResult,
    ResourceSpec,
    StaleWhileRevalidateOrchestrator,
)

__version__ = "1.0.0"

__all__ = [
    "CacheExpiration",
    "CacheRuntime",
    "CacheStore",
    "ConnectivityReconciler",
    "FetchErr",
    "FetchOk",
    "FetchPhase",
    "KeyNamespace",
    "LoadResult",
    "MaintenanceSweeper",
    "ResourceSpec",
    "StaleWhileRevalidateOrchestrator",
    "StorageTier",
    "close_cache_runtime",
    "create_cache_runtime",
    "get_cache_runtime",
    "init_cache_runtime",
]
