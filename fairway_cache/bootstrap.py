"""
Cache Runtime Wiring

Builds the one object graph a host application needs:

    CacheRuntime
        ├── CacheStore (StorageRegistry + KeyNamespace)
        ├── MaintenanceSweeper
        ├── StaleWhileRevalidateOrchestrator (ConnectivityTracker)
        └── ConnectivityReconciler

STAGE-0.0: Initialization
STAGE-9.0: Shutdown

The runtime is injectable: tests and hosts can build as many as they like
with create_cache_runtime(). get_cache_runtime() keeps a process-wide one for
hosts that prefer a singleton.
"""

from dataclasses import dataclass

from fairway_cache.core.config.constants import Stage
from fairway_cache.core.config.settings import Settings, get_settings
from fairway_cache.core.logging.logger import get_logger, log_stage
from fairway_cache.infrastructure.cache.cache_store import CacheStore, Clock, epoch_ms
from fairway_cache.infrastructure.cache.namespace import KeyNamespace
from fairway_cache.infrastructure.cache.sweeper import MaintenanceSweeper
from fairway_cache.infrastructure.storage.registry import StorageRegistry
from fairway_cache.revalidation.connectivity import ConnectivityReconciler, ConnectivityTracker
from fairway_cache.revalidation.orchestrator import StaleWhileRevalidateOrchestrator

logger = get_logger(__name__)


@dataclass
class CacheRuntime:
    """Everything a consumer of the cache talks to."""

    settings: Settings
    store: CacheStore
    sweeper: MaintenanceSweeper
    orchestrator: StaleWhileRevalidateOrchestrator
    reconciler: ConnectivityReconciler

    def start(self) -> None:
        """
        Start periodic maintenance and background refresh.

        Must be called from inside a running event loop. The first sweep runs
        immediately.
        """
        self.sweeper.start_periodic(self.settings.sweeper.SWEEP_INTERVAL_S)
        self.reconciler.start_periodic_refresh(self.settings.revalidation.BACKGROUND_REFRESH_INTERVAL_S)
        log_stage(logger, Stage.INITIALIZATION, "Cache runtime started")

    async def close(self) -> None:
        await self.reconciler.stop()
        await self.sweeper.stop()
        await self.orchestrator.close()
        log_stage(logger, Stage.SHUTDOWN, "Cache runtime closed")


def create_cache_runtime(
    settings: Settings | None = None,
    registry: StorageRegistry | None = None,
    clock: Clock = epoch_ms,
) -> CacheRuntime:
    """
    Build a runtime from settings.

    Args:
        settings: Application settings (global settings when None)
        registry: Storage backends; built from settings when None
        clock: Epoch-millisecond clock shared by store and orchestrator
    """
    settings = settings or get_settings()
    cache = settings.cache
    sweeper_settings = settings.sweeper
    revalidation = settings.revalidation

    namespace = KeyNamespace(cache.CACHE_PREFIX, cache.CACHE_VERSION)
    registry = registry or StorageRegistry.from_settings(settings, namespace_match=namespace.redis_match())

    store = CacheStore(
        registry,
        namespace,
        clock=clock,
        default_ttl_ms=cache.CACHE_TTL_MEDIUM_MS,
        prune_fraction=sweeper_settings.PRUNE_FRACTION,
    )
    sweeper = MaintenanceSweeper(
        store,
        ceiling=sweeper_settings.SWEEP_CEILING,
        floor=sweeper_settings.SWEEP_FLOOR,
        prune_fraction=sweeper_settings.PRUNE_FRACTION,
    )
    orchestrator = StaleWhileRevalidateOrchestrator(
        store,
        connectivity=ConnectivityTracker(),
        min_fetch_interval_ms=revalidation.FETCH_MIN_INTERVAL_MS,
        hard_error_retry_delay_s=revalidation.HARD_ERROR_RETRY_DELAY_S or None,
    )
    reconciler = ConnectivityReconciler(
        orchestrator, refresh_interval_s=revalidation.BACKGROUND_REFRESH_INTERVAL_S
    )

    log_stage(
        logger,
        Stage.INITIALIZATION,
        "Cache runtime created",
        namespace=namespace.prefix,
        tiers={tier.value: backend.name for tier, backend in registry},
    )
    return CacheRuntime(
        settings=settings,
        store=store,
        sweeper=sweeper,
        orchestrator=orchestrator,
        reconciler=reconciler,
    )


# Global runtime instance (singleton)
_cache_runtime: CacheRuntime | None = None


def get_cache_runtime() -> CacheRuntime:
    """
    Get the global cache runtime (singleton).

    Returns:
        CacheRuntime: Global runtime, created on first use
    """
    global _cache_runtime

    if _cache_runtime is None:
        _cache_runtime = create_cache_runtime()

    return _cache_runtime


async def init_cache_runtime() -> CacheRuntime:
    """
    Create the global runtime and start its periodic work.
    """
    runtime = get_cache_runtime()
    runtime.start()
    return runtime


async def close_cache_runtime() -> None:
    """
    Stop and drop the global runtime.
    """
    global _cache_runtime

    if _cache_runtime:
        await _cache_runtime.close()
        _cache_runtime = None
