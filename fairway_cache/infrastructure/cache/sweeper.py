"""
Maintenance Sweeper

STAGE-2.0: Maintenance sweep
STAGE-2.1: Quota prune

A sweep walks every namespaced key of a tier once:
    1. corrupted entries are removed
    2. entries with now - timestamp >= ttl are removed
    3. if more than `ceiling` survivors remain, the oldest are removed until
       `floor` remain

Running a sweep twice in a row removes nothing the second time.

Keys are processed one by one, each in its own try block, so a single bad
entry never aborts the sweep.
"""

import asyncio
from dataclasses import dataclass, field

from fairway_cache.core.config.constants import (
    PRUNE_FRACTION,
    SWEEP_CEILING,
    SWEEP_FLOOR,
    SWEEP_INTERVAL_S,
    Stage,
    StorageTier,
)
from fairway_cache.core.exceptions import CacheCorruptionError, ConfigurationError
from fairway_cache.core.logging.logger import get_logger, log_stage
from fairway_cache.infrastructure.cache.cache_store import CacheStore

logger = get_logger(__name__)


@dataclass
class SweepReport:
    """Outcome of one sweep, totals plus a per-tier breakdown."""

    expired: int = 0
    corrupted: int = 0
    evicted: int = 0
    retained: int = 0
    by_tier: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def removed(self) -> int:
        return self.expired + self.corrupted + self.evicted

    def add_tier(self, tier: StorageTier, expired: int, corrupted: int, evicted: int, retained: int) -> None:
        self.expired += expired
        self.corrupted += corrupted
        self.evicted += evicted
        self.retained += retained
        self.by_tier[tier.value] = {
            "expired": expired,
            "corrupted": corrupted,
            "evicted": evicted,
            "retained": retained,
        }


class MaintenanceSweeper:
    """
    Bounds cache size and removes dead entries.

    Usage:
        sweeper = MaintenanceSweeper(store)
        report = sweeper.sweep()              # all tiers
        sweeper.start_periodic()              # hourly, inside a running loop
        await sweeper.stop()

    Args:
        store: Cache store whose namespace is swept
        ceiling: Entry count per tier above which eviction starts
        floor: Entry count per tier kept after eviction
        prune_fraction: Default share removed by prune()
    """

    def __init__(
        self,
        store: CacheStore,
        ceiling: int = SWEEP_CEILING,
        floor: int = SWEEP_FLOOR,
        prune_fraction: float = PRUNE_FRACTION,
    ):
        if not 0 <= floor < ceiling:
            raise ConfigurationError(
                "Sweep floor must be below the ceiling",
                details={"floor": floor, "ceiling": ceiling},
            )
        self._store = store
        self._ceiling = ceiling
        self._floor = floor
        self._prune_fraction = prune_fraction
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def ceiling(self) -> int:
        return self._ceiling

    @property
    def floor(self) -> int:
        return self._floor

    def sweep(self, tier: StorageTier | None = None) -> SweepReport:
        """
        Run one maintenance pass.

        Args:
            tier: Only this tier; every tier when None
        """
        report = SweepReport()
        tiers = [tier] if tier is not None else self._store.registry.tiers()
        for current in tiers:
            self._sweep_tier(current, report)

        log_stage(
            logger,
            Stage.SWEEP,
            "Maintenance sweep complete",
            expired=report.expired,
            corrupted=report.corrupted,
            evicted=report.evicted,
            retained=report.retained,
        )
        return report

    def _sweep_tier(self, tier: StorageTier, report: SweepReport) -> None:
        now = self._store.now()
        expired = corrupted = 0
        survivors: list[tuple[int, str]] = []

        for raw_key in self._store.namespace_keys(tier):
            try:
                envelope = self._store.load_raw(tier, raw_key)
                if envelope is None:
                    continue
                if now - envelope.timestamp >= envelope.ttl:
                    self._store.evict(tier, raw_key)
                    expired += 1
                else:
                    survivors.append((envelope.timestamp, raw_key))
            except CacheCorruptionError:
                self._store.evict(tier, raw_key)
                corrupted += 1

        evicted = 0
        if len(survivors) > self._ceiling:
            survivors.sort(key=lambda item: item[0])
            excess = len(survivors) - self._floor
            for _, raw_key in survivors[:excess]:
                self._store.evict(tier, raw_key)
            evicted = excess
            log_stage(
                logger,
                Stage.STORE_EVICT,
                "Tier over ceiling, oldest entries evicted",
                tier=tier.value,
                evicted=evicted,
                ceiling=self._ceiling,
                floor=self._floor,
            )

        report.add_tier(tier, expired, corrupted, evicted, len(survivors) - evicted)

    def prune(self, tier: StorageTier, fraction: float | None = None) -> int:
        """
        Free space in a tier by removing its oldest entries.

        Returns:
            Number of entries removed (at least one if the tier is not empty)
        """
        return self._store.prune(tier, self._prune_fraction if fraction is None else fraction)

    # -------------------------------------------------------------------------
    # Periodic maintenance
    # -------------------------------------------------------------------------

    def start_periodic(self, interval_s: float = SWEEP_INTERVAL_S) -> asyncio.Task | None:
        """
        Sweep immediately, then every interval_s seconds, until stop().

        Must be called from inside a running event loop. An interval of zero
        or less runs a single sweep and schedules nothing.
        """
        if self._task is not None and not self._task.done():
            return self._task
        if interval_s <= 0:
            log_stage(logger, Stage.SWEEP, "Periodic maintenance disabled", interval_s=interval_s)
            self.sweep()
            return None
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(interval_s))
        return self._task

    async def _run(self, interval_s: float) -> None:
        log_stage(logger, Stage.SWEEP, "Periodic maintenance started", interval_s=interval_s)
        while not self._stop_event.is_set():
            try:
                self.sweep()
            except Exception as e:
                logger.error(
                    "Maintenance sweep failed",
                    stage=Stage.SWEEP.value,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval_s)
            except asyncio.TimeoutError:
                continue

    async def stop(self) -> None:
        """Stop periodic maintenance and wait for the loop to exit."""
        self._stop_event.set()
        if self._task is None:
            return
        task, self._task = self._task, None
        await task
        log_stage(logger, Stage.SHUTDOWN, "Periodic maintenance stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
