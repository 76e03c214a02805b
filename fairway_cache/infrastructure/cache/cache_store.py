"""
Cache Store

Architecture:
    CacheStore (Public API)
        ├── KeyNamespace (logical key -> raw key)
        ├── Entry codec (envelope <-> string)
        ├── StorageRegistry (tier -> StorageBackend)
        └── CacheObserver (counters & logging)

Read path (STAGE-1.0):
    raw = backend.get(namespace.key(logical))
    absent -> miss, corrupted -> removed + miss, expired -> removed + miss

Write path (STAGE-1.1):
    envelope(now, ttl) -> backend.set
    QUOTA_EXCEEDED -> prune oldest share of the tier -> retry once

The store never raises for storage or decode problems. The only exception
that reaches callers is InvalidCacheKeyError, which signals caller misuse.
"""

import math
import time
from collections.abc import Callable
from typing import Any

from fairway_cache.core.config.constants import PRUNE_FRACTION, Stage, StorageTier
from fairway_cache.core.exceptions import CacheCorruptionError
from fairway_cache.core.interfaces.storage import StorageBackend, WriteOutcome
from fairway_cache.core.logging.logger import get_logger, log_stage
from fairway_cache.infrastructure.cache import codec
from fairway_cache.infrastructure.cache.codec import CacheEnvelope
from fairway_cache.infrastructure.cache.namespace import KeyNamespace
from fairway_cache.infrastructure.storage.registry import StorageRegistry

logger = get_logger(__name__)

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


# =============================================================================
# OBSERVABILITY
# =============================================================================


class CacheObserver:
    """
    Counts store outcomes and logs them.

    Kept apart from the store so cache logic can be tested without caring
    about log output, and so the counters can be read in one place.
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger
        self._counters = {
            "hits": 0,
            "misses": 0,
            "expired": 0,
            "corrupted": 0,
            "writes": 0,
            "write_failures": 0,
            "discarded_writes": 0,
            "pruned": 0,
        }

    def record(self, event: str, cache_key: str, tier: StorageTier, **fields) -> None:
        increment = fields.pop("count", 1)
        self._counters[event] = self._counters.get(event, 0) + increment

        if event == "hits":
            log_stage(self._logger, Stage.STORE_READ, "Cache hit", level="debug",
                      cache_key=cache_key, tier=tier.value)
        elif event == "misses":
            log_stage(self._logger, Stage.STORE_READ, "Cache miss", level="debug",
                      cache_key=cache_key, tier=tier.value)
        elif event == "expired":
            log_stage(self._logger, Stage.STORE_EVICT, "Expired entry removed", level="debug",
                      cache_key=cache_key, tier=tier.value, **fields)
        elif event == "corrupted":
            log_stage(self._logger, Stage.STORE_EVICT, "Corrupted entry removed", level="warning",
                      cache_key=cache_key, tier=tier.value, **fields)
        elif event == "writes":
            log_stage(self._logger, Stage.STORE_WRITE, "Cache set", level="debug",
                      cache_key=cache_key, tier=tier.value, **fields)
        elif event == "write_failures":
            log_stage(self._logger, Stage.STORE_WRITE, "Cache write failed", level="warning",
                      cache_key=cache_key, tier=tier.value, **fields)
        elif event == "discarded_writes":
            log_stage(self._logger, Stage.STORE_WRITE, "Older fetch result discarded", level="info",
                      cache_key=cache_key, tier=tier.value, **fields)
        elif event == "pruned":
            log_stage(self._logger, Stage.PRUNE, "Oldest entries pruned", level="info",
                      tier=tier.value, removed=increment, **fields)

    def get_stats(self) -> dict[str, Any]:
        reads = self._counters["hits"] + self._counters["misses"]
        return {
            **self._counters,
            "reads": reads,
            "hit_rate": round(self._counters["hits"] / reads, 3) if reads > 0 else 0.0,
        }


# =============================================================================
# PUBLIC API
# =============================================================================


class CacheStore:
    """
    Namespaced, TTL-aware key/value cache over the storage tiers.

    Usage:
        store = CacheStore(StorageRegistry.in_memory(), KeyNamespace())

        store.set_data("featuredArticle", article, ttl_ms=CacheExpiration.LONG)
        article = store.get_data("featuredArticle")   # None once expired

        store.clear_all()                             # every namespaced key, all tiers
        stats = store.stats()

    Args:
        registry: Tier -> backend mapping
        namespace: Key namespace (prefix + version)
        clock: Returns "now" in epoch milliseconds
        default_ttl_ms: TTL used when set_data gets none
        prune_fraction: Share of a tier pruned when a write hits the quota
        observer: Counter/log sink
    """

    def __init__(
        self,
        registry: StorageRegistry,
        namespace: KeyNamespace,
        clock: Clock = epoch_ms,
        default_ttl_ms: int = codec.DEFAULT_TTL_MS,
        prune_fraction: float = PRUNE_FRACTION,
        observer: CacheObserver | None = None,
    ):
        self._registry = registry
        self._namespace = namespace
        self._clock = clock
        self._default_ttl_ms = default_ttl_ms
        self._prune_fraction = prune_fraction
        self._observer = observer or CacheObserver()

    @property
    def namespace(self) -> KeyNamespace:
        return self._namespace

    @property
    def registry(self) -> StorageRegistry:
        return self._registry

    def now(self) -> int:
        return self._clock()

    def _backend(self, tier: StorageTier) -> StorageBackend:
        return self._registry.backend(tier)

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    def get_data(self, logical_key: str, tier: StorageTier = StorageTier.DURABLE) -> Any | None:
        """
        Return the cached payload, or None when absent, corrupted or expired.

        Corrupted and expired entries are removed as a side effect.

        Raises:
            InvalidCacheKeyError: logical_key is malformed
        """
        envelope = self.read_entry(logical_key, tier)
        if envelope is None:
            self._observer.record("misses", logical_key, tier)
            return None

        if envelope.is_expired(self.now()):
            self._backend(tier).remove(self._namespace.key(logical_key))
            self._observer.record("expired", logical_key, tier, age_ms=envelope.age_ms(self.now()))
            self._observer.record("misses", logical_key, tier)
            return None

        self._observer.record("hits", logical_key, tier)
        return envelope.data

    def record_lookup(self, logical_key: str, tier: StorageTier, hit: bool) -> None:
        """Count a hit or miss served through read_entry rather than get_data."""
        self._observer.record("hits" if hit else "misses", logical_key, tier)

    def read_entry(
        self, logical_key: str, tier: StorageTier = StorageTier.DURABLE
    ) -> CacheEnvelope | None:
        """
        Return the stored envelope even when expired.

        This is the stale-fallback read; callers decide what to do with an
        expired entry. Corrupted entries are removed and reported as absent.
        """
        raw_key = self._namespace.key(logical_key)
        try:
            return self.load_raw(tier, raw_key)
        except CacheCorruptionError as e:
            self._backend(tier).remove(raw_key)
            self._observer.record("corrupted", logical_key, tier, error=e.message)
            return None

    def set_data(
        self,
        logical_key: str,
        value: Any,
        ttl_ms: int | None = None,
        tier: StorageTier = StorageTier.DURABLE,
        *,
        captured_at: int | None = None,
    ) -> bool:
        """
        Store a payload stamped with the current time.

        Args:
            logical_key: Un-namespaced key
            value: JSON-serializable payload
            ttl_ms: Lifetime; defaults to the MEDIUM tier. <= 0 stores an already-expired entry
            tier: Target storage tier
            captured_at: Start time of the fetch that produced value. When the
                stored entry is newer than this, the write is discarded.

        Returns:
            True when the value was stored
        """
        raw_key = self._namespace.key(logical_key)
        ttl = self._default_ttl_ms if ttl_ms is None else int(ttl_ms)
        backend = self._backend(tier)

        if captured_at is not None and self._is_superseded(backend, raw_key, captured_at):
            self._observer.record("discarded_writes", logical_key, tier, captured_at=captured_at)
            return False

        try:
            raw_value = codec.encode(value, self.now(), ttl)
        except TypeError as e:
            self._observer.record("write_failures", logical_key, tier, error=str(e))
            return False

        outcome = backend.set(raw_key, raw_value)
        if outcome is WriteOutcome.QUOTA_EXCEEDED:
            if self.prune(tier, self._prune_fraction) > 0:
                outcome = backend.set(raw_key, raw_value)

        if outcome is not WriteOutcome.OK:
            self._observer.record("write_failures", logical_key, tier, outcome=outcome.value)
            return False

        self._observer.record("writes", logical_key, tier, ttl_ms=ttl)
        return True

    def remove_data(self, logical_key: str, tier: StorageTier = StorageTier.DURABLE) -> None:
        self._backend(tier).remove(self._namespace.key(logical_key))

    def clear_all(self, tier: StorageTier | None = None) -> int:
        """
        Remove every key under the current namespace.

        Args:
            tier: Only this tier; all tiers when None

        Returns:
            Number of keys removed
        """
        tiers = [tier] if tier is not None else self._registry.tiers()
        removed = 0
        for current in tiers:
            backend = self._backend(current)
            for raw_key in self.namespace_keys(current):
                backend.remove(raw_key)
                removed += 1
        log_stage(logger, Stage.STORE_EVICT, "Namespace cleared", removed=removed,
                  tiers=[t.value for t in tiers])
        return removed

    def stats(self) -> dict[str, Any]:
        return self._observer.get_stats()

    # -------------------------------------------------------------------------
    # Raw access (maintenance)
    # -------------------------------------------------------------------------

    def namespace_keys(self, tier: StorageTier) -> list[str]:
        """Raw keys of this namespace held in a tier."""
        return self._backend(tier).enumerate_keys(self._namespace.owns)

    def load_raw(self, tier: StorageTier, raw_key: str) -> CacheEnvelope | None:
        """
        Decode the entry stored under a raw key.

        Raises:
            CacheCorruptionError: stored value is not a valid envelope
        """
        raw_value = self._backend(tier).get(raw_key)
        if raw_value is None:
            return None
        return codec.decode(raw_value)

    def evict(self, tier: StorageTier, raw_key: str) -> None:
        self._backend(tier).remove(raw_key)

    def prune(self, tier: StorageTier, fraction: float | None = None) -> int:
        """
        Remove the oldest share of namespace entries in a tier.

        Corrupted entries count as oldest. At least one entry is removed when
        the tier holds any.

        Returns:
            Number of entries removed
        """
        fraction = self._prune_fraction if fraction is None else fraction
        aged: list[tuple[float, str]] = []
        for raw_key in self.namespace_keys(tier):
            try:
                envelope = self.load_raw(tier, raw_key)
            except CacheCorruptionError:
                aged.append((-math.inf, raw_key))
                continue
            if envelope is not None:
                aged.append((envelope.timestamp, raw_key))

        if not aged:
            return 0

        aged.sort(key=lambda item: item[0])
        count = max(1, math.floor(len(aged) * fraction))
        for _, raw_key in aged[:count]:
            self.evict(tier, raw_key)

        self._observer.record("pruned", "", tier, count=count, remaining=len(aged) - count)
        return count

    def _is_superseded(self, backend: StorageBackend, raw_key: str, captured_at: int) -> bool:
        raw_value = backend.get(raw_key)
        if raw_value is None:
            return False
        try:
            existing = codec.decode(raw_value)
        except CacheCorruptionError:
            return False
        return existing.timestamp > captured_at
