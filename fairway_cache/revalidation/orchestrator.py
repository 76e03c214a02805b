"""
Stale-While-Revalidate Orchestrator

Decides, per logical key, whether a consumer gets cached data, fresh data,
stale data or an error, and keeps cached data fresh in the background.

Flow:
    load_cached(spec)  - fresh cache hit -> LoadResult now + background refresh
    await load(spec)   - fresh cache hit -> same as above
                         otherwise       -> foreground fetch
                             ok          -> write store, FRESH
                             failed      -> stale entry / last value -> STALE_FALLBACK
                                            nothing                  -> HARD_ERROR

STAGE-3.0: Foreground fetch
STAGE-3.1: Background refresh
STAGE-3.2: Stale fallback
STAGE-3.3: Hard error

Concurrency model (single event loop, no locks):
- Background refreshes are tasks held in a set; drain() awaits them
- Concurrent fetches for one key share one in-flight task
- Writes carry the fetch start time; the store discards results older than
  what it already holds
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from fairway_cache.core.config.constants import (
    FETCH_MIN_INTERVAL_MS,
    HARD_ERROR_RETRY_DELAY_S,
    Stage,
)
from fairway_cache.core.logging.logger import get_logger, log_stage, set_scope
from fairway_cache.infrastructure.cache.cache_store import CacheStore
from fairway_cache.revalidation.connectivity import ConnectivityTracker
from fairway_cache.revalidation.models import (
    ErrorInfo,
    FetchErr,
    FetchOk,
    FetchPhase,
    FetchResult,
    Listener,
    LoadResult,
    ResourceSpec,
    Subscription,
)

logger = get_logger(__name__)

_MISSING = object()


@dataclass
class _KeyState:
    """Mutable bookkeeping for one logical key."""

    spec: ResourceSpec
    phase: FetchPhase = FetchPhase.IDLE
    last_attempt_at: int | None = None
    last_value: Any = _MISSING
    in_flight: asyncio.Task | None = None
    in_flight_started_at: int = 0
    refresh_task: asyncio.Task | None = None
    retry_task: asyncio.Task | None = None
    subscriptions: list[Subscription] = field(default_factory=list)

    @property
    def tracked(self) -> bool:
        return bool(self.subscriptions)


class StaleWhileRevalidateOrchestrator:
    """
    Serves cached entities instantly and revalidates them.

    Usage:
        orchestrator = StaleWhileRevalidateOrchestrator(store)
        spec = ResourceSpec("news_list", fetch_news, ttl_ms=CacheExpiration.SHORT)

        subscription = orchestrator.watch(spec, render)
        result = await orchestrator.load(spec)
        if result.ok:
            render(result)
        ...
        subscription.close()
        await orchestrator.drain()

    Args:
        store: Cache store holding entries
        connectivity: Shared connectivity tracker
        min_fetch_interval_ms: Throttle window for non-forced foreground fetches
        hard_error_retry_delay_s: Delay before a forced retry of a watched key
            that ended in HARD_ERROR; None disables automatic retry
    """

    def __init__(
        self,
        store: CacheStore,
        connectivity: ConnectivityTracker | None = None,
        min_fetch_interval_ms: int = FETCH_MIN_INTERVAL_MS,
        hard_error_retry_delay_s: float | None = HARD_ERROR_RETRY_DELAY_S,
    ):
        self._store = store
        self._connectivity = connectivity or ConnectivityTracker()
        self._min_fetch_interval_ms = min_fetch_interval_ms
        self._retry_delay_s = hard_error_retry_delay_s
        self._states: dict[str, _KeyState] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def connectivity(self) -> ConnectivityTracker:
        return self._connectivity

    def phase(self, key: str) -> FetchPhase:
        state = self._states.get(key)
        return state.phase if state else FetchPhase.IDLE

    def tracked_specs(self) -> list[ResourceSpec]:
        """Specs of every key with at least one open subscription."""
        return [state.spec for state in self._states.values() if state.tracked]

    def _state(self, spec: ResourceSpec) -> _KeyState:
        self._store.namespace.key(spec.key)
        state = self._states.get(spec.key)
        if state is None:
            state = _KeyState(spec=spec)
            self._states[spec.key] = state
        else:
            state.spec = spec
        return state

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def watch(self, spec: ResourceSpec, listener: Listener) -> Subscription:
        """
        Mark a key as displayed and receive its refresh results.

        Background refreshes, automatic retries and reconnect refreshes are
        delivered to the listener until the subscription is closed.
        """
        state = self._state(spec)
        subscription = Subscription(key=spec.key, listener=listener, _on_close=self._unwatch)
        state.subscriptions.append(subscription)
        return subscription

    def _unwatch(self, subscription: Subscription) -> None:
        state = self._states.get(subscription.key)
        if state is None:
            return
        if subscription in state.subscriptions:
            state.subscriptions.remove(subscription)
        if not state.tracked and state.retry_task is not None:
            state.retry_task.cancel()
            state.retry_task = None

    def _publish(self, state: _KeyState, result: LoadResult) -> None:
        for subscription in list(state.subscriptions):
            try:
                subscription.deliver(result)
            except Exception as e:
                logger.error(
                    "Subscription listener failed",
                    stage=Stage.BACKGROUND_REFRESH.value,
                    cache_key=state.spec.key,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )

    # -------------------------------------------------------------------------
    # Loads
    # -------------------------------------------------------------------------

    def load_cached(self, spec: ResourceSpec) -> LoadResult | None:
        """
        Return a fresh cache hit immediately, or None.

        On a hit, a background refresh is scheduled when an event loop is
        running. The caller never sees its outcome directly.
        """
        state = self._state(spec)
        result = self._fresh_hit(state)
        if result is not None:
            self.refresh_in_background(spec)
        return result

    async def load(
        self, spec: ResourceSpec, force: bool = False, *, notify_watchers: bool = False
    ) -> LoadResult:
        """
        Resolve a key to fresh, stale or error.

        Args:
            spec: Resource to load
            force: Skip the cache-hit shortcut, the throttle and offline suppression
            notify_watchers: Also deliver the result to open subscriptions

        Returns:
            LoadResult; never raises for fetch failures
        """
        state = self._state(spec)

        if not force:
            result = self._fresh_hit(state)
            if result is not None:
                self.refresh_in_background(spec)
                return result

        result = await self._load_foreground(state, force)
        if notify_watchers:
            self._publish(state, result)
        return result

    def _fresh_hit(self, state: _KeyState) -> LoadResult | None:
        spec = state.spec
        envelope = self._store.read_entry(spec.key, spec.tier)
        if envelope is None or envelope.is_expired(self._store.now()):
            self._store.record_lookup(spec.key, spec.tier, hit=False)
            return None
        self._store.record_lookup(spec.key, spec.tier, hit=True)
        state.last_value = envelope.data
        if state.phase in (FetchPhase.IDLE, FetchPhase.LOADING):
            state.phase = FetchPhase.FRESH
        log_stage(logger, Stage.STORE_READ, "Serving cached entry", level="debug", cache_key=spec.key)
        return LoadResult(key=spec.key, phase=FetchPhase.FRESH, data=envelope.data, from_cache=True)

    def _stale_value(self, state: _KeyState) -> Any:
        spec = state.spec
        envelope = self._store.read_entry(spec.key, spec.tier)
        if envelope is not None:
            return envelope.data
        return state.last_value

    async def _load_foreground(self, state: _KeyState, force: bool) -> LoadResult:
        spec = state.spec
        now = self._store.now()
        stale = self._stale_value(state)

        if not force and not self._connectivity.is_online:
            error = ErrorInfo(kind="offline", message="Offline, fetch suppressed")
            log_stage(logger, Stage.FOREGROUND_FETCH, "Offline, foreground fetch suppressed",
                      cache_key=spec.key, has_stale=stale is not _MISSING)
            return self._fail(state, stale, error)

        if (
            not force
            and stale is not _MISSING
            and state.last_attempt_at is not None
            and now - state.last_attempt_at < self._min_fetch_interval_ms
        ):
            log_stage(logger, Stage.FOREGROUND_FETCH, "Fetch throttled, reusing cached value",
                      level="debug", cache_key=spec.key, since_last_ms=now - state.last_attempt_at)
            state.phase = FetchPhase.STALE_FALLBACK
            return LoadResult(key=spec.key, phase=FetchPhase.STALE_FALLBACK, data=stale,
                              is_stale=True, from_cache=True)

        state.phase = FetchPhase.LOADING
        log_stage(logger, Stage.FOREGROUND_FETCH, "Fetching fresh data", cache_key=spec.key, forced=force)
        captured_at, outcome = await self._fetch(state)

        if isinstance(outcome, FetchOk):
            data = self._accept(state, outcome, captured_at)
            return LoadResult(key=spec.key, phase=FetchPhase.FRESH, data=data)

        self._connectivity.record_failure(self._store.now())
        return self._fail(state, self._stale_value(state), outcome.error)

    def _fail(self, state: _KeyState, stale: Any, error: ErrorInfo) -> LoadResult:
        spec = state.spec
        if stale is not _MISSING:
            state.phase = FetchPhase.STALE_FALLBACK
            self._connectivity.mark_using_cached_data()
            log_stage(logger, Stage.STALE_FALLBACK, "Serving stale data", level="warning",
                      cache_key=spec.key, error_kind=error.kind, error=error.message)
            return LoadResult(key=spec.key, phase=FetchPhase.STALE_FALLBACK, data=stale,
                              is_stale=True, from_cache=True, error=error)

        state.phase = FetchPhase.HARD_ERROR
        log_stage(logger, Stage.HARD_ERROR, "Fetch failed with nothing cached", level="error",
                  cache_key=spec.key, error_kind=error.kind, error=error.message)
        self._schedule_retry(state)
        return LoadResult(key=spec.key, phase=FetchPhase.HARD_ERROR, error=error)

    def _accept(self, state: _KeyState, outcome: FetchOk, captured_at: int) -> Any:
        """Store a successful fetch and return the value consumers should see."""
        spec = state.spec
        data = outcome.data
        stored = self._store.set_data(spec.key, data, spec.ttl_ms, spec.tier, captured_at=captured_at)
        if not stored:
            newer = self._store.read_entry(spec.key, spec.tier)
            if newer is not None and newer.timestamp > captured_at:
                data = newer.data
        state.last_value = data
        state.phase = FetchPhase.FRESH
        self._connectivity.record_success()
        return data

    # -------------------------------------------------------------------------
    # Fetching
    # -------------------------------------------------------------------------

    async def _fetch(self, state: _KeyState) -> tuple[int, FetchResult]:
        """
        Run fetch_fresh, sharing one in-flight call per key.

        Returns:
            (start time of the shared fetch, its result)
        """
        if state.in_flight is None or state.in_flight.done():
            now = self._store.now()
            state.last_attempt_at = now
            self._connectivity.record_attempt(now)
            task = asyncio.create_task(self._call_fetch(state.spec))
            state.in_flight = task
            state.in_flight_started_at = now
            task.add_done_callback(lambda done, s=state: self._clear_in_flight(s, done))
        started_at = state.in_flight_started_at
        outcome = await asyncio.shield(state.in_flight)
        return started_at, outcome

    @staticmethod
    def _clear_in_flight(state: _KeyState, task: asyncio.Task) -> None:
        if state.in_flight is task:
            state.in_flight = None

    async def _call_fetch(self, spec: ResourceSpec) -> FetchResult:
        try:
            outcome = await spec.fetch_fresh()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log_stage(logger, Stage.FOREGROUND_FETCH, "fetch_fresh raised", level="warning",
                      cache_key=spec.key, error=str(e), error_type=type(e).__name__)
            return FetchErr(ErrorInfo.from_exception(e))
        if not isinstance(outcome, (FetchOk, FetchErr)):
            return FetchErr(ErrorInfo(
                kind="invalid_result",
                message=f"fetch_fresh returned {type(outcome).__name__}, expected FetchOk or FetchErr",
            ))
        return outcome

    # -------------------------------------------------------------------------
    # Background work
    # -------------------------------------------------------------------------

    def refresh_in_background(self, spec: ResourceSpec) -> asyncio.Task | None:
        """
        Schedule a detached refresh of a key.

        Returns None (nothing scheduled) when offline or outside a running
        event loop.
        """
        if not self._connectivity.is_online:
            return None
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            log_stage(logger, Stage.BACKGROUND_REFRESH, "No running loop, refresh skipped",
                      level="debug", cache_key=spec.key)
            return None
        state = self._state(spec)
        if state.refresh_task is not None and not state.refresh_task.done():
            return state.refresh_task
        state.refresh_task = self._spawn(self._refresh(state))
        return state.refresh_task

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _refresh(self, state: _KeyState) -> None:
        spec = state.spec
        if spec.scope:
            set_scope(spec.scope)
        previous = state.phase
        state.phase = FetchPhase.BACKGROUND_REFRESHING
        captured_at, outcome = await self._fetch(state)

        if isinstance(outcome, FetchOk):
            data = self._accept(state, outcome, captured_at)
            log_stage(logger, Stage.BACKGROUND_REFRESH, "Background refresh complete", cache_key=spec.key)
            self._publish(state, LoadResult(key=spec.key, phase=FetchPhase.FRESH, data=data))
            return

        self._connectivity.record_failure(self._store.now())
        if state.phase is FetchPhase.BACKGROUND_REFRESHING:
            state.phase = previous if previous is not FetchPhase.BACKGROUND_REFRESHING else FetchPhase.FRESH
        log_stage(logger, Stage.BACKGROUND_REFRESH, "Background refresh failed", level="warning",
                  cache_key=spec.key, error_kind=outcome.error.kind, error=outcome.error.message)

    def _schedule_retry(self, state: _KeyState) -> None:
        if self._retry_delay_s is None or not state.tracked:
            return
        if state.retry_task is not None and not state.retry_task.done():
            return
        state.retry_task = asyncio.create_task(self._retry_after_delay(state, self._retry_delay_s))

    async def _retry_after_delay(self, state: _KeyState, delay_s: float) -> None:
        await asyncio.sleep(delay_s)
        state.retry_task = None
        if not state.tracked or state.phase is not FetchPhase.HARD_ERROR:
            return
        log_stage(logger, Stage.HARD_ERROR, "Retrying after hard error", cache_key=state.spec.key)
        await self.load(state.spec, force=True, notify_watchers=True)

    async def drain(self) -> None:
        """Wait for every background refresh (including ones they spawn)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Cancel pending retries and wait for background refreshes."""
        for state in self._states.values():
            if state.retry_task is not None:
                state.retry_task.cancel()
                state.retry_task = None
        await self.drain()
        log_stage(logger, Stage.SHUTDOWN, "Orchestrator closed")
