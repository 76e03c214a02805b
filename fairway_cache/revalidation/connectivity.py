"""
Connectivity Tracking and Reconciliation

ConnectivityTracker holds the process-wide ConnectivityState and notifies
listeners on every change. The orchestrator records fetch attempts,
successes and failures on it.

ConnectivityReconciler reacts to host signals:

    notify_offline()  -> offline, using cached data; foreground fetches suppressed
    notify_online()   -> online; exactly one background refresh per watched key
    retry_now()       -> forced foreground fetch of every watched key
    dismiss_notice()  -> user dismissed the "showing cached data" notice

STAGE-C: Connectivity
"""

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING

from fairway_cache.core.config.constants import BACKGROUND_REFRESH_INTERVAL_S, Stage
from fairway_cache.core.logging.logger import get_logger, log_stage
from fairway_cache.revalidation.models import ConnectivityState, LoadResult

if TYPE_CHECKING:
    from fairway_cache.revalidation.orchestrator import StaleWhileRevalidateOrchestrator

logger = get_logger(__name__)

StateListener = Callable[[ConnectivityState], None]


class ConnectivityTracker:
    """
    Owner of the ConnectivityState value.

    Every mutation replaces the state; listeners are called only when the new
    state differs from the old one.
    """

    def __init__(self, initial: ConnectivityState | None = None):
        self._state = initial or ConnectivityState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state.is_online

    def on_change(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a state-change listener.

        Returns:
            A callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _update(self, **changes) -> None:
        new_state = self._state.model_copy(update=changes)
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.error(
                    "Connectivity listener failed",
                    stage=Stage.CONNECTIVITY.value,
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=True,
                )

    def mark_offline(self) -> None:
        self._update(is_online=False, using_cached_data=True)

    def mark_online(self) -> None:
        self._update(is_online=True)

    def mark_using_cached_data(self) -> None:
        self._update(using_cached_data=True)

    def record_attempt(self, now_ms: int) -> None:
        self._update(last_fetch_attempt_at=now_ms)

    def record_success(self) -> None:
        # Only a return to online clears the offline notice
        if self._state.is_online:
            self._update(using_cached_data=False)

    def record_failure(self, now_ms: int) -> None:
        self._update(last_failure_at=now_ms)

    def dismiss(self) -> None:
        self._update(using_cached_data=False)


class ConnectivityReconciler:
    """
    Translates online/offline signals into cache behavior.

    Usage:
        reconciler = ConnectivityReconciler(orchestrator)
        reconciler.on_change(lambda state: banner.show(state.using_cached_data))

        reconciler.notify_offline()
        reconciler.notify_online()        # schedules one refresh per watched key
        results = await reconciler.retry_now()

    Args:
        orchestrator: Orchestrator whose watched keys are refreshed
        refresh_interval_s: Default period for start_periodic_refresh()
    """

    def __init__(
        self,
        orchestrator: "StaleWhileRevalidateOrchestrator",
        refresh_interval_s: float = BACKGROUND_REFRESH_INTERVAL_S,
    ):
        self._orchestrator = orchestrator
        self._tracker = orchestrator.connectivity
        self._refresh_interval_s = refresh_interval_s
        self._periodic_task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def state(self) -> ConnectivityState:
        return self._tracker.state

    def on_change(self, listener: StateListener) -> Callable[[], None]:
        return self._tracker.on_change(listener)

    def notify_offline(self) -> None:
        log_stage(logger, Stage.CONNECTIVITY, "Went offline, serving cached data", level="warning")
        self._tracker.mark_offline()

    def notify_online(self) -> list[asyncio.Task]:
        """
        Mark online and refresh every watched key once in the background.

        using_cached_data clears with the first successful refresh, or right
        away when no key is watched.

        Returns:
            The scheduled refresh tasks
        """
        was_offline = not self._tracker.is_online
        self._tracker.mark_online()

        specs = self._orchestrator.tracked_specs()
        log_stage(logger, Stage.CONNECTIVITY, "Back online", was_offline=was_offline,
                  refreshing=len(specs))
        if not specs:
            self._tracker.record_success()
            return []

        tasks = []
        for spec in specs:
            task = self._orchestrator.refresh_in_background(spec)
            if task is not None:
                tasks.append(task)
        return tasks

    async def retry_now(self) -> list[LoadResult]:
        """Force a foreground fetch of every watched key, ignoring the throttle."""
        specs = self._orchestrator.tracked_specs()
        log_stage(logger, Stage.CONNECTIVITY, "Manual retry", keys=len(specs))
        return list(await asyncio.gather(
            *(self._orchestrator.load(spec, force=True, notify_watchers=True) for spec in specs)
        ))

    def dismiss_notice(self) -> None:
        self._tracker.dismiss()

    # -------------------------------------------------------------------------
    # Periodic refresh
    # -------------------------------------------------------------------------

    def start_periodic_refresh(self, interval_s: float | None = None) -> asyncio.Task | None:
        """
        Refresh every watched key in the background every interval_s seconds.

        Must be called from inside a running event loop. An interval of zero
        or less disables periodic refresh and returns None.
        """
        if self._periodic_task is not None and not self._periodic_task.done():
            return self._periodic_task
        interval = self._refresh_interval_s if interval_s is None else interval_s
        if interval <= 0:
            log_stage(logger, Stage.CONNECTIVITY, "Periodic refresh disabled", interval_s=interval)
            return None
        self._stop_event.clear()
        self._periodic_task = asyncio.create_task(self._run_periodic(interval))
        return self._periodic_task

    async def _run_periodic(self, interval_s: float) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval_s)
            except asyncio.TimeoutError:
                for spec in self._orchestrator.tracked_specs():
                    self._orchestrator.refresh_in_background(spec)

    async def stop(self) -> None:
        self._stop_event.set()
        if self._periodic_task is None:
            return
        task, self._periodic_task = self._periodic_task, None
        await task
