"""
Revalidation Models

Value types shared by the orchestrator, the connectivity reconciler and the
fetch helpers.

Architectural Decision: structured results instead of callbacks
- A fetch returns FetchOk | FetchErr; it never signals failure by raising
- A load returns LoadResult; callers branch on .phase / .ok or call .unwrap()
- ConnectivityState is immutable; every transition produces a new value
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from fairway_cache.core.config.constants import StorageTier
from fairway_cache.core.exceptions import HardFetchError, OfflineError

# ============================================================================
# Fetch results
# ============================================================================


class ErrorInfo(BaseModel):
    """
    Description of a failed fetch.

    Attributes:
        kind: Failure class ("network", "timeout", "http", "offline", "exception", "invalid_result")
        message: Human-readable description
        status_code: HTTP status, when the failure came from a response
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    message: str
    status_code: int | None = None

    @classmethod
    def from_exception(cls, exc: BaseException, kind: str = "exception") -> "ErrorInfo":
        return cls(kind=kind, message=str(exc) or exc.__class__.__name__)


@dataclass(frozen=True)
class FetchOk:
    data: Any


@dataclass(frozen=True)
class FetchErr:
    error: ErrorInfo


FetchResult = FetchOk | FetchErr
FetchFn = Callable[[], Awaitable[FetchResult]]


# ============================================================================
# Load results
# ============================================================================


class FetchPhase(str, Enum):
    """
    Per-key state of the stale-while-revalidate machine.

    IDLE -> FRESH -> BACKGROUND_REFRESHING -> FRESH
    IDLE -> LOADING -> FRESH | STALE_FALLBACK | HARD_ERROR
    """

    IDLE = "idle"
    LOADING = "loading"
    FRESH = "fresh"
    BACKGROUND_REFRESHING = "background_refreshing"
    STALE_FALLBACK = "stale_fallback"
    HARD_ERROR = "hard_error"


@dataclass(frozen=True)
class LoadResult:
    """
    What a consumer gets back from a load.

    Attributes:
        key: Logical cache key
        phase: FRESH, STALE_FALLBACK or HARD_ERROR
        data: Payload (None on HARD_ERROR)
        is_stale: True when data is an expired or fallback value
        from_cache: True when data came from the store rather than a fetch
        error: Why a fetch failed or was skipped
    """

    key: str
    phase: FetchPhase
    data: Any = None
    is_stale: bool = False
    from_cache: bool = False
    error: ErrorInfo | None = None

    @property
    def ok(self) -> bool:
        return self.phase is not FetchPhase.HARD_ERROR

    def unwrap(self) -> Any:
        """
        Return data, or raise when there is none to show.

        Raises:
            OfflineError: phase is HARD_ERROR because the fetch was skipped offline
            HardFetchError: phase is HARD_ERROR for any other reason
        """
        if not self.ok:
            details = self.error.model_dump() if self.error else {}
            message = self.error.message if self.error else "Fetch failed with nothing cached"
            error_cls = OfflineError if self.error and self.error.kind == "offline" else HardFetchError
            raise error_cls(message, cache_key=self.key, details=details)
        return self.data


# ============================================================================
# Connectivity
# ============================================================================


class ConnectivityState(BaseModel):
    """
    Process-wide connectivity snapshot.

    using_cached_data is True only while no fetch has succeeded since the last
    failure served from cache or the last offline transition.
    """

    model_config = ConfigDict(frozen=True)

    is_online: bool = True
    using_cached_data: bool = False
    last_fetch_attempt_at: int | None = None
    last_failure_at: int | None = None


# ============================================================================
# Resources and subscriptions
# ============================================================================


@dataclass(frozen=True)
class ResourceSpec:
    """
    A cacheable remote resource.

    Attributes:
        key: Logical cache key
        fetch_fresh: Zero-argument coroutine function returning a FetchResult
        ttl_ms: Entry lifetime; the store default when None
        tier: Storage tier holding the entry
        scope: Consumer name attached to log lines of background work
    """

    key: str
    fetch_fresh: FetchFn
    ttl_ms: int | None = None
    tier: StorageTier = StorageTier.DURABLE
    scope: str | None = None


Listener = Callable[[LoadResult], None]


@dataclass(eq=False)
class Subscription:
    """
    Handle returned by watch(). Results stop arriving once closed.

    Usable as a context manager:
        with orchestrator.watch(spec, on_result):
            ...
    """

    key: str
    listener: Listener
    _on_close: Callable[["Subscription"], None] | None = field(default=None, repr=False)
    closed: bool = False

    def deliver(self, result: LoadResult) -> bool:
        if self.closed:
            return False
        self.listener(result)
        return True

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
