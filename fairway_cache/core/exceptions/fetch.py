"""
Fetch Exceptions

Errors surfaced by the stale-while-revalidate orchestrator when no cached
value, fresh or stale, can stand in for a failed fetch.
"""

from fairway_cache.core.exceptions.base import FairwayCacheError


class FetchError(FairwayCacheError):
    """Base exception for remote fetch failures."""
    pass


class HardFetchError(FetchError):
    """
    Raised when a fetch failed and nothing cached can be served instead.
    """
    pass


class OfflineError(HardFetchError):
    """
    Raised when a foreground fetch is suppressed because the runtime is offline
    and no cached value exists.
    """
    pass
