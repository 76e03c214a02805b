"""
Revalidation Module

Stale-while-revalidate loading, connectivity reconciliation and the HTTP
fetch helper.
"""

from .connectivity import ConnectivityReconciler, ConnectivityTracker
from .fetcher import HttpFetcher
from .models import (
    ConnectivityState,
    ErrorInfo,
    FetchErr,
    FetchFn,
    FetchOk,
    FetchPhase,
    FetchResult,
    LoadResult,
    ResourceSpec,
    Subscription,
)
from .orchestrator import StaleWhileRevalidateOrchestrator

__all__ = [
    "ConnectivityReconciler",
    "ConnectivityState",
    "ConnectivityTracker",
    "ErrorInfo",
    "FetchErr",
    "FetchFn",
    "FetchOk",
    "FetchPhase",
    "FetchResult",
    "HttpFetcher",
    "LoadResult",
    "ResourceSpec",
    "StaleWhileRevalidateOrchestrator",
    "Subscription",
]
