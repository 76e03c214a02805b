"""
Core Module

Foundational components: configuration, logging, exceptions and protocols.
"""

from .exceptions import (
    CacheCorruptionError,
    CacheError,
    ConfigurationError,
    FairwayCacheError,
    FetchError,
    HardFetchError,
    InvalidCacheKeyError,
    OfflineError,
    StorageError,
    StorageQuotaError,
)
from .interfaces import StorageBackend, WriteOutcome
from .logging import (
    clear_scope,
    get_logger,
    get_scope,
    log_stage,
    set_scope,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_scope",
    "get_scope",
    "clear_scope",
    "log_stage",
    "FairwayCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheCorruptionError",
    "InvalidCacheKeyError",
    "StorageError",
    "StorageQuotaError",
    "FetchError",
    "HardFetchError",
    "OfflineError",
    "StorageBackend",
    "WriteOutcome",
]
