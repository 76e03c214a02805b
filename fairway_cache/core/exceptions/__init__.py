"""
Exception Module

Structured exception hierarchy for the offline-resilient cache.

Module Structure:
-----------------
- **base.py**: FairwayCacheError base class + ConfigurationError
- **cache.py**: Storage, codec and key namespace exceptions
- **fetch.py**: Remote fetch exceptions surfaced by the orchestrator

Usage:
------
```python
from fairway_cache.core.exceptions import HardFetchError, InvalidCacheKeyError
```
"""

from fairway_cache.core.exceptions.base import ConfigurationError, FairwayCacheError
from fairway_cache.core.exceptions.cache import (
    CacheCorruptionError,
    CacheError,
    InvalidCacheKeyError,
    StorageError,
    StorageQuotaError,
)
from fairway_cache.core.exceptions.fetch import FetchError, HardFetchError, OfflineError

__all__ = [
    # Base
    "FairwayCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheCorruptionError",
    "InvalidCacheKeyError",
    "StorageError",
    "StorageQuotaError",
    # Fetch
    "FetchError",
    "HardFetchError",
    "OfflineError",
]
