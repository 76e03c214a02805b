"""
Configuration Module

Centralized, type-safe configuration for the offline-resilient cache.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Stages, storage tiers, TTL tiers and default bounds

Usage:
------
```python
from fairway_cache.core.config import get_settings
from fairway_cache.core.config.constants import CacheExpiration, StorageTier

settings = get_settings()
ceiling = settings.sweeper.SWEEP_CEILING
ttl = CacheExpiration.SHORT
```

Environment Variables:
---------------------
```bash
CACHE_PREFIX=golf_app
CACHE_VERSION=v1.0.1        # bump to invalidate every stored entry
CACHE_DURABLE_BACKEND=file  # file | redis | memory
SWEEP_CEILING=50
SWEEP_FLOOR=30
FETCH_MIN_INTERVAL_MS=10000
LOG_LEVEL=INFO
LOG_FORMAT=json
```
"""

from .constants import CacheExpiration, Stage, StorageTier
from .settings import Settings, get_settings, reload_settings

__all__ = [
    "CacheExpiration",
    "Settings",
    "Stage",
    "StorageTier",
    "get_settings",
    "reload_settings",
]
