"""
System Constants and Enumerations

This module defines constants and enumerations shared by the storage,
cache and revalidation layers.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management
"""

from enum import Enum, IntEnum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Cache lifecycle stages used as the ``stage`` field of log events.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}

    Examples:
        log_stage(logger, Stage.STORE_READ, "Cache hit", cache_key="news_list")
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    STORE_READ = "1.0_STORE_READ"
    STORE_WRITE = "1.1_STORE_WRITE"
    STORE_EVICT = "1.2_STORE_EVICT"
    SWEEP = "2.0_MAINTENANCE_SWEEP"
    PRUNE = "2.1_QUOTA_PRUNE"
    FOREGROUND_FETCH = "3.0_FOREGROUND_FETCH"
    BACKGROUND_REFRESH = "3.1_BACKGROUND_REFRESH"
    STALE_FALLBACK = "3.2_STALE_FALLBACK"
    HARD_ERROR = "3.3_HARD_ERROR"
    CONNECTIVITY = "C_CONNECTIVITY"
    STORAGE = "S_STORAGE_BACKEND"
    HTTP = "H_HTTP_FETCH"
    SHUTDOWN = "9.0_SHUTDOWN"


# ============================================================================
# Storage Tiers
# ============================================================================


class StorageTier(str, Enum):
    """
    Underlying store a logical cache domain is configured to use.

    DURABLE: survives process restarts (file or Redis backed)
    SESSION: lives as long as the storage session
    MEMORY: in-process map, gone with the process
    """

    DURABLE = "durable"
    SESSION = "session"
    MEMORY = "memory"


# ============================================================================
# TTL Tiers
# ============================================================================


class CacheExpiration(IntEnum):
    """
    Standard time-to-live tiers, in milliseconds.
    """

    SHORT = 5 * 60 * 1000
    MEDIUM = 30 * 60 * 1000
    LONG = 24 * 60 * 60 * 1000
    WEEK = 7 * 24 * 60 * 60 * 1000


DEFAULT_TTL_MS = int(CacheExpiration.MEDIUM)

# ============================================================================
# Key Namespace
# ============================================================================

KEY_SEPARATOR = "_"
DEFAULT_CACHE_PREFIX = "golf_app"
DEFAULT_CACHE_VERSION = "v1.0.0"

# ============================================================================
# Maintenance
# ============================================================================

SWEEP_CEILING = 50  # Entries per tier before eviction kicks in
SWEEP_FLOOR = 30  # Entries kept after eviction
SWEEP_INTERVAL_S = 3600  # Hourly maintenance
PRUNE_FRACTION = 0.2  # Oldest share removed when a write hits the quota

# ============================================================================
# Revalidation
# ============================================================================

FETCH_MIN_INTERVAL_MS = 10_000
BACKGROUND_REFRESH_INTERVAL_S = 300
HARD_ERROR_RETRY_DELAY_S = 5

# ============================================================================
# Retry settings (HTTP fetch helper)
# ============================================================================

HTTP_RETRIES = 2
HTTP_RETRY_BASE_DELAY = 0.3  # seconds, doubled per attempt
HTTP_RETRY_MAX_DELAY = 5.0
HTTP_TIMEOUT_S = 10.0
