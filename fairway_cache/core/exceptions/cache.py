"""
Cache and Storage Exceptions

Errors raised by the storage backends, the entry codec and the key namespace.
Only InvalidCacheKeyError ever reaches callers; the others are recovered
inside the store.
"""

from fairway_cache.core.exceptions.base import FairwayCacheError


class CacheError(FairwayCacheError):
    """Base exception for cache-related errors."""
    pass


class CacheCorruptionError(CacheError):
    """
    Raised when a stored envelope cannot be decoded.

    Common causes:
    - Value written by a foreign writer under a namespaced key
    - Truncated write
    - Envelope fields missing or of the wrong type
    """
    pass


class InvalidCacheKeyError(CacheError):
    """
    Raised when a logical key is malformed (empty or not a string).

    This signals caller misuse and is never swallowed.
    """
    pass


class StorageError(CacheError):
    """Raised inside a backend when the underlying store fails."""
    pass


class StorageQuotaError(StorageError):
    """
    Raised inside a backend when a write would exceed its byte quota.
    """
    pass
