"""
Redis-Backed Durable Storage

Shared durable tier backed by a synchronous redis-py client. Useful when
several processes on one host should see the same cached entities.

Key enumeration uses SCAN (never KEYS) so large databases are walked
incrementally. Redis OOM responses are reported as quota failures so the
cache store can prune and retry, exactly like a full local store.
"""

from typing import Any

import redis
from redis.exceptions import RedisError, ResponseError

from fairway_cache.core.exceptions import StorageError, StorageQuotaError

from .base import BaseStorageBackend

# Stands in for a value that could not be decoded; fails envelope decoding
UNDECODABLE_VALUE = ""


class RedisStorage(BaseStorageBackend):
    """
    String store over a redis.Redis client.

    Args:
        client: redis.Redis instance (decode_responses may be on or off)
        match: SCAN pattern limiting enumeration, e.g. "golf_app_*"
        scan_count: SCAN page size hint
    """

    name = "redis"
    recoverable_errors = (StorageError, OSError, RedisError)

    def __init__(self, client: Any, match: str = "*", scan_count: int = 500):
        self._client = client
        self._match = match
        self._scan_count = scan_count

    @classmethod
    def from_url(cls, url: str, match: str = "*") -> "RedisStorage":
        """Build a backend from a redis:// URL."""
        return cls(redis.Redis.from_url(url, decode_responses=True), match=match)

    @staticmethod
    def _text(value: Any, errors: str = "strict") -> str | None:
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8", errors=errors)
        return str(value)

    def _read(self, raw_key: str) -> str | None:
        try:
            return self._text(self._client.get(raw_key))
        except UnicodeDecodeError as e:
            # Not UTF-8, so never a valid envelope; the store removes it as corrupted
            self._warn("Stored value is not UTF-8", raw_key, e)
            return UNDECODABLE_VALUE

    def _write(self, raw_key: str, raw_value: str) -> None:
        self._client.set(raw_key, raw_value)

    def _delete(self, raw_key: str) -> None:
        self._client.delete(raw_key)

    def _keys(self) -> list[str]:
        return [
            self._text(key, errors="replace")
            for key in self._client.scan_iter(match=self._match, count=self._scan_count)
        ]

    def _is_quota_error(self, exc: BaseException) -> bool:
        if isinstance(exc, StorageQuotaError):
            return True
        return isinstance(exc, ResponseError) and str(exc).startswith("OOM")

    def clear(self) -> None:
        # Only keys matching the configured pattern are owned by this backend
        keys = self.enumerate_keys()
        if not keys:
            return
        try:
            self._client.delete(*keys)
        except self.recoverable_errors as e:
            self._warn("Storage clear failed", None, e)
