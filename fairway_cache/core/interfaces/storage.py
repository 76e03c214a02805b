"""
Storage Backend Protocol

This module defines the protocol every key/value store behind the cache must
implement, so the cache store stays backend-agnostic.

Architectural Decision: Protocol-based abstraction
- Durable (file, Redis), session-scoped and in-memory backends are interchangeable
- Tests can substitute any object with the same surface
- Runtime validation with @runtime_checkable

Contract:
- All operations are synchronous and do no network I/O on behalf of callers
  except where the backend itself is remote (Redis).
- No operation raises for storage-level failures; errors become logged no-ops.
"""

from collections.abc import Callable
from enum import Enum
from typing import Protocol, runtime_checkable


class WriteOutcome(str, Enum):
    """
    Result of a backend write.

    OK: value stored
    QUOTA_EXCEEDED: store is full; the caller may prune and retry
    FAILED: any other storage failure
    """

    OK = "ok"
    QUOTA_EXCEEDED = "quota_exceeded"
    FAILED = "failed"


KeyPredicate = Callable[[str], bool]


@runtime_checkable
class StorageBackend(Protocol):
    """
    Protocol defining the string key/value surface used by the cache store.

    Implementations:
    - MemoryStorage: in-process map (MEMORY tier)
    - SessionStorage: in-process map cleared when the session ends (SESSION tier)
    - FileStorage: JSON file on disk (DURABLE tier)
    - RedisStorage: Redis server (DURABLE tier, shared)
    """

    name: str

    def get(self, raw_key: str) -> str | None:
        """
        Read a raw value.

        Returns:
            The stored string, or None when absent or unreadable
        """
        ...

    def set(self, raw_key: str, raw_value: str) -> WriteOutcome:
        """
        Write a raw value. Never raises.

        Returns:
            WriteOutcome describing whether the value was stored
        """
        ...

    def remove(self, raw_key: str) -> None:
        """Remove a raw key. Missing keys are ignored."""
        ...

    def enumerate_keys(self, predicate: KeyPredicate | None = None) -> list[str]:
        """
        List stored keys, optionally filtered.

        Args:
            predicate: Keep only keys for which it returns True
        """
        ...

    def clear(self) -> None:
        """Remove every key held by this backend."""
        ...
