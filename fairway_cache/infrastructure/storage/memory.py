"""
In-Process Storage Backends

MemoryStorage backs the MEMORY tier: a plain dict that dies with the process.
SessionStorage backs the SESSION tier: the same map, plus an explicit
end_session() that drops everything when the host session closes.

Both can enforce a byte quota so quota handling upstream can be exercised
without a real full disk. Size is counted in characters of key + value.
"""

from fairway_cache.core.exceptions import StorageQuotaError

from .base import BaseStorageBackend


class MemoryStorage(BaseStorageBackend):
    """
    Dict-backed string store with an optional size quota.

    Args:
        quota_bytes: Maximum total size of keys + values, None for unbounded
        name: Backend name used in log events
    """

    name = "memory"

    def __init__(self, quota_bytes: int | None = None, name: str | None = None):
        self._data: dict[str, str] = {}
        self._size = 0
        self._quota = quota_bytes
        if name:
            self.name = name

    def _read(self, raw_key: str) -> str | None:
        return self._data.get(raw_key)

    def _write(self, raw_key: str, raw_value: str) -> None:
        previous = self._data.get(raw_key)
        delta = len(raw_value) - (len(previous) if previous is not None else -len(raw_key))
        if self._quota is not None and self._size + delta > self._quota:
            raise StorageQuotaError(
                "Storage quota exceeded",
                cache_key=raw_key,
                details={"quota": self._quota, "size": self._size, "requested": delta},
            )
        self._data[raw_key] = raw_value
        self._size += delta

    def _delete(self, raw_key: str) -> None:
        previous = self._data.pop(raw_key, None)
        if previous is not None:
            self._size -= len(raw_key) + len(previous)

    def _keys(self) -> list[str]:
        return list(self._data)

    def clear(self) -> None:
        self._data.clear()
        self._size = 0

    @property
    def size(self) -> int:
        """Current size of keys + values, in characters."""
        return self._size

    def __len__(self) -> int:
        return len(self._data)


class SessionStorage(MemoryStorage):
    """
    Session-scoped store: entries live until end_session() or process exit.
    """

    name = "session"

    def end_session(self) -> None:
        """Drop every entry at the end of a host session."""
        self.clear()
