"""
Storage Backend Base Class

Every backend implements four primitive hooks (_read, _write, _delete, _keys)
and inherits the public StorageBackend surface from BaseStorageBackend, which
converts storage failures into logged no-ops:

    get     -> None on failure
    set     -> WriteOutcome.QUOTA_EXCEEDED / WriteOutcome.FAILED on failure
    remove  -> no-op on failure
    enumerate_keys -> [] on failure

Only the error types listed in ``recoverable_errors`` are converted; anything
else is a programming error and propagates.
"""

from fairway_cache.core.config.constants import Stage
from fairway_cache.core.exceptions import StorageError, StorageQuotaError
from fairway_cache.core.interfaces.storage import KeyPredicate, WriteOutcome
from fairway_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class BaseStorageBackend:
    """
    Error-absorbing template for string key/value backends.

    Subclasses override the underscore hooks and, when their client library
    has its own exception hierarchy, extend ``recoverable_errors``.
    """

    name = "base"
    recoverable_errors: tuple[type[BaseException], ...] = (StorageError, OSError)

    # ------------------------------------------------------------------
    # Primitive hooks
    # ------------------------------------------------------------------

    def _read(self, raw_key: str) -> str | None:
        raise NotImplementedError

    def _write(self, raw_key: str, raw_value: str) -> None:
        raise NotImplementedError

    def _delete(self, raw_key: str) -> None:
        raise NotImplementedError

    def _keys(self) -> list[str]:
        raise NotImplementedError

    def _is_quota_error(self, exc: BaseException) -> bool:
        return isinstance(exc, StorageQuotaError)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    def get(self, raw_key: str) -> str | None:
        try:
            return self._read(raw_key)
        except self.recoverable_errors as e:
            self._warn("Storage read failed", raw_key, e)
            return None

    def set(self, raw_key: str, raw_value: str) -> WriteOutcome:
        try:
            self._write(raw_key, raw_value)
            return WriteOutcome.OK
        except self.recoverable_errors as e:
            if self._is_quota_error(e):
                self._warn("Storage quota exceeded", raw_key, e)
                return WriteOutcome.QUOTA_EXCEEDED
            self._warn("Storage write failed", raw_key, e)
            return WriteOutcome.FAILED

    def remove(self, raw_key: str) -> None:
        try:
            self._delete(raw_key)
        except self.recoverable_errors as e:
            self._warn("Storage remove failed", raw_key, e)

    def enumerate_keys(self, predicate: KeyPredicate | None = None) -> list[str]:
        try:
            keys = self._keys()
        except self.recoverable_errors as e:
            self._warn("Storage key enumeration failed", None, e)
            return []
        if predicate is None:
            return keys
        return [key for key in keys if predicate(key)]

    def clear(self) -> None:
        for key in self.enumerate_keys():
            self.remove(key)

    def _warn(self, message: str, raw_key: str | None, exc: BaseException) -> None:
        log_stage(
            logger,
            Stage.STORAGE,
            message,
            level="warning",
            backend=self.name,
            raw_key=raw_key,
            error=str(exc),
            error_type=exc.__class__.__name__,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
