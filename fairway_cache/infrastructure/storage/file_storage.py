"""
File-Backed Durable Storage

Persists the durable tier as a single JSON object ({raw_key: raw_value}) so
entries survive process restarts.

Every mutation rewrites the file atomically (temp file + os.replace). If the
write to disk fails, the in-memory change is rolled back so memory and disk
never disagree.
"""

import os
from pathlib import Path

import orjson

from fairway_cache.core.config.constants import Stage
from fairway_cache.core.exceptions import StorageError, StorageQuotaError
from fairway_cache.core.logging.logger import get_logger, log_stage

from .memory import MemoryStorage

logger = get_logger(__name__)


class FileStorage(MemoryStorage):
    """
    Durable string store persisted to a JSON file.

    Args:
        path: File location; parent directories are created on first write
        quota_bytes: Optional size quota (same accounting as MemoryStorage)
    """

    name = "file"

    def __init__(self, path: str | os.PathLike, quota_bytes: int | None = None):
        super().__init__(quota_bytes=quota_bytes)
        self._path = Path(path)
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            payload = orjson.loads(self._path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            log_stage(
                logger,
                Stage.STORAGE,
                "Durable store unreadable, starting empty",
                level="warning",
                path=str(self._path),
                error=str(e),
            )
            return
        if not isinstance(payload, dict):
            log_stage(
                logger,
                Stage.STORAGE,
                "Durable store has unexpected layout, starting empty",
                level="warning",
                path=str(self._path),
            )
            return
        for raw_key, raw_value in payload.items():
            if not isinstance(raw_value, str):
                continue
            try:
                super()._write(raw_key, raw_value)
            except StorageQuotaError as e:
                self._warn("Durable store exceeds quota, remaining entries skipped", raw_key, e)
                break

    def _flush(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_bytes(orjson.dumps(self._data))
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError.from_exception(e, path=str(self._path)) from e

    def _write(self, raw_key: str, raw_value: str) -> None:
        previous = self._data.get(raw_key)
        super()._write(raw_key, raw_value)
        try:
            self._flush()
        except StorageError:
            if previous is None:
                super()._delete(raw_key)
            else:
                super()._write(raw_key, previous)
            raise

    def _delete(self, raw_key: str) -> None:
        previous = self._data.get(raw_key)
        if previous is None:
            return
        super()._delete(raw_key)
        try:
            self._flush()
        except StorageError:
            super()._write(raw_key, previous)
            raise

    def clear(self) -> None:
        super().clear()
        try:
            self._flush()
        except StorageError as e:
            self._warn("Storage clear failed", None, e)
