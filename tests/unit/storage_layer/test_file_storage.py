"""
Unit Tests for FileStorage

Tests persistence across instances, atomic writes and rollback on disk
failures.
"""

from unittest.mock import patch

import orjson
import pytest

from fairway_cache.core.exceptions import StorageError
from fairway_cache.core.interfaces.storage import WriteOutcome
from fairway_cache.infrastructure.storage.file_storage import FileStorage


@pytest.mark.unit
class TestFileStorage:
    """Test the durable JSON-file backend."""

    def test_values_survive_reopen(self, tmp_path):
        path = tmp_path / "cache.json"
        FileStorage(path).set("golf_app_v1.0.0_news", '{"data":1}')

        reopened = FileStorage(path)

        assert reopened.get("golf_app_v1.0.0_news") == '{"data":1}'

    def test_file_holds_json_object(self, tmp_path):
        path = tmp_path / "nested" / "cache.json"
        backend = FileStorage(path)
        backend.set("a", "1")
        backend.set("b", "2")
        backend.remove("a")

        assert orjson.loads(path.read_bytes()) == {"b": "2"}
        assert not path.with_suffix(".json.tmp").exists()

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("not json{")

        backend = FileStorage(path)

        assert backend.enumerate_keys() == []
        assert backend.set("a", "1") is WriteOutcome.OK

    def test_non_object_file_starts_empty(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text("[1, 2, 3]")

        assert len(FileStorage(path)) == 0

    def test_load_respects_quota(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_bytes(orjson.dumps({"k1": "12345", "k2": "12345"}))

        backend = FileStorage(path, quota_bytes=10)

        assert len(backend) == 1

    def test_failed_flush_rolls_back_write(self, tmp_path):
        backend = FileStorage(tmp_path / "cache.json")
        backend.set("a", "1")

        with patch.object(FileStorage, "_flush", side_effect=StorageError("disk full")):
            outcome = backend.set("a", "2")
            new_outcome = backend.set("b", "3")

        assert outcome is WriteOutcome.FAILED
        assert new_outcome is WriteOutcome.FAILED
        assert backend.get("a") == "1"
        assert backend.get("b") is None

    def test_failed_flush_rolls_back_remove(self, tmp_path):
        backend = FileStorage(tmp_path / "cache.json")
        backend.set("a", "1")

        with patch.object(FileStorage, "_flush", side_effect=StorageError("disk full")):
            backend.remove("a")

        assert backend.get("a") == "1"

    def test_clear_persists(self, tmp_path):
        path = tmp_path / "cache.json"
        backend = FileStorage(path)
        backend.set("a", "1")

        backend.clear()

        assert len(FileStorage(path)) == 0
