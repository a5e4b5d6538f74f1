"""
Tests for the storage backends and the audit sink.
"""

import json

import pytest

from finsnap.audit import AuditLogger
from finsnap.models import AuditEventBuilder, AuditEventType
from finsnap.services.storage import (
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonFileStorage,
    StorageError,
)
from finsnap.store import SnapshotStore


class TestInMemoryStorage:

    def test_get_set_delete(self):
        storage = InMemoryStorage()
        assert storage.get("k") is None
        storage.set("k", "v")
        assert storage.get("k") == "v"
        storage.delete("k")
        storage.delete("k")
        assert storage.get("k") is None


class TestJsonFileStorage:
    """Tests for the file backend."""

    def test_missing_file_reads_as_empty(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data.json")
        assert storage.get("financeData") is None

    def test_set_then_get(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        storage = JsonFileStorage(path)
        storage.set("financeData", '{"snapshots": []}')

        assert storage.get("financeData") == '{"snapshots": []}'
        assert json.loads(path.read_text()) == {"financeData": '{"snapshots": []}'}

    def test_keys_are_independent(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data.json")
        storage.set("a", "1")
        storage.set("b", "2")
        storage.delete("a")
        assert storage.get("a") is None
        assert storage.get("b") == "2"

    def test_no_temp_files_left(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "data.json")
        storage.set("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["data.json"]

    def test_inline_document_is_returned_as_text(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps({"financeData": {"snapshots": []}}))
        assert json.loads(JsonFileStorage(path).get("financeData")) == {"snapshots": []}

    @pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
    def test_corrupt_file_raises(self, tmp_path, content):
        path = tmp_path / "data.json"
        path.write_text(content)
        with pytest.raises(StorageError):
            JsonFileStorage(path).get("financeData")

    def test_store_survives_restart(self, tmp_path):
        """A document written by one store is loaded by the next."""
        path = tmp_path / "data.json"
        first = SnapshotStore(JsonFileStorage(path)).init()
        first.create_snapshot("January")
        first.add_item("assets", "Cash", 100, category="cash")

        second = SnapshotStore(JsonFileStorage(path)).init()
        assert second.active_snapshot.label == "January"
        assert second.active_snapshot.data.assets[0].amount == 100.0

    def test_store_starts_empty_on_corrupt_file(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{broken")
        store = SnapshotStore(JsonFileStorage(path)).init()
        assert store.snapshot_count == 0


class TestAuditSink:
    """Tests for the in-memory audit history."""

    def test_recent_events_newest_first(self):
        sink = InMemoryAuditStorage()
        logger = AuditLogger(sink)
        logger.log(AuditEventBuilder.snapshot_created("a", "A"))
        logger.log(AuditEventBuilder.snapshot_renamed("a", "A", "B"))

        events = logger.recent_events()
        assert [e.event_type for e in events] == [
            AuditEventType.SNAPSHOT_RENAMED,
            AuditEventType.SNAPSHOT_CREATED,
        ]

    def test_history_is_bounded(self):
        sink = InMemoryAuditStorage(max_events=3)
        for i in range(5):
            sink.append_event(AuditEventBuilder.snapshot_switched(str(i)))
        assert len(sink) == 3
        assert [e.entity_id for e in sink.get_recent_events()] == ["4", "3", "2"]

    def test_events_by_entity(self):
        sink = InMemoryAuditStorage()
        sink.append_event(AuditEventBuilder.snapshot_created("a", "A"))
        sink.append_event(AuditEventBuilder.snapshot_created("b", "B"))
        assert len(sink.get_events_by_entity("snapshot", "a")) == 1

    def test_sink_failure_does_not_raise(self):
        class BrokenSink(InMemoryAuditStorage):
            def append_event(self, event):
                raise RuntimeError("sink down")

        logger = AuditLogger(BrokenSink())
        assert logger.log(AuditEventBuilder.snapshot_created("a", "A")) is False

    def test_logger_without_sink(self):
        logger = AuditLogger()
        assert logger.log(AuditEventBuilder.snapshot_created("a", "A")) is True
        assert logger.recent_events() == []

    def test_long_descriptions_are_truncated(self):
        event = AuditEventBuilder.snapshot_created("a", "x" * 1000)
        assert len(event.description) == 500


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
