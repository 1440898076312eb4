"""Tests for feeding_sync.storage.pending_queue module.

Validates keyed upserts (collapse), removal, durability across instances,
schema versioning, corruption handling, and thread safety.
"""

import json
import sqlite3
import threading

import pytest

from feeding_sync.errors import StorageFailure
from feeding_sync.models import FeedingRecord, MutationAction
from feeding_sync.storage.pending_queue import PendingQueue, QUEUE_SCHEMA_VERSION

from conftest import make_record


class TestPendingQueue:
    """Test PendingQueue operations."""

    def test_empty_on_creation(self, queue):
        assert queue.list_all() == []
        assert queue.count() == 0

    def test_enqueue_then_list(self, queue):
        record = make_record("a")
        queue.enqueue(record, MutationAction.CREATE)

        pending = queue.list_all()
        assert len(pending) == 1
        assert pending[0].id == "a"
        assert pending[0].action is MutationAction.CREATE
        assert pending[0].record == record
        assert pending[0].synced is False

    def test_enqueue_accepts_string_action(self, queue):
        queue.enqueue(make_record("a"), "delete")
        assert queue.get("a").action is MutationAction.DELETE

    def test_remove(self, queue):
        queue.enqueue(make_record("a"), MutationAction.CREATE)
        queue.remove("a")
        assert all(m.id != "a" for m in queue.list_all())

    def test_remove_absent_is_noop(self, queue):
        queue.enqueue(make_record("a"), MutationAction.CREATE)
        queue.remove("missing")
        assert queue.count() == 1

    def test_later_action_overwrites(self, queue):
        """Create then delete for the same id collapses to the delete."""
        record = make_record("c")
        queue.enqueue(record, MutationAction.CREATE)
        queue.enqueue(record, MutationAction.DELETE)

        pending = queue.list_all()
        assert len(pending) == 1
        assert pending[0].action is MutationAction.DELETE

    def test_get_missing_returns_none(self, queue):
        assert queue.get("nope") is None

    def test_clear(self, queue):
        queue.enqueue(make_record("a"), MutationAction.CREATE)
        queue.enqueue(make_record("b"), MutationAction.DELETE)
        queue.clear()
        assert queue.count() == 0

    def test_survives_reopen(self, client_config):
        """Entries persist across queue instances (process restarts)."""
        first = PendingQueue(client_config.queue_path)
        first.enqueue(make_record("a"), MutationAction.CREATE)

        second = PendingQueue(client_config.queue_path)
        assert [m.id for m in second.list_all()] == ["a"]

    def test_sets_schema_version(self, queue):
        conn = sqlite3.connect(str(queue.path))
        try:
            assert conn.execute("PRAGMA user_version").fetchone()[0] == QUEUE_SCHEMA_VERSION
        finally:
            conn.close()

    def test_newer_schema_raises(self, client_config):
        conn = sqlite3.connect(str(client_config.queue_path))
        conn.execute("PRAGMA user_version = 99")
        conn.commit()
        conn.close()

        with pytest.raises(StorageFailure):
            PendingQueue(client_config.queue_path)

    def test_corrupt_payload_raises(self, queue):
        conn = sqlite3.connect(str(queue.path))
        with conn:
            conn.execute(
                "INSERT INTO pending_mutations (id, action, payload, queued_at) VALUES (?, ?, ?, ?)",
                ("bad", "create", "{not json", "2024-05-01T00:00:00+00:00"),
            )
        conn.close()

        with pytest.raises(StorageFailure):
            queue.list_all()

    def test_unknown_payload_version_raises(self, queue):
        payload = {"v": 99, "record": make_record("x").to_dict(), "action": "create"}
        conn = sqlite3.connect(str(queue.path))
        with conn:
            conn.execute(
                "INSERT INTO pending_mutations (id, action, payload, queued_at) VALUES (?, ?, ?, ?)",
                ("x", "create", json.dumps(payload), "2024-05-01T00:00:00+00:00"),
            )
        conn.close()

        with pytest.raises(StorageFailure):
            queue.get("x")

    def test_unopenable_path_raises(self, tmp_path):
        """A directory in place of the database file is a storage failure."""
        with pytest.raises(StorageFailure):
            PendingQueue(tmp_path)

    def test_thread_safety(self, queue):
        """Concurrent enqueues from many threads all persist."""
        errors = []

        def enqueue_task(i):
            try:
                queue.enqueue(FeedingRecord.new(30 + i), MutationAction.CREATE)
            except Exception as e:
                errors.append(f"Thread {i} exception: {e}")

        threads = [threading.Thread(target=enqueue_task, args=(i,)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == [], f"Thread errors: {errors}"
        assert queue.count() == 20

    def test_non_object_payload_raises(self, queue):
        conn = sqlite3.connect(str(queue.path))
        with conn:
            conn.execute(
                "INSERT INTO pending_mutations (id, action, payload, queued_at) VALUES (?, ?, ?, ?)",
                ("list", "create", json.dumps([1, 2]), "2024-05-01T00:00:00+00:00"),
            )
        conn.close()

        with pytest.raises(StorageFailure):
            queue.list_all()

    def test_non_object_record_raises(self, queue):
        payload = {"v": 1, "record": "not-a-record", "action": "create"}
        conn = sqlite3.connect(str(queue.path))
        with conn:
            conn.execute(
                "INSERT INTO pending_mutations (id, action, payload, queued_at) VALUES (?, ?, ?, ?)",
                ("s", "create", json.dumps(payload), "2024-05-01T00:00:00+00:00"),
            )
        conn.close()

        with pytest.raises(StorageFailure):
            queue.get("s")


class TestPendingQueueDiscard:
    """Test compare-and-delete removal used after a remote success."""

    def test_discard_unchanged_entry(self, queue):
        mutation = queue.enqueue(make_record("a"), MutationAction.CREATE)
        assert queue.discard(mutation) is True
        assert queue.count() == 0

    def test_discard_decoded_entry(self, queue):
        queue.enqueue(make_record("a"), MutationAction.CREATE)
        stored = queue.list_all()[0]
        assert queue.discard(stored) is True
        assert queue.get("a") is None

    def test_discard_keeps_newer_action(self, queue):
        sent = queue.enqueue(make_record("c"), MutationAction.CREATE)
        queue.enqueue(make_record("c"), MutationAction.DELETE)

        assert queue.discard(sent) is False
        assert queue.get("c").action is MutationAction.DELETE

    def test_discard_missing_entry(self, queue):
        sent = queue.enqueue(make_record("a"), MutationAction.CREATE)
        queue.remove("a")
        assert queue.discard(sent) is False
