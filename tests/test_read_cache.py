"""Tests for feeding_sync.storage.read_cache module.

Validates snapshot replacement, incremental patches, tolerance of corrupt
files, atomic writes, and change notifications.
"""

import json
import os
from unittest.mock import patch

import pytest

from feeding_sync.errors import StorageFailure
from feeding_sync.events import FEEDINGS_CHANGED
from feeding_sync.storage.read_cache import ReadCache, CACHE_FORMAT_VERSION

from conftest import make_record


class TestReadCache:
    """Test ReadCache operations."""

    def test_empty_when_never_populated(self, cache):
        assert cache.get_all() == []
        assert not cache.path.exists()

    def test_replace_all(self, cache):
        cache.replace_all([make_record("a"), make_record("b")])
        assert {r.id for r in cache.get_all()} == {"a", "b"}

        cache.replace_all([make_record("c")])
        assert [r.id for r in cache.get_all()] == ["c"]

    def test_replace_all_with_empty(self, cache):
        cache.replace_all([make_record("a")])
        cache.replace_all([])
        assert cache.get_all() == []

    def test_append(self, cache):
        cache.append(make_record("a"))
        cache.append(make_record("b"))
        assert {r.id for r in cache.get_all()} == {"a", "b"}

    def test_append_same_id_replaces(self, cache):
        cache.append(make_record("a", amount=60))
        cache.append(make_record("a", amount=120))
        records = cache.get_all()
        assert len(records) == 1
        assert records[0].amount == 120

    def test_remove_by_id(self, cache):
        cache.replace_all([make_record("a"), make_record("b")])
        assert cache.remove_by_id("a") is True
        assert [r.id for r in cache.get_all()] == ["b"]

    def test_remove_missing_returns_false(self, cache):
        cache.append(make_record("a"))
        assert cache.remove_by_id("zzz") is False
        assert len(cache.get_all()) == 1

    def test_get(self, cache):
        cache.append(make_record("a", amount=90))
        assert cache.get("a").amount == 90
        assert cache.get("b") is None

    def test_persists_across_instances(self, cache):
        cache.append(make_record("a"))
        assert [r.id for r in ReadCache(cache.path).get_all()] == ["a"]

    def test_file_format_is_versioned(self, cache):
        cache.append(make_record("a"))
        data = json.loads(cache.path.read_text())
        assert data["version"] == CACHE_FORMAT_VERSION
        assert data["records"][0]["id"] == "a"
        assert "updated_at" in data

    def test_corrupt_file_reads_empty(self, cache):
        cache.path.write_text("not valid json {{{")
        assert cache.get_all() == []

    def test_unknown_version_reads_empty(self, cache):
        cache.path.write_text(json.dumps({"version": 99, "records": []}))
        assert cache.get_all() == []

    def test_bad_record_skipped(self, cache):
        good = make_record("a").to_dict()
        cache.path.write_text(json.dumps({
            "version": CACHE_FORMAT_VERSION,
            "records": [good, {"v": 1, "id": "b", "amount": -1, "created_at": "2024-05-01T00:00:00Z"}],
        }))
        assert [r.id for r in cache.get_all()] == ["a"]

    def test_corrupt_file_overwritten_by_refresh(self, cache):
        cache.path.write_text("garbage")
        cache.replace_all([make_record("a")])
        assert [r.id for r in cache.get_all()] == ["a"]

    def test_write_failure_raises_and_keeps_snapshot(self, cache):
        cache.replace_all([make_record("a")])

        with patch("feeding_sync.storage.read_cache.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageFailure):
                cache.replace_all([make_record("b")])

        assert [r.id for r in cache.get_all()] == ["a"]
        leftovers = [p for p in os.listdir(cache.path.parent) if p.endswith(".tmp")]
        assert leftovers == []

    def test_publishes_changes(self, cache, events):
        seen = []
        events.subscribe(lambda name, payload: seen.append(payload["change"]), FEEDINGS_CHANGED)

        cache.append(make_record("a"))
        cache.remove_by_id("a")
        cache.remove_by_id("a")  # no-op, no event
        cache.replace_all([])

        assert seen == ["append", "remove", "replace"]

    def test_invalid_utf8_reads_empty(self, cache):
        cache.path.write_bytes(b"\xff\xfe\x00garbage")
        assert cache.get_all() == []
        assert cache.get("a") is None

    def test_non_list_records_reads_empty(self, cache):
        cache.path.write_text(json.dumps({"version": CACHE_FORMAT_VERSION, "records": {"a": 1}}))
        assert cache.get_all() == []

    def test_non_object_record_skipped(self, cache):
        cache.path.write_text(json.dumps({
            "version": CACHE_FORMAT_VERSION,
            "records": ["oops", make_record("a").to_dict()],
        }))
        assert [r.id for r in cache.get_all()] == ["a"]

    def test_unreadable_file_overwritten_by_append(self, cache):
        cache.path.write_bytes(b"\xff\xfe\x00garbage")
        cache.append(make_record("a"))
        assert [r.id for r in cache.get_all()] == ["a"]
