# =============================================================================
# tests/unit/test_local_cache.py
# Unit Tests for LocalDatabase and the Collection Caches
# =============================================================================

import json
import pytest

from cleantrack_core.errors import LocalCacheError
from cleantrack_core.models import Area, Task, TaskStatus
from cleantrack_core.offline import AreaCache, LocalDatabase, TaskCache


class TestLocalDatabase:
    """Test the snapshot key/value store"""

    def test_missing_key_returns_none(self, local_db):
        assert local_db.get_snapshot("nothing") is None
        assert local_db.snapshot_updated_at("nothing") is None

    def test_set_replaces_previous_payload(self, local_db):
        local_db.set_snapshot("k", "[1]")
        local_db.set_snapshot("k", "[2]")

        assert local_db.get_snapshot("k") == "[2]"
        assert local_db.keys() == ["k"]
        assert local_db.snapshot_updated_at("k") is not None

    def test_delete_snapshot(self, local_db):
        local_db.set_snapshot("k", "[]")
        assert local_db.delete_snapshot("k") is True
        assert local_db.delete_snapshot("k") is False

    def test_survives_reopen(self, tmp_path):
        path = tmp_path / "nested" / "store.db"
        first = LocalDatabase(path)
        first.set_snapshot("k", "payload")
        first.close()

        second = LocalDatabase(path)
        assert second.get_snapshot("k") == "payload"
        second.close()


class TestCollectionCaches:
    """Test typed caches on top of the store"""

    def test_empty_cache_returns_none(self, local_db):
        assert TaskCache(local_db).get() is None
        assert AreaCache(local_db).get() is None

    def test_task_roundtrip(self, local_db, sample_tasks):
        cache = TaskCache(local_db)
        cache.set(sample_tasks)
        assert cache.get() == sample_tasks

    def test_caches_use_separate_keys(self, local_db, sample_tasks, sample_areas):
        TaskCache(local_db).set(sample_tasks)
        AreaCache(local_db).set(sample_areas)

        assert set(local_db.keys()) == {TaskCache.KEY, AreaCache.KEY}
        assert AreaCache(local_db).get() == sample_areas

    def test_snapshot_is_camel_case_json(self, local_db):
        TaskCache(local_db).set([Task("1", "2024-03-10", "Lobby", "Vacuum", "Budi")])
        records = json.loads(local_db.get_snapshot(TaskCache.KEY))
        assert records[0]["jobDescription"] == "Vacuum"

    def test_corrupt_json_raises(self, local_db):
        local_db.set_snapshot(TaskCache.KEY, "{not json")
        with pytest.raises(LocalCacheError):
            TaskCache(local_db).get()

    def test_non_list_payload_raises(self, local_db):
        local_db.set_snapshot(AreaCache.KEY, json.dumps({"name": "Lobby"}))
        with pytest.raises(LocalCacheError):
            AreaCache(local_db).get()

    def test_malformed_record_raises(self, local_db):
        local_db.set_snapshot(TaskCache.KEY, json.dumps([{"id": "1", "date": "yesterday"}]))
        with pytest.raises(LocalCacheError):
            TaskCache(local_db).get()

    def test_legacy_area_names_migrate(self, local_db):
        local_db.set_snapshot(AreaCache.KEY, json.dumps(["Lobby", {"name": "Gym", "category": "Facilities"}]))
        assert AreaCache(local_db).get() == [Area("Lobby", "General"), Area("Gym", "Facilities")]

    def test_legacy_single_photo_migrates(self, local_db):
        local_db.set_snapshot(TaskCache.KEY, json.dumps([{
            "id": "1", "date": "2024-03-10", "area": "Lobby", "jobDescription": "Vacuum",
            "assignee": "Budi", "status": "Completed", "remarks": "", "photo": "data:old",
        }]))
        task = TaskCache(local_db).get()[0]
        assert task.photo_after == "data:old"
        assert task.status is TaskStatus.COMPLETED
