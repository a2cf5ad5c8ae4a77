"""Tests for StoreService."""

from unittest.mock import patch

from models.store_entry import StoreEntry
from services.store_service import StoreService


class TestStoreServiceGet:
    """Tests for StoreService.get."""

    def test_get_missing_returns_default(self, db):
        assert StoreService.get(db, "missing") is None
        assert StoreService.get(db, "missing", default=[]) == []

    def test_get_json_object(self, db):
        obj = {"nested": {"key": "value"}, "list": [1, 2, 3]}
        StoreService.set(db, "config", obj)
        assert StoreService.get(db, "config") == obj

    def test_non_ascii_round_trip(self, db):
        """Japanese names are stored as-is."""
        StoreService.set(db, "name", "トヨタ自動車")
        entry = StoreService.get_record(db, "name")
        assert entry.value == '"トヨタ自動車"'
        assert StoreService.get(db, "name") == "トヨタ自動車"


class TestStoreServiceSet:
    """Tests for StoreService.set."""

    def test_set_creates_new(self, db):
        entry = StoreService.set(db, "new_key", "new_value")
        assert entry.key == "new_key"
        assert entry.id is not None
        assert entry.created_at is not None

    def test_set_updates_existing(self, db):
        first = StoreService.set(db, "key", "original")
        second = StoreService.set(db, "key", "updated")

        assert StoreService.get(db, "key") == "updated"
        assert first.id == second.id

    def test_set_recovers_from_concurrent_insert(self, db):
        """An IntegrityError on insert falls back to updating the winner's row."""
        StoreService.set(db, "key", "theirs")

        original_query = db.query
        calls = {"n": 0}

        def query_missing_once(*args, **kwargs):
            # First lookup misses, as if the row did not exist yet
            calls["n"] += 1
            query = original_query(*args, **kwargs)
            if calls["n"] == 1:
                return query.filter(StoreEntry.key == "__none__")
            return query

        with patch.object(db, "query", side_effect=query_missing_once):
            StoreService.set(db, "key", "ours")

        assert StoreService.get(db, "key") == "ours"

