"""Tests for the JSON file record store."""

import json
from datetime import datetime, timedelta

import pytest

from leftoff.adapters.json_store import JsonRecordStore, StoreError
from leftoff.core.records import Marker, Rhythm
from leftoff.core.schedule import Weekly
from leftoff.core.undo import UNDO_LIMIT, UndoAction, UndoKind


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0)


@pytest.fixture
def store(tmp_path):
    return JsonRecordStore(tmp_path / "data" / "leftoff.json")


@pytest.fixture
def marker(now):
    return Marker(
        id="m1",
        title="Mere Christianity",
        pointer="page 47",
        next_step="Finish chapter 3",
        created_at=now,
        last_touched=now,
        tags=["theology"],
    )


@pytest.fixture
def rhythm(now):
    return Rhythm(
        id="r1",
        title="Call Mom",
        schedule=Weekly((0, 3)),
        next_occurrence=now + timedelta(days=1),
        created_at=now,
    )


def undo_action(index: int, now: datetime) -> UndoAction:
    return UndoAction(
        id=f"u{index}",
        kind=UndoKind.ARCHIVE,
        timestamp=now + timedelta(seconds=index),
        item_type="marker",
        payload={"id": "m1"},
        description=f"action {index}",
    )


class TestJsonRecordStore:
    def test_missing_file_is_empty(self, store):
        assert store.all_markers() == []
        assert store.all_rhythms() == []
        assert store.latest_undo() is None
        assert store.get_settings() == {"backup_reminder_frequency": "monthly"}

    def test_save_and_get_marker(self, store, marker):
        store.save_marker(marker)
        assert store.get_marker("m1") == marker
        assert store.all_markers() == [marker]
        assert store.path.exists()

    def test_save_replaces_by_id(self, store, marker):
        store.save_marker(marker)
        marker.pointer = "page 48"
        store.save_marker(marker)
        assert [m.pointer for m in store.all_markers()] == ["page 48"]

    def test_delete_marker(self, store, marker):
        store.save_marker(marker)
        store.delete_marker("m1")
        assert store.get_marker("m1") is None

    def test_delete_missing_is_noop(self, store):
        store.delete_marker("nope")
        store.delete_rhythm("nope")

    def test_save_and_get_rhythm(self, store, rhythm):
        store.save_rhythm(rhythm)
        assert store.get_rhythm("r1") == rhythm
        store.delete_rhythm("r1")
        assert store.all_rhythms() == []

    def test_file_is_plain_json(self, store, marker):
        store.save_marker(marker)
        data = json.loads(store.path.read_text())
        assert data["markers"]["m1"]["pointer"] == "page 47"

    def test_undo_stack_latest(self, store, now):
        store.push_undo(undo_action(1, now))
        store.push_undo(undo_action(2, now))
        assert store.latest_undo().id == "u2"
        store.delete_undo("u2")
        assert store.latest_undo().id == "u1"

    def test_undo_stack_is_capped(self, store, now):
        for i in range(UNDO_LIMIT + 5):
            store.push_undo(undo_action(i, now))
        history = store.undo_history()
        assert len(history) == UNDO_LIMIT
        assert history[0].id == "u5"
        assert history[-1].id == f"u{UNDO_LIMIT + 4}"

    def test_settings(self, store):
        store.save_settings({"backup_reminder_frequency": "weekly"})
        assert store.get_settings()["backup_reminder_frequency"] == "weekly"

    def test_clear_keeps_settings(self, store, marker, rhythm, now):
        store.save_marker(marker)
        store.save_rhythm(rhythm)
        store.push_undo(undo_action(1, now))
        store.save_settings({"backup_reminder_frequency": "never"})

        store.clear()

        assert store.all_markers() == []
        assert store.all_rhythms() == []
        assert store.latest_undo() is None
        assert store.get_settings()["backup_reminder_frequency"] == "never"

    def test_corrupt_file_raises(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{broken")
        with pytest.raises(StoreError, match="corrupt"):
            store.all_markers()

    def test_expands_user_path(self):
        store = JsonRecordStore("~/leftoff-test/data.json")
        assert "~" not in str(store.path)
