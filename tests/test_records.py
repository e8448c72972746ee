"""Tests for core marker and rhythm logic."""

from datetime import datetime, timedelta

import pytest

from leftoff.core.pointer import parse_marker_input
from leftoff.core.records import (
    Marker,
    Rhythm,
    active_markers,
    advance_marker,
    archived_markers,
    complete_rhythm,
    due_rhythms,
    edit_marker,
    edit_rhythm,
    new_marker,
    new_rhythm,
    search,
)
from leftoff.core.schedule import Daily, Monthly, Weekly


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0)


def make_marker(marker_id: str, now: datetime, **kwargs) -> Marker:
    defaults = dict(
        id=marker_id,
        title=f"Marker {marker_id}",
        pointer="page 1",
        next_step="",
        created_at=now - timedelta(days=10),
        last_touched=now - timedelta(days=1),
    )
    defaults.update(kwargs)
    return Marker(**defaults)


def make_rhythm(rhythm_id: str, next_at: datetime, **kwargs) -> Rhythm:
    defaults = dict(
        id=rhythm_id,
        title=f"Rhythm {rhythm_id}",
        schedule=Daily(),
        next_occurrence=next_at,
        created_at=next_at - timedelta(days=30),
    )
    defaults.update(kwargs)
    return Rhythm(**defaults)


class TestMarker:
    def test_round_trip(self, now):
        marker = make_marker("m1", now, tags=["a"], group="Tuesday group", pinned=True, type="bible")
        assert Marker.from_dict(marker.to_dict()) == marker

    def test_optional_fields_omitted(self, now):
        data = make_marker("m1", now).to_dict()
        assert "group" not in data
        assert "meeting_note" not in data

    def test_from_dict_defaults(self):
        marker = Marker.from_dict({"id": "x", "title": "T", "created_at": "2025-01-01T10:00:00"})
        assert marker.pointer == ""
        assert marker.tags == []
        assert marker.pinned is False
        assert marker.last_touched == datetime(2025, 1, 1, 10, 0)

    def test_from_dict_unknown_type_becomes_other(self):
        marker = Marker.from_dict({"id": "x", "type": "podcast", "created_at": "2025-01-01T10:00:00"})
        assert marker.type == "other"

    def test_from_dict_accepts_utc_suffix(self):
        marker = Marker.from_dict({"id": "x", "created_at": "2025-01-01T10:00:00.000Z"})
        assert marker.created_at.tzinfo is None

    def test_new_marker_from_draft(self, now):
        draft = parse_marker_input("Mere Christianity page 94 next: underline quote")
        marker = new_marker(draft, marker_type="book", tags=["theology"], now=now)
        assert marker.title == "Mere Christianity"
        assert marker.pointer == "page 94"
        assert marker.next_step == "underline quote"
        assert marker.type == "book"
        assert marker.created_at == marker.last_touched == now
        assert marker.id


class TestRhythm:
    def test_round_trip(self, now):
        rhythm = make_rhythm("r1", now, schedule=Weekly((1, 3)), last_completed=now - timedelta(days=2))
        assert Rhythm.from_dict(rhythm.to_dict()) == rhythm

    def test_unknown_schedule_survives_load(self, now):
        data = make_rhythm("r1", now).to_dict()
        data["schedule"] = {"type": "yearly"}
        assert Rhythm.from_dict(data).schedule is None

    def test_new_rhythm_schedules_first_occurrence(self, now):
        rhythm = new_rhythm("Pay rent", Monthly(1), now=now)
        assert rhythm.next_occurrence == datetime(2025, 2, 1, 9, 0)
        assert rhythm.notification_enabled is True
        assert rhythm.last_completed is None


class TestActiveMarkers:
    def test_pinned_first_then_recent(self, now):
        old = make_marker("old", now, last_touched=now - timedelta(days=5))
        recent = make_marker("recent", now, last_touched=now - timedelta(hours=1))
        pinned_old = make_marker("pinned", now, pinned=True, last_touched=now - timedelta(days=9))
        archived = make_marker("gone", now, archived=True)

        result = active_markers([old, archived, recent, pinned_old])

        assert [m.id for m in result] == ["pinned", "recent", "old"]

    def test_archived_markers(self, now):
        markers = [make_marker("a", now), make_marker("b", now, archived=True)]
        assert [m.id for m in archived_markers(markers)] == ["b"]


class TestDueRhythms:
    def test_due_today_and_overdue(self, now):
        overdue = make_rhythm("overdue", now - timedelta(days=2))
        later_today = make_rhythm("tonight", now.replace(hour=21))
        tomorrow = make_rhythm("tomorrow", now + timedelta(days=1))
        archived = make_rhythm("archived", now - timedelta(days=1), archived=True)

        result = due_rhythms([tomorrow, later_today, archived, overdue], now)

        assert [r.id for r in result] == ["overdue", "tonight"]

    def test_end_of_day_boundary(self, now):
        edge = make_rhythm("edge", now.replace(hour=23, minute=59, second=59))
        assert due_rhythms([edge], now) == [edge]


class TestSearch:
    @pytest.fixture
    def markers(self, now):
        return [
            make_marker("1", now, title="Mere Christianity", type="book", tags=["theology"], pinned=True),
            make_marker("2", now, title="Gospel of John", pointer="chapter 3 verse 16", type="bible"),
            make_marker("3", now, title="Kitchen", next_step="Install cabinet hardware", type="project"),
            make_marker("4", now, title="Old theology notes", archived=True),
        ]

    @pytest.fixture
    def rhythms(self, now):
        return [
            make_rhythm("r1", now, title="Morning prayer", tags=["spiritual"]),
            make_rhythm("r2", now, title="Theology reading group"),
        ]

    def test_empty_query_returns_active(self, markers, rhythms):
        found_markers, found_rhythms = search(markers, rhythms)
        assert [m.id for m in found_markers] == ["1", "2", "3"]
        assert len(found_rhythms) == 2

    def test_matches_title_and_tags_case_insensitive(self, markers, rhythms):
        found_markers, found_rhythms = search(markers, rhythms, "THEOLOGY")
        assert [m.id for m in found_markers] == ["1"]
        assert [r.id for r in found_rhythms] == ["r2"]

    def test_matches_pointer_and_next_step(self, markers, rhythms):
        assert [m.id for m in search(markers, rhythms, "verse 16")[0]] == ["2"]
        assert [m.id for m in search(markers, rhythms, "cabinet")[0]] == ["3"]

    def test_rhythm_tags(self, markers, rhythms):
        assert [r.id for r in search(markers, rhythms, "spiritual")[1]] == ["r1"]

    def test_type_filter_applies_to_markers_only(self, markers, rhythms):
        found_markers, found_rhythms = search(markers, rhythms, marker_type="bible")
        assert [m.id for m in found_markers] == ["2"]
        assert len(found_rhythms) == 2

    def test_pinned_only(self, markers, rhythms):
        assert [m.id for m in search(markers, rhythms, pinned_only=True)[0]] == ["1"]


class TestAdvanceMarker:
    def test_advances_pointer_and_touches(self, now):
        marker = make_marker("m", now, pointer="page 94")
        updated = advance_marker(marker, 5, now)
        assert updated.pointer == "page 99"
        assert updated.last_touched == now
        assert marker.pointer == "page 94"

    def test_freeform_returns_none(self, now):
        assert advance_marker(make_marker("m", now, pointer="halfway"), 1, now) is None


class TestCompleteRhythm:
    def test_sets_completed_and_next(self, now):
        rhythm = make_rhythm("r", now, schedule=Weekly((3,)))
        done = complete_rhythm(rhythm, now)
        assert done.last_completed == now
        # Wednesday done on a Wednesday: next week
        assert done.next_occurrence == datetime(2025, 1, 22, 9, 0)
        assert rhythm.last_completed is None


class TestEditMarker:
    def test_applies_changes_and_touches(self, now):
        marker = make_marker("m", now)
        edited = edit_marker(marker, now, title="Renamed", meeting_note="Bring snacks")
        assert (edited.title, edited.meeting_note, edited.last_touched) == ("Renamed", "Bring snacks", now)
        assert marker.title == "Marker m"


class TestEditRhythm:
    def test_new_schedule_recomputes_next(self, now):
        rhythm = make_rhythm("r", now + timedelta(days=1))
        edited = edit_rhythm(rhythm, now, schedule=Monthly(20))
        assert edited.next_occurrence == datetime(2025, 1, 20, 9, 0)

    def test_same_schedule_keeps_next(self, now):
        rhythm = make_rhythm("r", now + timedelta(days=1))
        edited = edit_rhythm(rhythm, now, schedule=Daily(), notification_enabled=False)
        assert edited.next_occurrence == rhythm.next_occurrence
        assert edited.notification_enabled is False
