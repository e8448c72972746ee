"""Tests for the click CLI."""

import json

import click
import pytest
from click.testing import CliRunner

from leftoff.adapters.json_store import JsonRecordStore
from leftoff.cli import _parse_days, main
from leftoff.config import Config
from leftoff.core.schedule import Monthly, Weekly


@pytest.fixture
def store(tmp_path):
    return JsonRecordStore(tmp_path / "leftoff.json")


@pytest.fixture
def invoke(store, tmp_path):
    runner = CliRunner()
    config = Config(data_file=str(store.path), seed_sample_data=False, backup_dir=str(tmp_path / "backups"))

    def _invoke(*args, input=None):
        return runner.invoke(main, list(args), obj={"config": config, "store": store}, input=input)

    return _invoke


class TestMarkerCommands:
    def test_add(self, invoke, store):
        result = invoke("add", "Mere", "Christianity", "page", "94", "next:", "underline", "quote", "--type", "book")

        assert result.exit_code == 0, result.output
        assert "Mere Christianity" in result.output
        assert "Pointer: page 94" in result.output
        assert "Next: underline quote" in result.output
        assert store.all_markers()[0].type == "book"

    def test_list_empty(self, invoke):
        result = invoke("list")
        assert result.exit_code == 0
        assert "No markers yet" in result.output

    def test_list_json(self, invoke):
        invoke("add", "Dune page 3")
        result = invoke("list", "--json")
        data = json.loads(result.output)
        assert data[0]["pointer"] == "page 3"

    def test_advance(self, invoke, store):
        invoke("add", "Podcast 34:22")
        marker_id = store.all_markers()[0].id

        result = invoke("advance", marker_id[:8], "--by", "300")

        assert result.exit_code == 0, result.output
        assert "Podcast @ 39:22" in result.output

    def test_advance_freeform_fails(self, invoke, store):
        invoke("add", "Kitchen remodel")
        marker_id = store.all_markers()[0].id

        result = invoke("advance", marker_id)

        assert result.exit_code == 1
        assert "--to" in result.output

    def test_advance_by_hand(self, invoke, store):
        invoke("add", "Kitchen remodel")
        marker_id = store.all_markers()[0].id

        result = invoke("advance", marker_id, "--to", "cabinets done")

        assert result.exit_code == 0
        assert store.get_marker(marker_id).pointer == "cabinets done"

    def test_unknown_id(self, invoke):
        result = invoke("show", "nope")
        assert result.exit_code == 1
        assert "Error: No record with id 'nope'" in result.output

    def test_show_marker(self, invoke, store):
        invoke("add", "John chapter 3 verse 16 next: discuss love")
        marker_id = store.all_markers()[0].id

        result = invoke("show", marker_id)

        assert "Pointer: chapter 3 verse 16" in result.output
        assert "Advance: by chapter_verse" in result.output

    def test_archive_undo(self, invoke, store):
        invoke("add", "Dune page 3")
        marker_id = store.all_markers()[0].id

        assert invoke("archive", marker_id).exit_code == 0
        assert "Dune" in invoke("archived").output

        result = invoke("undo")
        assert "Undone: Archived 'Dune'" in result.output
        assert store.get_marker(marker_id).archived is False

    def test_undo_nothing(self, invoke):
        assert "Nothing to undo." in invoke("undo").output

    def test_search(self, invoke):
        invoke("add", "Dune page 3", "--tag", "scifi")
        invoke("add", "Emma page 9")
        result = invoke("search", "SCIFI")
        assert "1 result(s)" in result.output
        assert "Dune" in result.output


class TestRhythmCommands:
    def test_add_weekly(self, invoke, store):
        result = invoke("rhythm", "add", "Call", "Mom", "--weekly", "sun,wed")

        assert result.exit_code == 0, result.output
        assert "Every Sunday, Wednesday" in result.output
        assert store.all_rhythms()[0].schedule == Weekly((0, 3))

    def test_add_monthly(self, invoke, store):
        invoke("rhythm", "add", "Pay rent", "--monthly", "1")
        assert store.all_rhythms()[0].schedule == Monthly(1)

    def test_add_requires_one_schedule(self, invoke):
        result = invoke("rhythm", "add", "Pray", "--daily", "--every", "2")
        assert result.exit_code == 2
        assert "exactly one" in result.output

    def test_done(self, invoke, store):
        invoke("rhythm", "add", "Pray", "--daily")
        rhythm_id = store.all_rhythms()[0].id

        result = invoke("rhythm", "done", rhythm_id)

        assert result.exit_code == 0
        assert "Done: Pray" in result.output
        assert store.get_rhythm(rhythm_id).last_completed is not None

    def test_list(self, invoke):
        invoke("rhythm", "add", "Water plants", "--every", "3")
        result = invoke("rhythm", "list")
        assert "Water plants (Every 3 days" in result.output


class TestParseDays:
    def test_names_and_numbers(self):
        assert _parse_days("mon, thursday,6") == (1, 4, 6)

    def test_duplicates_dropped(self):
        assert _parse_days("mon,1") == (1,)

    def test_full_day_name_prefix(self):
        assert _parse_days("wed,wednes") == (3,)

    @pytest.mark.parametrize("value", ["funday", "monxyz", "mo"])
    def test_unknown_day(self, value):
        with pytest.raises(click.BadParameter):
            _parse_days(value)


class TestBackupCommands:
    def test_export_and_import_preview(self, invoke, store, tmp_path):
        invoke("add", "Dune page 3")
        result = invoke("export")
        assert result.exit_code == 0, result.output
        backup = next((tmp_path / "backups").glob("leftoff-backup-*.json"))

        result = invoke("import", str(backup), "--preview")

        assert "Updated: 1 markers, 0 rhythms" in result.output

    def test_import_confirm_declined(self, invoke, store, tmp_path):
        path = tmp_path / "in.json"
        path.write_text(json.dumps({"version": 1, "markers": [{"id": "x", "title": "From backup"}]}))

        invoke("import", str(path), input="n\n")
        assert store.all_markers() == []

        invoke("import", str(path), "--yes")
        assert [m.title for m in store.all_markers()] == ["From backup"]

    def test_import_bad_file(self, invoke, tmp_path):
        path = tmp_path / "in.json"
        path.write_text("[]")
        result = invoke("import", str(path), "--yes")
        assert result.exit_code == 1
        assert "Unsupported data format" in result.output

    def test_clear(self, invoke, store):
        invoke("add", "Dune page 3")
        invoke("clear", "--yes")
        assert store.all_markers() == []


class TestCorruptStore:
    @pytest.mark.parametrize(
        "args",
        [
            ["list"],
            ["archived"],
            ["search", "dune"],
            ["add", "Dune page 3"],
            ["rhythm", "list"],
            ["rhythm", "today"],
            ["rhythm", "add", "Pray", "--daily"],
            ["clear", "--yes"],
        ],
    )
    def test_reports_error(self, invoke, store, args):
        store.path.write_text("{not json")

        result = invoke(*args)

        assert result.exit_code == 1
        assert "Error: Store file" in result.output
        assert "corrupt" in result.output


class TestEditCommands:
    def test_edit_marker(self, invoke, store):
        invoke("add", "Dune page 3", "--group", "Book club")
        marker_id = store.all_markers()[0].id

        result = invoke(
            "edit", marker_id[:8], "--title", "Dune Messiah", "--next", "reread prologue",
            "--type", "book", "--note", "Bring snacks", "--group", "",
        )

        assert result.exit_code == 0, result.output
        assert "Updated" in result.output
        marker = store.get_marker(marker_id)
        assert (marker.title, marker.next_step, marker.type) == ("Dune Messiah", "reread prologue", "book")
        assert marker.meeting_note == "Bring snacks"
        assert marker.group is None
        assert marker.pointer == "page 3"

    def test_edit_marker_tags(self, invoke, store):
        invoke("add", "Dune page 3", "--tag", "scifi")
        marker_id = store.all_markers()[0].id

        invoke("edit", marker_id, "--tag", "classic", "--tag", "reread")
        assert store.get_marker(marker_id).tags == ["classic", "reread"]

        invoke("edit", marker_id, "--clear-tags")
        assert store.get_marker(marker_id).tags == []

    def test_edit_without_changes(self, invoke, store):
        invoke("add", "Dune page 3")
        result = invoke("edit", store.all_markers()[0].id)
        assert result.exit_code == 1
        assert "Nothing to change" in result.output

    def test_edit_then_undo(self, invoke, store):
        invoke("add", "Dune page 3")
        marker_id = store.all_markers()[0].id

        invoke("edit", marker_id, "--title", "Emma")
        assert "Undone: Edited 'Emma'" in invoke("undo").output
        assert store.get_marker(marker_id).title == "Dune"

    def test_edit_rhythm_schedule_and_notifications(self, invoke, store):
        invoke("rhythm", "add", "Call Mom", "--weekly", "sun")
        rhythm_id = store.all_rhythms()[0].id

        result = invoke("rhythm", "edit", rhythm_id, "--monthly", "1", "--quiet")

        assert result.exit_code == 0, result.output
        assert "Monthly on day 1" in result.output
        rhythm = store.get_rhythm(rhythm_id)
        assert rhythm.schedule == Monthly(1)
        assert rhythm.next_occurrence.day == 1
        assert rhythm.notification_enabled is False

        invoke("rhythm", "edit", rhythm_id, "--notify")
        assert store.get_rhythm(rhythm_id).notification_enabled is True

    def test_edit_rhythm_rejects_two_schedules(self, invoke, store):
        invoke("rhythm", "add", "Pray", "--daily")
        result = invoke("rhythm", "edit", store.all_rhythms()[0].id, "--daily", "--every", "2")
        assert result.exit_code == 2

    def test_edit_marker_id_as_rhythm(self, invoke, store):
        invoke("add", "Dune page 3")
        result = invoke("rhythm", "edit", store.all_markers()[0].id, "--title", "x")
        assert result.exit_code == 1
        assert "No rhythm" in result.output


class TestShowRhythm:
    def test_show(self, invoke, store):
        invoke("rhythm", "add", "Pray", "--every", "2", "--quiet")
        result = invoke("show", store.all_rhythms()[0].id)
        assert "Schedule: Every 2 days" in result.output
        assert "Notifications: off" in result.output
        assert "Pointer" not in result.output
