"""Shared workflow layer between CLI and Telegram.

Each function loads what it needs from a RecordStore, applies pure core
logic, saves the result and records an undo action for reversible changes.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from .adapters.json_store import JsonRecordStore
from .config import Config
from .core.backup import (
    BackupData,
    ImportPreview,
    backup_filename,
    build_export,
    merge_settings,
    parse_backup,
    preview_import,
)
from .core.pointer import parse_marker_input
from .core.records import (
    MARKER_TYPES,
    Marker,
    Rhythm,
    advance_marker,
    complete_rhythm,
    edit_marker,
    edit_rhythm,
    new_id,
    new_marker,
    new_rhythm,
)
from .core.schedule import Schedule
from .core.undo import UndoAction, UndoKind, record_undo, reverted_record
from .ports.record_store import RecordStore
from .sample_data import sample_markers, sample_rhythms

logger = logging.getLogger(__name__)


class RecordNotFound(LookupError):
    """Raised when an id (or id prefix) matches no record, or several."""


class InvalidEdit(ValueError):
    """Raised when an edit would leave a record invalid, or changes nothing."""


class NotAdvanceable(ValueError):
    """Raised when a marker's pointer has no structure to advance."""


def get_store(config: Config) -> JsonRecordStore:
    """Resolve the record store from config."""
    return JsonRecordStore(config.data_path)


def ensure_seeded(store: RecordStore, config: Config, now: datetime | None = None) -> bool:
    """Load sample records into an empty store. Returns True if seeded."""
    if not config.seed_sample_data:
        return False
    if store.all_markers() or store.all_rhythms():
        return False

    now = now or datetime.now()
    for marker in sample_markers(now):
        store.save_marker(marker)
    for rhythm in sample_rhythms(now):
        store.save_rhythm(rhythm)
    logger.info("Seeded empty store with sample data")
    return True


# ============== Lookup ==============


def _resolve(records: list, ref: str, label: str):
    exact = [r for r in records if r.id == ref]
    if exact:
        return exact[0]
    matches = [r for r in records if r.id.startswith(ref)]
    if not matches:
        raise RecordNotFound(f"No {label} with id '{ref}'")
    if len(matches) > 1:
        raise RecordNotFound(f"Id '{ref}' matches {len(matches)} {label}s, use a longer prefix")
    return matches[0]


def find_marker(store: RecordStore, ref: str) -> Marker:
    return _resolve(store.all_markers(), ref, "marker")


def find_rhythm(store: RecordStore, ref: str) -> Rhythm:
    return _resolve(store.all_rhythms(), ref, "rhythm")


def find_record(store: RecordStore, ref: str) -> Marker | Rhythm:
    """Find a marker or a rhythm by id or unique id prefix."""
    return _resolve(store.all_markers() + store.all_rhythms(), ref, "record")


def _save(store: RecordStore, record: Marker | Rhythm) -> None:
    if isinstance(record, Marker):
        store.save_marker(record)
    else:
        store.save_rhythm(record)


# ============== Markers ==============


def add_marker(
    store: RecordStore,
    text: str,
    marker_type: str = "other",
    tags: list[str] | None = None,
    group: str | None = None,
    now: datetime | None = None,
) -> Marker:
    """Parse free text into a new marker and save it."""
    draft = parse_marker_input(text)
    marker = new_marker(draft, marker_type=marker_type, tags=tags, group=group, now=now)
    store.save_marker(marker)
    logger.info(f"Added marker {marker.id}: {marker.title}")
    return marker


def advance(store: RecordStore, ref: str, amount: int = 1, now: datetime | None = None) -> Marker:
    """Move a marker's pointer forward by amount units."""
    marker = find_marker(store, ref)
    updated = advance_marker(marker, amount, now)
    if updated is None:
        raise NotAdvanceable(
            f"Can't advance '{marker.pointer or '(no pointer)'}' automatically, edit it manually"
        )
    store.save_marker(updated)
    store.push_undo(record_undo(UndoKind.ADVANCE, marker, f"Advanced to {updated.pointer}", now))
    return updated


def update_pointer(store: RecordStore, ref: str, pointer: str, now: datetime | None = None) -> Marker:
    """Set a marker's pointer by hand."""
    marker = find_marker(store, ref)
    original = Marker.from_dict(marker.to_dict())
    marker.pointer = pointer.strip()
    marker.last_touched = now or datetime.now()
    store.save_marker(marker)
    store.push_undo(record_undo(UndoKind.ADVANCE, original, f"Moved to {marker.pointer}", now))
    return marker


def _clean_title(title: str | None) -> str | None:
    if title is None:
        return None
    title = title.strip()
    if not title:
        raise InvalidEdit("Title can't be empty")
    return title


def update_marker(
    store: RecordStore,
    ref: str,
    title: str | None = None,
    next_step: str | None = None,
    marker_type: str | None = None,
    tags: list[str] | None = None,
    group: str | None = None,
    meeting_note: str | None = None,
    now: datetime | None = None,
) -> Marker:
    """
    Edit a marker's details.

    Arguments left as None are unchanged. An empty string clears next_step,
    group or meeting_note; an empty list clears tags. The pointer is changed
    through advance/update_pointer instead.
    """
    marker = find_marker(store, ref)
    if marker_type is not None and marker_type not in MARKER_TYPES:
        raise InvalidEdit(f"Unknown marker type '{marker_type}'")

    changes = {
        "title": _clean_title(title),
        "next_step": next_step.strip() if next_step is not None else None,
        "type": marker_type,
        "tags": tags,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if group is not None:
        changes["group"] = group.strip() or None
    if meeting_note is not None:
        changes["meeting_note"] = meeting_note.strip() or None
    if not changes:
        raise InvalidEdit("Nothing to change")

    updated = edit_marker(marker, now, **changes)
    store.save_marker(updated)
    store.push_undo(record_undo(UndoKind.EDIT, marker, f"Edited '{updated.title}'", now))
    logger.info(f"Edited marker {marker.id}: {', '.join(changes)}")
    return updated


def toggle_pin(store: RecordStore, ref: str) -> Marker:
    marker = find_marker(store, ref)
    marker.pinned = not marker.pinned
    store.save_marker(marker)
    return marker


# ============== Rhythms ==============


def add_rhythm(
    store: RecordStore,
    title: str,
    schedule: Schedule,
    tags: list[str] | None = None,
    notification_enabled: bool = True,
    now: datetime | None = None,
) -> Rhythm:
    rhythm = new_rhythm(title, schedule, tags=tags, notification_enabled=notification_enabled, now=now)
    store.save_rhythm(rhythm)
    logger.info(f"Added rhythm {rhythm.id}: {rhythm.title}")
    return rhythm


def update_rhythm(
    store: RecordStore,
    ref: str,
    title: str | None = None,
    schedule: Schedule | None = None,
    tags: list[str] | None = None,
    notification_enabled: bool | None = None,
    now: datetime | None = None,
) -> Rhythm:
    """Edit a rhythm. A new schedule recomputes the next occurrence from now."""
    rhythm = find_rhythm(store, ref)
    changes = {
        "title": _clean_title(title),
        "schedule": schedule,
        "tags": tags,
        "notification_enabled": notification_enabled,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        raise InvalidEdit("Nothing to change")

    updated = edit_rhythm(rhythm, now, **changes)
    store.save_rhythm(updated)
    store.push_undo(record_undo(UndoKind.EDIT, rhythm, f"Edited '{updated.title}'", now))
    logger.info(f"Edited rhythm {rhythm.id}: {', '.join(changes)}")
    return updated


def mark_done(store: RecordStore, ref: str, now: datetime | None = None) -> Rhythm:
    """Complete a rhythm and move it to its next occurrence."""
    rhythm = find_rhythm(store, ref)
    updated = complete_rhythm(rhythm, now)
    store.save_rhythm(updated)
    store.push_undo(record_undo(UndoKind.MARK_DONE, rhythm, f"Marked '{rhythm.title}' done", now))
    return updated


# ============== Archive / Delete ==============


def archive(store: RecordStore, ref: str, now: datetime | None = None) -> Marker | Rhythm:
    record = find_record(store, ref)
    original = type(record).from_dict(record.to_dict())
    record.archived = True
    _save(store, record)
    store.push_undo(record_undo(UndoKind.ARCHIVE, original, f"Archived '{record.title}'", now))
    return record


def restore(store: RecordStore, ref: str, now: datetime | None = None) -> Marker | Rhythm:
    record = find_record(store, ref)
    original = type(record).from_dict(record.to_dict())
    record.archived = False
    _save(store, record)
    store.push_undo(record_undo(UndoKind.RESTORE, original, f"Restored '{record.title}'", now))
    return record


def delete(store: RecordStore, ref: str, now: datetime | None = None) -> Marker | Rhythm:
    record = find_record(store, ref)
    if isinstance(record, Marker):
        store.delete_marker(record.id)
    else:
        store.delete_rhythm(record.id)
    store.push_undo(record_undo(UndoKind.DELETE, record, f"Deleted '{record.title}'", now))
    return record


# ============== Undo ==============


def _undo_import(store: RecordStore, action: UndoAction) -> None:
    for marker_id, previous in action.payload.get("markers", {}).items():
        if previous is None:
            store.delete_marker(marker_id)
        else:
            store.save_marker(Marker.from_dict(previous))
    for rhythm_id, previous in action.payload.get("rhythms", {}).items():
        if previous is None:
            store.delete_rhythm(rhythm_id)
        else:
            store.save_rhythm(Rhythm.from_dict(previous))


def undo_last(store: RecordStore) -> UndoAction | None:
    """Revert the most recent undoable change. Returns it, or None."""
    action = store.latest_undo()
    if action is None:
        return None

    if action.kind is UndoKind.IMPORT:
        _undo_import(store, action)
    else:
        _save(store, reverted_record(action))

    store.delete_undo(action.id)
    logger.info(f"Undid {action.kind.value}: {action.description}")
    return action


# ============== Backup ==============


def export_backup(store: RecordStore, path: Path | None = None, now: datetime | None = None) -> Path:
    """Write a backup file. path may be a directory (no suffix) or a file."""
    now = now or datetime.now()
    settings = store.get_settings()
    document = build_export(store.all_markers(), store.all_rhythms(), settings, now)

    if path is None or path.is_dir() or not path.suffix:
        path = (path or Path.cwd()) / backup_filename(now.date())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2))

    store.save_settings({**settings, "last_backup_reminder": now.isoformat()})
    logger.info(f"Exported backup to {path}")
    return path


def read_backup(path: Path) -> BackupData:
    return parse_backup(Path(path).read_text())


def preview_backup(store: RecordStore, path: Path) -> ImportPreview:
    return preview_import(read_backup(path), store.all_markers(), store.all_rhythms())


def import_backup(store: RecordStore, path: Path, now: datetime | None = None) -> ImportPreview:
    """Upsert every record in a backup and merge its settings."""
    now = now or datetime.now()
    backup = read_backup(path)
    markers = {m.id: m for m in store.all_markers()}
    rhythms = {r.id: r for r in store.all_rhythms()}
    preview = preview_import(backup, list(markers.values()), list(rhythms.values()))

    snapshot = {"markers": {}, "rhythms": {}}
    for marker in backup.markers:
        previous = markers.get(marker.id)
        snapshot["markers"][marker.id] = previous.to_dict() if previous else None
        store.save_marker(marker)
    for rhythm in backup.rhythms:
        previous = rhythms.get(rhythm.id)
        snapshot["rhythms"][rhythm.id] = previous.to_dict() if previous else None
        store.save_rhythm(rhythm)

    if backup.settings:
        store.save_settings(merge_settings(store.get_settings(), backup.settings))

    store.push_undo(
        UndoAction(
            id=new_id(),
            kind=UndoKind.IMPORT,
            timestamp=now,
            item_type="backup",
            payload=snapshot,
            description=f"Imported {len(backup.markers)} markers and {len(backup.rhythms)} rhythms",
        )
    )
    logger.info(f"Imported {len(backup.markers)} markers, {len(backup.rhythms)} rhythms from {path}")
    return preview


def clear_all(store: RecordStore) -> None:
    store.clear()
    logger.info("Cleared all markers and rhythms")
