"""Backup export/import logic - no I/O dependencies."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .records import Marker, Rhythm, parse_timestamp

BACKUP_VERSION = 1

BACKUP_INTERVALS = {"weekly": timedelta(days=7), "monthly": timedelta(days=30)}

DEFAULT_SETTINGS = {"backup_reminder_frequency": "monthly"}


class BackupFormatError(ValueError):
    """Raised when backup data cannot be imported."""


@dataclass
class BackupData:
    markers: list[Marker] = field(default_factory=list)
    rhythms: list[Rhythm] = field(default_factory=list)
    settings: dict = field(default_factory=dict)


@dataclass
class Conflict:
    id: str
    title: str
    item_type: str
    reason: str


@dataclass
class ImportPreview:
    """What importing a backup would change."""

    new_markers: int = 0
    new_rhythms: int = 0
    updated_markers: int = 0
    updated_rhythms: int = 0
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.new_markers + self.new_rhythms + self.updated_markers + self.updated_rhythms


def build_export(
    markers: list[Marker],
    rhythms: list[Rhythm],
    settings: dict,
    now: datetime | None = None,
) -> dict:
    """Assemble the backup document."""
    now = now or datetime.now()
    return {
        "version": BACKUP_VERSION,
        "exported_at": now.isoformat(),
        "markers": [m.to_dict() for m in markers],
        "rhythms": [r.to_dict() for r in rhythms],
        "settings": settings,
    }


def parse_backup(text: str) -> BackupData:
    """Parse and validate a backup document."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupFormatError(f"Backup is not valid JSON: {e}") from e

    if not isinstance(data, dict) or data.get("version") != BACKUP_VERSION:
        raise BackupFormatError("Unsupported data format")

    try:
        markers = [Marker.from_dict(m) for m in data.get("markers") or []]
        rhythms = [Rhythm.from_dict(r) for r in data.get("rhythms") or []]
    except (KeyError, TypeError, ValueError) as e:
        raise BackupFormatError(f"Malformed record in backup: {e}") from e

    settings = data.get("settings") or {}
    if not isinstance(settings, dict):
        settings = {}
    settings.pop("key", None)

    return BackupData(markers=markers, rhythms=rhythms, settings=settings)


def preview_import(
    backup: BackupData,
    markers: list[Marker],
    rhythms: list[Rhythm],
) -> ImportPreview:
    """
    Compare a backup against local records.

    A conflict is an incoming record that would overwrite a local copy
    changed more recently than the incoming one.
    """
    preview = ImportPreview()
    local_markers = {m.id: m for m in markers}
    local_rhythms = {r.id: r for r in rhythms}

    for incoming in backup.markers:
        local = local_markers.get(incoming.id)
        if local is None:
            preview.new_markers += 1
            continue
        preview.updated_markers += 1
        if local.last_touched > incoming.last_touched:
            preview.conflicts.append(
                Conflict(local.id, local.title, "marker", "Local copy was touched more recently")
            )

    for incoming in backup.rhythms:
        local = local_rhythms.get(incoming.id)
        if local is None:
            preview.new_rhythms += 1
            continue
        preview.updated_rhythms += 1
        if local.last_completed and (
            incoming.last_completed is None or local.last_completed > incoming.last_completed
        ):
            preview.conflicts.append(
                Conflict(local.id, local.title, "rhythm", "Local copy was completed more recently")
            )

    return preview


def merge_settings(current: dict, incoming: dict) -> dict:
    """Incoming keys override current ones."""
    return {**DEFAULT_SETTINGS, **current, **incoming}


def backup_due(settings: dict, now: datetime | None = None) -> bool:
    """Whether it is time to remind the user to export a backup."""
    now = now or datetime.now()
    frequency = settings.get("backup_reminder_frequency", DEFAULT_SETTINGS["backup_reminder_frequency"])
    interval = BACKUP_INTERVALS.get(frequency)
    if interval is None:
        return False

    last = settings.get("last_backup_reminder")
    if not last:
        return True
    return now - parse_timestamp(last) >= interval


def backup_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"leftoff-backup-{today.isoformat()}.json"
