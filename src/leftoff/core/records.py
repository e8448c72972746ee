"""Pure marker and rhythm domain logic - no I/O dependencies."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, time

from .pointer import MarkerDraft, advance_location
from .schedule import Schedule, next_occurrence, schedule_from_dict, schedule_to_dict

MARKER_TYPES = ["book", "bible", "article", "video", "project", "course", "other"]


def new_id() -> str:
    return str(uuid.uuid4())


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    # Stored values are local wall-clock times
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass
class Marker:
    """Where the user left off in something."""

    id: str
    title: str
    pointer: str
    next_step: str
    created_at: datetime
    last_touched: datetime
    type: str = "other"
    tags: list[str] = field(default_factory=list)
    group: str | None = None
    meeting_note: str | None = None
    pinned: bool = False
    archived: bool = False

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "pointer": self.pointer,
            "next_step": self.next_step,
            "type": self.type,
            "tags": list(self.tags),
            "pinned": self.pinned,
            "archived": self.archived,
            "created_at": self.created_at.isoformat(),
            "last_touched": self.last_touched.isoformat(),
        }
        if self.group:
            data["group"] = self.group
        if self.meeting_note:
            data["meeting_note"] = self.meeting_note
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Marker":
        created = parse_timestamp(data.get("created_at")) or datetime.now()
        marker_type = data.get("type", "other")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            pointer=data.get("pointer", ""),
            next_step=data.get("next_step", ""),
            type=marker_type if marker_type in MARKER_TYPES else "other",
            tags=list(data.get("tags") or []),
            group=data.get("group") or None,
            meeting_note=data.get("meeting_note") or None,
            pinned=bool(data.get("pinned", False)),
            archived=bool(data.get("archived", False)),
            created_at=created,
            last_touched=parse_timestamp(data.get("last_touched")) or created,
        )


@dataclass
class Rhythm:
    """A recurring reminder."""

    id: str
    title: str
    schedule: Schedule | None
    next_occurrence: datetime
    created_at: datetime
    notification_enabled: bool = True
    tags: list[str] = field(default_factory=list)
    archived: bool = False
    last_completed: datetime | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "schedule": schedule_to_dict(self.schedule) if self.schedule else None,
            "next_occurrence": self.next_occurrence.isoformat(),
            "notification_enabled": self.notification_enabled,
            "tags": list(self.tags),
            "archived": self.archived,
            "created_at": self.created_at.isoformat(),
        }
        if self.last_completed:
            data["last_completed"] = self.last_completed.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Rhythm":
        created = parse_timestamp(data.get("created_at")) or datetime.now()
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            schedule=schedule_from_dict(data.get("schedule")),
            next_occurrence=parse_timestamp(data.get("next_occurrence")) or created,
            notification_enabled=bool(data.get("notification_enabled", True)),
            tags=list(data.get("tags") or []),
            archived=bool(data.get("archived", False)),
            created_at=created,
            last_completed=parse_timestamp(data.get("last_completed")),
        )


def new_marker(
    draft: MarkerDraft,
    marker_type: str = "other",
    tags: list[str] | None = None,
    group: str | None = None,
    now: datetime | None = None,
) -> Marker:
    """Create a marker from parsed input."""
    now = now or datetime.now()
    return Marker(
        id=new_id(),
        title=draft.title,
        pointer=draft.location,
        next_step=draft.next_step,
        type=marker_type,
        tags=tags or [],
        group=group,
        created_at=now,
        last_touched=now,
    )


def new_rhythm(
    title: str,
    schedule: Schedule,
    tags: list[str] | None = None,
    notification_enabled: bool = True,
    now: datetime | None = None,
) -> Rhythm:
    """Create a rhythm; its first occurrence is the next one after now."""
    now = now or datetime.now()
    return Rhythm(
        id=new_id(),
        title=title,
        schedule=schedule,
        next_occurrence=next_occurrence(schedule, now),
        notification_enabled=notification_enabled,
        tags=tags or [],
        created_at=now,
    )


def active_markers(markers: list[Marker]) -> list[Marker]:
    """Unarchived markers, pinned first, then most recently touched."""
    active = [m for m in markers if not m.archived]
    active.sort(key=lambda m: m.last_touched, reverse=True)
    active.sort(key=lambda m: not m.pinned)
    return active


def archived_markers(markers: list[Marker]) -> list[Marker]:
    return [m for m in markers if m.archived]


def active_rhythms(rhythms: list[Rhythm]) -> list[Rhythm]:
    return [r for r in rhythms if not r.archived]


def archived_rhythms(rhythms: list[Rhythm]) -> list[Rhythm]:
    return [r for r in rhythms if r.archived]


def due_rhythms(rhythms: list[Rhythm], as_of: datetime | None = None) -> list[Rhythm]:
    """Active rhythms due by the end of as_of's day, soonest first."""
    as_of = as_of or datetime.now()
    end_of_day = datetime.combine(as_of.date(), time(23, 59, 59))
    due = [r for r in active_rhythms(rhythms) if r.next_occurrence <= end_of_day]
    return sorted(due, key=lambda r: r.next_occurrence)


def _matches_marker(marker: Marker, query: str) -> bool:
    fields = [marker.title, marker.pointer, marker.next_step, *marker.tags]
    return any(query in f.lower() for f in fields)


def _matches_rhythm(rhythm: Rhythm, query: str) -> bool:
    return any(query in f.lower() for f in [rhythm.title, *rhythm.tags])


def search(
    markers: list[Marker],
    rhythms: list[Rhythm],
    query: str = "",
    marker_type: str | None = None,
    pinned_only: bool = False,
) -> tuple[list[Marker], list[Rhythm]]:
    """
    Search active markers and rhythms.

    Text matches marker title, pointer, next step and tags, and rhythm title
    and tags. Type and pinned filters apply to markers only.

    Returns: (markers, rhythms)
    """
    query = query.strip().lower()
    found_markers = [m for m in markers if not m.archived]
    found_rhythms = active_rhythms(rhythms)

    if query:
        found_markers = [m for m in found_markers if _matches_marker(m, query)]
        found_rhythms = [r for r in found_rhythms if _matches_rhythm(r, query)]

    if marker_type:
        found_markers = [m for m in found_markers if m.type == marker_type]

    if pinned_only:
        found_markers = [m for m in found_markers if m.pinned]

    return found_markers, found_rhythms


def advance_marker(marker: Marker, amount: int = 1, now: datetime | None = None) -> Marker | None:
    """Marker with its pointer moved by amount, or None if not advanceable."""
    pointer = advance_location(marker.pointer, amount)
    if pointer is None:
        return None
    return replace(marker, pointer=pointer, last_touched=now or datetime.now())


def complete_rhythm(rhythm: Rhythm, now: datetime | None = None) -> Rhythm:
    """Mark a rhythm done and schedule its next occurrence."""
    now = now or datetime.now()
    return replace(
        rhythm,
        last_completed=now,
        next_occurrence=next_occurrence(rhythm.schedule, now),
    )


def edit_marker(marker: Marker, now: datetime | None = None, **changes) -> Marker:
    """Marker with field changes applied and last_touched bumped."""
    return replace(marker, last_touched=now or datetime.now(), **changes)


def edit_rhythm(rhythm: Rhythm, now: datetime | None = None, **changes) -> Rhythm:
    """
    Rhythm with field changes applied.

    A changed schedule restarts from now: next_occurrence is recomputed.
    """
    updated = replace(rhythm, **changes)
    if updated.schedule != rhythm.schedule:
        updated.next_occurrence = next_occurrence(updated.schedule, now or datetime.now())
    return updated
