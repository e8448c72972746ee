"""Undo history model - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .records import Marker, Rhythm, new_id

# Oldest actions beyond this are dropped from the history
UNDO_LIMIT = 20


class UndoKind(Enum):
    ARCHIVE = "archive"
    RESTORE = "restore"
    ADVANCE = "advance"
    MARK_DONE = "mark_done"
    DELETE = "delete"
    EDIT = "edit"
    IMPORT = "import"


@dataclass
class UndoAction:
    """A reversible change. payload holds the record as it was before."""

    id: str
    kind: UndoKind
    timestamp: datetime
    item_type: str
    payload: dict
    description: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "item_type": self.item_type,
            "payload": self.payload,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UndoAction":
        return cls(
            id=data["id"],
            kind=UndoKind(data["type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            item_type=data.get("item_type", "marker"),
            payload=data.get("payload") or {},
            description=data.get("description", ""),
        )


def record_undo(
    kind: UndoKind,
    original: Marker | Rhythm,
    description: str,
    now: datetime | None = None,
) -> UndoAction:
    """Capture the pre-change state of a record."""
    return UndoAction(
        id=new_id(),
        kind=kind,
        timestamp=now or datetime.now(),
        item_type="marker" if isinstance(original, Marker) else "rhythm",
        payload=original.to_dict(),
        description=description,
    )


def reverted_record(action: UndoAction) -> Marker | Rhythm | None:
    """
    The record to save back when undoing an action.

    Returns None for actions that have no single record to restore.
    """
    if action.kind is UndoKind.IMPORT:
        return None

    record_cls = Marker if action.item_type == "marker" else Rhythm
    record = record_cls.from_dict(action.payload)

    match action.kind:
        case UndoKind.ARCHIVE:
            record.archived = False
        case UndoKind.RESTORE:
            record.archived = True
    return record
