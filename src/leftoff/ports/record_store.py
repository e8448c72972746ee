"""Record storage interface."""

from typing import Protocol

from leftoff.core.records import Marker, Rhythm
from leftoff.core.undo import UndoAction


class RecordStore(Protocol):
    """Interface for persisting markers, rhythms, undo history and settings."""

    def all_markers(self) -> list[Marker]:
        """All markers, archived included."""
        ...

    def get_marker(self, marker_id: str) -> Marker | None:
        ...

    def save_marker(self, marker: Marker) -> None:
        """Insert or replace a marker by id."""
        ...

    def delete_marker(self, marker_id: str) -> None:
        ...

    def all_rhythms(self) -> list[Rhythm]:
        """All rhythms, archived included."""
        ...

    def get_rhythm(self, rhythm_id: str) -> Rhythm | None:
        ...

    def save_rhythm(self, rhythm: Rhythm) -> None:
        """Insert or replace a rhythm by id."""
        ...

    def delete_rhythm(self, rhythm_id: str) -> None:
        ...

    def push_undo(self, action: UndoAction) -> None:
        """Record an undo action, dropping the oldest past the limit."""
        ...

    def latest_undo(self) -> UndoAction | None:
        ...

    def delete_undo(self, action_id: str) -> None:
        ...

    def get_settings(self) -> dict:
        ...

    def save_settings(self, settings: dict) -> None:
        ...

    def clear(self) -> None:
        """Remove all markers, rhythms and undo history. Settings survive."""
        ...
