"""JSON file record storage adapter."""

import json
import logging
import os
import tempfile
from pathlib import Path

from leftoff.core.backup import DEFAULT_SETTINGS
from leftoff.core.records import Marker, Rhythm
from leftoff.core.undo import UNDO_LIMIT, UndoAction

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store file cannot be read."""


class JsonRecordStore:
    """
    JSON file storage.

    Implements RecordStore protocol. The whole store is one JSON document,
    rewritten on every change.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _empty(self) -> dict:
        return {"markers": {}, "rhythms": {}, "undo_stack": [], "settings": dict(DEFAULT_SETTINGS)}

    def _load(self) -> dict:
        if not self.path.exists():
            return self._empty()
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise StoreError(f"Store file {self.path} is corrupt: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"Store file {self.path} is corrupt: expected an object")
        return {**self._empty(), **data}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".leftoff-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    # --- Markers ---

    def all_markers(self) -> list[Marker]:
        return [Marker.from_dict(m) for m in self._load()["markers"].values()]

    def get_marker(self, marker_id: str) -> Marker | None:
        data = self._load()["markers"].get(marker_id)
        return Marker.from_dict(data) if data else None

    def save_marker(self, marker: Marker) -> None:
        data = self._load()
        data["markers"][marker.id] = marker.to_dict()
        self._write(data)

    def delete_marker(self, marker_id: str) -> None:
        data = self._load()
        if data["markers"].pop(marker_id, None) is not None:
            self._write(data)

    # --- Rhythms ---

    def all_rhythms(self) -> list[Rhythm]:
        return [Rhythm.from_dict(r) for r in self._load()["rhythms"].values()]

    def get_rhythm(self, rhythm_id: str) -> Rhythm | None:
        data = self._load()["rhythms"].get(rhythm_id)
        return Rhythm.from_dict(data) if data else None

    def save_rhythm(self, rhythm: Rhythm) -> None:
        data = self._load()
        data["rhythms"][rhythm.id] = rhythm.to_dict()
        self._write(data)

    def delete_rhythm(self, rhythm_id: str) -> None:
        data = self._load()
        if data["rhythms"].pop(rhythm_id, None) is not None:
            self._write(data)

    # --- Undo stack ---

    def push_undo(self, action: UndoAction) -> None:
        data = self._load()
        stack = data["undo_stack"] + [action.to_dict()]
        stack.sort(key=lambda a: a["timestamp"])
        if len(stack) > UNDO_LIMIT:
            logger.debug(f"Dropping {len(stack) - UNDO_LIMIT} old undo action(s)")
            stack = stack[-UNDO_LIMIT:]
        data["undo_stack"] = stack
        self._write(data)

    def latest_undo(self) -> UndoAction | None:
        stack = self._load()["undo_stack"]
        if not stack:
            return None
        return UndoAction.from_dict(stack[-1])

    def undo_history(self) -> list[UndoAction]:
        """Undo actions, oldest first."""
        return [UndoAction.from_dict(a) for a in self._load()["undo_stack"]]

    def delete_undo(self, action_id: str) -> None:
        data = self._load()
        data["undo_stack"] = [a for a in data["undo_stack"] if a["id"] != action_id]
        self._write(data)

    # --- Settings ---

    def get_settings(self) -> dict:
        return {**DEFAULT_SETTINGS, **self._load()["settings"]}

    def save_settings(self, settings: dict) -> None:
        data = self._load()
        data["settings"] = dict(settings)
        self._write(data)

    def clear(self) -> None:
        data = self._load()
        data["markers"] = {}
        data["rhythms"] = {}
        data["undo_stack"] = []
        self._write(data)
