"""Functional core - pure business logic with no I/O."""

from .pointer import (
    Location,
    MarkerDraft,
    advance_location,
    parse_location,
    parse_marker_input,
)
from .schedule import (
    Custom,
    Daily,
    Monthly,
    Schedule,
    ScheduleError,
    Weekly,
    format_relative_date,
    format_schedule,
    next_occurrence,
)
from .records import Marker, Rhythm, active_markers, due_rhythms, search
from .backup import BackupFormatError, ImportPreview

__all__ = [
    # Pointers
    "Location",
    "MarkerDraft",
    "advance_location",
    "parse_location",
    "parse_marker_input",
    # Schedules
    "Custom",
    "Daily",
    "Monthly",
    "Schedule",
    "ScheduleError",
    "Weekly",
    "format_relative_date",
    "format_schedule",
    "next_occurrence",
    # Records
    "Marker",
    "Rhythm",
    "active_markers",
    "due_rhythms",
    "search",
    # Backup
    "BackupFormatError",
    "ImportPreview",
]
