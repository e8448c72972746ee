"""Pure recurrence logic for rhythms - no I/O dependencies."""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

# Rhythms always come due at this time of day.
DEFAULT_REMINDER_TIME = time(9, 0)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class ScheduleError(ValueError):
    """Raised when a schedule is misconfigured."""


@dataclass(frozen=True)
class Daily:
    type = "daily"


@dataclass(frozen=True)
class Weekly:
    """Weekday indices, 0=Sunday..6=Saturday, in the order they were entered."""

    days_of_week: tuple[int, ...] = field(default_factory=tuple)
    type = "weekly"


@dataclass(frozen=True)
class Monthly:
    day_of_month: int | None = None
    type = "monthly"


@dataclass(frozen=True)
class Custom:
    interval_days: int = 1
    type = "custom"


Schedule = Daily | Weekly | Monthly | Custom


def _checked(value, low: int, high: int, label: str) -> int:
    value = int(value)
    if not low <= value <= high:
        raise ScheduleError(f"{label} must be between {low} and {high}, got {value}")
    return value


def schedule_from_dict(data: dict | None) -> Schedule | None:
    """Build a schedule from its stored form. Unknown types yield None.

    Raises ScheduleError for weekday or day-of-month values out of range.
    """
    if not data:
        return None
    match data.get("type"):
        case "daily":
            return Daily()
        case "weekly":
            days = data.get("days_of_week") or []
            return Weekly(tuple(_checked(d, 0, 6, "Day of week") for d in days))
        case "monthly":
            day = data.get("day_of_month")
            return Monthly(_checked(day, 1, 31, "Day of month") if day else None)
        case "custom":
            return Custom(int(data.get("interval_days") or 1))
        case _:
            return None


def schedule_to_dict(schedule: Schedule) -> dict:
    match schedule:
        case Daily():
            return {"type": "daily"}
        case Weekly(days_of_week=days):
            return {"type": "weekly", "days_of_week": list(days)}
        case Monthly(day_of_month=day):
            return {"type": "monthly", "day_of_month": day}
        case Custom(interval_days=interval):
            return {"type": "custom", "interval_days": interval}
    raise ScheduleError(f"Unknown schedule: {schedule!r}")


def sunday_weekday(d: date) -> int:
    """Day of week with 0=Sunday..6=Saturday."""
    return (d.weekday() + 1) % 7


def _at_reminder_time(d: date) -> datetime:
    return datetime.combine(d, DEFAULT_REMINDER_TIME)


def _days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def _next_weekly(days_of_week: tuple[int, ...], from_date: date) -> date:
    if not days_of_week:
        raise ScheduleError("Weekly schedule must have days_of_week")

    current = sunday_weekday(from_date)
    ordered = sorted(days_of_week)

    for day in ordered:
        if day > current:
            return from_date + timedelta(days=day - current)

    # Nothing left this week, wrap to the first day of next week
    first = ordered[0]
    return from_date + timedelta(days=7 - current + first)


def _next_monthly(day_of_month: int | None, from_date: date) -> date:
    if not day_of_month:
        raise ScheduleError("Monthly schedule must have day_of_month")

    this_month = min(day_of_month, _days_in_month(from_date.year, from_date.month))
    if this_month > from_date.day:
        return from_date.replace(day=this_month)

    year, month = (from_date.year + 1, 1) if from_date.month == 12 else (from_date.year, from_date.month + 1)
    return date(year, month, min(day_of_month, _days_in_month(year, month)))


def next_occurrence(schedule: Schedule, from_dt: datetime | None = None) -> datetime:
    """
    Next time a schedule comes due, strictly after from_dt.

    The result is always on a later calendar day, at DEFAULT_REMINDER_TIME.
    Pure function - no I/O.
    """
    from_date = (from_dt or datetime.now()).date()

    match schedule:
        case Daily():
            return _at_reminder_time(from_date + timedelta(days=1))
        case Custom(interval_days=interval):
            return _at_reminder_time(from_date + timedelta(days=max(interval or 1, 1)))
        case Weekly(days_of_week=days):
            return _at_reminder_time(_next_weekly(days, from_date))
        case Monthly(day_of_month=day):
            return _at_reminder_time(_next_monthly(day, from_date))
    raise ScheduleError(f"Unknown schedule: {schedule!r}")


def format_schedule(schedule: Schedule | None) -> str:
    """Human-readable schedule, e.g. 'Every Monday, Thursday'."""
    match schedule:
        case Daily():
            return "Every day"
        case Weekly(days_of_week=days):
            if not days:
                return "Weekly"
            return "Every " + ", ".join(DAY_NAMES[d] for d in days)
        case Monthly(day_of_month=day):
            if not day:
                return "Monthly"
            return f"Monthly on day {day}"
        case Custom(interval_days=interval):
            interval = interval or 1
            return "Every day" if interval == 1 else f"Every {interval} days"
        case _:
            return "Unknown schedule"


def format_relative_date(target: date | datetime, today: date | None = None) -> str:
    """
    Format a date relative to today ("Today", "Tomorrow", "In 3 days").

    Only calendar dates are compared. Dates a week or more ahead show the
    month and day, plus the year when it differs from today's.
    """
    today = today or date.today()
    if isinstance(today, datetime):
        today = today.date()
    target_date = target.date() if isinstance(target, datetime) else target

    diff = (target_date - today).days
    if diff == 0:
        return "Today"
    if diff == 1:
        return "Tomorrow"
    if diff == -1:
        return "Yesterday"
    if diff < 0:
        return f"{-diff} days ago"
    if diff < 7:
        return f"In {diff} days"

    label = f"{target_date.strftime('%b')} {target_date.day}"
    if target_date.year != today.year:
        label = f"{label}, {target_date.year}"
    return label
