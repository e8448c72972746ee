"""Sample records loaded into an empty store on first run."""

from datetime import datetime, timedelta

from .core.records import Marker, Rhythm
from .core.schedule import Custom, Daily, Monthly, Weekly, next_occurrence


def sample_markers(now: datetime) -> list[Marker]:
    return [
        Marker(
            id="marker-1",
            title="Mere Christianity",
            pointer="page 47",
            next_step="Finish Chapter 3 on pride",
            type="book",
            tags=["theology", "C.S. Lewis"],
            pinned=True,
            created_at=now - timedelta(days=7),
            last_touched=now - timedelta(days=1),
        ),
        Marker(
            id="marker-2",
            title="Tuesday Bible Study - Gospel of John",
            pointer="chapter 3 verse 16",
            next_step="Discuss love and sacrifice",
            type="bible",
            tags=["bible-study"],
            group="Tuesday group",
            meeting_note="Bob will bring snacks",
            created_at=now - timedelta(days=14),
            last_touched=now - timedelta(days=2),
        ),
        Marker(
            id="marker-3",
            title="Kitchen Remodel",
            pointer="step 5",
            next_step="Install cabinet hardware",
            type="project",
            tags=["home", "DIY"],
            created_at=now - timedelta(days=21),
            last_touched=now - timedelta(days=3),
        ),
        Marker(
            id="marker-4",
            title="Python Course - Async Patterns",
            pointer="1:02:45",
            next_step="Rewatch the event loop section",
            type="course",
            tags=["programming"],
            created_at=now - timedelta(days=5),
            last_touched=now - timedelta(hours=5),
        ),
    ]


def sample_rhythms(now: datetime) -> list[Rhythm]:
    def rhythm(rhythm_id: str, title: str, schedule, tags: list[str]) -> Rhythm:
        return Rhythm(
            id=rhythm_id,
            title=title,
            schedule=schedule,
            next_occurrence=next_occurrence(schedule, now - timedelta(days=1)),
            tags=tags,
            created_at=now - timedelta(days=30),
        )

    return [
        rhythm("rhythm-1", "Morning prayer", Daily(), ["spiritual"]),
        rhythm("rhythm-2", "Call Mom", Weekly((0, 3)), ["family"]),
        rhythm("rhythm-3", "Pay rent", Monthly(1), ["finance"]),
        rhythm("rhythm-4", "Water plants", Custom(3), ["home"]),
    ]
