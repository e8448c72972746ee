"""Pure pointer parsing logic - no I/O dependencies.

A pointer (or location) is a short string like "page 47", "chapter 3 verse 16"
or "1:02:45" that records where the user left off.
"""

import re
from dataclasses import dataclass
from typing import Callable

NEXT_STEP_PATTERN = re.compile(r"(?:next:|then:|todo:|reminder:)\s*(.+)$", re.IGNORECASE | re.DOTALL)

_PAGE = r"\b(?:page|pg|p\.?)\s*(\d+)"
_CHAPTER_VERSE = r"\b(?:chapter|ch\.?)\s*(\d+)\s*\b(?:verse|v\.?)\s*(\d+)"
_CHAPTER = r"\b(?:chapter|ch\.?)\s*(\d+)"
_VERSE = r"\b(?:verse|v\.?)\s*(\d+)"
_TIMESTAMP = r"\b(\d{1,2}):(\d{2})(?::(\d{2}))?\b"
_STEP = r"\b(?:step|part|stage)\s*(\d+)"


@dataclass(frozen=True)
class Page:
    raw: str
    page: int
    kind = "page"

    def render(self) -> str:
        return f"page {self.page}"


@dataclass(frozen=True)
class Chapter:
    raw: str
    chapter: int
    kind = "chapter"

    def render(self) -> str:
        return f"chapter {self.chapter}"


@dataclass(frozen=True)
class Verse:
    raw: str
    verse: int
    kind = "verse"

    def render(self) -> str:
        return f"verse {self.verse}"


@dataclass(frozen=True)
class ChapterVerse:
    raw: str
    chapter: int
    verse: int
    kind = "chapter_verse"

    def render(self) -> str:
        return f"chapter {self.chapter} verse {self.verse}"


@dataclass(frozen=True)
class Timestamp:
    """Elapsed time. hours is None for the M:SS form."""

    raw: str
    hours: int | None
    minutes: int
    seconds: int
    kind = "timestamp"

    @property
    def total_seconds(self) -> int:
        return (self.hours or 0) * 3600 + self.minutes * 60 + self.seconds

    def render(self) -> str:
        if self.hours is None:
            return f"{self.minutes}:{self.seconds:02d}"
        return f"{self.hours}:{self.minutes:02d}:{self.seconds:02d}"


@dataclass(frozen=True)
class Step:
    raw: str
    step: int
    kind = "step"

    def render(self) -> str:
        return f"step {self.step}"


@dataclass(frozen=True)
class Freeform:
    """A pointer with no recognized structure. Cannot be advanced."""

    raw: str
    kind = None

    def render(self) -> str:
        return self.raw


Location = Page | Chapter | Verse | ChapterVerse | Timestamp | Step | Freeform


@dataclass
class MarkerDraft:
    """Structured fields extracted from free-text marker input."""

    title: str
    location: str
    next_step: str
    parsed: Location | None = None


def _timestamp(raw: str, groups: tuple[str, ...]) -> Timestamp:
    first, second, third = groups
    if third is None:
        return Timestamp(raw, None, int(first), int(second))
    return Timestamp(raw, int(first), int(second), int(third))


# Ordered (pattern, constructor) rules; the first match wins.
LOCATION_RULES: list[tuple[str, Callable[[str, tuple[str, ...]], Location]]] = [
    (_PAGE, lambda raw, g: Page(raw, int(g[0]))),
    (_CHAPTER_VERSE, lambda raw, g: ChapterVerse(raw, int(g[0]), int(g[1]))),
    (_CHAPTER, lambda raw, g: Chapter(raw, int(g[0]))),
    (_VERSE, lambda raw, g: Verse(raw, int(g[0]))),
    (_TIMESTAMP, _timestamp),
    (_STEP, lambda raw, g: Step(raw, int(g[0]))),
]

_LOCATION_PATTERNS = [(re.compile(pattern), build) for pattern, build in LOCATION_RULES]
_TITLED_PATTERNS = [
    (re.compile(r"(.+?)\s+" + pattern, re.IGNORECASE), build) for pattern, build in LOCATION_RULES
]


def _canonical(build: Callable[[str, tuple[str, ...]], Location], groups: tuple[str, ...]) -> Location:
    """Build a location whose raw string is its own canonical rendering."""
    location = build("", groups)
    rendered = location.render()
    return build(rendered, groups)


def split_next_step(text: str) -> tuple[str, str]:
    """
    Split a trailing next-step clause off free text.

    Returns: (text_before_marker, next_step). next_step is "" when absent.
    """
    trimmed = text.strip()
    match = NEXT_STEP_PATTERN.search(trimmed)
    if not match:
        return trimmed, ""
    return trimmed[: match.start()].strip(), match.group(1).strip()


def extract_location(text: str) -> tuple[str, Location] | None:
    """Find '<title> <location>' in text. Returns (title, location) or None."""
    for pattern, build in _TITLED_PATTERNS:
        match = pattern.search(text)
        if match:
            title = match.group(1).strip()
            return title, _canonical(build, match.groups()[1:])
    return None


def parse_marker_input(text: str) -> MarkerDraft:
    """
    Parse natural language input into marker fields.

    Examples:
        "Mere Christianity page 94 next: underline quote"
        "John chapter 3 verse 16 next: discuss love"
        "React course step 5 todo: build component"

    Pure function - never raises. Unmatched input becomes the title.
    """
    before, next_step = split_next_step(text)

    extracted = extract_location(before)
    if extracted is None:
        return MarkerDraft(title=before, location="", next_step=next_step)

    title, location = extracted
    return MarkerDraft(
        title=title,
        location=location.render(),
        next_step=next_step,
        parsed=location,
    )


def parse_location(location: str) -> Location:
    """Parse a pointer string into its structured variant."""
    lowered = location.strip().lower()
    for pattern, build in _LOCATION_PATTERNS:
        match = pattern.search(lowered)
        if match:
            return build(location, match.groups())
    return Freeform(location)


def is_advanceable(location: str) -> bool:
    return not isinstance(parse_location(location), Freeform)


def _advance_timestamp(ts: Timestamp, seconds: int) -> str:
    # Clamped at zero; a pointer never goes before the start.
    total = max(ts.total_seconds + seconds, 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def advance_location(location: str, amount: int = 1) -> str | None:
    """
    Move a pointer forward (or back) by amount units.

    Timestamps move by amount seconds. Returns the new pointer string, or
    None when the pointer has no recognized structure.
    """
    match parse_location(location):
        case Page(page=page):
            return f"page {page + amount}"
        case ChapterVerse(chapter=chapter, verse=verse):
            return f"chapter {chapter} verse {verse + amount}"
        case Chapter(chapter=chapter):
            return f"chapter {chapter + amount}"
        case Verse(verse=verse):
            return f"verse {verse + amount}"
        case Step(step=step):
            return f"step {step + amount}"
        case Timestamp() as ts:
            return _advance_timestamp(ts, amount)
        case Freeform():
            return None
