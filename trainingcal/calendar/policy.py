"""Interval and policy primitives.

Pure functions over timezone-aware instants: overlap, weekend and allowed-hours
tests, all-day containment, and workout description completeness.

Allowed hours (weekday, local time):
- morning: start in [06:30, 09:30) and end at or before 09:30 the same day
- evening: start at or after 18:00, no end bound
Weekends accept any time.
"""

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from trainingcal.calendar.results import PolicyReason, PolicyResult
from trainingcal.calendar.types import CalendarEvent
from trainingcal.config.settings import settings

MORNING_START = time(6, 30)
MORNING_END = time(9, 30)
EVENING_START = time(18, 0)

# Required description labels, in reporting order
DESCRIPTION_CHECKS: list[tuple[str, re.Pattern[str]]] = [
    ("duration", re.compile(r"duration\s*:\s*\d+\s*(min|minutes|m)\b", re.IGNORECASE)),
    ("targets", re.compile(r"targets\s*:\s*\S.*", re.IGNORECASE)),
    ("intervals", re.compile(r"intervals\s*:\s*\S.*", re.IGNORECASE)),
    ("notes", re.compile(r"notes\s*:\s*\S.*", re.IGNORECASE)),
    ("tss", re.compile(r"tss\s*:\s*\d+", re.IGNORECASE)),
    ("kcal", re.compile(r"kcal\s*:\s*\d+", re.IGNORECASE)),
]

EXTENDED_DESCRIPTION_CHECKS: list[tuple[str, re.Pattern[str]]] = [
    ("distance", re.compile(r"distance\s*:\s*\d+(\.\d+)?\s*(km|mi|m|yd)\b", re.IGNORECASE)),
    ("time", re.compile(r"(?<![a-z])time\s*:\s*\S.*", re.IGNORECASE)),
]


def _zone(tz: ZoneInfo | None) -> ZoneInfo:
    return tz or settings.zone


def to_local(instant: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert an aware instant to the configured local zone."""
    if instant.tzinfo is None:
        raise ValueError(f"Timezone-naive instant: {instant.isoformat()}")
    return instant.astimezone(_zone(tz))


def local_date(instant: datetime, tz: ZoneInfo | None = None) -> date:
    return to_local(instant, tz).date()


def at_local(day: date, wall_time: time, tz: ZoneInfo | None = None) -> datetime:
    """Aware instant for a wall-clock time on a local date."""
    return datetime.combine(day, wall_time, tzinfo=_zone(tz))


def format_local(instant: datetime | None, tz: ZoneInfo | None = None) -> str:
    """Render an instant as local wall-clock text for diffs and warnings."""
    if instant is None:
        return "—"
    return to_local(instant, tz).strftime("%a %Y-%m-%d %H:%M")


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap: [a_start, a_end) and [b_start, b_end) share an instant."""
    return a_start < b_end and a_end > b_start


def is_weekend(instant: datetime, tz: ZoneInfo | None = None) -> bool:
    """True when the instant falls on a Saturday or Sunday in local time."""
    return to_local(instant, tz).weekday() >= 5


def within_allowed_hours(start: datetime, end: datetime, tz: ZoneInfo | None = None) -> bool:
    """Check a placement against the weekday morning/evening windows."""
    local_start = to_local(start, tz)
    if local_start.weekday() >= 5:
        return True

    start_time = local_start.time()
    if start_time >= EVENING_START:
        return True

    if MORNING_START <= start_time < MORNING_END:
        local_end = to_local(end, tz)
        return local_end.date() == local_start.date() and local_end.time() <= MORNING_END

    return False


def check_allowed_hours(start: datetime, end: datetime, tz: ZoneInfo | None = None) -> PolicyResult:
    if within_allowed_hours(start, end, tz):
        return PolicyResult.ok()
    return PolicyResult.fail(PolicyReason.OUTSIDE_ALLOWED_HOURS)


def is_all_day_and_overlapping(event: CalendarEvent, candidate_date: date) -> bool:
    """True when an all-day event's date range [start_date, end_date) contains the candidate date."""
    if not event.is_all_day or event.start_date is None or event.end_date is None:
        return False
    return event.start_date <= candidate_date < event.end_date


def validate_description(description: str | None, *, extended: bool = False) -> PolicyResult:
    """Check that a workout description carries every required "Label: value" field.

    Args:
        description: Free-text description
        extended: Also require Distance and Time labels

    Returns:
        Passing result, or DESCRIPTION_INCOMPLETE with the missing labels
    """
    text = description or ""
    checks = DESCRIPTION_CHECKS + (EXTENDED_DESCRIPTION_CHECKS if extended else [])
    missing = [label for label, pattern in checks if not pattern.search(text)]
    if missing:
        return PolicyResult.fail(PolicyReason.DESCRIPTION_INCOMPLETE, missing_fields=missing)
    return PolicyResult.ok()
