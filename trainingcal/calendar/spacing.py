"""Workout spacing checks.

Two workouts may not overlap, and must be at least MIN_GAP_MINUTES apart.
The one exception is a brick: a bike session followed directly by a run
session, in that order, may be back-to-back.
"""

from collections.abc import Iterable
from datetime import datetime
from zoneinfo import ZoneInfo

from trainingcal.calendar.policy import format_local, overlaps
from trainingcal.calendar.results import PolicyReason, PolicyResult
from trainingcal.calendar.types import ScheduledWorkout, SpacingReport

MIN_GAP_MINUTES = 30

BIKE_KEYWORDS = ("bike", "ride", "cycling")
RUN_KEYWORDS = ("run", "running")


def is_bike(title: str | None) -> bool:
    lowered = (title or "").lower()
    return any(keyword in lowered for keyword in BIKE_KEYWORDS)


def is_run(title: str | None) -> bool:
    lowered = (title or "").lower()
    return any(keyword in lowered for keyword in RUN_KEYWORDS)


def is_brick(earlier_title: str | None, later_title: str | None) -> bool:
    """A bike session followed by a run session, in that chronological order."""
    return is_bike(earlier_title) and is_run(later_title)


def _gap_minutes(earlier_end: datetime, later_start: datetime) -> float:
    return (later_start - earlier_end).total_seconds() / 60


def check_spacing(
    candidate: ScheduledWorkout,
    existing: Iterable[ScheduledWorkout],
    *,
    min_gap_minutes: int = MIN_GAP_MINUTES,
    tz: ZoneInfo | None = None,
) -> SpacingReport:
    """Check a candidate workout against already-scheduled workouts.

    Args:
        candidate: Workout being placed
        existing: Working set (committed events plus accepted batch candidates)
        min_gap_minutes: Minimum gap in either direction (bricks excepted)
        tz: Zone used when rendering warning text

    Returns:
        SpacingReport listing conflicting workouts and human-readable warnings
    """
    conflicts: list[ScheduledWorkout] = []
    warnings: list[str] = []

    for other in existing:
        if overlaps(candidate.start, candidate.end, other.start, other.end):
            conflicts.append(other)
            warnings.append(
                f'Overlaps with "{other.title}" ({format_local(other.start, tz)} → {format_local(other.end, tz)})'
            )
            continue

        gap_after = _gap_minutes(other.end, candidate.start)
        if 0 <= gap_after < min_gap_minutes and not is_brick(other.title, candidate.title):
            conflicts.append(other)
            warnings.append(
                f'Too close after "{other.title}" (gap: {round(gap_after)} min, need {min_gap_minutes} min)'
            )

        gap_before = _gap_minutes(candidate.end, other.start)
        if 0 <= gap_before < min_gap_minutes and not is_brick(candidate.title, other.title):
            conflicts.append(other)
            warnings.append(
                f'Too close before "{other.title}" (gap: {round(gap_before)} min, need {min_gap_minutes} min)'
            )

    return SpacingReport(valid=not conflicts, conflicts=conflicts, warnings=warnings)


def spacing_policy_result(report: SpacingReport) -> PolicyResult:
    if report.valid:
        return PolicyResult.ok()
    return PolicyResult.fail(PolicyReason.INSUFFICIENT_SPACING, warnings=report.warnings)
