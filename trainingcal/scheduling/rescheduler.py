"""Auto-rescheduler: bounded search for a legal workout placement.

Search order, re-entered after every failed check:
1. Slot snap: a placement outside allowed hours moves to the preferred slot of
   its day (weekday 07:00, 06:30 if 07:00 runs past 09:30, else 18:00).
2. Same-day displacement: ending one gap before the earliest conflict (not
   starting before 07:00, or 05:00 for a long weekend session), otherwise one
   gap after the latest conflict, otherwise after the last workout of the day
   (a weekday slot landing in the midday block moves to 18:00).
3. Day advance: one day per attempt while the day holds other workouts,
   otherwise by the attempt count, re-snapping on the new day.
4. After the attempt budget the search reports exhaustion instead of a slot.

attempt_reschedule is pure and only knows the working set it is given.
AutoRescheduler re-validates each found slot against the primary calendar and
feeds newly discovered blockers back into the search. Blockers only exclude
overlap; the minimum gap applies between workouts.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.conflicts import ConflictChecker
from trainingcal.calendar.policy import (
    EVENING_START,
    at_local,
    format_local,
    local_date,
    overlaps,
    to_local,
    within_allowed_hours,
)
from trainingcal.calendar.spacing import MIN_GAP_MINUTES, check_spacing
from trainingcal.calendar.types import ScheduledWorkout, WorkoutCandidate

DEFAULT_ATTEMPT_BUDGET = 14
LONG_WORKOUT_MINUTES = 180

PREFERRED_START = time(7, 0)
FALLBACK_MORNING_START = time(6, 30)
WEEKEND_MORNING_LIMIT = time(12, 0)
EARLY_LONG_WEEKEND_FLOOR = time(5, 0)


@dataclass(frozen=True)
class RescheduleOutcome:
    """Result of a reschedule search.

    Attributes:
        candidate: Legal placement, or None when the budget was exhausted
        attempts: Attempts consumed
        warnings: Last spacing/conflict messages seen before giving up
    """

    candidate: WorkoutCandidate | None
    attempts: int
    warnings: list[str] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.candidate is None


def is_long_workout(candidate: WorkoutCandidate) -> bool:
    return candidate.duration >= timedelta(minutes=LONG_WORKOUT_MINUTES)


def _ends_by(candidate: WorkoutCandidate, day: date, limit: time, tz: ZoneInfo | None) -> bool:
    local_end = to_local(candidate.end, tz)
    return local_end.date() == day and local_end.time() <= limit


def preferred_slot(candidate: WorkoutCandidate, day: date, tz: ZoneInfo | None = None) -> WorkoutCandidate | None:
    """Preferred placement of the candidate on a given local day.

    Weekdays: 07:00, else 06:30 when 07:00 would end after 09:30, else 18:00.
    Weekends: a morning start finishing before noon (06:30 first for long
    sessions, 07:00 first otherwise); None when neither fits.
    """
    if day.weekday() >= 5:
        starts = (FALLBACK_MORNING_START, PREFERRED_START) if is_long_workout(candidate) else (PREFERRED_START, FALLBACK_MORNING_START)
        for start_time in starts:
            moved = candidate.moved_to(at_local(day, start_time, tz))
            if _ends_by(moved, day, WEEKEND_MORNING_LIMIT, tz):
                return moved
        return None

    for start_time in (PREFERRED_START, FALLBACK_MORNING_START):
        moved = candidate.moved_to(at_local(day, start_time, tz))
        if within_allowed_hours(moved.start, moved.end, tz):
            return moved
    return candidate.moved_to(at_local(day, EVENING_START, tz))


def snap_to_valid_slot(candidate: WorkoutCandidate, tz: ZoneInfo | None = None) -> WorkoutCandidate:
    """Move a candidate outside allowed hours to the preferred slot of its day.

    Valid placements are returned unchanged. Weekends accept any hour, so a
    weekend candidate is never moved here.
    """
    if within_allowed_hours(candidate.start, candidate.end, tz):
        return candidate
    snapped = preferred_slot(candidate, local_date(candidate.start, tz), tz)
    if snapped is None:
        return candidate
    logger.debug(
        "Snapped workout to valid slot",
        title=candidate.title,
        original=format_local(candidate.start, tz),
        snapped=format_local(snapped.start, tz),
    )
    return snapped


def _slot_on_day(candidate: WorkoutCandidate, day: date, tz: ZoneInfo | None) -> WorkoutCandidate:
    slot = preferred_slot(candidate, day, tz)
    if slot is not None:
        return slot
    return candidate.moved_to(at_local(day, to_local(candidate.start, tz).time(), tz))


# A same-day interval the candidate must stay clear of, with the gap it needs on either side.
Obstacle = tuple[ScheduledWorkout, timedelta]


def _is_clear(moved: WorkoutCandidate, obstacles: list[Obstacle]) -> bool:
    return all(moved.end + gap <= other.start or other.end + gap <= moved.start for other, gap in obstacles)


def _fits_day(moved: WorkoutCandidate, day: date, tz: ZoneInfo | None) -> bool:
    return local_date(moved.start, tz) == day and within_allowed_hours(moved.start, moved.end, tz)


def _into_window(start: datetime, duration: timedelta, day: date, tz: ZoneInfo | None) -> datetime:
    """Weekday starts outside both windows move to 07:00 or 18:00 of ``day``."""
    if day.weekday() >= 5 or within_allowed_hours(start, start + duration, tz):
        return start
    start_time = to_local(start, tz).time()
    if start_time < PREFERRED_START:
        return at_local(day, PREFERRED_START, tz)
    if start_time < EVENING_START:
        return at_local(day, EVENING_START, tz)
    return start


def _displace_within_day(
    candidate: WorkoutCandidate,
    obstacles: list[Obstacle],
    conflicts: list[ScheduledWorkout],
    day: date,
    tz: ZoneInfo | None,
) -> WorkoutCandidate | None:
    """Move the candidate clear of what it conflicts with on ``day``.

    Tried in order: ending one gap before the earliest conflict (starting no
    earlier than 07:00, or 05:00 for a long weekend session), one gap after the
    latest conflict, then one gap after the latest obstacle of the day.
    """
    floor = EARLY_LONG_WEEKEND_FLOOR if day.weekday() >= 5 and is_long_workout(candidate) else PREFERRED_START
    clashing = [(other, gap) for other, gap in obstacles if other in conflicts]

    options: list[WorkoutCandidate] = []
    if clashing:
        first, first_gap = clashing[0]
        before = candidate.moved_to(first.start - first_gap - candidate.duration)
        if to_local(before.start, tz).time() >= floor:
            options.append(before)
        after_conflict = max(other.end + gap for other, gap in clashing)
        options.append(candidate.moved_to(_into_window(after_conflict, candidate.duration, day, tz)))
    after_day = max(other.end + gap for other, gap in obstacles)
    fallback = candidate.moved_to(_into_window(after_day, candidate.duration, day, tz))
    options.append(fallback)

    for option in options:
        if _fits_day(option, day, tz) and _is_clear(option, obstacles):
            return option
    if not _fits_day(fallback, day, tz):
        return None
    if any(overlaps(fallback.start, fallback.end, other.start, other.end) for other, _ in obstacles):
        return None
    return fallback


def _find_conflicts(
    current: WorkoutCandidate,
    working: tuple[ScheduledWorkout, ...],
    blockers: tuple[ScheduledWorkout, ...],
    min_gap_minutes: int,
    tz: ZoneInfo | None,
) -> tuple[list[ScheduledWorkout], list[str]]:
    spacing = check_spacing(current.as_scheduled(), working, min_gap_minutes=min_gap_minutes, tz=tz)
    overlapping = [blocker for blocker in blockers if overlaps(current.start, current.end, blocker.start, blocker.end)]
    warnings = spacing.warnings + [f'Conflicts with primary event "{blocker.title}"' for blocker in overlapping]
    return spacing.conflicts + overlapping, warnings


def attempt_reschedule(
    candidate: WorkoutCandidate,
    working_set: Iterable[ScheduledWorkout],
    *,
    blockers: Iterable[ScheduledWorkout] = (),
    budget: int = DEFAULT_ATTEMPT_BUDGET,
    min_gap_minutes: int = MIN_GAP_MINUTES,
    tz: ZoneInfo | None = None,
) -> RescheduleOutcome:
    """Search for a placement that satisfies allowed hours and spacing.

    Pure function: no I/O, no state beyond its arguments. Always returns
    within ``budget`` attempts.

    Args:
        candidate: Workout to place
        working_set: Workouts the placement must keep its distance from
        blockers: Intervals the placement may not overlap but may touch
        budget: Maximum attempts
        min_gap_minutes: Spacing minimum gap
        tz: Zone for wall-clock decisions

    Returns:
        RescheduleOutcome with the placement, or exhausted
    """
    working = tuple(working_set)
    blocked = tuple(blockers)
    gap = timedelta(minutes=min_gap_minutes)
    current = snap_to_valid_slot(candidate, tz)
    warnings: list[str] = []
    attempt = 0

    while attempt < budget:
        conflicts, messages = _find_conflicts(current, working, blocked, min_gap_minutes, tz)
        if not conflicts and within_allowed_hours(current.start, current.end, tz):
            return RescheduleOutcome(candidate=current, attempts=attempt + 1)
        warnings = messages or ["Outside allowed hours"]
        attempt += 1

        day = local_date(current.start, tz)
        obstacles = sorted(
            [(workout, gap) for workout in working if local_date(workout.start, tz) == day]
            + [(blocker, timedelta(0)) for blocker in blocked if local_date(blocker.start, tz) == day],
            key=lambda obstacle: obstacle[0].start,
        )
        if obstacles:
            displaced = _displace_within_day(current, obstacles, conflicts, day, tz)
            if displaced is not None and displaced != current:
                logger.debug(
                    "Displaced workout within day",
                    title=current.title,
                    start=format_local(displaced.start, tz),
                )
                current = displaced
                continue
            days_ahead = 1
        else:
            days_ahead = attempt

        current = _slot_on_day(current, day + timedelta(days=days_ahead), tz)
        logger.debug("Advanced workout to another day", title=current.title, start=format_local(current.start, tz))

    logger.info("Reschedule budget exhausted", title=candidate.title, attempts=attempt)
    return RescheduleOutcome(candidate=None, attempts=attempt, warnings=warnings)


class AutoRescheduler:
    """Runs the placement search and re-validates results against the primary calendar.

    Primary-calendar blockers found during re-validation become overlap-only
    obstacles for the rest of this search; the caller's working set is never
    modified.
    """

    def __init__(
        self,
        conflict_checker: ConflictChecker | None,
        *,
        budget: int = DEFAULT_ATTEMPT_BUDGET,
        min_gap_minutes: int = MIN_GAP_MINUTES,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.conflict_checker = conflict_checker
        self.budget = budget
        self.min_gap_minutes = min_gap_minutes
        self.tz = tz

    async def reschedule(
        self,
        candidate: WorkoutCandidate,
        working_set: Iterable[ScheduledWorkout],
    ) -> RescheduleOutcome:
        working = tuple(working_set)
        blockers: tuple[ScheduledWorkout, ...] = ()
        seen_blockers: set[str] = set()
        remaining = self.budget
        current = candidate
        warnings: list[str] = []

        while remaining > 0:
            outcome = attempt_reschedule(
                current,
                working,
                blockers=blockers,
                budget=remaining,
                min_gap_minutes=self.min_gap_minutes,
                tz=self.tz,
            )
            remaining -= outcome.attempts
            if outcome.candidate is None:
                warnings = outcome.warnings
                break
            if self.conflict_checker is None:
                return RescheduleOutcome(candidate=outcome.candidate, attempts=self.budget - remaining)

            found = outcome.candidate
            report = await self.conflict_checker.check(found.start, found.end)
            if not report.has_blocking:
                logger.info(
                    "Rescheduled workout",
                    title=candidate.title,
                    original=format_local(candidate.start, self.tz),
                    new=format_local(found.start, self.tz),
                )
                return RescheduleOutcome(candidate=found, attempts=self.budget - remaining)

            new_blockers = [event for event in report.blocking if event.id not in seen_blockers]
            warnings = [f'Conflicts with primary event "{event.title}"' for event in report.blocking]
            if not new_blockers:
                break
            seen_blockers.update(event.id for event in new_blockers)
            blockers = blockers + tuple(
                ScheduledWorkout(title=event.title, start=event.start, end=event.end) for event in new_blockers
            )
            current = found

        logger.warning("Could not find an available slot", title=candidate.title, budget=self.budget)
        return RescheduleOutcome(candidate=None, attempts=self.budget - remaining, warnings=warnings)
