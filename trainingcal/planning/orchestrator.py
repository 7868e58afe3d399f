"""Week-plan orchestrator.

Turns a batch of raw candidates into pending create proposals:

1. Time bias: early starts move to 07:00 unless the request asked for them.
2. Per candidate, up to ``rounds`` rounds of
   spacing check -> reschedule on failure -> propose_create -> reschedule on
   hours/conflict failure. Any other failure skips the candidate.
3. Accepted candidates join the working set seen by later candidates.
4. Final pass: accepted proposals outside allowed hours are rejected and
   reported as skipped, then surplus proposals beyond the requested count are
   trimmed.

A single unschedulable candidate never aborts the batch.
"""

from collections.abc import Iterable
from datetime import time, timedelta
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.capability import CalendarCapability
from trainingcal.calendar.policy import (
    MORNING_END,
    at_local,
    is_weekend,
    local_date,
    to_local,
    within_allowed_hours,
)
from trainingcal.calendar.spacing import MIN_GAP_MINUTES, check_spacing
from trainingcal.calendar.types import CalendarEvent, ScheduledWorkout, WorkoutCandidate
from trainingcal.errors import (
    PolicyViolationError,
    SchedulerError,
    SchedulingExhaustedError,
    UnauthenticatedError,
    UpstreamFailureError,
    ValidationError,
)
from trainingcal.planning.generator import WorkoutGenerator, generate_with_fallback
from trainingcal.planning.prompt import explicit_early_request, extract_workout_count
from trainingcal.planning.types import PlannedWorkout, SkippedWorkout, SkipReason, WeekPlanResult
from trainingcal.proposals.service import ApprovalService
from trainingcal.scheduling.rescheduler import PREFERRED_START, AutoRescheduler, is_long_workout

DEFAULT_ROUNDS = 3

WorkingSet = tuple[ScheduledWorkout, ...]


def apply_time_bias(candidate: WorkoutCandidate, *, early_requested: bool, tz: ZoneInfo | None = None) -> WorkoutCandidate:
    """Move a start before 07:00 to 07:00, preserving duration.

    Weekdays move only when the shifted workout still ends by 09:30; longer
    ones are left for rescheduling. Weekend long sessions keep their early start.
    """
    if early_requested:
        return candidate
    local_start = to_local(candidate.start, tz)
    if local_start.time() >= PREFERRED_START:
        return candidate

    day = local_start.date()
    shifted = candidate.moved_to(at_local(day, PREFERRED_START, tz))

    if is_weekend(candidate.start, tz):
        if is_long_workout(candidate):
            return candidate
    else:
        local_end = to_local(shifted.end, tz)
        if local_end.date() != day or local_end.time() > MORNING_END:
            logger.debug("Workout too long for 07:00 slot, leaving for reschedule", title=candidate.title)
            return candidate

    logger.debug("Applied 07:00 start preference", title=candidate.title, original=local_start.isoformat())
    return shifted


def working_set_from_events(events: Iterable[CalendarEvent]) -> WorkingSet:
    """Timed events as spacing obstacles; all-day events are left out."""
    return tuple(scheduled for scheduled in (event.as_scheduled() for event in events) if scheduled is not None)


class WeekPlanOrchestrator:
    """Schedules a batch of candidates as pending proposals."""

    def __init__(
        self,
        approvals: ApprovalService,
        rescheduler: AutoRescheduler,
        *,
        calendar: CalendarCapability | None = None,
        training_calendar_id: str = "",
        rounds: int = DEFAULT_ROUNDS,
        min_gap_minutes: int = MIN_GAP_MINUTES,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.approvals = approvals
        self.rescheduler = rescheduler
        self.calendar = calendar
        self.training_calendar_id = training_calendar_id
        self.rounds = rounds
        self.min_gap_minutes = min_gap_minutes
        self.tz = tz

    async def fetch_existing_events(self, candidates: list[WorkoutCandidate]) -> list[CalendarEvent]:
        """Training events around the batch, wide enough for the reschedule horizon."""
        if self.calendar is None or not candidates:
            return []
        first_day = min(local_date(candidate.start, self.tz) for candidate in candidates)
        last_day = max(local_date(candidate.end, self.tz) for candidate in candidates)
        horizon = timedelta(days=self.rescheduler.budget + 1)
        start = at_local(first_day, time(0), self.tz)
        end = at_local(last_day, time(0), self.tz) + horizon
        return await self.calendar.fetch_events_in_range(self.training_calendar_id, start, end)

    async def _reschedule(self, candidate: WorkoutCandidate, working: WorkingSet) -> WorkoutCandidate:
        outcome = await self.rescheduler.reschedule(candidate, working)
        if outcome.candidate is None:
            raise SchedulingExhaustedError(candidate.title, outcome.attempts)
        return outcome.candidate

    async def _schedule_one(self, candidate: WorkoutCandidate, working: WorkingSet) -> PlannedWorkout | SkippedWorkout:
        current = candidate
        try:
            for round_number in range(1, self.rounds + 1):
                spacing = check_spacing(
                    current.as_scheduled(),
                    working,
                    min_gap_minutes=self.min_gap_minutes,
                    tz=self.tz,
                )
                if not spacing.valid:
                    logger.info(
                        "Spacing violation, rescheduling",
                        title=current.title,
                        round=round_number,
                        warnings=spacing.warnings,
                    )
                    current = await self._reschedule(current, working)
                    continue

                try:
                    response = await self.approvals.propose_create(
                        current.title,
                        current.start,
                        current.end,
                        current.description,
                    )
                except PolicyViolationError as e:
                    if not e.reschedulable:
                        raise
                    logger.info(
                        "Proposal rejected by policy, rescheduling",
                        title=current.title,
                        round=round_number,
                        reason=str(e.result.reason),
                    )
                    current = await self._reschedule(current, working)
                    continue

                return PlannedWorkout(
                    proposal=response.proposal,
                    candidate=current,
                    diff=response.diff,
                    warnings=response.proposal.warnings,
                )
        except SchedulingExhaustedError as e:
            return SkippedWorkout(title=candidate.title, reason=SkipReason.SCHEDULING_EXHAUSTED, detail=e.message)
        except PolicyViolationError as e:
            return SkippedWorkout(title=candidate.title, reason=SkipReason.POLICY_VIOLATION, detail=e.message)
        except ValidationError as e:
            return SkippedWorkout(title=candidate.title, reason=SkipReason.VALIDATION_FAILED, detail=e.message)
        except (UnauthenticatedError, UpstreamFailureError) as e:
            return SkippedWorkout(title=candidate.title, reason=SkipReason.UPSTREAM_FAILURE, detail=e.message)
        except SchedulerError as e:
            return SkippedWorkout(title=candidate.title, reason=SkipReason.POLICY_VIOLATION, detail=e.message)

        return SkippedWorkout(
            title=candidate.title,
            reason=SkipReason.SCHEDULING_EXHAUSTED,
            detail=f"No valid placement after {self.rounds} rounds",
        )

    async def plan_week(
        self,
        candidates: list[WorkoutCandidate],
        existing_events: list[CalendarEvent] | None = None,
        *,
        prompt: str | None = None,
    ) -> WeekPlanResult:
        """Schedule a batch of candidates.

        Args:
            candidates: Raw candidates, in priority order
            existing_events: Committed training events; fetched once when None
            prompt: Originating request, used for the time bias and count checks

        Returns:
            WeekPlanResult with accepted proposals, skipped workouts and the combined diff
        """
        requested_count = extract_workout_count(prompt)
        early_requested = explicit_early_request(prompt)
        batch = list(candidates)

        if requested_count is not None and len(batch) > requested_count:
            logger.warning(
                "Trimming generated workouts to requested count",
                requested=requested_count,
                generated=len(batch),
            )
            batch = batch[:requested_count]

        if existing_events is None:
            try:
                existing_events = await self.fetch_existing_events(batch)
            except SchedulerError as e:
                logger.error("Could not load committed training events", error=e.message, candidates=len(batch))
                failed = [
                    SkippedWorkout(title=candidate.title, reason=SkipReason.UPSTREAM_FAILURE, detail=e.message)
                    for candidate in batch
                ]
                return WeekPlanResult(
                    skipped=failed,
                    requested_count=requested_count,
                    count_warning=self._count_warning(requested_count, [], failed),
                )
        working = working_set_from_events(existing_events)

        accepted: list[PlannedWorkout] = []
        skipped: list[SkippedWorkout] = []

        for candidate in batch:
            biased = apply_time_bias(candidate, early_requested=early_requested, tz=self.tz)
            outcome = await self._schedule_one(biased, working)
            if isinstance(outcome, SkippedWorkout):
                logger.warning("Skipped workout", title=outcome.title, reason=outcome.reason.value, detail=outcome.detail)
                skipped.append(outcome)
                continue
            accepted.append(outcome)
            working = working + (outcome.candidate.as_scheduled(),)

        accepted, late = self._drop_late_violators(accepted)
        skipped.extend(late)

        if requested_count is not None and len(accepted) > requested_count:
            surplus = accepted[requested_count:]
            accepted = accepted[:requested_count]
            self.approvals.discard([planned.proposal.id for planned in surplus])
            logger.warning("Trimmed accepted workouts to requested count", requested=requested_count, trimmed=len(surplus))

        count_warning = self._count_warning(requested_count, accepted, skipped)
        logger.info("Week plan completed", accepted=len(accepted), skipped=len(skipped))
        return WeekPlanResult(
            accepted=accepted,
            skipped=skipped,
            combined_diff="\n".join(planned.diff for planned in accepted),
            requested_count=requested_count,
            count_warning=count_warning,
        )

    def _count_warning(
        self,
        requested_count: int | None,
        accepted: list[PlannedWorkout],
        skipped: list[SkippedWorkout],
    ) -> str | None:
        if requested_count is None or len(accepted) == requested_count:
            return None
        logger.warning("Workout count mismatch", requested=requested_count, actual=len(accepted))
        return f"Expected {requested_count} workouts but got {len(accepted)} ({len(skipped)} skipped)"

    def _drop_late_violators(self, accepted: list[PlannedWorkout]) -> tuple[list[PlannedWorkout], list[SkippedWorkout]]:
        kept: list[PlannedWorkout] = []
        late: list[SkippedWorkout] = []
        for planned in accepted:
            if within_allowed_hours(planned.candidate.start, planned.candidate.end, self.tz):
                kept.append(planned)
                continue
            logger.warning("Dropping proposal outside allowed hours", title=planned.candidate.title)
            self.approvals.discard([planned.proposal.id])
            late.append(
                SkippedWorkout(
                    title=planned.candidate.title,
                    reason=SkipReason.OUTSIDE_ALLOWED_HOURS,
                    detail="Outside allowed hours",
                )
            )
        return kept, late

    async def plan_from_prompt(
        self,
        prompt: str,
        generator: WorkoutGenerator | None,
        fallback: WorkoutGenerator,
        *,
        timeout: float,
        existing_events: list[CalendarEvent] | None = None,
    ) -> WeekPlanResult:
        """Generate candidates for a prompt and schedule them."""
        candidates, source, error = await generate_with_fallback(generator, fallback, prompt, timeout)
        logger.info("Received generated workouts", items=len(candidates), source=source)
        result = await self.plan_week(candidates, existing_events, prompt=prompt)
        return result.model_copy(update={"source": source, "generator_error": error})
