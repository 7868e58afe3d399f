"""Tests for the auto-rescheduler search."""

from datetime import timedelta

import pytest

from trainingcal.calendar.policy import within_allowed_hours
from trainingcal.calendar.spacing import check_spacing
from trainingcal.calendar.types import ScheduledWorkout, WorkoutCandidate
from trainingcal.scheduling.rescheduler import (
    AutoRescheduler,
    attempt_reschedule,
    preferred_slot,
    snap_to_valid_slot,
)


def candidate(title, start, end, description=""):
    return WorkoutCandidate(title=title, start=start, end=end, description=description)


class TestSlotSnap:
    """Tests for snapping to the preferred slot of a day."""

    def test_early_weekday_snaps_to_seven(self, local, tz):
        snapped = snap_to_valid_slot(candidate("Run — Tempo", local(9, 6, 15), local(9, 7, 15)), tz)
        assert (snapped.start, snapped.end) == (local(9, 7), local(9, 8))

    def test_valid_placement_unchanged(self, local, tz):
        original = candidate("Run — Tempo", local(9, 18, 30), local(9, 19, 30))
        assert snap_to_valid_slot(original, tz) == original

    def test_falls_back_to_six_thirty(self, local, tz):
        """A 165 minute session only fits the morning window from 06:30."""
        snapped = snap_to_valid_slot(candidate("Bike — Long", local(9, 12), local(9, 14, 45)), tz)
        assert snapped.start == local(9, 6, 30)
        assert snapped.end == local(9, 9, 15)

    def test_too_long_for_morning_goes_to_evening(self, local, tz):
        snapped = snap_to_valid_slot(candidate("Bike — Long", local(10, 12), local(10, 15, 30)), tz)
        assert snapped.start == local(10, 18)

    def test_weekend_never_snapped(self, local, tz):
        early = candidate("Bike — Long", local(14, 4), local(14, 9))
        assert snap_to_valid_slot(early, tz) == early

    def test_weekend_long_prefers_six_thirty(self, local, tz):
        long_ride = candidate("Bike — Long", local(13, 12), local(13, 16))
        slot = preferred_slot(long_ride, local(14, 0).date(), tz)
        assert slot.start == local(14, 6, 30)


class TestAttemptReschedule:
    """Tests for the pure placement search."""

    def test_early_start_scenario(self, local, tz):
        outcome = attempt_reschedule(candidate("Run — Tempo", local(9, 6, 15), local(9, 7, 15)), [], tz=tz)
        assert outcome.exhausted is False
        assert (outcome.candidate.start, outcome.candidate.end) == (local(9, 7), local(9, 8))
        assert outcome.attempts == 1

    def test_displaced_after_swim(self, local, tz):
        """A run overlapping a swim moves to 30 minutes after the swim ends."""
        swim = ScheduledWorkout(title="Swim", start=local(9, 6, 30), end=local(9, 7, 15))
        run = candidate("Run — Easy", local(9, 7, 5), local(9, 8, 5))
        outcome = attempt_reschedule(run, [swim], tz=tz)
        assert outcome.candidate.start == swim.end + timedelta(minutes=30)
        assert outcome.candidate.end == local(9, 8, 45)

    def test_displaced_before_conflict(self, local, tz):
        """The run ends one gap before the swim it overlapped."""
        swim = ScheduledWorkout(title="Swim", start=local(10, 8, 30), end=local(10, 9, 30))
        run = candidate("Run — Easy", local(10, 8, 45), local(10, 9, 15))
        outcome = attempt_reschedule(run, [swim], tz=tz)
        assert (outcome.candidate.start, outcome.candidate.end) == (local(10, 7, 30), local(10, 8))

    def test_evening_conflict_moves_after_not_to_morning(self, local, tz):
        swim = ScheduledWorkout(title="Swim", start=local(9, 18), end=local(9, 19))
        run = candidate("Run — Easy", local(9, 18, 50), local(9, 19, 50))
        outcome = attempt_reschedule(run, [swim], tz=tz)
        assert (outcome.candidate.start, outcome.candidate.end) == (local(9, 19, 30), local(9, 20, 30))

    def test_anchored_on_conflict_not_first_workout(self, local, tz):
        """The evening run fits before the strength session it overlaps, despite the morning swim."""
        working = [
            ScheduledWorkout(title="Swim", start=local(11, 6, 30), end=local(11, 7)),
            ScheduledWorkout(title="Strength", start=local(11, 20), end=local(11, 21)),
        ]
        outcome = attempt_reschedule(candidate("Run — Easy", local(11, 20, 15), local(11, 21)), working, tz=tz)
        assert (outcome.candidate.start, outcome.candidate.end) == (local(11, 18, 45), local(11, 19, 30))

    def test_midday_displacement_moves_to_evening(self, local, tz):
        strength = ScheduledWorkout(title="Strength", start=local(10, 7, 30), end=local(10, 8, 30))
        swim = candidate("Swim — Drills", local(10, 7), local(10, 7, 45))
        outcome = attempt_reschedule(swim, [strength], tz=tz)
        assert outcome.candidate.start == local(10, 18)

    def test_long_weekend_session_may_start_early(self, local, tz):
        group_ride = ScheduledWorkout(title="Club meetup", start=local(14, 10), end=local(14, 11))
        long_ride = candidate("Bike — Long (240m)", local(14, 8), local(14, 12))
        outcome = attempt_reschedule(long_ride, [group_ride], tz=tz)
        assert (outcome.candidate.start, outcome.candidate.end) == (local(14, 5, 30), local(14, 9, 30))

    def test_result_passes_spacing_and_hours(self, local, tz):
        working = [
            ScheduledWorkout(title="Swim", start=local(11, 7), end=local(11, 8)),
            ScheduledWorkout(title="Strength", start=local(11, 18), end=local(11, 19)),
        ]
        outcome = attempt_reschedule(candidate("Run — Tempo", local(11, 7, 30), local(11, 8, 30)), working, tz=tz)
        found = outcome.candidate
        assert within_allowed_hours(found.start, found.end, tz)
        assert check_spacing(found.as_scheduled(), working, tz=tz).valid

    def test_saturated_calendar_exhausts_budget(self, local, tz):
        """Twenty back-to-back full days: the search gives up after 14 attempts."""
        working = [
            ScheduledWorkout(title="Blocked", start=local(9, 0) + timedelta(days=offset), end=local(9, 0) + timedelta(days=offset + 1))
            for offset in range(20)
        ]
        outcome = attempt_reschedule(candidate("Run — Tempo", local(9, 7), local(9, 8)), working, tz=tz)
        assert outcome.exhausted is True
        assert outcome.candidate is None
        assert outcome.attempts == 14
        assert outcome.warnings

    def test_blocker_needs_no_gap(self, local, tz):
        meeting = ScheduledWorkout(title="Standup", start=local(9, 7), end=local(9, 8))
        outcome = attempt_reschedule(candidate("Run — Easy", local(9, 8), local(9, 9)), [], blockers=[meeting], tz=tz)
        assert outcome.candidate.start == local(9, 8)
        assert outcome.attempts == 1

    def test_overlapping_blocker_moves_candidate_to_its_end(self, local, tz):
        """Meetings exclude overlap only, so the run starts when the meeting ends."""
        meeting = ScheduledWorkout(title="Ride share", start=local(9, 7), end=local(9, 8))
        outcome = attempt_reschedule(candidate("Run — Easy", local(9, 7, 30), local(9, 8, 30)), [], blockers=[meeting], tz=tz)
        assert (outcome.candidate.start, outcome.candidate.end) == (local(9, 8), local(9, 9))

    def test_zero_budget_returns_immediately(self, local, tz):
        outcome = attempt_reschedule(candidate("Run", local(9, 7), local(9, 8)), [], budget=0, tz=tz)
        assert outcome.exhausted is True
        assert outcome.attempts == 0

    def test_working_set_not_modified(self, local, tz):
        working = [ScheduledWorkout(title="Swim", start=local(9, 7), end=local(9, 8))]
        attempt_reschedule(candidate("Run", local(9, 7), local(9, 8)), working, tz=tz)
        assert working == [ScheduledWorkout(title="Swim", start=local(9, 7), end=local(9, 8))]


class TestAutoRescheduler:
    """Tests for re-validation against the primary calendar."""

    @pytest.mark.asyncio
    async def test_primary_blocker_becomes_obstacle(self, rescheduler, add_event, local):
        add_event("primary", "Board meeting", local(9, 7), local(9, 8))
        outcome = await rescheduler.reschedule(candidate("Run — Tempo", local(9, 6, 15), local(9, 7, 15)), [])
        assert outcome.candidate.start == local(9, 8)
        assert outcome.attempts == 3

    @pytest.mark.asyncio
    async def test_lunch_on_primary_is_not_an_obstacle(self, rescheduler, add_event, local):
        add_event("primary", "Lunch run club", local(9, 7), local(9, 8))
        outcome = await rescheduler.reschedule(candidate("Run — Tempo", local(9, 6, 15), local(9, 7, 15)), [])
        assert outcome.candidate.start == local(9, 7)

    @pytest.mark.asyncio
    async def test_saturated_calendar_terminates(self, rescheduler, local):
        working = [
            ScheduledWorkout(title="Blocked", start=local(9, 0) + timedelta(days=offset), end=local(9, 0) + timedelta(days=offset + 1))
            for offset in range(20)
        ]
        outcome = await rescheduler.reschedule(candidate("Run — Tempo", local(9, 7), local(9, 8)), working)
        assert outcome.exhausted is True

    @pytest.mark.asyncio
    async def test_without_checker(self, local, tz):
        outcome = await AutoRescheduler(None, tz=tz).reschedule(
            candidate("Run — Tempo", local(9, 6, 15), local(9, 7, 15)),
            [],
        )
        assert outcome.candidate.start == local(9, 7)
