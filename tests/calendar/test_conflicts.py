"""Tests for primary-calendar conflict detection."""

from datetime import date

import pytest

from trainingcal.calendar.conflicts import classify_conflicts, conflict_policy_result
from trainingcal.calendar.results import PolicyReason
from trainingcal.calendar.types import CalendarEvent


class TestClassifyConflicts:
    """Tests for the pure conflict classifier."""

    def test_overlapping_timed_event_blocks(self, local, tz):
        meeting = CalendarEvent(id="m1", title="Standup", start=local(9, 7, 30), end=local(9, 8))
        report = classify_conflicts([meeting], local(9, 7), local(9, 8), tz)
        assert report.blocking == [meeting]
        assert report.warnings == []

    def test_lunch_never_blocks(self, local, tz):
        lunch = CalendarEvent(id="l1", title="Team Lunch", start=local(9, 7), end=local(9, 9))
        report = classify_conflicts([lunch], local(9, 7), local(9, 8), tz)
        assert report.blocking == []
        assert report.warnings == []

    def test_adjacent_event_does_not_block(self, local, tz):
        meeting = CalendarEvent(id="m1", title="Standup", start=local(9, 8), end=local(9, 9))
        report = classify_conflicts([meeting], local(9, 7), local(9, 8), tz)
        assert report.has_blocking is False

    def test_all_day_event_is_a_warning(self, local, tz):
        trip = CalendarEvent(id="t1", title="Travel", start_date=date(2025, 6, 9), end_date=date(2025, 6, 10))
        report = classify_conflicts([trip], local(9, 7), local(9, 8), tz)
        assert report.blocking == []
        assert report.warnings == [trip]
        assert report.warning_messages() == ['All-day event "Travel" on this date']

    def test_all_day_lunch_is_ignored(self, local, tz):
        lunch = CalendarEvent(id="l2", title="Lunch & Learn day", start_date=date(2025, 6, 9), end_date=date(2025, 6, 10))
        report = classify_conflicts([lunch], local(9, 7), local(9, 8), tz)
        assert report.warnings == []

    def test_all_day_event_ending_before_candidate_date(self, local, tz):
        trip = CalendarEvent(id="t1", title="Travel", start_date=date(2025, 6, 8), end_date=date(2025, 6, 9))
        report = classify_conflicts([trip], local(9, 7), local(9, 8), tz)
        assert report.warnings == []


class TestConflictPolicyResult:
    """Tests for converting conflict reports into policy results."""

    def test_blocking_fails_with_events(self, local, tz):
        meeting = CalendarEvent(id="m1", title="Standup", start=local(9, 7, 30), end=local(9, 8))
        result = conflict_policy_result(classify_conflicts([meeting], local(9, 7), local(9, 8), tz))
        assert result.reason == PolicyReason.CONFLICTS_WITH_PRIMARY
        assert result.blocking_events == [meeting]
        assert result.reschedulable is True

    def test_warnings_alone_pass(self, local, tz):
        trip = CalendarEvent(id="t1", title="Travel", start_date=date(2025, 6, 9), end_date=date(2025, 6, 10))
        result = conflict_policy_result(classify_conflicts([trip], local(9, 7), local(9, 8), tz))
        assert result.passed
        assert result.warnings == ['All-day event "Travel" on this date']


class TestConflictChecker:
    """Tests for ConflictChecker against the in-memory calendar."""

    @pytest.mark.asyncio
    async def test_reads_only_primary_calendar(self, checker, add_event, local):
        add_event("training", "Easy Run", local(9, 7), local(9, 8))
        report = await checker.check(local(9, 7), local(9, 8))
        assert report.has_blocking is False

    @pytest.mark.asyncio
    async def test_lunch_on_primary_never_blocks(self, checker, add_event, local):
        add_event("primary", "Team Lunch", local(9, 7), local(9, 8))
        add_event("primary", "Board meeting", local(9, 7, 30), local(9, 8, 30))
        report = await checker.check(local(9, 7), local(9, 8))
        assert [event.title for event in report.blocking] == ["Board meeting"]

    @pytest.mark.asyncio
    async def test_all_day_primary_event_warns(self, checker, calendar, local):
        calendar.add_event(
            "primary",
            CalendarEvent(id="h1", title="Holiday", start_date=date(2025, 6, 9), end_date=date(2025, 6, 10)),
        )
        report = await checker.check(local(9, 18), local(9, 19))
        assert report.has_blocking is False
        assert report.warning_messages() == ['All-day event "Holiday" on this date']
