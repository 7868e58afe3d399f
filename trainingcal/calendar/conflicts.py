"""Conflict detection against the primary calendar.

Every event overlapping a candidate interval is classified as:
- blocking: timed, overlapping, not lunch-exempt
- warning: all-day, containing the candidate's local date, not lunch-exempt
- ignored: lunch-exempt, or not actually overlapping

Blocking events fail the candidate; warnings are advisory and surfaced to the caller.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.capability import CalendarCapability
from trainingcal.calendar.guards import is_lunch_exempt
from trainingcal.calendar.policy import is_all_day_and_overlapping, local_date, overlaps
from trainingcal.calendar.results import PolicyReason, PolicyResult
from trainingcal.calendar.types import CalendarEvent, ConflictReport


def classify_conflicts(
    events: list[CalendarEvent],
    start: datetime,
    end: datetime,
    tz: ZoneInfo | None = None,
) -> ConflictReport:
    """Classify primary-calendar events against a candidate interval (pure function).

    Args:
        events: Primary-calendar events returned for the candidate range
        start: Candidate start instant
        end: Candidate end instant
        tz: Zone used to derive the candidate's local date

    Returns:
        ConflictReport with blocking and warning events
    """
    report = ConflictReport()
    candidate_day = local_date(start, tz)

    for event in events:
        if is_lunch_exempt(event.title):
            continue
        if event.is_all_day:
            if is_all_day_and_overlapping(event, candidate_day):
                report.warnings.append(event)
            continue
        if overlaps(start, end, event.start, event.end):
            report.blocking.append(event)

    return report


def conflict_policy_result(report: ConflictReport) -> PolicyResult:
    """Fail with CONFLICTS_WITH_PRIMARY when any blocking event exists."""
    warnings = report.warning_messages()
    if report.has_blocking:
        return PolicyResult.fail(
            PolicyReason.CONFLICTS_WITH_PRIMARY,
            blocking_events=report.blocking,
            warnings=warnings,
        )
    return PolicyResult.ok(warnings=warnings)


class ConflictChecker:
    """Checks candidate intervals against the primary calendar.

    Events are fetched per check and never cached beyond it.
    """

    def __init__(self, calendar: CalendarCapability, primary_calendar_id: str, tz: ZoneInfo | None = None) -> None:
        self.calendar = calendar
        self.primary_calendar_id = primary_calendar_id
        self.tz = tz

    async def check(self, start: datetime, end: datetime) -> ConflictReport:
        events = await self.calendar.fetch_events_in_range(self.primary_calendar_id, start, end)
        report = classify_conflicts(events, start, end, self.tz)
        if report.blocking or report.warnings:
            logger.info(
                "Primary calendar conflicts found",
                start=start.isoformat(),
                end=end.isoformat(),
                blocking=[event.title for event in report.blocking],
                warnings=[event.title for event in report.warnings],
            )
        return report

    async def check_policy(self, start: datetime, end: datetime) -> PolicyResult:
        return conflict_policy_result(await self.check(start, end))
