"""Root conftest for all tests.

Shared fixtures: the local zone, an in-memory calendar pair (training and
primary) and the services wired around it. Dates used across the suite fall
in the week of Monday 2025-06-09.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from trainingcal.calendar.capability import InMemoryCalendar
from trainingcal.calendar.conflicts import ConflictChecker
from trainingcal.calendar.types import CalendarEvent
from trainingcal.calendar.validation import PlacementValidator
from trainingcal.proposals.service import ApprovalService
from trainingcal.proposals.store import ProposalStore
from trainingcal.scheduling.rescheduler import AutoRescheduler

TRAINING_CALENDAR = "training"
PRIMARY_CALENDAR = "primary"

COMPLETE_DESCRIPTION = (
    "Duration: 60 min\n"
    "Targets: Z3 tempo\n"
    "Intervals: 2x20m tempo\n"
    "Notes: Vegan fueling: dates\n"
    "TSS: 70, kcal: 700"
)


@pytest.fixture
def tz() -> ZoneInfo:
    return ZoneInfo("America/Toronto")


@pytest.fixture
def local(tz):
    """Build an aware local datetime in June 2025: local(9, 7) is Mon 2025-06-09 07:00."""

    def _local(day: int, hour: int, minute: int = 0) -> datetime:
        return datetime(2025, 6, day, hour, minute, tzinfo=tz)

    return _local


@pytest.fixture
def description() -> str:
    return COMPLETE_DESCRIPTION


@pytest.fixture
def calendar(tz) -> InMemoryCalendar:
    return InMemoryCalendar(tz)


@pytest.fixture
def add_event(calendar):
    """Seed a timed event: add_event("primary", "Standup", start, end)."""
    counter = {"n": 0}

    def _add(calendar_id: str, title: str, start: datetime, end: datetime, description: str = "") -> CalendarEvent:
        counter["n"] += 1
        event = CalendarEvent(
            id=f"{calendar_id}-{counter['n']}",
            title=title,
            description=description,
            start=start,
            end=end,
        )
        return calendar.add_event(calendar_id, event)

    return _add


@pytest.fixture
def checker(calendar, tz) -> ConflictChecker:
    return ConflictChecker(calendar, PRIMARY_CALENDAR, tz)


@pytest.fixture
def validator(checker, tz) -> PlacementValidator:
    return PlacementValidator(checker, tz=tz)


@pytest.fixture
def store() -> ProposalStore:
    return ProposalStore()


@pytest.fixture
def approvals(calendar, store, validator, tz) -> ApprovalService:
    return ApprovalService(calendar, store, validator, TRAINING_CALENDAR, tz)


@pytest.fixture
def rescheduler(checker, tz) -> AutoRescheduler:
    return AutoRescheduler(checker, tz=tz)
