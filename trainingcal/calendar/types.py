"""Calendar and workout types.

Every instant is a timezone-aware datetime. Wall-clock fields (hour, minute,
weekday, local date) are derived by converting to the configured zone, never
by reading the text of a timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator


def _require_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        raise ValueError(f"Timezone-naive instant: {value.isoformat()}")
    return value


class WorkoutCandidate(BaseModel):
    """A prospective or existing workout placement.

    Attributes:
        title: Short workout title (e.g. "Run — Tempo (60m)")
        start: Start instant (timezone-aware)
        end: End instant (timezone-aware)
        description: Labeled workout description (Duration/Targets/Intervals/Notes/TSS/kcal)
        source_event_id: Calendar event id for update/delete targets
    """

    title: str
    start: datetime
    end: datetime
    description: str = ""
    source_event_id: str | None = None

    @field_validator("start", "end")
    @classmethod
    def validate_aware(cls, value: datetime) -> datetime:
        return _require_aware(value)

    @model_validator(mode="after")
    def validate_interval(self) -> WorkoutCandidate:
        if self.end <= self.start:
            raise ValueError(f"Workout '{self.title}' ends before it starts")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def moved_to(self, start: datetime) -> WorkoutCandidate:
        """Return a copy starting at ``start`` with the same duration."""
        return self.model_copy(update={"start": start, "end": start + self.duration})

    def as_scheduled(self) -> ScheduledWorkout:
        return ScheduledWorkout(title=self.title, start=self.start, end=self.end)


class CalendarEvent(BaseModel):
    """An event read from a calendar.

    Timed events carry ``start``/``end``; all-day events carry ``start_date``/``end_date``
    with the end date exclusive, per calendar convention.
    """

    id: str
    title: str = ""
    description: str = ""
    start: datetime | None = None
    end: datetime | None = None
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("start", "end")
    @classmethod
    def validate_aware(cls, value: datetime | None) -> datetime | None:
        return _require_aware(value)

    @model_validator(mode="after")
    def validate_shape(self) -> CalendarEvent:
        timed = self.start is not None and self.end is not None
        all_day = self.start_date is not None and self.end_date is not None
        if not timed and not all_day:
            raise ValueError(f"Event {self.id} has neither a time range nor a date range")
        return self

    @computed_field
    @property
    def is_all_day(self) -> bool:
        return self.start is None or self.end is None

    def as_scheduled(self) -> ScheduledWorkout | None:
        """Spacing view of this event; all-day events never take part in spacing."""
        if self.is_all_day:
            return None
        return ScheduledWorkout(title=self.title, start=self.start, end=self.end)


class EventFields(BaseModel):
    """Partial event fields for updates. ``None`` means unchanged."""

    title: str | None = None
    description: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    @field_validator("start", "end")
    @classmethod
    def validate_aware(cls, value: datetime | None) -> datetime | None:
        return _require_aware(value)

    def is_empty(self) -> bool:
        return all(value is None for value in (self.title, self.description, self.start, self.end))


class BusyInterval(BaseModel):
    """A busy block returned by a free/busy query."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class ScheduledWorkout:
    """Element of the spacing working set: a titled, timed interval."""

    title: str
    start: datetime
    end: datetime


class ConflictReport(BaseModel):
    """Primary-calendar conflicts for a candidate interval.

    Attributes:
        blocking: Timed, non-lunch events overlapping the candidate (prevent scheduling)
        warnings: All-day, non-lunch events containing the candidate's date (advisory)
    """

    blocking: list[CalendarEvent] = Field(default_factory=list)
    warnings: list[CalendarEvent] = Field(default_factory=list)

    @property
    def has_blocking(self) -> bool:
        return len(self.blocking) > 0

    def warning_messages(self) -> list[str]:
        return [f'All-day event "{event.title or "Untitled"}" on this date' for event in self.warnings]


class SpacingReport(BaseModel):
    """Outcome of a spacing check against a working set."""

    valid: bool
    conflicts: list[ScheduledWorkout] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
