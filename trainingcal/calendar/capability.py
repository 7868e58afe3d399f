"""Calendar capability interface and an in-process implementation.

The scheduling core reaches calendars only through CalendarCapability.
GoogleCalendarClient implements it over the network; InMemoryCalendar
implements it in-process for tests and local development.
"""

from __future__ import annotations

import uuid
from datetime import datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.policy import at_local, local_date, overlaps
from trainingcal.calendar.types import BusyInterval, CalendarEvent, EventFields
from trainingcal.errors import NotFoundError


class CalendarCapability(Protocol):
    """Narrow calendar interface consumed by the scheduling core."""

    async def fetch_events_in_range(self, calendar_id: str, start: datetime, end: datetime) -> list[CalendarEvent]: ...

    async def fetch_free_busy(self, calendar_id: str, start: datetime, end: datetime) -> list[BusyInterval]: ...

    async def fetch_event(self, calendar_id: str, event_id: str) -> CalendarEvent: ...

    async def create_event(
        self,
        calendar_id: str,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
    ) -> CalendarEvent: ...

    async def update_event(self, calendar_id: str, event_id: str, fields: EventFields) -> CalendarEvent: ...

    async def delete_event(self, calendar_id: str, event_id: str) -> None: ...


class InMemoryCalendar:
    """Dictionary-backed CalendarCapability.

    Events are kept per calendar id in insertion order. All-day events match a
    range query when any local date of the range falls in [start_date, end_date).
    """

    def __init__(self, tz: ZoneInfo | None = None) -> None:
        self.tz = tz
        self._calendars: dict[str, dict[str, CalendarEvent]] = {}

    def _calendar(self, calendar_id: str) -> dict[str, CalendarEvent]:
        return self._calendars.setdefault(calendar_id, {})

    def add_event(self, calendar_id: str, event: CalendarEvent) -> CalendarEvent:
        """Seed an event directly, bypassing the async write path."""
        self._calendar(calendar_id)[event.id] = event
        return event

    def events(self, calendar_id: str) -> list[CalendarEvent]:
        return list(self._calendar(calendar_id).values())

    async def fetch_events_in_range(self, calendar_id: str, start: datetime, end: datetime) -> list[CalendarEvent]:
        first_day = local_date(start, self.tz)
        last_day = local_date(end - timedelta(microseconds=1), self.tz)
        matched: list[CalendarEvent] = []
        for event in self._calendar(calendar_id).values():
            if event.is_all_day:
                if event.start_date <= last_day and first_day < event.end_date:
                    matched.append(event)
            elif overlaps(start, end, event.start, event.end):
                matched.append(event)
        return sorted(matched, key=lambda e: local_start_of(e, self.tz))

    async def fetch_free_busy(self, calendar_id: str, start: datetime, end: datetime) -> list[BusyInterval]:
        blocks = sorted(
            (max(event.start, start), min(event.end, end))
            for event in self._calendar(calendar_id).values()
            if not event.is_all_day and overlaps(start, end, event.start, event.end)
        )
        merged: list[BusyInterval] = []
        for block_start, block_end in blocks:
            if merged and block_start <= merged[-1].end:
                merged[-1] = BusyInterval(start=merged[-1].start, end=max(merged[-1].end, block_end))
            else:
                merged.append(BusyInterval(start=block_start, end=block_end))
        return merged

    async def fetch_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        event = self._calendar(calendar_id).get(event_id)
        if event is None:
            raise NotFoundError("Event not found", details={"event_id": event_id})
        return event

    async def create_event(
        self,
        calendar_id: str,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
    ) -> CalendarEvent:
        event = CalendarEvent(id=uuid.uuid4().hex, title=title, description=description, start=start, end=end)
        self._calendar(calendar_id)[event.id] = event
        logger.debug("In-memory event created", calendar_id=calendar_id, event_id=event.id)
        return event

    async def update_event(self, calendar_id: str, event_id: str, fields: EventFields) -> CalendarEvent:
        current = await self.fetch_event(calendar_id, event_id)
        changes = fields.model_dump(exclude_none=True)
        updated = CalendarEvent.model_validate({**current.model_dump(exclude={"is_all_day"}), **changes})
        self._calendar(calendar_id)[event_id] = updated
        return updated

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        if self._calendar(calendar_id).pop(event_id, None) is None:
            raise NotFoundError("Event not found", details={"event_id": event_id})


def local_start_of(event: CalendarEvent, tz: ZoneInfo | None = None) -> datetime:
    """Sort key for events: the start instant, or local midnight of an all-day event's first date."""
    if event.start is not None:
        return event.start
    return at_local(event.start_date, time(0), tz)
