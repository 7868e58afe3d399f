"""Direct training-calendar writes and read passthroughs.

Writes here apply the same checks as the propose operations but commit
immediately, without staging a proposal.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.capability import CalendarCapability
from trainingcal.calendar.guards import ensure_deletable
from trainingcal.calendar.types import BusyInterval, CalendarEvent, EventFields
from trainingcal.calendar.validation import PlacementValidator


class TrainingCalendarService:
    """Validated direct access to the training and primary calendars."""

    def __init__(
        self,
        calendar: CalendarCapability,
        validator: PlacementValidator,
        training_calendar_id: str,
        primary_calendar_id: str,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.calendar = calendar
        self.validator = validator
        self.training_calendar_id = training_calendar_id
        self.primary_calendar_id = primary_calendar_id
        self.tz = tz

    async def create_event(
        self,
        title: str | None,
        start: datetime | None,
        end: datetime | None,
        description: str | None,
    ) -> tuple[CalendarEvent, list[str]]:
        """Validate and write a workout to the training calendar.

        Returns:
            Tuple of (created event, all-day warnings)
        """
        report = await self.validator.validate_placement(title, start, end, description)
        event = await self.calendar.create_event(self.training_calendar_id, title, description or "", start, end)
        logger.info("Created training event", event_id=event.id, title=title)
        return event, report.warning_messages()

    async def update_event(self, event_id: str | None, fields: EventFields) -> tuple[CalendarEvent, list[str]]:
        self.validator.require_fields(event_id=event_id)
        current = await self.calendar.fetch_event(self.training_calendar_id, event_id)
        report = await self.validator.validate_update(current, fields)

        event = await self.calendar.update_event(self.training_calendar_id, event_id, fields)
        logger.info("Updated training event", event_id=event_id)
        return event, report.warning_messages()

    async def delete_event(self, event_id: str | None) -> str:
        self.validator.require_fields(event_id=event_id)
        current = await self.calendar.fetch_event(self.training_calendar_id, event_id)
        ensure_deletable(current)
        await self.calendar.delete_event(self.training_calendar_id, event_id)
        logger.info("Deleted training event", event_id=event_id, title=current.title)
        return event_id

    async def list_primary_busy(self, start: datetime | None, end: datetime | None) -> list[BusyInterval]:
        self.validator.require_fields(time_min=start, time_max=end)
        self.validator.validate_interval_shape(start, end)
        return await self.calendar.fetch_free_busy(self.primary_calendar_id, start, end)

    async def list_training_events(self, start: datetime | None, end: datetime | None) -> list[CalendarEvent]:
        self.validator.require_fields(time_min=start, time_max=end)
        self.validator.validate_interval_shape(start, end)
        return await self.calendar.fetch_events_in_range(self.training_calendar_id, start, end)
