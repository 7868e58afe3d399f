"""Synchronous placement validation shared by direct writes and proposals.

Checks run in a fixed order and stop at the first failure:
required fields, allowed hours, description completeness, primary conflicts.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.conflicts import ConflictChecker, conflict_policy_result
from trainingcal.calendar.policy import check_allowed_hours, validate_description
from trainingcal.calendar.types import CalendarEvent, ConflictReport, EventFields
from trainingcal.errors import DescriptionIncompleteError, PolicyViolationError, ValidationError


class PlacementValidator:
    """Validates workout placements and descriptions before any calendar write."""

    def __init__(
        self,
        conflict_checker: ConflictChecker,
        *,
        tz: ZoneInfo | None = None,
        extended_description: bool = False,
    ) -> None:
        self.conflict_checker = conflict_checker
        self.tz = tz
        self.extended_description = extended_description

    def require_fields(self, **fields: object) -> None:
        missing = [name for name, value in fields.items() if value is None or value == ""]
        if missing:
            raise ValidationError("Missing required fields", details={"missing": missing})

    def validate_interval_shape(self, start: datetime, end: datetime) -> None:
        if end <= start:
            raise ValidationError("End must be after start", details={"start": start.isoformat(), "end": end.isoformat()})

    def validate_hours(self, start: datetime, end: datetime) -> None:
        result = check_allowed_hours(start, end, self.tz)
        if not result.passed:
            logger.info("Placement outside allowed hours", start=start.isoformat(), end=end.isoformat())
            raise PolicyViolationError(result)

    def validate_description(self, description: str | None) -> None:
        result = validate_description(description, extended=self.extended_description)
        if not result.passed:
            logger.info("Description incomplete", missing=result.missing_fields)
            raise DescriptionIncompleteError(result)

    async def validate_conflicts(self, start: datetime, end: datetime) -> ConflictReport:
        report = await self.conflict_checker.check(start, end)
        result = conflict_policy_result(report)
        if not result.passed:
            raise PolicyViolationError(result)
        return report

    async def validate_placement(
        self,
        title: str | None,
        start: datetime | None,
        end: datetime | None,
        description: str | None,
    ) -> ConflictReport:
        """Run every check for a full placement.

        Returns:
            ConflictReport whose warnings (all-day overlaps) must be surfaced

        Raises:
            ValidationError: Missing fields or inverted interval
            PolicyViolationError: Outside allowed hours or blocking primary conflict
            DescriptionIncompleteError: Description lacks required labels
        """
        self.require_fields(title=title, start=start, end=end)
        self.validate_interval_shape(start, end)
        self.validate_hours(start, end)
        self.validate_description(description)
        return await self.validate_conflicts(start, end)

    async def validate_update(self, current: CalendarEvent, fields: EventFields) -> ConflictReport:
        """Check the partial fields of an update against the current event.

        A new interval is re-checked for hours and conflicts; a single supplied
        bound is paired with the current event's other bound. A new description
        is re-checked for completeness.
        """
        report = ConflictReport()
        if fields.start is not None or fields.end is not None:
            start = fields.start if fields.start is not None else current.start
            end = fields.end if fields.end is not None else current.end
            if start is None or end is None:
                raise ValidationError(
                    "Cannot move an all-day event with a single bound",
                    details={"missing": ["start" if start is None else "end"]},
                )
            self.validate_interval_shape(start, end)
            self.validate_hours(start, end)
            report = await self.validate_conflicts(start, end)
        if fields.description is not None:
            self.validate_description(fields.description)
        return report
