"""Structured policy check outcomes.

A PolicyResult is either a pass or a failure with a reason. Callers branch on
``reason`` to decide whether to reschedule, skip, or surface the failure, so
the type intentionally has no truthiness.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from trainingcal.calendar.types import CalendarEvent


class PolicyReason(StrEnum):
    OUTSIDE_ALLOWED_HOURS = "outside_allowed_hours"
    CONFLICTS_WITH_PRIMARY = "conflicts_with_primary"
    INSUFFICIENT_SPACING = "insufficient_spacing"
    DELETION_BLOCKED = "deletion_blocked"
    DESCRIPTION_INCOMPLETE = "description_incomplete"


# Failures the auto-rescheduler can act on
RESCHEDULABLE_REASONS = frozenset(
    {
        PolicyReason.OUTSIDE_ALLOWED_HOURS,
        PolicyReason.CONFLICTS_WITH_PRIMARY,
        PolicyReason.INSUFFICIENT_SPACING,
    }
)


class PolicyResult(BaseModel):
    """Outcome of a single policy check.

    Attributes:
        reason: None on pass, otherwise the failing policy
        blocking_events: Primary-calendar events behind a CONFLICTS_WITH_PRIMARY failure
        warnings: Human-readable spacing or advisory messages
        missing_fields: Description labels behind a DESCRIPTION_INCOMPLETE failure
    """

    reason: PolicyReason | None = None
    blocking_events: list[CalendarEvent] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, warnings: list[str] | None = None) -> PolicyResult:
        return cls(reason=None, warnings=warnings or [])

    @classmethod
    def fail(
        cls,
        reason: PolicyReason,
        *,
        blocking_events: list[CalendarEvent] | None = None,
        warnings: list[str] | None = None,
        missing_fields: list[str] | None = None,
    ) -> PolicyResult:
        return cls(
            reason=reason,
            blocking_events=blocking_events or [],
            warnings=warnings or [],
            missing_fields=missing_fields or [],
        )

    @property
    def passed(self) -> bool:
        return self.reason is None

    @property
    def reschedulable(self) -> bool:
        return self.reason in RESCHEDULABLE_REASONS
