"""Scheduler error types.

Kinds, in order of how callers treat them:
- ValidationError: malformed input or incomplete description, never retried
- PolicyViolationError: hours/conflict/spacing/deletion policy failure; the
  batch planner reschedules the reschedulable ones, everyone else surfaces it
- NotFoundError: proposal or target event missing, never retried
- UnauthenticatedError / UpstreamFailureError: calendar call failures; a
  proposal being approved stays pending for a manual retry
- SchedulingExhaustedError: the auto-rescheduler spent its budget
"""

from typing import Any

from trainingcal.calendar.results import PolicyReason, PolicyResult


class SchedulerError(Exception):
    """Base exception for scheduler errors.

    Attributes:
        message: Human-readable message
        status_code: HTTP-like severity used by the API layer
        details: Extra JSON-serializable fields for the API response body
    """

    status_code: int = 400

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(SchedulerError):
    """Raised when required fields are missing or malformed."""

    status_code = 400


class DescriptionIncompleteError(ValidationError):
    """Raised when a workout description lacks required labeled fields."""

    def __init__(self, result: PolicyResult) -> None:
        self.result = result
        super().__init__(
            f"Description missing required fields: {', '.join(result.missing_fields)}",
            details={"missing": result.missing_fields},
        )


class PolicyViolationError(SchedulerError):
    """Raised when a placement or mutation breaks a scheduling policy.

    Attributes:
        result: The failing PolicyResult
    """

    _MESSAGES = {
        PolicyReason.OUTSIDE_ALLOWED_HOURS: "Outside allowed hours",
        PolicyReason.CONFLICTS_WITH_PRIMARY: "Conflicts with primary calendar (non-Lunch)",
        PolicyReason.INSUFFICIENT_SPACING: "Insufficient spacing between workouts",
        PolicyReason.DELETION_BLOCKED: 'Deletion blocked: event contains "Race"',
    }

    def __init__(self, result: PolicyResult) -> None:
        if result.passed:
            raise ValueError("PolicyViolationError requires a failing PolicyResult")
        self.result = result
        details: dict[str, Any] = {"reason": str(result.reason)}
        if result.blocking_events:
            details["conflicts"] = [
                {
                    "id": event.id,
                    "summary": event.title,
                    "start": (event.start or event.start_date).isoformat(),
                    "end": (event.end or event.end_date).isoformat(),
                }
                for event in result.blocking_events
            ]
        if result.warnings:
            details["warnings"] = result.warnings
        super().__init__(self._MESSAGES.get(result.reason, str(result.reason)), details=details)

    @property
    def status_code(self) -> int:  # type: ignore[override]
        if self.result.reason in {PolicyReason.CONFLICTS_WITH_PRIMARY, PolicyReason.INSUFFICIENT_SPACING}:
            return 409
        return 400

    @property
    def reschedulable(self) -> bool:
        return self.result.reschedulable


class DeletionBlockedError(PolicyViolationError):
    """Raised when deleting an event whose title contains "race"."""

    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(PolicyResult.fail(PolicyReason.DELETION_BLOCKED))


class NotFoundError(SchedulerError):
    """Raised when a proposal or target event does not exist."""

    status_code = 404


class UnauthenticatedError(SchedulerError):
    """Raised when upstream calendar credentials are missing or rejected."""

    status_code = 401


class UpstreamFailureError(SchedulerError):
    """Raised when an external calendar call fails."""

    status_code = 502


class SchedulingExhaustedError(SchedulerError):
    """Raised when the auto-rescheduler cannot find a legal slot within its budget."""

    status_code = 409

    def __init__(self, title: str, attempts: int) -> None:
        self.title = title
        self.attempts = attempts
        super().__init__(
            f'Could not find an available slot for "{title}" after {attempts} attempts',
            details={"title": title, "attempts": attempts},
        )
