"""Batch planning and modification types."""

from enum import StrEnum

from pydantic import BaseModel, Field, computed_field

from trainingcal.calendar.types import EventFields, WorkoutCandidate
from trainingcal.proposals.types import Proposal


class ModificationAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ModificationIntent(BaseModel):
    """One requested change in a batch modification.

    Attributes:
        action: Create, update or delete
        target_id: Training event id (update/delete)
        fields: New field values; all optional, required ones depend on action
    """

    action: ModificationAction
    target_id: str | None = None
    fields: EventFields = Field(default_factory=EventFields)


class SkipReason(StrEnum):
    SCHEDULING_EXHAUSTED = "scheduling_exhausted"
    POLICY_VIOLATION = "policy_violation"
    VALIDATION_FAILED = "validation_failed"
    UPSTREAM_FAILURE = "upstream_failure"
    OUTSIDE_ALLOWED_HOURS = "outside_allowed_hours"


class PlannedWorkout(BaseModel):
    """A batch candidate that became a pending proposal."""

    proposal: Proposal
    candidate: WorkoutCandidate
    diff: str
    warnings: list[str] = Field(default_factory=list)


class SkippedWorkout(BaseModel):
    """A batch candidate that could not be scheduled."""

    title: str
    reason: SkipReason
    detail: str = ""


class WeekPlanResult(BaseModel):
    """Partial-success outcome of a batch plan.

    Attributes:
        accepted: Workouts staged as proposals, in batch order
        skipped: Workouts that could not be scheduled
        combined_diff: Newline-joined diff lines of the accepted proposals
        requested_count: Workout count asked for in the prompt, if any
        count_warning: Set when the accepted count differs from requested_count
        source: Which generator produced the candidates (when planned from a prompt)
        generator_error: Error raised by the primary generator before falling back
    """

    accepted: list[PlannedWorkout] = Field(default_factory=list)
    skipped: list[SkippedWorkout] = Field(default_factory=list)
    combined_diff: str = ""
    requested_count: int | None = None
    count_warning: str | None = None
    source: str | None = None
    generator_error: str | None = None

    @computed_field
    @property
    def skipped_titles(self) -> list[str]:
        return [item.title for item in self.skipped]


class ModificationError(BaseModel):
    """Per-intent failure in a batch modification."""

    index: int
    action: ModificationAction
    target_id: str | None = None
    message: str
    status_code: int


class ModifyResult(BaseModel):
    proposals: list[Proposal] = Field(default_factory=list)
    combined_diff: str = ""
    errors: list[ModificationError] = Field(default_factory=list)
