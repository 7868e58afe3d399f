"""Proposal types - staged, reviewable calendar mutations.

A Proposal answers one question only:
"What would this change do to the calendar of record?"

It does NOT:
- write to the calendar
- re-run policy checks
- outlive the process

Lifecycle: PENDING -> APPROVED | REJECTED. Both outcomes are terminal;
proposing the same change again creates a new proposal with a new id.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from trainingcal.calendar.types import CalendarEvent


class ProposalKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ProposalStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CreatePayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str
    start: datetime
    end: datetime
    description: str


class UpdatePayload(BaseModel):
    event_id: str
    title: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    description: str | None = None


class DeletePayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: str


class ProposalDelta(BaseModel):
    """A single field change carried by a proposal.

    Attributes:
        field: Name of the field that changes
        old: Value before the change (None for creates)
        new: Value after the change (None for deletes)
    """

    field: str
    old: str | None = None
    new: str | None = None


class Proposal(BaseModel):
    """Unit of staged change awaiting approval.

    Attributes:
        id: Unique proposal id
        kind: Create, update or delete
        status: Lifecycle state
        payload: Kind-specific payload
        created_at: Creation timestamp (UTC)
        diff_text: Precomputed one-line summary
        warnings: Advisory notices (e.g. all-day overlaps), never blocking
        deltas: Field-level before/after values
        sequence: Insertion order within the store
    """

    id: str
    kind: ProposalKind
    status: ProposalStatus = ProposalStatus.PENDING
    payload: CreatePayload | DeletePayload | UpdatePayload = Field(union_mode="left_to_right")
    created_at: datetime
    diff_text: str
    warnings: list[str] = Field(default_factory=list)
    deltas: list[ProposalDelta] = Field(default_factory=list)
    sequence: int = 0


class ProposalResponse(BaseModel):
    """A proposal together with its diff line."""

    proposal: Proposal
    diff: str


class ApprovalResult(BaseModel):
    """Outcome of a successful approval.

    Attributes:
        approved: The proposal, now APPROVED
        event: Resulting calendar event (None for deletes)
        removed_event_id: Deleted event id (deletes only)
    """

    approved: Proposal
    event: CalendarEvent | None = None
    removed_event_id: str | None = None
