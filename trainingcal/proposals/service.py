"""Approval service: the propose / approve / reject workflow.

Propose operations run every synchronous policy check and stage a proposal;
nothing touches the training calendar until approve() is called.
"""

from datetime import datetime
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.capability import CalendarCapability
from trainingcal.calendar.guards import ensure_deletable
from trainingcal.calendar.types import EventFields
from trainingcal.calendar.validation import PlacementValidator
from trainingcal.errors import NotFoundError, SchedulerError, UpstreamFailureError
from trainingcal.proposals.diff import (
    create_deltas,
    create_diff,
    delete_deltas,
    delete_diff,
    update_deltas,
    update_diff,
)
from trainingcal.proposals.store import ProposalStore
from trainingcal.proposals.types import (
    ApprovalResult,
    CreatePayload,
    DeletePayload,
    Proposal,
    ProposalKind,
    ProposalResponse,
    ProposalStatus,
    UpdatePayload,
)


class ApprovalService:
    """Stages calendar mutations as proposals and commits them on approval."""

    def __init__(
        self,
        calendar: CalendarCapability,
        store: ProposalStore,
        validator: PlacementValidator,
        training_calendar_id: str,
        tz: ZoneInfo | None = None,
    ) -> None:
        self.calendar = calendar
        self.store = store
        self.validator = validator
        self.training_calendar_id = training_calendar_id
        self.tz = tz

    async def propose_create(
        self,
        title: str | None,
        start: datetime | None,
        end: datetime | None,
        description: str | None,
    ) -> ProposalResponse:
        """Validate a new workout and stage a create proposal.

        Raises:
            ValidationError: Missing fields or incomplete description
            PolicyViolationError: Outside allowed hours or conflicting with the primary calendar
        """
        report = await self.validator.validate_placement(title, start, end, description)
        diff = create_diff(title, start, end, self.tz)
        proposal = self.store.add(
            ProposalKind.CREATE,
            CreatePayload(title=title, start=start, end=end, description=description or ""),
            diff,
            warnings=report.warning_messages(),
            deltas=create_deltas(title, start, end, description or "", self.tz),
        )
        logger.info("Proposed create", proposal_id=proposal.id, title=title, diff=diff)
        return ProposalResponse(proposal=proposal, diff=diff)

    async def propose_update(self, event_id: str | None, fields: EventFields) -> ProposalResponse:
        """Stage an update of an existing training event.

        A new interval is re-checked for hours and primary conflicts; when only
        one bound is supplied the other comes from the current event. A new
        description is re-checked for completeness.
        """
        self.validator.require_fields(event_id=event_id)
        current = await self.calendar.fetch_event(self.training_calendar_id, event_id)
        report = await self.validator.validate_update(current, fields)

        diff = update_diff(current, fields, self.tz)
        proposal = self.store.add(
            ProposalKind.UPDATE,
            UpdatePayload(event_id=event_id, **fields.model_dump()),
            diff,
            warnings=report.warning_messages(),
            deltas=update_deltas(current, fields, self.tz),
        )
        logger.info("Proposed update", proposal_id=proposal.id, event_id=event_id, diff=diff)
        return ProposalResponse(proposal=proposal, diff=diff)

    async def propose_delete(self, event_id: str | None) -> ProposalResponse:
        self.validator.require_fields(event_id=event_id)
        current = await self.calendar.fetch_event(self.training_calendar_id, event_id)
        ensure_deletable(current)

        diff = delete_diff(current, self.tz)
        proposal = self.store.add(
            ProposalKind.DELETE,
            DeletePayload(event_id=event_id),
            diff,
            deltas=delete_deltas(current, self.tz),
        )
        logger.info("Proposed delete", proposal_id=proposal.id, event_id=event_id, diff=diff)
        return ProposalResponse(proposal=proposal, diff=diff)

    async def _commit(self, proposal: Proposal) -> ApprovalResult:
        approved = proposal.model_copy(update={"status": ProposalStatus.APPROVED})
        payload = proposal.payload

        if isinstance(payload, CreatePayload):
            event = await self.calendar.create_event(
                self.training_calendar_id,
                payload.title,
                payload.description,
                payload.start,
                payload.end,
            )
            return ApprovalResult(approved=approved, event=event)

        if isinstance(payload, UpdatePayload):
            fields = EventFields(
                title=payload.title,
                description=payload.description,
                start=payload.start,
                end=payload.end,
            )
            event = await self.calendar.update_event(self.training_calendar_id, payload.event_id, fields)
            return ApprovalResult(approved=approved, event=event)

        await self.calendar.delete_event(self.training_calendar_id, payload.event_id)
        return ApprovalResult(approved=approved, removed_event_id=payload.event_id)

    async def approve(self, proposal_id: str | None) -> ApprovalResult:
        """Commit a pending proposal to the training calendar.

        The proposal is checked out of the store before the calendar call, so a
        concurrent approve or reject of the same id gets NotFoundError. On any
        commit failure the proposal is restored and stays pending.

        Raises:
            NotFoundError: Unknown proposal id
            UnauthenticatedError: Calendar credentials missing or rejected
            UpstreamFailureError: Calendar call failed
        """
        self.validator.require_fields(proposal_id=proposal_id)
        proposal = self.store.checkout(proposal_id)
        try:
            result = await self._commit(proposal)
        except SchedulerError as e:
            self.store.restore(proposal)
            logger.warning("Approval failed, proposal kept pending", proposal_id=proposal_id, error=e.message)
            raise
        except Exception as e:
            self.store.restore(proposal)
            logger.exception("Approval failed, proposal kept pending", proposal_id=proposal_id)
            raise UpstreamFailureError("Approval failed", details={"error": str(e)}) from e

        logger.info("Approved proposal", proposal_id=proposal_id, kind=proposal.kind.value)
        return result

    def reject(self, proposal_id: str | None) -> Proposal:
        self.validator.require_fields(proposal_id=proposal_id)
        return self.store.reject(proposal_id)

    def list_proposals(self) -> list[Proposal]:
        return self.store.list()

    def discard(self, proposal_ids: list[str]) -> None:
        """Reject proposals that are still pending; ids already gone are ignored."""
        for proposal_id in proposal_ids:
            try:
                self.store.reject(proposal_id)
            except NotFoundError:
                continue

