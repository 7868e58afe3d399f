"""In-process proposal store.

Proposals live only as long as the process. All access goes through a single
lock so that two concurrent approvals of the same id cannot both succeed: the
first one checks the proposal out, the second sees NotFoundError.
"""

import threading
from datetime import UTC, datetime
from uuid import uuid4

from loguru import logger

from trainingcal.errors import NotFoundError
from trainingcal.proposals.types import (
    CreatePayload,
    DeletePayload,
    Proposal,
    ProposalDelta,
    ProposalKind,
    ProposalStatus,
    UpdatePayload,
)


class ProposalStore:
    """Thread-safe map of pending proposals keyed by id, in insertion order."""

    def __init__(self) -> None:
        self._proposals: dict[str, Proposal] = {}
        self._lock = threading.Lock()
        self._sequence = 0

    def add(
        self,
        kind: ProposalKind,
        payload: CreatePayload | UpdatePayload | DeletePayload,
        diff_text: str,
        *,
        warnings: list[str] | None = None,
        deltas: list[ProposalDelta] | None = None,
    ) -> Proposal:
        with self._lock:
            self._sequence += 1
            proposal = Proposal(
                id=uuid4().hex,
                kind=kind,
                payload=payload,
                created_at=datetime.now(UTC),
                diff_text=diff_text,
                warnings=list(warnings or []),
                deltas=list(deltas or []),
                sequence=self._sequence,
            )
            self._proposals[proposal.id] = proposal
        logger.debug("Stored proposal", proposal_id=proposal.id, kind=kind.value, sequence=proposal.sequence)
        return proposal

    def get(self, proposal_id: str) -> Proposal:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
        if proposal is None:
            raise NotFoundError(f"Proposal not found: {proposal_id}", details={"id": proposal_id})
        return proposal

    def list(self) -> list[Proposal]:
        with self._lock:
            return sorted(self._proposals.values(), key=lambda proposal: proposal.sequence)

    def checkout(self, proposal_id: str) -> Proposal:
        """Remove and return a proposal so only one caller can act on it."""
        with self._lock:
            proposal = self._proposals.pop(proposal_id, None)
        if proposal is None:
            raise NotFoundError(f"Proposal not found: {proposal_id}", details={"id": proposal_id})
        return proposal

    def restore(self, proposal: Proposal) -> None:
        """Put a checked-out proposal back, keeping its original position."""
        with self._lock:
            self._proposals[proposal.id] = proposal
        logger.debug("Restored proposal", proposal_id=proposal.id)

    def reject(self, proposal_id: str) -> Proposal:
        proposal = self.checkout(proposal_id)
        rejected = proposal.model_copy(update={"status": ProposalStatus.REJECTED})
        logger.info("Rejected proposal", proposal_id=proposal_id, kind=proposal.kind.value)
        return rejected

    def __len__(self) -> int:
        with self._lock:
            return len(self._proposals)

    def __contains__(self, proposal_id: object) -> bool:
        with self._lock:
            return proposal_id in self._proposals
