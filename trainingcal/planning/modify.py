"""Batch modification: apply a list of intents as proposals.

Each intent maps to one propose operation. Failures are collected per intent
and never abort the rest of the batch.
"""

from loguru import logger

from trainingcal.errors import SchedulerError
from trainingcal.planning.types import (
    ModificationAction,
    ModificationError,
    ModificationIntent,
    ModifyResult,
)
from trainingcal.proposals.service import ApprovalService
from trainingcal.proposals.types import ProposalResponse


class BatchModifier:
    def __init__(self, approvals: ApprovalService) -> None:
        self.approvals = approvals

    async def _apply(self, intent: ModificationIntent) -> ProposalResponse:
        fields = intent.fields
        if intent.action == ModificationAction.CREATE:
            return await self.approvals.propose_create(fields.title, fields.start, fields.end, fields.description)
        if intent.action == ModificationAction.UPDATE:
            return await self.approvals.propose_update(intent.target_id, fields)
        return await self.approvals.propose_delete(intent.target_id)

    async def modify(self, intents: list[ModificationIntent]) -> ModifyResult:
        result = ModifyResult()
        diffs: list[str] = []

        for index, intent in enumerate(intents):
            try:
                response = await self._apply(intent)
            except SchedulerError as e:
                logger.warning(
                    "Modification failed",
                    index=index,
                    action=intent.action.value,
                    target_id=intent.target_id,
                    error=e.message,
                )
                result.errors.append(
                    ModificationError(
                        index=index,
                        action=intent.action,
                        target_id=intent.target_id,
                        message=e.message,
                        status_code=e.status_code,
                    )
                )
                continue
            result.proposals.append(response.proposal)
            diffs.append(response.diff)

        result.combined_diff = "\n".join(diffs)
        logger.info("Batch modification completed", proposals=len(result.proposals), errors=len(result.errors))
        return result
