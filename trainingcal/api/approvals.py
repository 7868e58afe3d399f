"""Approval workflow endpoints."""

from fastapi import APIRouter, Depends, status
from loguru import logger

from trainingcal.api.dependencies import ServiceContainer, get_container
from trainingcal.api.schemas import (
    CreateEventRequest,
    EventIdRequest,
    ProposalIdRequest,
    ProposalListResponse,
    RejectResponse,
    UpdateEventRequest,
)
from trainingcal.proposals.types import ApprovalResult, ProposalResponse

router = APIRouter(prefix="/api/approvals", tags=["approvals"])


@router.get("/list", response_model=ProposalListResponse)
async def list_proposals(container: ServiceContainer = Depends(get_container)) -> ProposalListResponse:
    return ProposalListResponse(proposals=container.approvals.list_proposals())


@router.post("/propose_create", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
async def propose_create(
    body: CreateEventRequest,
    container: ServiceContainer = Depends(get_container),
) -> ProposalResponse:
    logger.info("Propose create requested", title=body.title)
    return await container.approvals.propose_create(body.title, body.start, body.end, body.description)


@router.post("/propose_update", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
async def propose_update(
    body: UpdateEventRequest,
    container: ServiceContainer = Depends(get_container),
) -> ProposalResponse:
    logger.info("Propose update requested", event_id=body.event_id)
    return await container.approvals.propose_update(body.event_id, body.fields())


@router.post("/propose_delete", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
async def propose_delete(
    body: EventIdRequest,
    container: ServiceContainer = Depends(get_container),
) -> ProposalResponse:
    logger.info("Propose delete requested", event_id=body.event_id)
    return await container.approvals.propose_delete(body.event_id)


@router.post("/approve", response_model=ApprovalResult)
async def approve(
    body: ProposalIdRequest,
    container: ServiceContainer = Depends(get_container),
) -> ApprovalResult:
    return await container.approvals.approve(body.proposal_id)


@router.post("/reject", response_model=RejectResponse)
async def reject(
    body: ProposalIdRequest,
    container: ServiceContainer = Depends(get_container),
) -> RejectResponse:
    rejected = container.approvals.reject(body.proposal_id)
    return RejectResponse(rejected=rejected.id)
