"""Batch planning endpoints."""

from fastapi import APIRouter, Depends
from loguru import logger

from trainingcal.api.dependencies import ServiceContainer, get_container
from trainingcal.api.schemas import ModifyRequest, PlanWeekRequest
from trainingcal.errors import ValidationError
from trainingcal.planning.types import ModifyResult, WeekPlanResult

router = APIRouter(prefix="/api/plan", tags=["plan"])


@router.post("/week", response_model=WeekPlanResult)
async def plan_week(
    body: PlanWeekRequest,
    container: ServiceContainer = Depends(get_container),
) -> WeekPlanResult:
    """Schedule a week of workouts as pending proposals.

    Explicit candidates are scheduled as given; otherwise candidates are
    generated from the prompt. Per-workout failures are reported as skipped.
    """
    if body.candidates is not None:
        logger.info("Week plan requested", candidates=len(body.candidates))
        return await container.orchestrator.plan_week(body.candidates, prompt=body.prompt)

    if not body.prompt:
        raise ValidationError("Missing prompt or candidates", details={"missing": ["prompt"]})

    logger.info("Week plan requested from prompt", prompt=body.prompt[:120])
    return await container.orchestrator.plan_from_prompt(
        body.prompt,
        container.generator,
        container.fallback_generator,
        timeout=container.settings.planner_timeout_seconds,
    )


@router.post("/modify", response_model=ModifyResult)
async def modify(
    body: ModifyRequest,
    container: ServiceContainer = Depends(get_container),
) -> ModifyResult:
    logger.info("Batch modification requested", intents=len(body.intents))
    return await container.modifier.modify(body.intents)
