"""Direct training-calendar endpoints.

Writes here skip the approval workflow but run the same placement checks.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from trainingcal.api.dependencies import ServiceContainer, get_container
from trainingcal.api.schemas import (
    BusyResponse,
    CreateEventRequest,
    EventIdRequest,
    EventListResponse,
    EventResponse,
    RemovedResponse,
    UpdateEventRequest,
)

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.post("/create_training_event", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_training_event(
    body: CreateEventRequest,
    container: ServiceContainer = Depends(get_container),
) -> EventResponse:
    logger.info("Direct create requested", title=body.title)
    event, warnings = await container.training_calendar.create_event(body.title, body.start, body.end, body.description)
    return EventResponse(event=event, warnings=warnings)


@router.post("/update_training_event", response_model=EventResponse)
async def update_training_event(
    body: UpdateEventRequest,
    container: ServiceContainer = Depends(get_container),
) -> EventResponse:
    logger.info("Direct update requested", event_id=body.event_id)
    event, warnings = await container.training_calendar.update_event(body.event_id, body.fields())
    return EventResponse(event=event, warnings=warnings)


@router.post("/delete_training_event", response_model=RemovedResponse)
async def delete_training_event(
    body: EventIdRequest,
    container: ServiceContainer = Depends(get_container),
) -> RemovedResponse:
    logger.info("Direct delete requested", event_id=body.event_id)
    removed = await container.training_calendar.delete_event(body.event_id)
    return RemovedResponse(removed=removed)


@router.get("/list_primary_busy", response_model=BusyResponse)
async def list_primary_busy(
    time_min: datetime | None = Query(None, description="Range start (timezone-aware ISO 8601)"),
    time_max: datetime | None = Query(None, description="Range end (timezone-aware ISO 8601)"),
    container: ServiceContainer = Depends(get_container),
) -> BusyResponse:
    busy = await container.training_calendar.list_primary_busy(time_min, time_max)
    return BusyResponse(busy=busy)


@router.get("/list_training_events", response_model=EventListResponse)
async def list_training_events(
    time_min: datetime | None = Query(None, description="Range start (timezone-aware ISO 8601)"),
    time_max: datetime | None = Query(None, description="Range end (timezone-aware ISO 8601)"),
    container: ServiceContainer = Depends(get_container),
) -> EventListResponse:
    events = await container.training_calendar.list_training_events(time_min, time_max)
    return EventListResponse(events=events)
