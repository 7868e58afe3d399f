"""Request and response bodies for the HTTP layer."""

from pydantic import AwareDatetime, BaseModel, Field

from trainingcal.calendar.types import BusyInterval, CalendarEvent, EventFields, WorkoutCandidate
from trainingcal.planning.types import ModificationIntent
from trainingcal.proposals.types import Proposal


class CreateEventRequest(BaseModel):
    title: str | None = None
    start: AwareDatetime | None = None
    end: AwareDatetime | None = None
    description: str | None = None


class UpdateEventRequest(BaseModel):
    event_id: str | None = None
    title: str | None = None
    start: AwareDatetime | None = None
    end: AwareDatetime | None = None
    description: str | None = None

    def fields(self) -> EventFields:
        return EventFields(title=self.title, start=self.start, end=self.end, description=self.description)


class EventIdRequest(BaseModel):
    event_id: str | None = None


class ProposalIdRequest(BaseModel):
    proposal_id: str | None = None


class ProposalListResponse(BaseModel):
    proposals: list[Proposal]


class RejectResponse(BaseModel):
    rejected: str


class EventResponse(BaseModel):
    event: CalendarEvent
    warnings: list[str] = Field(default_factory=list)


class RemovedResponse(BaseModel):
    removed: str


class BusyResponse(BaseModel):
    busy: list[BusyInterval]


class EventListResponse(BaseModel):
    events: list[CalendarEvent]


class PlanWeekRequest(BaseModel):
    """Either a prompt (candidates come from the generator) or explicit candidates."""

    prompt: str | None = None
    candidates: list[WorkoutCandidate] | None = None


class ModifyRequest(BaseModel):
    intents: list[ModificationIntent]
