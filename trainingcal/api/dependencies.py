"""Service wiring for the HTTP layer.

Each app instance owns one ServiceContainer (and therefore one ProposalStore),
stored on ``app.state`` and handed to routes through ``Depends``.
"""

from dataclasses import dataclass

from fastapi import Request

from trainingcal.calendar.capability import CalendarCapability
from trainingcal.calendar.conflicts import ConflictChecker
from trainingcal.calendar.service import TrainingCalendarService
from trainingcal.calendar.validation import PlacementValidator
from trainingcal.config.settings import Settings
from trainingcal.planning.generator import RuleBasedWeekPlanner, WorkoutGenerator
from trainingcal.planning.modify import BatchModifier
from trainingcal.planning.orchestrator import WeekPlanOrchestrator
from trainingcal.proposals.service import ApprovalService
from trainingcal.proposals.store import ProposalStore
from trainingcal.scheduling.rescheduler import AutoRescheduler


@dataclass
class ServiceContainer:
    settings: Settings
    calendar: CalendarCapability
    store: ProposalStore
    approvals: ApprovalService
    training_calendar: TrainingCalendarService
    orchestrator: WeekPlanOrchestrator
    modifier: BatchModifier
    generator: WorkoutGenerator | None
    fallback_generator: WorkoutGenerator


def build_container(
    calendar: CalendarCapability,
    settings: Settings,
    *,
    generator: WorkoutGenerator | None = None,
) -> ServiceContainer:
    tz = settings.zone
    checker = ConflictChecker(calendar, settings.primary_calendar_id, tz)
    validator = PlacementValidator(checker, tz=tz, extended_description=settings.extended_description_fields)
    store = ProposalStore()
    approvals = ApprovalService(calendar, store, validator, settings.training_calendar_id, tz)
    rescheduler = AutoRescheduler(
        checker,
        budget=settings.reschedule_attempt_budget,
        min_gap_minutes=settings.min_gap_minutes,
        tz=tz,
    )
    orchestrator = WeekPlanOrchestrator(
        approvals,
        rescheduler,
        calendar=calendar,
        training_calendar_id=settings.training_calendar_id,
        rounds=settings.batch_rounds,
        min_gap_minutes=settings.min_gap_minutes,
        tz=tz,
    )
    return ServiceContainer(
        settings=settings,
        calendar=calendar,
        store=store,
        approvals=approvals,
        training_calendar=TrainingCalendarService(
            calendar,
            validator,
            settings.training_calendar_id,
            settings.primary_calendar_id,
            tz,
        ),
        orchestrator=orchestrator,
        modifier=BatchModifier(approvals),
        generator=generator,
        fallback_generator=RuleBasedWeekPlanner(tz),
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
