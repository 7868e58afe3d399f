from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from trainingcal.api.approvals import router as approvals_router
from trainingcal.api.calendar import router as calendar_router
from trainingcal.api.dependencies import build_container
from trainingcal.api.plan import router as plan_router
from trainingcal.calendar.capability import CalendarCapability
from trainingcal.config.settings import Settings
from trainingcal.config.settings import settings as default_settings
from trainingcal.core.logger import setup_logger
from trainingcal.errors import SchedulerError
from trainingcal.integrations.google.calendar_client import GoogleCalendarClient
from trainingcal.planning.generator import WorkoutGenerator


def create_app(
    calendar: CalendarCapability | None = None,
    *,
    settings: Settings | None = None,
    generator: WorkoutGenerator | None = None,
) -> FastAPI:
    """Build the HTTP app around one calendar and one proposal store.

    Args:
        calendar: Calendar capability; defaults to the Google Calendar client
        settings: Settings override (tests)
        generator: Model-backed workout generator; the rule-based planner is used when None
    """
    settings = settings or default_settings
    setup_logger(level=settings.log_level, log_file=settings.log_file, zone=settings.timezone)

    owned_client: GoogleCalendarClient | None = None
    if calendar is None:
        owned_client = GoogleCalendarClient(
            settings.google_access_token,
            base_url=settings.google_api_base_url,
            timeout=settings.google_timeout_seconds,
            tz=settings.zone,
        )
        calendar = owned_client

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if owned_client is not None:
            await owned_client.aclose()
            logger.info("Closed Google Calendar client")

    app = FastAPI(title="Training Calendar Scheduler", lifespan=lifespan)
    app.state.container = build_container(calendar, settings, generator=generator)

    app.include_router(approvals_router)
    app.include_router(calendar_router)
    app.include_router(plan_router)

    @app.exception_handler(SchedulerError)
    async def scheduler_error_handler(request: Request, exc: SchedulerError) -> JSONResponse:
        logger.info(
            "Request failed",
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message, **exc.details})

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        logger.debug(f"Request: {request.method} {request.url.path}")
        response = await call_next(request)
        logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
        return response

    logger.info("FastAPI application initialized", timezone=settings.timezone)
    return app
