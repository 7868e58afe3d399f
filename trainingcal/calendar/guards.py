"""Title-based guards: race deletion protection and the lunch exemption."""

from loguru import logger

from trainingcal.calendar.types import CalendarEvent
from trainingcal.errors import DeletionBlockedError

RACE_KEYWORD = "race"
LUNCH_KEYWORD = "lunch"


def title_blocks_deletion(title: str | None) -> bool:
    """Case-insensitive substring match on "race"."""
    return RACE_KEYWORD in (title or "").lower()


def is_lunch_exempt(title: str | None) -> bool:
    """Primary-calendar events mentioning lunch never block a workout."""
    return LUNCH_KEYWORD in (title or "").lower()


def ensure_deletable(event: CalendarEvent) -> None:
    """Raise DeletionBlockedError when the event is protected.

    Applied at direct delete and propose-delete. Approval of an existing delete
    proposal does not re-check.
    """
    if title_blocks_deletion(event.title):
        logger.info("Deletion blocked by race guard", event_id=event.id, title=event.title)
        raise DeletionBlockedError(event.title)
