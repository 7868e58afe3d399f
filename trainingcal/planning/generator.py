"""Workout generators.

The scheduling core only sees lists of WorkoutCandidate. Where they come from
(a language model, a rule-based template) is decided here, and the result is
identical from either path.
"""

import asyncio
from datetime import date, datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from loguru import logger

from trainingcal.calendar.policy import at_local, to_local
from trainingcal.calendar.types import WorkoutCandidate

SOURCE_PRIMARY = "primary"
SOURCE_FALLBACK = "fallback"

FUELING_NOTE = "Vegan fueling: dates"


class WorkoutGenerator(Protocol):
    async def generate_week_plan(self, prompt: str) -> list[WorkoutCandidate]: ...


def next_monday(today: date) -> date:
    """The Monday after ``today`` (a week ahead when today is Monday)."""
    return today + timedelta(days=(7 - today.weekday()) % 7 or 7)


def _description(minutes: int, targets: str, intervals: str, tss: int, kcal: int) -> str:
    return (
        f"Duration: {minutes} min\n"
        f"Targets: {targets}\n"
        f"Intervals: {intervals}\n"
        f"Notes: {FUELING_NOTE}\n"
        f"TSS: {tss}, kcal: {kcal}"
    )


class RuleBasedWeekPlanner:
    """Deterministic next-week template, used when no model-backed generator answers.

    Template (offsets from next Monday):
    - Wednesday 07:00 tempo run, or Friday 07:00 long run for "long run friday"
    - Thursday 08:00 sweet-spot ride, or Saturday 08:00 long ride for "long ride saturday"
    - Sunday 08:00 endurance swim
    """

    def __init__(self, tz: ZoneInfo | None = None, today: date | None = None) -> None:
        self.tz = tz
        self.today = today

    def _week_start(self) -> date:
        today = self.today or to_local(datetime.now().astimezone(), self.tz).date()
        return next_monday(today)

    def _candidate(self, monday: date, day_offset: int, hour: int, minutes: int, title: str, description: str) -> WorkoutCandidate:
        start = at_local(monday + timedelta(days=day_offset), time(hour, 0), self.tz)
        return WorkoutCandidate(
            title=title,
            start=start,
            end=start + timedelta(minutes=minutes),
            description=description,
        )

    async def generate_week_plan(self, prompt: str) -> list[WorkoutCandidate]:
        lowered = prompt.lower()
        monday = self._week_start()
        items: list[WorkoutCandidate] = []

        if "long run friday" in lowered:
            items.append(
                self._candidate(monday, 4, 7, 90, "Run — Long (90m)", _description(90, "Z2 steady", "1x90m", 80, 900))
            )
        else:
            items.append(
                self._candidate(monday, 2, 7, 60, "Run — Tempo (60m)", _description(60, "Z3 tempo", "2x20m tempo", 70, 700))
            )

        if "long ride saturday" in lowered:
            items.append(
                self._candidate(
                    monday, 5, 8, 150, "Bike — Endurance (150m)", _description(150, "Z2 endurance", "1x150m", 120, 1500)
                )
            )
        else:
            items.append(
                self._candidate(
                    monday,
                    3,
                    8,
                    90,
                    "Bike — Sweet Spot (90m)",
                    _description(90, "3x15m @90% FTP", "3x15m @90% FTP", 85, 900),
                )
            )

        items.append(
            self._candidate(
                monday,
                6,
                8,
                45,
                "Swim — Endurance (45m)",
                _description(45, "steady aerobic", "3x10m swim / 5m pull", 45, 400),
            )
        )
        logger.debug("Rule-based week plan generated", items=len(items), week_start=monday.isoformat())
        return items


async def generate_with_fallback(
    primary: WorkoutGenerator | None,
    fallback: WorkoutGenerator,
    prompt: str,
    timeout: float,
) -> tuple[list[WorkoutCandidate], str, str | None]:
    """Run the primary generator within a timeout, falling back on any failure.

    Args:
        primary: Model-backed generator, or None when none is configured
        fallback: Deterministic generator that always answers
        prompt: Planning request text
        timeout: Seconds allowed for the primary generator

    Returns:
        Tuple of (candidates, source, primary error message or None)
    """
    if primary is None:
        return await fallback.generate_week_plan(prompt), SOURCE_FALLBACK, None

    try:
        candidates = await asyncio.wait_for(primary.generate_week_plan(prompt), timeout=timeout)
    except TimeoutError:
        error = f"Generator timed out after {timeout}s"
        logger.warning("Workout generator timed out, using fallback", timeout=timeout)
    except Exception as e:
        error = str(e) or type(e).__name__
        logger.warning("Workout generator failed, using fallback", error=error, exc_info=True)
    else:
        logger.debug("Workout generation completed (primary)", items=len(candidates))
        return candidates, SOURCE_PRIMARY, None

    return await fallback.generate_week_plan(prompt), SOURCE_FALLBACK, error
