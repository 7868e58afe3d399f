"""Small prompt readers used to reconcile generator output with the request."""

import re

WORKOUT_COUNT_PATTERN = re.compile(r"(\d+)\s*(workouts?|sessions?)\b")
SWIM_COUNT_PATTERN = re.compile(r"(\d+)\s*swims?\b")
RUN_COUNT_PATTERN = re.compile(r"(\d+)\s*runs?\b")
RIDE_COUNT_PATTERN = re.compile(r"(\d+)\s*(rides?|bikes?)\b")

EARLY_START_MARKERS = ("6:30", "6.30", "0630", "early morning", "before 7")


def extract_workout_count(prompt: str | None) -> int | None:
    """Workout count requested in a prompt.

    "5 workouts" / "4 sessions" is taken as is. Otherwise the per-sport counts
    are summed, but only when swims, runs and rides are all given.
    """
    if not prompt:
        return None
    lowered = prompt.lower()

    exact = WORKOUT_COUNT_PATTERN.search(lowered)
    if exact:
        return int(exact.group(1))

    swims = SWIM_COUNT_PATTERN.search(lowered)
    runs = RUN_COUNT_PATTERN.search(lowered)
    rides = RIDE_COUNT_PATTERN.search(lowered)
    if swims and runs and rides:
        return int(swims.group(1)) + int(runs.group(1)) + int(rides.group(1))
    return None


def explicit_early_request(prompt: str | None) -> bool:
    """True when the prompt explicitly asks for an early start."""
    lowered = (prompt or "").lower()
    return any(marker in lowered for marker in EARLY_START_MARKERS)
