"""Tests for the rule-based planner and generator fallback."""

import asyncio
from datetime import date

import pytest

from trainingcal.calendar.policy import validate_description, within_allowed_hours
from trainingcal.planning.generator import (
    SOURCE_FALLBACK,
    SOURCE_PRIMARY,
    RuleBasedWeekPlanner,
    generate_with_fallback,
    next_monday,
)


class StaticGenerator:
    def __init__(self, candidates):
        self.candidates = candidates

    async def generate_week_plan(self, prompt):
        return self.candidates


class FailingGenerator:
    async def generate_week_plan(self, prompt):
        raise RuntimeError("model unavailable")


class SlowGenerator:
    async def generate_week_plan(self, prompt):
        await asyncio.sleep(5)
        return []


@pytest.fixture
def planner(tz):
    return RuleBasedWeekPlanner(tz, today=date(2025, 6, 4))


class TestNextMonday:
    """Tests for the week-start helper."""

    @pytest.mark.parametrize(
        ("today", "expected"),
        [
            (date(2025, 6, 4), date(2025, 6, 9)),
            (date(2025, 6, 8), date(2025, 6, 9)),
            (date(2025, 6, 9), date(2025, 6, 16)),
        ],
    )
    def test_next_monday(self, today, expected):
        assert next_monday(today) == expected


class TestRuleBasedWeekPlanner:
    """Tests for the deterministic template."""

    @pytest.mark.asyncio
    async def test_default_template(self, planner, local):
        items = await planner.generate_week_plan("Plan my week")
        assert [(item.title, item.start) for item in items] == [
            ("Run — Tempo (60m)", local(11, 7)),
            ("Bike — Sweet Spot (90m)", local(12, 8)),
            ("Swim — Endurance (45m)", local(15, 8)),
        ]

    @pytest.mark.asyncio
    async def test_long_session_variants(self, planner, local):
        items = await planner.generate_week_plan("Long run Friday and long ride Saturday")
        assert items[0].title == "Run — Long (90m)"
        assert (items[0].start, items[0].end) == (local(13, 7), local(13, 8, 30))
        assert items[1].title == "Bike — Endurance (150m)"
        assert items[1].start == local(14, 8)
        assert items[1].duration_minutes == 150

    @pytest.mark.asyncio
    async def test_template_passes_policy(self, planner):
        for item in await planner.generate_week_plan("Plan my week"):
            assert validate_description(item.description).passed
            assert within_allowed_hours(item.start, item.end, planner.tz)


class TestGenerateWithFallback:
    """Tests for primary/fallback selection."""

    @pytest.mark.asyncio
    async def test_primary_used(self, planner, local):
        primary_items = await planner.generate_week_plan("long run friday")
        candidates, source, error = await generate_with_fallback(StaticGenerator(primary_items), planner, "x", 1.0)
        assert candidates == primary_items
        assert source == SOURCE_PRIMARY
        assert error is None

    @pytest.mark.asyncio
    async def test_no_primary_configured(self, planner):
        candidates, source, error = await generate_with_fallback(None, planner, "Plan my week", 1.0)
        assert len(candidates) == 3
        assert source == SOURCE_FALLBACK
        assert error is None

    @pytest.mark.asyncio
    async def test_primary_failure_falls_back(self, planner):
        candidates, source, error = await generate_with_fallback(FailingGenerator(), planner, "Plan my week", 1.0)
        assert len(candidates) == 3
        assert source == SOURCE_FALLBACK
        assert error == "model unavailable"

    @pytest.mark.asyncio
    async def test_primary_timeout_falls_back(self, planner):
        candidates, source, error = await generate_with_fallback(SlowGenerator(), planner, "Plan my week", 0.01)
        assert len(candidates) == 3
        assert source == SOURCE_FALLBACK
        assert error == "Generator timed out after 0.01s"
