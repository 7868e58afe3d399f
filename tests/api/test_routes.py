"""Tests for the HTTP surface."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from trainingcal.api.main import create_app
from trainingcal.config.settings import Settings


@pytest.fixture
def client(calendar):
    settings = Settings(
        TRAINING_CALENDAR_ID="training",
        PRIMARY_CALENDAR_ID="primary",
        DEFAULT_TIMEZONE="America/Toronto",
    )
    app = create_app(calendar, settings=settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def iso(local):
    def _iso(day: int, hour: int, minute: int = 0) -> str:
        return local(day, hour, minute).isoformat()

    return _iso


@pytest.fixture
def seeded(client, iso, description):
    """A committed training event created through the direct endpoint."""
    response = client.post(
        "/api/calendar/create_training_event",
        json={"title": "Easy Run", "start": iso(10, 7), "end": iso(10, 8), "description": description},
    )
    return response.json()["event"]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


class TestApprovalRoutes:
    """Tests for the propose / approve / reject endpoints."""

    def test_propose_approve_flow(self, client, calendar, iso, description):
        proposed = client.post(
            "/api/approvals/propose_create",
            json={"title": "Run — Tempo", "start": iso(9, 7), "end": iso(9, 8), "description": description},
        )
        assert proposed.status_code == 201
        body = proposed.json()
        assert body["diff"] == "Create → Run — Tempo | Mon 2025-06-09 07:00 → Mon 2025-06-09 08:00"
        proposal_id = body["proposal"]["id"]

        listed = client.get("/api/approvals/list").json()
        assert [proposal["id"] for proposal in listed["proposals"]] == [proposal_id]
        assert calendar.events("training") == []

        approved = client.post("/api/approvals/approve", json={"proposal_id": proposal_id})
        assert approved.status_code == 200
        assert approved.json()["approved"]["status"] == "approved"
        assert len(calendar.events("training")) == 1

        again = client.post("/api/approvals/approve", json={"proposal_id": proposal_id})
        assert again.status_code == 404
        assert again.json()["message"] == f"Proposal not found: {proposal_id}"

    def test_reject(self, client, iso, description):
        proposal_id = client.post(
            "/api/approvals/propose_create",
            json={"title": "Run — Tempo", "start": iso(9, 7), "end": iso(9, 8), "description": description},
        ).json()["proposal"]["id"]
        response = client.post("/api/approvals/reject", json={"proposal_id": proposal_id})
        assert response.json() == {"rejected": proposal_id}
        assert client.get("/api/approvals/list").json() == {"proposals": []}

    def test_outside_hours_rejected(self, client, iso, description):
        response = client.post(
            "/api/approvals/propose_create",
            json={"title": "Run — Tempo", "start": iso(9, 12), "end": iso(9, 13), "description": description},
        )
        assert response.status_code == 400
        assert response.json()["reason"] == "outside_allowed_hours"

    def test_incomplete_description(self, client, iso):
        response = client.post(
            "/api/approvals/propose_create",
            json={"title": "Run — Tempo", "start": iso(9, 7), "end": iso(9, 8), "description": "Notes: easy"},
        )
        assert response.status_code == 400
        assert "tss" in response.json()["missing"]

    def test_missing_fields(self, client, iso):
        response = client.post("/api/approvals/propose_create", json={"start": iso(9, 7)})
        assert response.status_code == 400
        assert response.json()["missing"] == ["title", "end"]

    def test_naive_datetime_rejected(self, client, description):
        response = client.post(
            "/api/approvals/propose_create",
            json={
                "title": "Run",
                "start": datetime(2025, 6, 9, 7).isoformat(),
                "end": datetime(2025, 6, 9, 8).isoformat(),
                "description": description,
            },
        )
        assert response.status_code == 422

    def test_propose_update_and_delete(self, client, seeded, iso):
        update = client.post(
            "/api/approvals/propose_update",
            json={"event_id": seeded["id"], "start": iso(10, 18), "end": iso(10, 19)},
        )
        assert update.status_code == 201
        assert update.json()["diff"].startswith("Update → Easy Run | Tue 2025-06-10 07:00")

        delete = client.post("/api/approvals/propose_delete", json={"event_id": seeded["id"]})
        assert delete.status_code == 201
        assert delete.json()["proposal"]["payload"] == {"event_id": seeded["id"]}


class TestCalendarRoutes:
    """Tests for the direct training-calendar endpoints."""

    def test_primary_conflict(self, client, calendar, add_event, local, iso, description):
        add_event("primary", "Dentist", local(9, 7, 30), local(9, 8, 30))
        response = client.post(
            "/api/calendar/create_training_event",
            json={"title": "Run — Tempo", "start": iso(9, 7), "end": iso(9, 8), "description": description},
        )
        assert response.status_code == 409
        assert response.json()["conflicts"][0]["summary"] == "Dentist"

    def test_update(self, client, seeded):
        response = client.post(
            "/api/calendar/update_training_event",
            json={"event_id": seeded["id"], "title": "Recovery Run"},
        )
        assert response.status_code == 200
        assert response.json()["event"]["title"] == "Recovery Run"

    def test_delete_race_blocked(self, client, iso, description):
        race = client.post(
            "/api/calendar/create_training_event",
            json={"title": "Spring Race 5k", "start": iso(14, 8), "end": iso(14, 9), "description": description},
        ).json()["event"]
        response = client.post("/api/calendar/delete_training_event", json={"event_id": race["id"]})
        assert response.status_code == 400
        assert response.json()["message"] == 'Deletion blocked: event contains "Race"'

    def test_delete(self, client, seeded):
        response = client.post("/api/calendar/delete_training_event", json={"event_id": seeded["id"]})
        assert response.json() == {"removed": seeded["id"]}

    def test_list_training_events(self, client, seeded, iso):
        response = client.get(
            "/api/calendar/list_training_events",
            params={"time_min": iso(9, 0), "time_max": iso(16, 0)},
        )
        assert [event["id"] for event in response.json()["events"]] == [seeded["id"]]

    def test_list_primary_busy(self, client, add_event, local, iso):
        add_event("primary", "Standup", local(9, 9), local(9, 9, 30))
        response = client.get(
            "/api/calendar/list_primary_busy",
            params={"time_min": iso(9, 0), "time_max": iso(10, 0)},
        )
        assert len(response.json()["busy"]) == 1

    def test_range_required(self, client):
        response = client.get("/api/calendar/list_primary_busy")
        assert response.status_code == 400


class TestPlanRoutes:
    """Tests for batch planning endpoints."""

    def test_plan_explicit_candidates(self, client, iso, description):
        candidates = [
            {"title": "Swim — Drills", "start": iso(9, 7), "end": iso(9, 7, 45), "description": description},
            {"title": "Run — Easy", "start": iso(9, 7, 50), "end": iso(9, 8, 50), "description": description},
            {"title": "Run — Tempo", "start": iso(10, 7), "end": iso(10, 8), "description": "Duration: 60 min"},
        ]
        response = client.post("/api/plan/week", json={"candidates": candidates})
        assert response.status_code == 200
        body = response.json()
        assert len(body["accepted"]) == 2
        assert body["skipped_titles"] == ["Run — Tempo"]
        assert len(client.get("/api/approvals/list").json()["proposals"]) == 2

    def test_plan_from_prompt_uses_fallback(self, client):
        response = client.post("/api/plan/week", json={"prompt": "Plan my week"})
        body = response.json()
        assert body["source"] == "fallback"
        assert len(body["accepted"]) == 3

    def test_plan_requires_input(self, client):
        response = client.post("/api/plan/week", json={})
        assert response.status_code == 400

    def test_modify(self, client, seeded):
        response = client.post(
            "/api/plan/modify",
            json={
                "intents": [
                    {"action": "update", "target_id": seeded["id"], "fields": {"title": "Recovery Run"}},
                    {"action": "delete", "target_id": "missing"},
                ]
            },
        )
        body = response.json()
        assert len(body["proposals"]) == 1
        assert body["errors"][0]["status_code"] == 404
