"""Google Calendar v3 client implementing CalendarCapability.

Only the narrow surface the scheduler needs: list events in a range, get,
insert, patch and delete a single event, and a free/busy query. OAuth token
acquisition and refresh are handled elsewhere; this client takes a bearer
token as given.

Error mapping:
- 401 / 403 or no token: UnauthenticatedError
- 404: NotFoundError
- anything else (network, 4xx, 5xx, malformed body): UpstreamFailureError
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from urllib.parse import quote
from zoneinfo import ZoneInfo

import httpx
from loguru import logger

from trainingcal.calendar.types import BusyInterval, CalendarEvent, EventFields
from trainingcal.config.settings import settings
from trainingcal.errors import NotFoundError, UnauthenticatedError, UpstreamFailureError

DEFAULT_BASE_URL = "https://www.googleapis.com/calendar/v3"
PAGE_SIZE = 250


def _parse_instant(value: dict[str, Any] | None) -> tuple[datetime | None, date | None]:
    if not value:
        return None, None
    if value.get("dateTime"):
        return datetime.fromisoformat(value["dateTime"]), None
    if value.get("date"):
        return None, date.fromisoformat(value["date"])
    return None, None


def parse_event(item: dict[str, Any]) -> CalendarEvent:
    """Convert a Calendar API event resource into a CalendarEvent."""
    start, start_date = _parse_instant(item.get("start"))
    end, end_date = _parse_instant(item.get("end"))
    return CalendarEvent(
        id=item["id"],
        title=item.get("summary") or "",
        description=item.get("description") or "",
        start=start,
        end=end,
        start_date=start_date,
        end_date=end_date,
    )


class GoogleCalendarClient:
    """Async Calendar API client over httpx.

    Args:
        access_token: OAuth bearer token; empty means unauthenticated
        base_url: API root
        timeout: Per-request timeout in seconds
        tz: Zone sent with created/updated events
        client: Optional preconfigured httpx.AsyncClient (tests inject a MockTransport)
    """

    def __init__(
        self,
        access_token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        tz: ZoneInfo | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.tz = tz
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GoogleCalendarClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _events_path(self, calendar_id: str, event_id: str | None = None) -> str:
        path = f"/calendars/{quote(calendar_id, safe='')}/events"
        if event_id is not None:
            path = f"{path}/{quote(event_id, safe='')}"
        return path

    def _time_zone_name(self) -> str:
        return (self.tz or settings.zone).key

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.access_token:
            raise UnauthenticatedError("Not authenticated with Google")

        url = f"{self.base_url}{path}"
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {self.access_token}"},
            )
        except httpx.RequestError as e:
            logger.error("Calendar API request failed", method=method, path=path, error=str(e))
            raise UpstreamFailureError("Calendar API request failed", details={"error": str(e)}) from e

        if response.status_code in {401, 403}:
            logger.warning("Calendar API rejected credentials", method=method, path=path, status_code=response.status_code)
            raise UnauthenticatedError("Google credentials rejected", details={"status": response.status_code})
        if response.status_code == 404:
            raise NotFoundError("Event not found", details={"path": path})
        if response.status_code >= 400:
            logger.error(
                "Calendar API error",
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise UpstreamFailureError(
                "Calendar API error",
                details={"status": response.status_code, "error": response.text[:500]},
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFailureError("Calendar API returned malformed JSON") from e

    async def fetch_events_in_range(self, calendar_id: str, start: datetime, end: datetime) -> list[CalendarEvent]:
        params: dict[str, Any] = {
            "timeMin": start.isoformat(),
            "timeMax": end.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": PAGE_SIZE,
        }
        events: list[CalendarEvent] = []
        while True:
            data = await self._request("GET", self._events_path(calendar_id), params=params)
            events.extend(parse_event(item) for item in data.get("items", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}

        logger.debug("Fetched calendar events", calendar_id=calendar_id, count=len(events))
        return events

    async def fetch_free_busy(self, calendar_id: str, start: datetime, end: datetime) -> list[BusyInterval]:
        body = {
            "timeMin": start.isoformat(),
            "timeMax": end.isoformat(),
            "timeZone": self._time_zone_name(),
            "items": [{"id": calendar_id}],
        }
        data = await self._request("POST", "/freeBusy", json=body)
        calendar = data.get("calendars", {}).get(calendar_id, {})
        if calendar.get("errors"):
            raise UpstreamFailureError("Free/busy query failed", details={"errors": calendar["errors"]})
        return [
            BusyInterval(start=datetime.fromisoformat(block["start"]), end=datetime.fromisoformat(block["end"]))
            for block in calendar.get("busy", [])
        ]

    async def fetch_event(self, calendar_id: str, event_id: str) -> CalendarEvent:
        data = await self._request("GET", self._events_path(calendar_id, event_id))
        return parse_event(data)

    async def create_event(
        self,
        calendar_id: str,
        title: str,
        description: str,
        start: datetime,
        end: datetime,
    ) -> CalendarEvent:
        tz_name = self._time_zone_name()
        body = {
            "summary": title,
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": tz_name},
            "end": {"dateTime": end.isoformat(), "timeZone": tz_name},
        }
        data = await self._request("POST", self._events_path(calendar_id), json=body)
        event = parse_event(data)
        logger.info("Calendar event created", calendar_id=calendar_id, event_id=event.id)
        return event

    async def update_event(self, calendar_id: str, event_id: str, fields: EventFields) -> CalendarEvent:
        tz_name = self._time_zone_name()
        body: dict[str, Any] = {}
        if fields.title is not None:
            body["summary"] = fields.title
        if fields.description is not None:
            body["description"] = fields.description
        if fields.start is not None:
            body["start"] = {"dateTime": fields.start.isoformat(), "timeZone": tz_name}
        if fields.end is not None:
            body["end"] = {"dateTime": fields.end.isoformat(), "timeZone": tz_name}

        data = await self._request("PATCH", self._events_path(calendar_id, event_id), json=body)
        logger.info("Calendar event updated", calendar_id=calendar_id, event_id=event_id, fields=sorted(body))
        return parse_event(data)

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        await self._request("DELETE", self._events_path(calendar_id, event_id))
        logger.info("Calendar event deleted", calendar_id=calendar_id, event_id=event_id)
