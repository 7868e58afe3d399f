"""Human-readable diff lines and field deltas for proposals.

Formats:
    Create → <title> | <start> → <end>
    Update → <before> ⟶ <after>
    Delete → <title> | <start> → <end>
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from trainingcal.calendar.policy import format_local
from trainingcal.calendar.types import CalendarEvent, EventFields
from trainingcal.proposals.types import ProposalDelta


def _format_bound(value: datetime | date | None, tz: ZoneInfo | None) -> str:
    if isinstance(value, datetime):
        return format_local(value, tz)
    if isinstance(value, date):
        return value.isoformat()
    return "—"


def event_summary(
    title: str | None,
    start: datetime | date | None,
    end: datetime | date | None,
    tz: ZoneInfo | None = None,
) -> str:
    return f"{title or 'Untitled'} | {_format_bound(start, tz)} → {_format_bound(end, tz)}"


def _event_bounds(event: CalendarEvent) -> tuple[datetime | date | None, datetime | date | None]:
    if event.is_all_day:
        return event.start_date, event.end_date
    return event.start, event.end


def create_diff(title: str, start: datetime, end: datetime, tz: ZoneInfo | None = None) -> str:
    return f"Create → {event_summary(title, start, end, tz)}"


def update_diff(current: CalendarEvent, fields: EventFields, tz: ZoneInfo | None = None) -> str:
    """Before/after summary of the current event merged with the partial fields."""
    current_start, current_end = _event_bounds(current)
    before = event_summary(current.title, current_start, current_end, tz)
    after = event_summary(
        fields.title if fields.title is not None else current.title,
        fields.start if fields.start is not None else current_start,
        fields.end if fields.end is not None else current_end,
        tz,
    )
    return f"Update → {before} ⟶ {after}"


def delete_diff(current: CalendarEvent, tz: ZoneInfo | None = None) -> str:
    start, end = _event_bounds(current)
    return f"Delete → {event_summary(current.title, start, end, tz)}"


class DeltaBuilder:
    """Collects field-level deltas for a proposal.

    Usage:
        builder = DeltaBuilder(tz)
        builder.add("title", old="Easy Run", new="Tempo Run")
        deltas = builder.finalize()
    """

    def __init__(self, tz: ZoneInfo | None = None) -> None:
        self.tz = tz
        self._deltas: list[ProposalDelta] = []

    def _render(self, value: str | datetime | date | None) -> str | None:
        if value is None:
            return None
        if isinstance(value, (datetime, date)):
            return _format_bound(value, self.tz)
        return value

    def add(self, field: str, *, old: str | datetime | date | None = None, new: str | datetime | date | None = None) -> None:
        old_text = self._render(old)
        new_text = self._render(new)
        if old_text == new_text:
            return
        self._deltas.append(ProposalDelta(field=field, old=old_text, new=new_text))

    def finalize(self) -> list[ProposalDelta]:
        return list(self._deltas)


def create_deltas(title: str, start: datetime, end: datetime, description: str, tz: ZoneInfo | None = None) -> list[ProposalDelta]:
    builder = DeltaBuilder(tz)
    builder.add("title", new=title)
    builder.add("start", new=start)
    builder.add("end", new=end)
    builder.add("description", new=description)
    return builder.finalize()


def update_deltas(current: CalendarEvent, fields: EventFields, tz: ZoneInfo | None = None) -> list[ProposalDelta]:
    current_start, current_end = _event_bounds(current)
    builder = DeltaBuilder(tz)
    if fields.title is not None:
        builder.add("title", old=current.title, new=fields.title)
    if fields.start is not None:
        builder.add("start", old=current_start, new=fields.start)
    if fields.end is not None:
        builder.add("end", old=current_end, new=fields.end)
    if fields.description is not None:
        builder.add("description", old=current.description, new=fields.description)
    return builder.finalize()


def delete_deltas(current: CalendarEvent, tz: ZoneInfo | None = None) -> list[ProposalDelta]:
    start, end = _event_bounds(current)
    builder = DeltaBuilder(tz)
    builder.add("title", old=current.title)
    builder.add("start", old=start)
    builder.add("end", old=end)
    return builder.finalize()
