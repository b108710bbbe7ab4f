"""Event agenda: upcoming and recent past events across a user's documents."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..core.config import settings
from ..schemas.analysis import CalendarEvent
from ..schemas.document import DocumentRecord
from .date_inference import parse_stored_date


@dataclass(frozen=True)
class AgendaItem:
    event: CalendarEvent
    starts_at: datetime
    doc_id: str
    filename: str


@dataclass(frozen=True)
class Agenda:
    upcoming: list[AgendaItem]
    recent_past: list[AgendaItem]


def _as_utc(dt: datetime) -> datetime:
    # Naive dates are wall-clock times as written on the document.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def build_agenda(
    records: Iterable[DocumentRecord],
    now: datetime,
    past_limit: Optional[int] = None,
) -> Agenda:
    """Split every saved event around the start of ``now``'s day.

    Upcoming events are ascending; past events are descending and capped at
    ``past_limit`` (AGENDA_PAST_LIMIT by default). Events with unreadable
    start dates are skipped.
    """
    limit = settings.agenda_past_limit if past_limit is None else past_limit
    start_of_today = _as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)

    items: list[AgendaItem] = []
    for record in records:
        for event in record.event.events:
            starts_at = parse_stored_date(event.start_date)
            if starts_at is None:
                continue
            items.append(
                AgendaItem(event=event, starts_at=_as_utc(starts_at), doc_id=record.id, filename=record.filename)
            )

    upcoming = sorted((i for i in items if i.starts_at >= start_of_today), key=lambda i: i.starts_at)
    past = sorted((i for i in items if i.starts_at < start_of_today), key=lambda i: i.starts_at, reverse=True)
    return Agenda(upcoming=upcoming, recent_past=past[:limit])
