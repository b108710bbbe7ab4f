"""Event agenda endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ..schemas.agenda import AgendaEvent, AgendaResponse
from ..services import DocumentService
from ..services.event_agenda import AgendaItem, build_agenda
from .deps import get_document_service, require_user

router = APIRouter(prefix="/api", tags=["events"])


def _to_agenda_event(item: AgendaItem) -> AgendaEvent:
    return AgendaEvent(
        doc_id=item.doc_id,
        filename=item.filename,
        title=item.event.title,
        start_date=item.event.start_date,
        end_date=item.event.end_date,
        description=item.event.description,
    )


@router.get("/events", response_model=AgendaResponse)
def get_agenda(
    user_id: str = Depends(require_user),
    service: DocumentService = Depends(get_document_service),
):
    """Upcoming events and the most recent past ones across saved documents."""
    agenda = build_agenda(service.list_for_user(user_id), datetime.now(timezone.utc))
    return AgendaResponse(
        upcoming=[_to_agenda_event(i) for i in agenda.upcoming],
        recent_past=[_to_agenda_event(i) for i in agenda.recent_past],
    )
