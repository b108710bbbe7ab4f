"""Event agenda response schemas."""

from typing import List, Optional

from pydantic import BaseModel


class AgendaEvent(BaseModel):
    doc_id: str
    filename: str
    title: str
    start_date: str
    end_date: Optional[str] = None
    description: Optional[str] = None


class AgendaResponse(BaseModel):
    upcoming: List[AgendaEvent]
    recent_past: List[AgendaEvent]
