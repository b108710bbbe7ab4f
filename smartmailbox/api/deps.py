"""Shared route dependencies."""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import IntegrityFailure
from ..services import AnalysisPipeline, DocumentService


def require_user(x_user_id: Optional[str] = Header(default=None)) -> str:
    """The requesting user, as asserted by the auth proxy in ``X-User-Id``."""
    if not x_user_id or not x_user_id.strip():
        raise IntegrityFailure("X-User-Id header is required")
    return x_user_id.strip()


def get_document_service(db: Session = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


@lru_cache
def get_pipeline() -> AnalysisPipeline:
    return AnalysisPipeline()
