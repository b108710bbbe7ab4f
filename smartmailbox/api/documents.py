"""Document API endpoints.

Endpoints are thin: DocumentService handles the save/delete lifecycle,
ownership checks and feed notification.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from ..schemas.analysis import SaveDocumentRequest
from ..schemas.document import DocumentRecord
from ..services import DocumentService
from ..services.document_search import filter_records
from .deps import get_document_service, require_user

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post("", response_model=DocumentRecord, status_code=201)
def save_document(
    request: SaveDocumentRequest,
    user_id: str = Depends(require_user),
    service: DocumentService = Depends(get_document_service),
):
    """Persist an analysis result (bytes to the object store, then the record)."""
    return service.save(user_id, request)


@router.get("", response_model=List[DocumentRecord])
def list_documents(
    search: Optional[str] = Query(None, description="Filter by filename, folder, summary or tag"),
    user_id: str = Depends(require_user),
    service: DocumentService = Depends(get_document_service),
):
    """The user's documents, newest first."""
    return filter_records(service.list_for_user(user_id), search)


@router.get("/{doc_id}", response_model=DocumentRecord)
def get_document(
    doc_id: str,
    user_id: str = Depends(require_user),
    service: DocumentService = Depends(get_document_service),
):
    return service.get(user_id, doc_id)


@router.delete("/{doc_id}", status_code=204)
def delete_document(
    doc_id: str,
    user_id: str = Depends(require_user),
    service: DocumentService = Depends(get_document_service),
):
    """Delete the document's stored bytes and its record."""
    service.delete(user_id, doc_id)
    return Response(status_code=204)
