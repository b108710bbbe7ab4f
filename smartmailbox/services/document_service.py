"""Document service: deep module for the saved-document lifecycle.

Owns save, delete, get and list over two stores that cannot share a
transaction: the object store (bytes) and the record store (rows). Save
uploads first and writes the record second; if the record write fails the
upload is deleted again. Delete commits the record delete first and only
then removes the bytes. A crash between the two steps of either operation
leaves an orphaned object behind, never a record without bytes.

After every committed change the user's feed is published.
"""

import base64
import binascii
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..exceptions import (
    DocumentNotFoundError,
    IntegrityFailure,
    PartialWriteFailure,
    StorageFailure,
    ValidationFailure,
)
from ..repositories import DocumentRepository
from ..schemas.analysis import EventBlock, SaveDocumentRequest
from ..schemas.document import DocumentRecord, RecordMetadata
from .document_feed import DocumentFeed
from .event_detector import normalize_event
from .folder_tree import canonical_folder_path
from .object_store import LocalObjectStore, ObjectStore
from .result_merger import valid_events

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<content_type>[\w.+-]+/[\w.+-]+)?(?:;[^;,]*)*;base64,(?P<payload>.*)$", re.DOTALL)
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def decode_data_uri(data_uri: str) -> tuple[bytes, str]:
    """Split a base64 data URI into (bytes, content type).

    Raises:
        ValidationFailure: not a base64 data URI.
    """
    match = _DATA_URI_RE.match(data_uri or "")
    if not match:
        raise ValidationFailure("Final document is not a base64 data URI", field="finalDataUri")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationFailure("Final document data URI is not valid base64", field="finalDataUri") from e
    if not data:
        raise ValidationFailure("Final document is empty", field="finalDataUri")
    return data, match.group("content_type") or DEFAULT_CONTENT_TYPE


def storage_path_for(user_id: str, filename: str, created_at: datetime) -> str:
    epoch_ms = int(created_at.timestamp() * 1000)
    return f"documents/{user_id}/{epoch_ms}-{filename}"


def load_user_records(user_id: str) -> List[DocumentRecord]:
    """Feed loader: a fresh session per load, independent of request sessions."""
    db = SessionLocal()
    try:
        return [DocumentRecord.model_validate(doc) for doc in DocumentRepository(db).list_for_user(user_id)]
    finally:
        db.close()


# One feed per process. HTTP routes read per request and never subscribe;
# long-lived FolderBrowser instances held by an embedding process do.
document_feed = DocumentFeed(load_user_records)


class DocumentService:
    """Deep module for document persistence.

    Callers hand over an AnalysisResult (possibly with an edited filename)
    and get back a DocumentRecord, or exactly one MailboxException.
    """

    def __init__(
        self,
        db: Session,
        store: Optional[ObjectStore] = None,
        feed: Optional[DocumentFeed] = None,
    ):
        self.db = db
        self.doc_repo = DocumentRepository(db)
        self.store = store or LocalObjectStore.from_settings()
        self.feed = feed or document_feed

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id or not user_id.strip():
            raise IntegrityFailure("A user id is required for this operation")
        return user_id.strip()

    def save(
        self,
        user_id: str,
        request: SaveDocumentRequest,
        now: Optional[datetime] = None,
    ) -> DocumentRecord:
        """Upload the final document bytes, then write its record.

        Raises:
            IntegrityFailure: no user id.
            ValidationFailure: final data URI cannot be decoded.
            StorageFailure: upload failed; nothing was written.
            PartialWriteFailure: upload succeeded but the record write
                failed; details say whether the uploaded object was removed.
        """
        user_id = self._require_user(user_id)
        data, content_type = decode_data_uri(request.final_data_uri)

        created_at = now or datetime.now(timezone.utc)
        storage_path = storage_path_for(user_id, request.filename, created_at)
        download_url = self.store.upload(data, content_type, storage_path)

        metadata = RecordMetadata(
            sender=request.metadata.sender,
            date=request.metadata.date,
            category=request.metadata.category,
            summary=request.summary,
        )
        # Saved events may have been edited by hand since analysis.
        event_block = EventBlock(events=valid_events(
            (normalize_event(event, created_at) for event in request.events),
            summary=request.summary,
        ))
        doc_id = f"doc-{uuid.uuid4().hex}"
        try:
            db_document = self.doc_repo.create(
                doc_id=doc_id,
                user_id=user_id,
                filename=request.filename,
                folder_path=canonical_folder_path(request.folder_path),
                tags=request.folder_tags,
                storage_path=storage_path,
                download_url=download_url,
                metadata=metadata.model_dump(mode="json"),
                event=event_block.model_dump(mode="json", by_alias=True),
                created_at=created_at,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            orphan_removed = self._remove_orphan(storage_path)
            logger.error(
                "Record write failed after upload",
                extra={"user_id": user_id, "storage_path": storage_path, "orphan_removed": orphan_removed},
            )
            raise PartialWriteFailure(storage_path, orphan_removed, original_error=e) from e

        self.db.refresh(db_document)
        record = DocumentRecord.model_validate(db_document)
        logger.info(
            "Document saved",
            extra={"doc_id": record.id, "user_id": user_id, "folder_path": record.folder_path},
        )
        self.feed.publish(user_id)
        return record

    def _remove_orphan(self, storage_path: str) -> bool:
        try:
            self.store.delete(storage_path)
        except StorageFailure:
            logger.exception("Compensating delete failed", extra={"storage_path": storage_path})
            return False
        return True

    def delete(self, user_id: str, doc_id: str) -> None:
        """Delete a record and its stored bytes.

        The record delete is committed before the bytes are touched, so a
        record never points at bytes that are gone. If the bytes cannot be
        deleted the record is written back.

        Raises:
            IntegrityFailure: requester does not own the record.
            DocumentNotFoundError: no such record.
            StorageFailure: the record delete failed, or the bytes could not
                be deleted; in both cases the record is kept.
        """
        user_id = self._require_user(user_id)
        document = self.doc_repo.get_by_id(doc_id)
        if document.user_id != user_id:
            logger.warning("Rejected delete of foreign document", extra={"doc_id": doc_id, "user_id": user_id})
            raise IntegrityFailure(doc_id=doc_id)

        snapshot = DocumentRecord.model_validate(document)
        try:
            self.doc_repo.delete(document)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Record delete failed", extra={"doc_id": doc_id, "user_id": user_id})
            raise StorageFailure(
                f"Failed to delete document record: {doc_id}",
                path=snapshot.storage_path,
                original_error=e,
            ) from e

        try:
            self.store.delete(snapshot.storage_path)
        except StorageFailure:
            self._restore_record(snapshot)
            raise

        logger.info("Document deleted", extra={"doc_id": doc_id, "user_id": user_id})
        self.feed.publish(user_id)

    def _restore_record(self, snapshot: DocumentRecord) -> None:
        try:
            self.doc_repo.create(
                doc_id=snapshot.id,
                user_id=snapshot.user_id,
                filename=snapshot.filename,
                folder_path=snapshot.folder_path,
                tags=snapshot.tags,
                storage_path=snapshot.storage_path,
                download_url=snapshot.download_url,
                metadata=snapshot.metadata.model_dump(mode="json"),
                event=snapshot.event.model_dump(mode="json", by_alias=True),
                created_at=snapshot.created_at,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "Record restore failed after storage delete error",
                extra={"doc_id": snapshot.id, "storage_path": snapshot.storage_path},
            )

    def get(self, user_id: str, doc_id: str) -> DocumentRecord:
        """A single record. Other users' records are reported as not found."""
        user_id = self._require_user(user_id)
        document = self.doc_repo.get_by_id(doc_id)
        if document.user_id != user_id:
            raise DocumentNotFoundError(doc_id)
        return DocumentRecord.model_validate(document)

    def list_for_user(self, user_id: str) -> List[DocumentRecord]:
        """All of a user's records, newest first."""
        user_id = self._require_user(user_id)
        return [DocumentRecord.model_validate(doc) for doc in self.doc_repo.list_for_user(user_id)]
