"""Document repository: the record store.

Writes flush but do not commit; the document service owns the transaction.
"""

from datetime import datetime
from typing import List

from ..models import Document
from ..exceptions import DocumentNotFoundError
from .base import BaseRepository


class DocumentRepository(BaseRepository[Document]):
    """Record-store operations over the documents table."""

    model_class = Document
    not_found_error = DocumentNotFoundError

    def create(
        self,
        doc_id: str,
        user_id: str,
        filename: str,
        folder_path: str,
        tags: List[str],
        storage_path: str,
        download_url: str,
        metadata: dict,
        event: dict,
        created_at: datetime,
    ) -> Document:
        db_document = Document(
            id=doc_id,
            user_id=user_id,
            filename=filename,
            folder_path=folder_path,
            tags=list(tags),
            storage_path=storage_path,
            download_url=download_url,
            doc_metadata=metadata,
            event=event,
            created_at=created_at,
        )
        self.db.add(db_document)
        self.db.flush()
        return db_document

    def delete(self, document: Document) -> None:
        self.db.delete(document)
        self.db.flush()

    def list_for_user(self, user_id: str) -> List[Document]:
        """All of a user's documents, newest first."""
        return (
            self._base_query()
            .filter(Document.user_id == user_id)
            .order_by(Document.created_at.desc(), Document.id)
            .all()
        )
