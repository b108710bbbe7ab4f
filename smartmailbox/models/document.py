"""Document model."""

from sqlalchemy import Column, Index, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from ..database import Base


class Document(Base):
    """One analyzed and saved document."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_user_created", "user_id", "created_at"),
        Index("ix_documents_folder_path", "folder_path"),
    )

    id = Column(String(50), primary_key=True)  # doc-{uuid hex}
    user_id = Column(String(128), nullable=False)

    filename = Column(String(255), nullable=False)

    # Canonical "/"-joined folder path, e.g. "Finance/Banking".
    # Never empty: missing paths are stored as "Uncategorized".
    folder_path = Column(String(500), nullable=False, default="Uncategorized")
    tags = Column(JSON, default=list)

    # Object-store pointer and the URL clients resolve it through
    storage_path = Column(Text, nullable=False)
    download_url = Column(Text, nullable=False)

    # {"sender": ..., "date": ..., "category": ..., "summary": ...}
    doc_metadata = Column("metadata", JSON, default=dict)
    # {"found": bool, "events": [CalendarEvent, ...]}
    event = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
