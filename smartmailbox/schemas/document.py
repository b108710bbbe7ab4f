"""Document record schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .analysis import EventBlock


class RecordMetadata(BaseModel):
    """Metadata block persisted with a record."""
    sender: Optional[str] = None
    date: Optional[str] = None
    category: Optional[str] = None
    summary: Optional[str] = None


class DocumentRecord(BaseModel):
    """A persisted document as seen by the tree, navigator, and API."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    user_id: str
    filename: str
    folder_path: str = "Uncategorized"
    tags: List[str] = []
    storage_path: str
    download_url: str
    # ORM attribute is doc_metadata because "metadata" is reserved on declarative models
    metadata: RecordMetadata = Field(
        default_factory=RecordMetadata,
        validation_alias=AliasChoices("doc_metadata", "metadata"),
    )
    event: EventBlock = Field(default_factory=EventBlock)
    created_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @field_validator("metadata", "event", mode="before")
    @classmethod
    def none_to_dict(cls, v):
        return v or {}
