"""Analysis schemas: generative output shapes and the merged analysis result.

Field aliases are the camelCase keys the generative model is asked to emit;
``populate_by_name`` lets the rest of the code use snake_case.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CalendarEvent(BaseModel):
    """A single calendar-style event found in a document.

    Candidate events coming back from the model may carry empty or
    placeholder values; the result merger is responsible for dropping them.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    start_date: str = Field(default="", alias="startDate")
    end_date: Optional[str] = Field(default=None, alias="endDate")
    description: Optional[str] = None

    @field_validator("title", "start_date", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("end_date", "description", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class DetectedEvents(BaseModel):
    """Structured output of the event detector."""
    events: List[CalendarEvent] = []

    @field_validator("events", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []


class EventBlock(BaseModel):
    """Event data attached to a saved document. ``found`` follows ``events``."""
    found: bool = False
    events: List[CalendarEvent] = []

    @model_validator(mode="after")
    def sync_found(self) -> "EventBlock":
        self.found = bool(self.events)
        return self


class DocumentMetadata(BaseModel):
    """Sender/date/category block produced by the metadata synthesizer."""
    sender: Optional[str] = None
    date: Optional[str] = None
    category: Optional[str] = None

    @field_validator("sender", "date", "category", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class SynthesizedMetadata(BaseModel):
    """Structured output of the metadata synthesizer."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    summary: str
    folder_path: str = Field(default="", alias="folderPath")
    folder_tags: List[str] = Field(default_factory=list, alias="folderTags")
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)

    @field_validator("folder_path", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or ""

    @field_validator("folder_tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        if not v:
            return []
        return [str(tag).strip() for tag in v if tag is not None and str(tag).strip()]

    @field_validator("metadata", mode="before")
    @classmethod
    def none_to_block(cls, v):
        return v or {}


class AnalysisResult(BaseModel):
    """Merged output of one analysis, handed to the save operation."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    summary: str
    folder_path: str = Field(alias="folderPath")
    folder_tags: List[str] = Field(default_factory=list, alias="folderTags")
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    final_data_uri: str = Field(alias="finalDataUri")
    events: List[CalendarEvent] = []

    @property
    def event_block(self) -> EventBlock:
        return EventBlock(events=self.events)


class SaveDocumentRequest(AnalysisResult):
    """Schema for saving an analysis. The user may have edited the filename."""

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Filename cannot be empty")
        if "/" in v or "\\" in v:
            raise ValueError("Filename cannot contain path separators")
        return v
