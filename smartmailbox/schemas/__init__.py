"""Pydantic schemas for requests, responses and generative output."""

from .analysis import (
    AnalysisResult,
    CalendarEvent,
    DetectedEvents,
    DocumentMetadata,
    EventBlock,
    SaveDocumentRequest,
    SynthesizedMetadata,
)
from .document import DocumentRecord, RecordMetadata
from .folder import BrowseResponse, Breadcrumb, ColumnItem, TreeNode
from .agenda import AgendaEvent, AgendaResponse

__all__ = [
    "AnalysisResult",
    "CalendarEvent",
    "DetectedEvents",
    "DocumentMetadata",
    "EventBlock",
    "SaveDocumentRequest",
    "SynthesizedMetadata",
    "DocumentRecord",
    "RecordMetadata",
    "BrowseResponse",
    "Breadcrumb",
    "ColumnItem",
    "TreeNode",
    "AgendaEvent",
    "AgendaResponse",
]
