"""API routes."""

from .analysis import router as analysis_router
from .documents import router as documents_router
from .folders import router as folders_router
from .events import router as events_router

__all__ = [
    "analysis_router",
    "documents_router",
    "folders_router",
    "events_router",
]
