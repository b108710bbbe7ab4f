"""Business logic services."""

from .analysis_pipeline import AnalysisPipeline, AnalysisRequest
from .document_service import DocumentService, document_feed

__all__ = ["AnalysisPipeline", "AnalysisRequest", "DocumentService", "document_feed"]
