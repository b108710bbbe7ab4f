"""Analysis pipeline: one upload in, one AnalysisResult or one failure out.

    normalize -> rectify (images) | extract (documents)
              -> synthesize metadata  \\
                                       > join -> merge
              -> detect events        /

Synthesis and detection run on two worker threads and are joined before
merging. Any stage failure propagates as its MailboxException; nothing is
persisted here.
"""

import contextvars
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from ..exceptions import MailboxException
from ..schemas.analysis import AnalysisResult
from .document_rectifier import rectify_document
from .event_detector import detect_events
from .generative_client import GenerativeClient, GenerativeContent
from .input_normalizer import InputKind, UploadedFile, normalize_input
from .metadata_synthesizer import synthesize_metadata
from .result_merger import merge_results
from .text_extractor import extract_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisRequest:
    kind: InputKind
    files: Sequence[UploadedFile]
    detect_events: bool = True


def _run_stage(stage: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run one pipeline stage, logging its duration and outcome."""
    start = time.monotonic()
    try:
        result = fn(*args, **kwargs)
    except MailboxException as e:
        logger.warning(
            "Analysis stage failed",
            extra={
                "stage": stage,
                "error_code": e.error_code.value,
                "duration_ms": round((time.monotonic() - start) * 1000, 1),
            },
        )
        raise
    logger.info(
        "Analysis stage completed",
        extra={"stage": stage, "duration_ms": round((time.monotonic() - start) * 1000, 1)},
    )
    return result


class AnalysisPipeline:
    """Sequences the analysis stages over a single GenerativeClient."""

    def __init__(self, client: Optional[GenerativeClient] = None):
        self.client = client or GenerativeClient.from_settings()

    def analyze(self, request: AnalysisRequest, now: Optional[datetime] = None) -> AnalysisResult:
        """Run the full analysis for one upload.

        Args:
            request: Uploaded files, their declared kind and whether to
                look for calendar events.
            now: Reference instant for event year inference. Defaults to
                the current UTC time.

        Raises:
            InputRejectedError: upload rejected before any model call.
            ModelFailure: a generative stage returned nothing usable
                (RectifyFailedError, ExtractFailedError,
                EventDetectionFailedError included).
            ValidationFailure: structured output missing required fields.
        """
        now = now or datetime.now(timezone.utc)
        start = time.monotonic()

        normalized = _run_stage("normalize", normalize_input, request.files, request.kind)

        if normalized.kind == InputKind.IMAGE:
            final_data_uri = _run_stage("rectify", rectify_document, self.client, normalized.data_uri)
            content = GenerativeContent(image_data_uri=final_data_uri)
        else:
            final_data_uri = normalized.data_uri
            text = _run_stage("extract", extract_text, self.client, final_data_uri)
            content = GenerativeContent(text=text)

        with ThreadPoolExecutor(max_workers=2) as executor:
            metadata_future = executor.submit(
                contextvars.copy_context().run,
                _run_stage, "synthesize", synthesize_metadata, self.client, content,
                source_is_pdf=normalized.is_pdf,
            )
            events_future = None
            if request.detect_events:
                events_future = executor.submit(
                    contextvars.copy_context().run,
                    _run_stage, "detect_events", detect_events, self.client, content, now,
                )

            metadata = metadata_future.result()
            events = events_future.result() if events_future is not None else None

        result = _run_stage("merge", merge_results, metadata, final_data_uri, events)
        logger.info(
            "Analysis completed",
            extra={
                "kind": request.kind.value,
                "pages": len(request.files),
                "events": len(result.events),
                "duration_ms": round((time.monotonic() - start) * 1000, 1),
            },
        )
        return result
