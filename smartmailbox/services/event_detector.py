"""Event detection: candidate calendar events from an image or text.

The output is a raw candidate list. Dates are normalized here (year inference
and rollover), but placeholder filtering belongs to the result merger.
"""

import logging
from datetime import datetime
from typing import Optional

from ..exceptions import EventDetectionFailedError, MailboxException
from ..schemas.analysis import CalendarEvent, DetectedEvents
from .date_inference import format_event_date, infer_event_date, normalize_event_date
from .generative_client import GenerativeClient, GenerativeContent
from .prompts import EVENT_INSTRUCTION, EVENT_SUMMARY_HINT

logger = logging.getLogger(__name__)


def normalize_event(event: CalendarEvent, now: datetime) -> CalendarEvent:
    """Apply year inference to both dates of *event*.

    An unreadable start date becomes "" so the merger drops the event; an
    unreadable end date is simply removed.
    """
    start = infer_event_date(event.start_date, now)
    end_date = None
    if start is not None and event.end_date:
        end_date = normalize_event_date(event.end_date, now, not_before=start) or None

    start_date = format_event_date(start) if start is not None else ""
    return event.model_copy(update={"start_date": start_date, "end_date": end_date})


def detect_events(
    client: GenerativeClient,
    content: GenerativeContent,
    now: datetime,
    summary: Optional[str] = None,
) -> list[CalendarEvent]:
    """Ask the model for events and normalize their dates against *now*.

    Raises:
        EventDetectionFailedError: the model call or its output failed.
    """
    instruction = EVENT_INSTRUCTION
    if summary:
        instruction = f"{instruction}\n\n{EVENT_SUMMARY_HINT.format(summary=summary)}"

    try:
        detected = client.generate_structured(instruction, content, DetectedEvents)
    except EventDetectionFailedError:
        raise
    except MailboxException as e:
        raise EventDetectionFailedError(
            f"Failed to detect events in the document: {e.message}",
            model=client.vision_model,
        ) from e

    events = [normalize_event(event, now) for event in detected.events]
    logger.debug("Detected candidate events", extra={"candidates": len(events)})
    return events
