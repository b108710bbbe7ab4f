"""Result validation and merging.

The merger is total over raw model output: it never trusts that the
synthesizer applied its defaults, and it drops every event the model
produced as a stand-in for "nothing found".
"""

from typing import Iterable, Optional

from ..schemas.analysis import AnalysisResult, CalendarEvent, SynthesizedMetadata
from .folder_tree import canonical_folder_path
from .metadata_synthesizer import apply_folder_defaults
from .prompts import PLACEHOLDER_DATES, PLACEHOLDER_TITLES


def _is_placeholder(value: str, sentinels: frozenset[str]) -> bool:
    return value.strip().lower() in sentinels


def is_valid_event(event: CalendarEvent) -> bool:
    """True if the event has a real title and a real start date."""
    title = event.title.strip()
    start = event.start_date.strip()
    if not title or not start:
        return False
    return not (_is_placeholder(title, PLACEHOLDER_TITLES) or _is_placeholder(start, PLACEHOLDER_DATES))


def valid_events(events: Iterable[CalendarEvent], summary: str = "") -> list[CalendarEvent]:
    """Filter out placeholder events; give description-less survivors the summary."""
    kept = []
    for event in events:
        if not is_valid_event(event):
            continue
        if not event.description and summary:
            event = event.model_copy(update={"description": summary})
        kept.append(event)
    return kept


def merge_results(
    metadata: SynthesizedMetadata,
    final_data_uri: str,
    events: Optional[Iterable[CalendarEvent]] = None,
) -> AnalysisResult:
    """Combine metadata, the final document payload and validated events.

    ``events`` is None when detection was skipped.
    """
    folder_path, folder_tags = apply_folder_defaults(metadata.folder_path, metadata.folder_tags)
    return AnalysisResult(
        filename=metadata.filename,
        summary=metadata.summary,
        folder_path=canonical_folder_path(folder_path),
        folder_tags=folder_tags,
        metadata=metadata.metadata,
        final_data_uri=final_data_uri,
        events=valid_events(events or [], summary=metadata.summary),
    )
