"""Metadata synthesis: filename, summary, folder placement and sender/date/category."""

import logging
from typing import Optional, Sequence

from ..exceptions import ValidationFailure
from ..schemas.analysis import SynthesizedMetadata
from .folder_tree import UNCATEGORIZED_FOLDER
from .generative_client import GenerativeClient, GenerativeContent
from .prompts import METADATA_INSTRUCTION, PDF_SUFFIX

logger = logging.getLogger(__name__)


def apply_folder_defaults(
    folder_path: Optional[str],
    folder_tags: Sequence[str],
) -> tuple[str, list[str]]:
    """Fill in an empty folder placement.

    No tags -> ["Uncategorized"]; no path -> the tags joined with " / ".
    """
    tags = [tag.strip() for tag in folder_tags if tag and tag.strip()]
    if not tags:
        tags = [UNCATEGORIZED_FOLDER]
    path = (folder_path or "").strip()
    if not path:
        path = " / ".join(tags)
    return path, tags


def _safe_filename(filename: str, source_is_pdf: bool) -> str:
    name = filename.strip().replace("/", "-").replace("\\", "-")
    if source_is_pdf and not name.lower().endswith(PDF_SUFFIX):
        name = f"{name}{PDF_SUFFIX}"
    return name


def synthesize_metadata(
    client: GenerativeClient,
    content: GenerativeContent,
    source_is_pdf: bool = False,
) -> SynthesizedMetadata:
    """Structured metadata for the document in *content*.

    Raises:
        ValidationFailure: output is not the requested JSON, or lacks a
            filename or summary.
        ModelFailure: the model could not be reached.
    """
    metadata = client.generate_structured(METADATA_INSTRUCTION, content, SynthesizedMetadata)

    if not metadata.filename.strip():
        raise ValidationFailure("Generated metadata is missing a filename", field="filename")
    if not metadata.summary.strip():
        raise ValidationFailure("Generated metadata is missing a summary", field="summary")

    folder_path, folder_tags = apply_folder_defaults(metadata.folder_path, metadata.folder_tags)
    return metadata.model_copy(
        update={
            "filename": _safe_filename(metadata.filename, source_is_pdf),
            "summary": metadata.summary.strip(),
            "folder_path": folder_path,
            "folder_tags": folder_tags,
        }
    )
