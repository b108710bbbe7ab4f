"""Term filter over a user's records, applied before the tree is built."""

from typing import Iterable, Optional

from ..schemas.document import DocumentRecord
from .folder_tree import FolderNode, build_folder_tree


def matches(record: DocumentRecord, term: str) -> bool:
    """Case-insensitive substring match on filename, folder path, summary, or any tag."""
    needle = term.lower()
    summary = record.metadata.summary or ""
    return (
        needle in record.filename.lower()
        or needle in (record.folder_path or "").lower()
        or needle in summary.lower()
        or any(needle in tag.lower() for tag in record.tags)
    )


def filter_records(records: Iterable[DocumentRecord], term: Optional[str]) -> list[DocumentRecord]:
    """Records matching *term*; all of them when the term is empty."""
    term = (term or "").strip()
    if not term:
        return list(records)
    return [record for record in records if matches(record, term)]


def reduce_tree(records: Iterable[DocumentRecord], term: Optional[str] = None) -> FolderNode:
    """Filter then index. The single reducer every tree consumer goes through."""
    return build_folder_tree(filter_records(records, term))
