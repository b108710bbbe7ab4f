"""Finder-style navigation state over a folder tree.

A ``Navigator`` holds only what the user selected: a path (segment list from
the root) and at most one open document. Columns are derived on demand from
whatever tree is current, so an externally emptied branch simply renders as
an empty column.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

from ..schemas.document import DocumentRecord
from .folder_tree import FolderNode, node_at, split_folder_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FolderEntry:
    node: FolderNode
    kind: Literal["folder"] = "folder"


@dataclass(frozen=True)
class DocumentEntry:
    record: DocumentRecord
    kind: Literal["document"] = "document"


ColumnEntry = Union[FolderEntry, DocumentEntry]


def column_for(node: Optional[FolderNode]) -> list[ColumnEntry]:
    """Child folders (lexicographic) followed by documents (newest first)."""
    if node is None:
        return []
    entries: list[ColumnEntry] = [FolderEntry(node=child) for child in node.children.values()]
    entries.extend(DocumentEntry(record=record) for record in node.documents)
    return entries


class Navigator:
    """Selection state machine.

    Transitions:
        select_path      -- jump to a folder; closes any open document
        select_document  -- toggle the open document; path unchanged
        breadcrumb_click -- -1 goes to root, i >= 0 keeps the first i + 1 segments
        reveal           -- open a specific record inside its own folder
    """

    def __init__(self) -> None:
        self.selected_path: list[str] = []
        self.selected_document_id: Optional[str] = None

    def select_path(self, path: str) -> None:
        self.selected_path = self._segments(path)
        self.selected_document_id = None

    def select_document(self, document_id: str) -> None:
        if self.selected_document_id == document_id:
            self.selected_document_id = None
        else:
            self.selected_document_id = document_id

    def breadcrumb_click(self, index: int) -> None:
        self.selected_document_id = None
        if index < 0:
            self.selected_path = []
        else:
            self.selected_path = self.selected_path[: index + 1]

    def reveal(self, record: DocumentRecord) -> None:
        """Select *record* and the folder it lives in."""
        self.selected_path = split_folder_path(record.folder_path)
        self.selected_document_id = record.id

    def breadcrumbs(self) -> list[tuple[int, str]]:
        """(index, label) pairs; index -1 is the root crumb."""
        return [(-1, "Home")] + list(enumerate(self.selected_path))

    def columns(self, tree: FolderNode) -> list[list[ColumnEntry]]:
        """One column per prefix of the selected path, the empty prefix first."""
        cols: list[list[ColumnEntry]] = []
        for depth in range(len(self.selected_path) + 1):
            prefix = self.selected_path[:depth]
            node = node_at(tree, prefix)
            if node is None:
                logger.debug("Selected prefix no longer in tree: %s", "/".join(prefix))
            cols.append(column_for(node))
        return cols

    def selected_document(self, tree: FolderNode) -> Optional[DocumentRecord]:
        """The open record if it is still in the selected folder, else None."""
        if self.selected_document_id is None:
            return None
        node = node_at(tree, self.selected_path)
        if node is None:
            return None
        for record in node.documents:
            if record.id == self.selected_document_id:
                return record
        return None

    @staticmethod
    def _segments(path: str) -> list[str]:
        if not path or not path.strip().strip("/"):
            return []
        return split_folder_path(path)
