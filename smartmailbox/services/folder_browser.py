"""Folder browser: a feed subscriber that keeps the current tree for a Navigator."""

import logging
import threading
from typing import Iterable, List, Optional

from ..schemas.document import DocumentRecord
from .document_search import reduce_tree
from .folder_tree import FolderNode, build_folder_tree
from .navigator import ColumnEntry, Navigator

logger = logging.getLogger(__name__)


class FolderBrowser:
    """Recomputes the folder tree on every push from the document feed.

    Pass the browser itself as the feed listener::

        browser = FolderBrowser()
        unsubscribe = document_feed.subscribe(user_id, browser)
    """

    def __init__(self, navigator: Optional[Navigator] = None, search_term: str = ""):
        self.navigator = navigator or Navigator()
        self._search_term = search_term
        self._records: List[DocumentRecord] = []
        self._tree: FolderNode = build_folder_tree([])
        self._lock = threading.Lock()

    def __call__(self, records: Iterable[DocumentRecord]) -> None:
        self.on_records(records)

    def on_records(self, records: Iterable[DocumentRecord]) -> None:
        with self._lock:
            self._records = list(records)
            self._tree = reduce_tree(self._records, self._search_term)
        logger.debug("Folder tree rebuilt", extra={"records": len(self._records)})

    def set_search(self, term: str) -> None:
        with self._lock:
            self._search_term = term
            self._tree = reduce_tree(self._records, term)

    @property
    def tree(self) -> FolderNode:
        with self._lock:
            return self._tree

    @property
    def records(self) -> List[DocumentRecord]:
        with self._lock:
            return list(self._records)

    def columns(self) -> list[list[ColumnEntry]]:
        return self.navigator.columns(self.tree)

    def selected_document(self) -> Optional[DocumentRecord]:
        return self.navigator.selected_document(self.tree)

    def open_document(self, doc_id: str) -> bool:
        """Reveal a record by id. False if the user has no such record."""
        for record in self.records:
            if record.id == doc_id:
                self.navigator.reveal(record)
                return True
        return False
