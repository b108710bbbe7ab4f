"""Folder tree indexing: a flat record collection in, a rooted tree out.

The tree is never patched. Every change to a user's collection produces a new
tree from scratch via ``build_folder_tree``. Nodes are frozen and own their
children outright (no parent back-references), so a tree can be handed to any
number of readers without copying.

Path format: "Finance/Banking/Statements". Segments are trimmed; empty
segments are dropped; a path with no segments lives under "Uncategorized".
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timezone
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence

from ..schemas.document import DocumentRecord

UNCATEGORIZED_FOLDER = "Uncategorized"
ROOT_NAME = "Root"


def split_folder_path(path: Optional[str]) -> list[str]:
    """Split a folder path into trimmed, non-empty segments.

    >>> split_folder_path(" Finance / Banking ")
    ['Finance', 'Banking']
    >>> split_folder_path("")
    ['Uncategorized']
    """
    segments = [part.strip() for part in (path or "").split("/")]
    segments = [seg for seg in segments if seg]
    return segments or [UNCATEGORIZED_FOLDER]


def canonical_folder_path(path: Optional[str]) -> str:
    """Canonical "/"-joined form of *path*, as stored on a record."""
    return "/".join(split_folder_path(path))


def _join(parent_path: str, name: str) -> str:
    return f"{parent_path}/{name}" if parent_path else name


def _created_key(record: DocumentRecord) -> float:
    created = record.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.timestamp()


def _sorted_documents(records: Iterable[DocumentRecord]) -> tuple[DocumentRecord, ...]:
    """Newest first; id breaks ties so the order never depends on input order."""
    by_id = sorted(records, key=lambda r: r.id)
    return tuple(sorted(by_id, key=_created_key, reverse=True))


@dataclass(frozen=True)
class FolderNode:
    """One folder in the tree.

    ``children`` is keyed by segment name and iterates in lexicographic order.
    ``documents`` holds only the records whose folder path ends exactly here.
    """

    name: str
    path: str
    children: Mapping[str, "FolderNode"] = field(default_factory=lambda: MappingProxyType({}))
    documents: tuple[DocumentRecord, ...] = ()

    def walk(self) -> Iterable["FolderNode"]:
        """Depth-first, pre-order traversal of this node and its descendants."""
        yield self
        for child in self.children.values():
            yield from child.walk()

    def document_count(self) -> int:
        """Number of documents at or below this node."""
        return sum(len(node.documents) for node in self.walk())


def _build_node(
    name: str,
    path: str,
    entries: list[tuple[tuple[str, ...], DocumentRecord]],
) -> FolderNode:
    """Recursively build a node from (remaining segments, record) pairs."""
    here: list[DocumentRecord] = []
    grouped: dict[str, list[tuple[tuple[str, ...], DocumentRecord]]] = defaultdict(list)

    for segments, record in entries:
        if segments:
            grouped[segments[0]].append((segments[1:], record))
        else:
            here.append(record)

    children = {
        segment: _build_node(segment, _join(path, segment), grouped[segment])
        for segment in sorted(grouped)
    }
    return FolderNode(
        name=name,
        path=path,
        children=MappingProxyType(children),
        documents=_sorted_documents(here),
    )


def build_folder_tree(records: Iterable[DocumentRecord]) -> FolderNode:
    """Build the folder tree for a collection of records.

    Total over its input: every record lands in exactly one node, the node
    reached by walking its folder path segments from the root.
    """
    entries = [(tuple(split_folder_path(r.folder_path)), r) for r in records]
    return _build_node(ROOT_NAME, "", entries)


def node_at(tree: FolderNode, segments: Sequence[str]) -> Optional[FolderNode]:
    """Resolve a segment list from the root, or None if any segment is missing."""
    node = tree
    for segment in segments:
        child = node.children.get(segment)
        if child is None:
            return None
        node = child
    return node

