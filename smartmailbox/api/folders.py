"""Folder tree and Finder-style browse endpoints.

Both are recomputed from the user's full record collection on every request.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..exceptions import DocumentNotFoundError
from ..schemas.folder import BrowseResponse, Breadcrumb, ColumnItem, TreeNode
from ..services import DocumentService
from ..services.document_search import reduce_tree
from ..services.folder_browser import FolderBrowser
from ..services.folder_tree import FolderNode
from ..services.navigator import ColumnEntry, FolderEntry
from .deps import get_document_service, require_user

router = APIRouter(prefix="/api", tags=["folders"])


def to_tree_node(node: FolderNode) -> TreeNode:
    return TreeNode(
        name=node.name,
        path=node.path,
        document_count=node.document_count(),
        children=[to_tree_node(child) for child in node.children.values()],
        documents=list(node.documents),
    )


def to_column_item(entry: ColumnEntry) -> ColumnItem:
    if isinstance(entry, FolderEntry):
        return ColumnItem(kind="folder", name=entry.node.name, path=entry.node.path)
    return ColumnItem(
        kind="document",
        name=entry.record.filename,
        path=entry.record.folder_path,
        document=entry.record,
    )


@router.get("/tree", response_model=TreeNode)
def get_tree(
    search: Optional[str] = Query(None),
    user_id: str = Depends(require_user),
    service: DocumentService = Depends(get_document_service),
):
    """The user's folder tree, rooted at "Root"."""
    return to_tree_node(reduce_tree(service.list_for_user(user_id), search))


@router.get("/browse", response_model=BrowseResponse)
def browse(
    path: str = Query("", description="Selected folder path, e.g. Finance/Banking"),
    doc: Optional[str] = Query(None, description="Open this document inside its own folder"),
    search: Optional[str] = Query(None),
    user_id: str = Depends(require_user),
    service: DocumentService = Depends(get_document_service),
):
    """Columns for the selected path; ``doc`` overrides ``path``."""
    browser = FolderBrowser(search_term=search or "")
    browser.on_records(service.list_for_user(user_id))

    if doc:
        if not browser.open_document(doc):
            raise DocumentNotFoundError(doc)
    else:
        browser.navigator.select_path(path)

    navigator = browser.navigator
    return BrowseResponse(
        selected_path=navigator.selected_path,
        breadcrumbs=[Breadcrumb(index=i, label=label) for i, label in navigator.breadcrumbs()],
        columns=[[to_column_item(entry) for entry in column] for column in browser.columns()],
        selected_document=browser.selected_document(),
    )
