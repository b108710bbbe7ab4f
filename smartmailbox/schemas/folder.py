"""Folder tree and browse response schemas."""

from typing import List, Literal, Optional

from pydantic import BaseModel

from .document import DocumentRecord


class TreeNode(BaseModel):
    """Schema for tree navigation."""
    name: str
    path: str
    document_count: int = 0
    children: List['TreeNode'] = []
    documents: List[DocumentRecord] = []


class Breadcrumb(BaseModel):
    index: int  # -1 is the root crumb
    label: str


class ColumnItem(BaseModel):
    """One row in a browse column: a child folder or a document."""
    kind: Literal["folder", "document"]
    name: str
    path: str
    document: Optional[DocumentRecord] = None


class BrowseResponse(BaseModel):
    selected_path: List[str]
    breadcrumbs: List[Breadcrumb]
    columns: List[List[ColumnItem]]
    selected_document: Optional[DocumentRecord] = None
