"""Shared test fixtures for the Smart Mailbox test suite.

All tests use a throwaway SQLite database and storage directory created per
session. Each test starts with an empty documents table and fresh circuit
breakers.
"""

import base64
import io
import os
import tempfile
from datetime import datetime, timezone

# Point the app at throwaway storage before any app imports.
_TMP_DIR = tempfile.mkdtemp(prefix="smartmailbox-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["STORAGE_DIR"] = os.path.join(_TMP_DIR, "storage")
os.environ["PUBLIC_BASE_URL"] = "http://testserver/files"
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_FORMAT"] = "text"
os.environ["MODEL_API_KEY"] = "test-key"

import pytest
from PIL import Image
from sqlalchemy import text
from fastapi.testclient import TestClient

from smartmailbox.core.circuit_breaker import reset_all
from smartmailbox.database import SessionLocal, init_db
from smartmailbox.main import app
from smartmailbox.api.deps import get_pipeline
from smartmailbox.schemas.analysis import SaveDocumentRequest
from smartmailbox.schemas.document import DocumentRecord

init_db()

USER_ID = "user-alice"
OTHER_USER_ID = "user-bob"


@pytest.fixture(autouse=True)
def _clean_state():
    """Empty the documents table and reset breakers before each test."""
    db = SessionLocal()
    try:
        db.execute(text("DELETE FROM documents"))
        db.commit()
    finally:
        db.close()
    reset_all()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    get_pipeline.cache_clear()


@pytest.fixture()
def headers() -> dict:
    return {"X-User-Id": USER_ID}


def png_bytes(width: int = 4, height: int = 3, color=(200, 30, 30)) -> bytes:
    """A small valid PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(width: int = 4, height: int = 3) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(width, height)).decode("ascii")


def make_save_request(
    filename: str = "Bank Statement - Chase - June 2024",
    folder_path: str = "Finance/Banking",
    **overrides,
) -> SaveDocumentRequest:
    """Factory for save payloads."""
    payload = {
        "filename": filename,
        "summary": "Monthly checking account statement.",
        "folderPath": folder_path,
        "folderTags": [s.strip() for s in folder_path.split("/") if s.strip()],
        "metadata": {"sender": "Chase <no-reply@chase.com>", "date": "2024-06-30", "category": "Finance"},
        "finalDataUri": png_data_uri(),
        "events": [],
    }
    payload.update(overrides)
    return SaveDocumentRequest.model_validate(payload)


def make_record(
    doc_id: str,
    folder_path: str = "Finance/Banking",
    created_at: datetime = datetime(2024, 6, 1, tzinfo=timezone.utc),
    filename: str = "",
    summary: str = "",
    tags=None,
    events=None,
) -> DocumentRecord:
    """In-memory record for pure tree/navigator/agenda tests."""
    return DocumentRecord(
        id=doc_id,
        user_id=USER_ID,
        filename=filename or f"{doc_id}.png",
        folder_path=folder_path,
        tags=tags or [],
        storage_path=f"documents/{USER_ID}/{doc_id}.png",
        download_url=f"http://testserver/files/documents/{USER_ID}/{doc_id}.png",
        metadata={"summary": summary},
        event={"events": events or []},
        created_at=created_at,
    )
