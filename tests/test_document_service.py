"""Unit tests for DocumentService: the save/delete lifecycle over both stores.

Tests the service layer directly against the test SQLite database and a
temporary LocalObjectStore, bypassing the HTTP stack.
"""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from smartmailbox.exceptions import (
    DocumentNotFoundError,
    IntegrityFailure,
    PartialWriteFailure,
    StorageFailure,
    ValidationFailure,
)
from smartmailbox.services.document_feed import DocumentFeed
from smartmailbox.services.document_service import (
    DocumentService,
    decode_data_uri,
    load_user_records,
    storage_path_for,
)
from smartmailbox.services.object_store import LocalObjectStore
from conftest import OTHER_USER_ID, USER_ID, make_save_request


@pytest.fixture()
def store(tmp_path) -> LocalObjectStore:
    return LocalObjectStore(str(tmp_path / "objects"), "http://files.test")


@pytest.fixture()
def feed() -> DocumentFeed:
    return DocumentFeed(load_user_records)


@pytest.fixture()
def service(db, store, feed) -> DocumentService:
    return DocumentService(db, store=store, feed=feed)


class TestDataUri:

    def test_decodes_png(self):
        data, content_type = decode_data_uri("data:image/png;base64,aGVsbG8=")
        assert data == b"hello"
        assert content_type == "image/png"

    def test_rejects_non_data_uri(self):
        with pytest.raises(ValidationFailure):
            decode_data_uri("https://example.com/x.png")

    def test_rejects_bad_base64(self):
        with pytest.raises(ValidationFailure):
            decode_data_uri("data:image/png;base64,@@@")

    def test_storage_path_layout(self):
        created = datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert storage_path_for("u1", "Bill.pdf", created) == "documents/u1/1717200000000-Bill.pdf"


class TestSave:

    def test_save_writes_bytes_and_record(self, service, store):
        record = service.save(USER_ID, make_save_request(folder_path=" Finance / Banking "))

        assert record.id.startswith("doc-")
        assert record.user_id == USER_ID
        assert record.folder_path == "Finance/Banking"
        assert record.metadata.summary == "Monthly checking account statement."
        assert record.download_url.startswith("http://files.test/documents/user-alice/")
        assert (store.root / record.storage_path).exists()

    def test_events_saved_as_block(self, service):
        request = make_save_request(events=[{"title": "Chase - Payment Due", "startDate": "2024-07-15T00:00:00"}])
        record = service.save(USER_ID, request)
        assert record.event.found is True
        assert record.event.events[0].start_date == "2024-07-15T00:00:00"

    def test_missing_user_is_integrity_failure(self, service):
        with pytest.raises(IntegrityFailure):
            service.save("  ", make_save_request())

    def test_upload_failure_writes_nothing(self, db, feed):
        failing_store = MagicMock()
        failing_store.upload.side_effect = StorageFailure("bucket unavailable")
        service = DocumentService(db, store=failing_store, feed=feed)

        with pytest.raises(StorageFailure):
            service.save(USER_ID, make_save_request())
        assert service.list_for_user(USER_ID) == []

    def test_record_failure_removes_uploaded_object(self, service, store):
        service.doc_repo.create = MagicMock(side_effect=SQLAlchemyError("disk full"))

        with pytest.raises(PartialWriteFailure) as exc:
            service.save(USER_ID, make_save_request())

        assert exc.value.details["orphan_removed"] is True
        assert not (store.root / exc.value.details["storage_path"]).exists()
        assert exc.value.status_code == 500

    def test_failed_compensation_is_reported(self, db, feed):
        store = MagicMock()
        store.upload.return_value = "http://files.test/x"
        store.delete.side_effect = StorageFailure("still down")
        service = DocumentService(db, store=store, feed=feed)
        service.doc_repo.create = MagicMock(side_effect=SQLAlchemyError("disk full"))

        with pytest.raises(PartialWriteFailure) as exc:
            service.save(USER_ID, make_save_request())
        assert exc.value.details["orphan_removed"] is False

    def test_placeholder_events_not_persisted(self, service):
        request = make_save_request(events=[
            {"title": "No event found", "startDate": "No start date found"},
            {"title": "", "startDate": ""},
        ])
        record = service.save(USER_ID, request)
        assert record.event.found is False
        assert record.event.events == []

    def test_edited_events_normalized_on_save(self, service):
        request = make_save_request(events=[
            {"title": "BMW - Registration Expires", "startDate": "August 16"},
            {"title": "Dentist", "startDate": "Monday"},
        ])
        record = service.save(USER_ID, request, now=datetime(2024, 10, 1, tzinfo=timezone.utc))

        assert [e.title for e in record.event.events] == ["BMW - Registration Expires"]
        assert record.event.events[0].start_date == "2025-08-16T00:00:00"
        assert record.event.events[0].description == "Monthly checking account statement."

    def test_save_publishes_to_feed(self, service, feed):
        received = []
        feed.subscribe(USER_ID, received.append)
        service.save(USER_ID, make_save_request())
        assert len(received) == 2
        assert len(received[-1]) == 1


class TestDelete:

    def test_delete_removes_bytes_and_record(self, service, store):
        record = service.save(USER_ID, make_save_request())
        service.delete(USER_ID, record.id)

        assert not (store.root / record.storage_path).exists()
        with pytest.raises(DocumentNotFoundError):
            service.get(USER_ID, record.id)

    def test_foreign_delete_rejected(self, service, store):
        record = service.save(USER_ID, make_save_request())

        with pytest.raises(IntegrityFailure):
            service.delete(OTHER_USER_ID, record.id)

        assert service.get(USER_ID, record.id).id == record.id
        assert (store.root / record.storage_path).exists()

    def test_missing_document(self, service):
        with pytest.raises(DocumentNotFoundError):
            service.delete(USER_ID, "doc-missing")

    def test_storage_failure_keeps_record(self, db, feed, store):
        service = DocumentService(db, store=store, feed=feed)
        record = service.save(USER_ID, make_save_request())
        service.store = MagicMock()
        service.store.delete.side_effect = StorageFailure("bucket unavailable")

        with pytest.raises(StorageFailure):
            service.delete(USER_ID, record.id)
        assert service.get(USER_ID, record.id).id == record.id

    def test_record_failure_keeps_bytes_and_record(self, db, service, store):
        record = service.save(USER_ID, make_save_request())

        with patch.object(db, "commit", side_effect=OperationalError("DELETE", {}, Exception("database is locked"))):
            with pytest.raises(StorageFailure):
                service.delete(USER_ID, record.id)

        assert (store.root / record.storage_path).exists()
        assert service.get(USER_ID, record.id).id == record.id

    def test_missing_object_tolerated(self, service, store):
        record = service.save(USER_ID, make_save_request())
        Path(store.root / record.storage_path).unlink()
        service.delete(USER_ID, record.id)
        assert service.list_for_user(USER_ID) == []

    def test_delete_publishes_to_feed(self, service, feed):
        record = service.save(USER_ID, make_save_request())
        received = []
        feed.subscribe(USER_ID, received.append)
        service.delete(USER_ID, record.id)
        assert received[-1] == []


class TestReads:

    def test_list_newest_first(self, service):
        first = service.save(USER_ID, make_save_request("First"), now=datetime(2024, 1, 1, tzinfo=timezone.utc))
        second = service.save(USER_ID, make_save_request("Second"), now=datetime(2024, 2, 1, tzinfo=timezone.utc))
        service.save(OTHER_USER_ID, make_save_request("Theirs"))

        assert [r.id for r in service.list_for_user(USER_ID)] == [second.id, first.id]

    def test_get_hides_foreign_records(self, service):
        record = service.save(USER_ID, make_save_request())
        with pytest.raises(DocumentNotFoundError):
            service.get(OTHER_USER_ID, record.id)
