"""Tests for the live document feed and the folder browser subscriber."""

from datetime import datetime, timezone

from smartmailbox.services.document_feed import DocumentFeed
from smartmailbox.services.folder_browser import FolderBrowser
from conftest import make_record


class _FakeStore:
    """Loader backed by a dict of user id -> records."""

    def __init__(self):
        self.records = {}

    def load(self, user_id):
        return list(self.records.get(user_id, []))


class TestDocumentFeed:

    def test_subscribe_delivers_current_collection(self):
        store = _FakeStore()
        store.records["u1"] = [make_record("doc-1")]
        feed = DocumentFeed(store.load)
        received = []

        feed.subscribe("u1", received.append)

        assert [[r.id for r in batch] for batch in received] == [["doc-1"]]

    def test_publish_pushes_full_collection(self):
        store = _FakeStore()
        feed = DocumentFeed(store.load)
        received = []
        feed.subscribe("u1", received.append)

        store.records["u1"] = [make_record("doc-2"), make_record("doc-1")]
        feed.publish("u1")

        assert [r.id for r in received[-1]] == ["doc-2", "doc-1"]

    def test_publish_is_per_user(self):
        store = _FakeStore()
        feed = DocumentFeed(store.load)
        received = []
        feed.subscribe("u1", received.append)
        feed.publish("u2")
        assert len(received) == 1

    def test_unsubscribe_stops_delivery(self):
        store = _FakeStore()
        feed = DocumentFeed(store.load)
        received = []
        unsubscribe = feed.subscribe("u1", received.append)
        unsubscribe()
        feed.publish("u1")
        assert len(received) == 1
        assert feed.subscriber_count("u1") == 0

    def test_failing_listener_does_not_block_others(self):
        store = _FakeStore()
        feed = DocumentFeed(store.load)

        def broken(records):
            raise RuntimeError("listener bug")

        received = []
        feed.subscribe("u1", broken)
        feed.subscribe("u1", received.append)
        feed.publish("u1")
        assert len(received) == 2


class TestFolderBrowser:

    def test_tree_follows_feed(self):
        store = _FakeStore()
        feed = DocumentFeed(store.load)
        browser = FolderBrowser()
        feed.subscribe("u1", browser)
        assert browser.tree.children == {}

        store.records["u1"] = [make_record("doc-1", "Medical/Dental")]
        feed.publish("u1")
        assert list(browser.tree.children) == ["Medical"]

    def test_emptied_branch_renders_empty_column(self):
        browser = FolderBrowser()
        browser.on_records([make_record("doc-1", "Medical/Dental")])
        browser.navigator.select_path("Medical/Dental")
        assert [e.record.id for e in browser.columns()[2]] == ["doc-1"]

        browser.on_records([])
        assert browser.columns()[2] == []

    def test_open_document_reveals_it(self):
        browser = FolderBrowser()
        browser.on_records([
            make_record("doc-1", "Medical/Dental", datetime(2024, 1, 1, tzinfo=timezone.utc)),
            make_record("doc-2", "Finance", datetime(2024, 2, 1, tzinfo=timezone.utc)),
        ])
        assert browser.open_document("doc-1")
        assert browser.navigator.selected_path == ["Medical", "Dental"]
        assert browser.selected_document().id == "doc-1"
        assert not browser.open_document("doc-missing")

    def test_search_rebuilds_tree(self):
        browser = FolderBrowser()
        browser.on_records([make_record("doc-1", "Medical/Dental"), make_record("doc-2", "Finance")])
        browser.set_search("finance")
        assert list(browser.tree.children) == ["Finance"]
