"""Tests for the upcoming / recent past event agenda."""

from datetime import datetime, timezone

from smartmailbox.services.event_agenda import build_agenda
from conftest import make_record

NOW = datetime(2024, 10, 1, 15, 30, tzinfo=timezone.utc)


def _event(title: str, start: str) -> dict:
    return {"title": title, "startDate": start}


class TestBuildAgenda:

    def test_splits_around_start_of_today(self):
        records = [
            make_record("doc-1", events=[
                _event("Earlier Today", "2024-10-01T08:00:00"),
                _event("Yesterday", "2024-09-30T09:00:00"),
            ]),
        ]
        agenda = build_agenda(records, NOW)
        assert [i.event.title for i in agenda.upcoming] == ["Earlier Today"]
        assert [i.event.title for i in agenda.recent_past] == ["Yesterday"]

    def test_upcoming_ascending_past_descending(self):
        records = [
            make_record("doc-1", events=[_event("Late", "2024-12-01T00:00:00"), _event("Old", "2024-01-01T00:00:00")]),
            make_record("doc-2", events=[_event("Soon", "2024-10-05T00:00:00"), _event("Recent", "2024-09-01T00:00:00")]),
        ]
        agenda = build_agenda(records, NOW)
        assert [i.event.title for i in agenda.upcoming] == ["Soon", "Late"]
        assert [i.event.title for i in agenda.recent_past] == ["Recent", "Old"]
        assert agenda.upcoming[0].doc_id == "doc-2"

    def test_past_capped(self):
        events = [_event(f"Past {day}", f"2024-09-{day:02d}T00:00:00") for day in range(1, 11)]
        agenda = build_agenda([make_record("doc-1", events=events)], NOW, past_limit=5)
        assert [i.event.title for i in agenda.recent_past] == [f"Past {d}" for d in range(10, 5, -1)]

    def test_unparseable_dates_skipped(self):
        records = [make_record("doc-1", events=[_event("Broken", "someday"), _event("Ok", "2024-10-02T00:00:00")])]
        agenda = build_agenda(records, NOW)
        assert [i.event.title for i in agenda.upcoming] == ["Ok"]
        assert agenda.recent_past == []
