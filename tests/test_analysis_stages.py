"""Tests for the individual analysis stages with a stubbed generative client."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from smartmailbox.exceptions import (
    EventDetectionFailedError,
    ExtractFailedError,
    ModelFailure,
    RectifyFailedError,
    ValidationFailure,
)
from smartmailbox.schemas.analysis import CalendarEvent, DetectedEvents, SynthesizedMetadata
from smartmailbox.services.document_rectifier import rectify_document
from smartmailbox.services.event_detector import detect_events
from smartmailbox.services.generative_client import GenerativeClient, GenerativeContent
from smartmailbox.services.metadata_synthesizer import apply_folder_defaults, synthesize_metadata
from smartmailbox.services.text_extractor import extract_text

NOW = datetime(2024, 10, 1, tzinfo=timezone.utc)
CONTENT = GenerativeContent(text="Registration renewal due August 16.")


@pytest.fixture()
def stub_client():
    client = MagicMock(spec=GenerativeClient)
    client.vision_model = "stub/vision"
    client.text_model = "stub/text"
    client.image_model = "stub/image"
    return client


class TestRectifier:

    def test_returns_rectified_image(self, stub_client):
        stub_client.generate_image.return_value = "data:image/png;base64,CROPPED"
        assert rectify_document(stub_client, "data:image/png;base64,RAW") == "data:image/png;base64,CROPPED"

    def test_no_image_is_terminal(self, stub_client):
        stub_client.generate_image.return_value = None
        with pytest.raises(RectifyFailedError) as exc:
            rectify_document(stub_client, "data:image/png;base64,RAW")
        assert exc.value.error_code.value == "RECTIFY_FAILED"


class TestExtractor:

    def test_returns_text(self, stub_client):
        stub_client.generate_text.return_value = "Invoice total: $40"
        assert extract_text(stub_client, "data:application/pdf;base64,JVBERg==") == "Invoice total: $40"

    def test_empty_text_is_terminal(self, stub_client):
        stub_client.generate_text.return_value = ""
        with pytest.raises(ExtractFailedError):
            extract_text(stub_client, "data:application/pdf;base64,JVBERg==")

    def test_unreachable_model_propagates(self, stub_client):
        stub_client.generate_text.side_effect = ModelFailure("down", model="stub/text")
        with pytest.raises(ModelFailure):
            extract_text(stub_client, "data:application/pdf;base64,JVBERg==")


class TestFolderDefaults:

    def test_empty_tags_and_path(self):
        assert apply_folder_defaults("", []) == ("Uncategorized", ["Uncategorized"])

    def test_path_from_tags(self):
        assert apply_folder_defaults("", ["Finance", "Banking"]) == ("Finance / Banking", ["Finance", "Banking"])

    def test_explicit_path_kept(self):
        assert apply_folder_defaults("Auto/Registration", ["Car"]) == ("Auto/Registration", ["Car"])


class TestMetadataSynthesizer:

    def test_applies_defaults(self, stub_client):
        stub_client.generate_structured.return_value = SynthesizedMetadata(
            filename="DMV Notice", summary="Renewal notice.", folderPath="", folderTags=[]
        )
        result = synthesize_metadata(stub_client, CONTENT)
        assert result.folder_tags == ["Uncategorized"]
        assert result.folder_path == "Uncategorized"

    def test_pdf_suffix_added_once(self, stub_client):
        stub_client.generate_structured.return_value = SynthesizedMetadata(filename="Water Bill", summary="Bill.")
        assert synthesize_metadata(stub_client, CONTENT, source_is_pdf=True).filename == "Water Bill.pdf"

        stub_client.generate_structured.return_value = SynthesizedMetadata(filename="Water Bill.PDF", summary="Bill.")
        assert synthesize_metadata(stub_client, CONTENT, source_is_pdf=True).filename == "Water Bill.PDF"

    def test_separators_removed_from_filename(self, stub_client):
        stub_client.generate_structured.return_value = SynthesizedMetadata(filename="Statement 06/2024", summary="S.")
        assert synthesize_metadata(stub_client, CONTENT).filename == "Statement 06-2024"

    def test_missing_filename_is_validation_failure(self, stub_client):
        stub_client.generate_structured.return_value = SynthesizedMetadata(filename="  ", summary="Something.")
        with pytest.raises(ValidationFailure) as exc:
            synthesize_metadata(stub_client, CONTENT)
        assert exc.value.details["field"] == "filename"


class TestEventDetector:

    def test_normalizes_year_less_dates(self, stub_client):
        stub_client.generate_structured.return_value = DetectedEvents(
            events=[CalendarEvent(title="BMW - Registration Expires", startDate="August 16")]
        )
        events = detect_events(stub_client, CONTENT, NOW)
        assert events[0].start_date == "2025-08-16T00:00:00"

    def test_unparseable_start_becomes_empty(self, stub_client):
        stub_client.generate_structured.return_value = DetectedEvents(
            events=[CalendarEvent(title="No event found", startDate="No start date found")]
        )
        events = detect_events(stub_client, CONTENT, NOW)
        assert events[0].start_date == ""

    def test_summary_added_to_instruction(self, stub_client):
        stub_client.generate_structured.return_value = DetectedEvents(events=[])
        detect_events(stub_client, CONTENT, NOW, summary="Vehicle registration renewal.")
        instruction = stub_client.generate_structured.call_args.args[0]
        assert "Vehicle registration renewal." in instruction

    def test_model_failure_becomes_detection_failure(self, stub_client):
        stub_client.generate_structured.side_effect = ModelFailure("down", model="stub/vision")
        with pytest.raises(EventDetectionFailedError):
            detect_events(stub_client, CONTENT, NOW)

    def test_bad_output_becomes_detection_failure(self, stub_client):
        stub_client.generate_structured.side_effect = ValidationFailure("bad json")
        with pytest.raises(EventDetectionFailedError):
            detect_events(stub_client, CONTENT, NOW)
