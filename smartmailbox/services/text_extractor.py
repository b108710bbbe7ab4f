"""Transcribe a non-image document into plain text."""

from ..exceptions import ExtractFailedError
from .generative_client import GenerativeClient, GenerativeContent
from .prompts import EXTRACT_INSTRUCTION


def extract_text(client: GenerativeClient, document_data_uri: str) -> str:
    """All readable content of the document, structure preserved.

    Raises:
        ExtractFailedError: the model answered with nothing.
        ModelFailure: the model could not be reached.
    """
    text = client.generate_text(EXTRACT_INSTRUCTION, GenerativeContent(file_data_uri=document_data_uri))
    if not text:
        raise ExtractFailedError(model=client.text_model)
    return text
