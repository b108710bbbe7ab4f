"""Rectify a photographed document into a flat, cropped, top-down image."""

import logging

from ..exceptions import RectifyFailedError
from .generative_client import GenerativeClient, GenerativeContent
from .prompts import RECTIFY_INSTRUCTION

logger = logging.getLogger(__name__)


def rectify_document(client: GenerativeClient, image_data_uri: str) -> str:
    """Return the rectified image as a data URI.

    There is no fallback to the uncropped input: a missing image
    ends the analysis with RectifyFailedError.
    """
    result = client.generate_image(RECTIFY_INSTRUCTION, GenerativeContent(image_data_uri=image_data_uri))
    if not result:
        logger.warning("Rectifier returned no image", extra={"model": client.image_model})
        raise RectifyFailedError(model=client.image_model)
    return result
