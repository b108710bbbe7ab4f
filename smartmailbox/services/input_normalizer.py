"""Input normalization: whatever was uploaded becomes exactly one payload.

    kind="image", one file    -> the image, byte-for-byte
    kind="image", many files  -> one tall PNG composite, pages in upload order
    kind="other", one file    -> the document, byte-for-byte

Everything else is rejected here, before any model is called.
"""

import base64
import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from PIL import Image, UnidentifiedImageError

from ..core.config import settings
from ..exceptions import InputRejectedError

logger = logging.getLogger(__name__)

COMPOSITE_CONTENT_TYPE = "image/png"
_BACKGROUND = (255, 255, 255)


class InputKind(str, Enum):
    IMAGE = "image"
    OTHER = "other"


@dataclass(frozen=True)
class UploadedFile:
    data: bytes
    content_type: str
    filename: str = ""

    @property
    def is_image(self) -> bool:
        return self.content_type.lower().startswith("image/")


@dataclass(frozen=True)
class NormalizedInput:
    kind: InputKind
    data: bytes
    content_type: str

    @property
    def data_uri(self) -> str:
        return to_data_uri(self.data, self.content_type)

    @property
    def is_pdf(self) -> bool:
        return self.content_type.lower() == "application/pdf"


def to_data_uri(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def composite_layout(sizes: Sequence[tuple[int, int]]) -> tuple[tuple[int, int], list[tuple[int, int]]]:
    """Canvas size and top-left offsets for stacking (width, height) pages.

    Width is the widest page, height the sum of all heights; each page sits at
    x=0 directly below the previous one.
    """
    offsets: list[tuple[int, int]] = []
    y = 0
    for _, height in sizes:
        offsets.append((0, y))
        y += height
    width = max((w for w, _ in sizes), default=0)
    return (width, y), offsets


def stitch_images(images: Sequence[Image.Image]) -> Image.Image:
    """Vertically concatenate *images* onto a white RGB canvas."""
    canvas_size, offsets = composite_layout([img.size for img in images])
    canvas = Image.new("RGB", canvas_size, _BACKGROUND)
    for img, offset in zip(images, offsets):
        if img.mode in ("RGBA", "LA", "P"):
            rgba = img.convert("RGBA")
            canvas.paste(rgba, offset, mask=rgba.split()[-1])
        else:
            canvas.paste(img.convert("RGB"), offset)
    return canvas


def _open_image(upload: UploadedFile, index: int) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(upload.data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise InputRejectedError(
            f"File {index + 1} ({upload.filename or upload.content_type}) is not a readable image",
            field="files",
        ) from e
    return img


def normalize_input(files: Sequence[UploadedFile], kind: InputKind) -> NormalizedInput:
    """Validate the upload against its declared kind and reduce it to one payload.

    Raises:
        InputRejectedError: empty upload, mixed kinds, too many pages, more
            than one non-image file, or undecodable images.
    """
    if not files:
        raise InputRejectedError("No files were uploaded", field="files")

    if kind == InputKind.OTHER:
        if len(files) > 1:
            raise InputRejectedError(
                "Only one file can be analyzed at a time for non-image documents",
                field="files",
            )
        upload = files[0]
        if upload.is_image:
            raise InputRejectedError(
                "Declared kind 'other' but the file is an image",
                field="kind",
            )
        return NormalizedInput(kind=kind, data=upload.data, content_type=upload.content_type)

    mismatched = [f.filename or f.content_type for f in files if not f.is_image]
    if mismatched:
        raise InputRejectedError(
            f"Declared kind 'image' but received non-image files: {', '.join(mismatched)}",
            field="kind",
        )
    if len(files) > settings.max_upload_pages:
        raise InputRejectedError(
            f"At most {settings.max_upload_pages} pages can be stitched, got {len(files)}",
            field="files",
        )

    if len(files) == 1:
        _open_image(files[0], 0)
        return NormalizedInput(kind=kind, data=files[0].data, content_type=files[0].content_type)

    images = [_open_image(upload, i) for i, upload in enumerate(files)]
    composite = stitch_images(images)

    buffer = io.BytesIO()
    composite.save(buffer, format="PNG")
    logger.info(
        "Stitched page images",
        extra={"pages": len(images), "width": composite.width, "height": composite.height},
    )
    return NormalizedInput(kind=kind, data=buffer.getvalue(), content_type=COMPOSITE_CONTENT_TYPE)
