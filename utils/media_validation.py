"""Validation helpers for captured images submitted as data URLs."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from utils.errors import InvalidImageData, InvalidImageFormat, UnsupportedImageType

ALLOWED_IMAGE_TYPES = {"jpg", "jpeg", "png", "gif", "webp"}

_DATA_URL = re.compile(r"^data:image/([A-Za-z0-9.+-]+);base64,(.*)$", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class DecodedImage:
    """Raw image bytes extracted from a data URL."""

    data: bytes
    extension: str
    mime_type: str


def decode_image_data_url(data_url: str) -> DecodedImage:
    """Decode a `data:image/<format>;base64,<payload>` string.

    Args:
        data_url: The data URL sent by the capture widget.

    Returns:
        A `DecodedImage` with the decoded bytes and a normalized extension
        (`jpeg` becomes `jpg`).

    Raises:
        InvalidImageFormat: If the string is not an image data URL.
        UnsupportedImageType: If the format is outside the allow-list.
        InvalidImageData: If the payload is not strictly valid base64.
    """
    if not isinstance(data_url, str):
        raise InvalidImageFormat()

    match = _DATA_URL.match(data_url.strip())
    if not match:
        raise InvalidImageFormat()

    image_type = match.group(1).lower()
    if image_type not in ALLOWED_IMAGE_TYPES:
        raise UnsupportedImageType(f"Unsupported image type: {image_type}")

    # Line-wrapped payloads are common from canvas exports; anything else
    # outside the alphabet must fail strict decoding.
    payload = _WHITESPACE.sub("", match.group(2))
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageData() from exc

    if not data:
        raise InvalidImageData()

    extension = "jpg" if image_type == "jpeg" else image_type
    mime_subtype = "jpeg" if extension == "jpg" else extension
    return DecodedImage(data=data, extension=extension, mime_type=f"image/{mime_subtype}")
