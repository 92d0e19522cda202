"""Small image payloads for tests."""

from __future__ import annotations

import base64
import io

from PIL import Image


def make_image_bytes(fmt: str = "PNG", size=(8, 6), color=(200, 30, 30)) -> bytes:
    """Encode a small solid-colour image with Pillow."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_data_url(data: bytes, image_type: str = "png") -> str:
    return f"data:image/{image_type};base64,{base64.b64encode(data).decode('ascii')}"
