"""Tests for data URL image decoding."""

from __future__ import annotations

import base64

import pytest

from image_factory import make_data_url, make_image_bytes
from utils.errors import InvalidImageData, InvalidImageFormat, UnsupportedImageType
from utils.media_validation import decode_image_data_url


def test_png_data_url_decodes(png_bytes, png_data_url) -> None:
    decoded = decode_image_data_url(png_data_url)

    assert decoded.data == png_bytes
    assert decoded.extension == "png"
    assert decoded.mime_type == "image/png"


def test_jpeg_extension_is_normalized_to_jpg() -> None:
    jpeg = make_image_bytes("JPEG")
    decoded = decode_image_data_url(make_data_url(jpeg, "JPEG"))

    assert decoded.extension == "jpg"
    assert decoded.mime_type == "image/jpeg"


@pytest.mark.parametrize("image_type", ["gif", "webp", "jpg"])
def test_other_allowed_types_pass_through(image_type) -> None:
    decoded = decode_image_data_url(make_data_url(b"not-checked-here", image_type))
    assert decoded.extension == image_type


def test_wrapped_payload_is_accepted(png_bytes) -> None:
    encoded = base64.b64encode(png_bytes).decode("ascii")
    wrapped = "\n".join(encoded[i:i + 16] for i in range(0, len(encoded), 16))

    assert decode_image_data_url(f"data:image/png;base64,{wrapped}").data == png_bytes


def test_unsupported_type_is_rejected(png_bytes) -> None:
    with pytest.raises(UnsupportedImageType):
        decode_image_data_url(make_data_url(png_bytes, "bmp"))


@pytest.mark.parametrize(
    "payload",
    [
        "abc$def==",
        "aGVsbG8=!",
        "aGVsbG8",
        "",
    ],
)
def test_malformed_base64_is_rejected(payload) -> None:
    with pytest.raises(InvalidImageData):
        decode_image_data_url(f"data:image/png;base64,{payload}")


@pytest.mark.parametrize(
    "value",
    [
        "hello",
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png,aGVsbG8=",
        "https://example.com/a.png",
        None,
    ],
)
def test_non_data_url_is_rejected(value) -> None:
    with pytest.raises(InvalidImageFormat):
        decode_image_data_url(value)
