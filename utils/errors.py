"""Error kinds surfaced by asset ingestion and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict


class AssetError(Exception):
    """Base class for failures reported to API callers.

    Each subclass carries a machine readable `kind` and the HTTP status
    the API responds with.
    """

    kind = "asset_error"
    status_code = 500
    default_message = "The asset could not be processed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_response(self) -> Dict[str, Any]:
        """Return the JSON body used for error responses."""
        return {"code": self.kind, "message": self.message, "data": {"status": self.status_code}}


class InvalidPayload(AssetError):
    kind = "invalid_payload"
    status_code = 400
    default_message = "Invalid payload."


class MissingImage(AssetError):
    kind = "missing_image"
    status_code = 422
    default_message = "Image data is required."


class InvalidImageFormat(AssetError):
    kind = "invalid_image_format"
    status_code = 422
    default_message = "Invalid image format."


class UnsupportedImageType(AssetError):
    kind = "unsupported_image_type"
    status_code = 415
    default_message = "Unsupported image type."


class InvalidImageData(AssetError):
    kind = "invalid_image_data"
    status_code = 422
    default_message = "Unable to decode image."


class RecordCreationFailed(AssetError):
    kind = "record_creation_failed"
    status_code = 500
    default_message = "Unable to create the asset record."


class AttachmentStorageFailed(AssetError):
    kind = "attachment_storage_failed"
    status_code = 500
    default_message = "Unable to store the asset image."


class Unauthorized(AssetError):
    kind = "unauthorized"
    status_code = 403
    default_message = "You are not allowed to save assets."
