"""Validate, persist and attach captured assets.

`AssetIngestionService.save_asset` turns an inbound payload into a stored
record with metadata and a single image attachment. A record is never left
behind without its image: if the image cannot be stored after the record was
created, the record is deleted again before the error is raised.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Tuple

from dal.record_store import RecordStore
from models.asset_record import AssetRecord
from utils.errors import AssetError, AttachmentStorageFailed, InvalidPayload, MissingImage, RecordCreationFailed
from utils.media_validation import DecodedImage, decode_image_data_url
from utils.sanitizer import (
    auto_paragraph,
    format_scalar,
    has_paragraph_markup,
    normalize_currency,
    normalize_language,
    normalize_multiline_text,
    normalize_number,
    normalize_paragraph_text,
    normalize_plain_text,
    sanitize_key,
)
from utils.settings import ValuerConfig

LOGGER = logging.getLogger(__name__)

DYNAMIC_PRICE_KEY = re.compile(r"^(valuation|price_low|price_high)_[A-Za-z0-9_-]+$", re.IGNORECASE)

# Fixed payload keys and the sanitizer applied before storing each one.
FIXED_META_FIELDS: Tuple[Tuple[str, Callable[[Any], str]], ...] = (
    ("category", normalize_plain_text),
    ("brand", normalize_plain_text),
    ("model", normalize_plain_text),
    ("specs", normalize_multiline_text),
    ("notes", normalize_multiline_text),
)

# Codes normalized against the configuration; stored only when a non-empty string is sent.
CODE_META_FIELDS: Tuple[Tuple[str, Callable[[Any, ValuerConfig], str]], ...] = (
    ("currency", normalize_currency),
    ("language", normalize_language),
)


@dataclass(frozen=True)
class SavedAsset:
    """Identifiers returned after a successful save."""

    id: int
    attachment_id: int


class AssetIngestionService:
    """Orchestrate validation, record creation, metadata and image storage.

    Args:
        store: Record store receiving the record, metadata and attachment.
        config: Shared configuration (metadata prefix, default title, record type).
    """

    def __init__(self, store: RecordStore, config: ValuerConfig) -> None:
        self.store = store
        self.config = config

    async def save_asset(self, payload: Any) -> SavedAsset:
        """Persist a captured asset.

        Args:
            payload: Decoded JSON body. Must be a mapping with a non-empty
                `image` data URL.

        Returns:
            The new record id and its attachment id.

        Raises:
            InvalidPayload: If `payload` is not a mapping.
            MissingImage: If `image` is absent or blank.
            InvalidImageFormat, UnsupportedImageType, InvalidImageData: If the
                data URL is rejected.
            RecordCreationFailed: If the store cannot create the record.
            AttachmentStorageFailed: If the image cannot be stored; the record
                has been deleted again when this is raised.
        """
        if not isinstance(payload, Mapping):
            raise InvalidPayload()

        image = payload.get("image")
        if not isinstance(image, str) or not image.strip():
            raise MissingImage()

        # Decode up front so that a rejected image never creates a record.
        decoded = decode_image_data_url(image)

        title, body, excerpt = self.build_content(payload)
        try:
            record = await self.store.create_record(self.config.record_type, title, body, excerpt)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise RecordCreationFailed(str(exc) or None) from exc

        LOGGER.info("Created asset record %s (%s)", record.id, title)

        try:
            await self._persist_metadata(record, payload)
            attachment_id = await self._store_image(record, decoded)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            await self._rollback(record)
            if isinstance(exc, AssetError):
                raise
            raise AttachmentStorageFailed(str(exc) or None) from exc

        return SavedAsset(id=record.id, attachment_id=attachment_id)

    def build_content(self, payload: Mapping[str, Any]) -> Tuple[str, str, str]:
        """Return `(title, body, excerpt)` derived from the payload text fields."""
        brand = normalize_plain_text(payload.get("brand"))
        model = normalize_plain_text(payload.get("model"))
        category = normalize_plain_text(payload.get("category"))

        title = " ".join(part for part in (brand, model) if part)
        if not title:
            title = category or self.config.default_title

        body = normalize_paragraph_text(payload.get("specs"))
        if body and not has_paragraph_markup(body):
            body = auto_paragraph(body)

        excerpt = normalize_multiline_text(payload.get("notes"))
        return title, body, excerpt

    def collect_metadata(self, payload: Mapping[str, Any]) -> Dict[str, str]:
        """Return the namespaced metadata to store for `payload`.

        Dynamic price keys that differ only by case collapse into one stored
        key; the value seen last in payload order wins.
        """
        metadata: Dict[str, str] = {}
        for key, normalize in CODE_META_FIELDS:
            raw = payload.get(key)
            if isinstance(raw, str) and raw.strip():
                metadata[self.config.meta_key(key)] = normalize(raw, self.config)

        for key, sanitize in FIXED_META_FIELDS:
            if key in payload:
                metadata[self.config.meta_key(key)] = sanitize(payload[key])

        if "confidence" in payload:
            confidence = normalize_number(payload["confidence"])
            if confidence is not None:
                metadata[self.config.meta_key("confidence")] = format_scalar(confidence)

        for key, value in payload.items():
            if not isinstance(key, str) or not DYNAMIC_PRICE_KEY.match(key):
                continue
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                continue
            text = format_scalar(value) if isinstance(value, float) else normalize_plain_text(str(value))
            metadata[self.config.meta_key(sanitize_key(key))] = text

        return metadata

    async def _persist_metadata(self, record: AssetRecord, payload: Mapping[str, Any]) -> None:
        for key, value in self.collect_metadata(payload).items():
            await self.store.set_metadata(record.id, key, value)

    async def _store_image(self, record: AssetRecord, decoded: DecodedImage) -> int:
        filename = f"asset-{uuid.uuid4().hex}.{decoded.extension}"
        try:
            attachment = await self.store.attach_binary(record.id, filename, decoded.data, decoded.mime_type)
            await self.store.set_primary_attachment(record.id, attachment.id)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise AttachmentStorageFailed(str(exc) or None) from exc
        return attachment.id

    async def _rollback(self, record: AssetRecord) -> None:
        """Delete `record` after a failed save. Failures are logged only."""
        LOGGER.warning("Rolling back asset record %s after a failed save", record.id)
        try:
            await self.store.delete_record(record.id)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.error("Rollback of asset record %s failed: %s", record.id, exc)
