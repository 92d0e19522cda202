from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Optional

_PRICE_KEY = re.compile(r"^(valuation|price_low|price_high)_([a-z0-9_-]+)$")


@dataclass
class PriceRange:
    """Prices stored for one currency on an asset."""

    low: str = ""
    high: str = ""
    valuation: str = ""


@dataclass
class AttachmentRecord:
    """Binary file owned by a single asset record.

    Attributes:
        id: Identifier assigned by the record store.
        record_id: Owning asset record.
        filename: Stored file name (unique per attachment).
        mime_type: MIME type of the original file.
        path: Storage location of the original bytes, if on disk.
        thumbnail_path: Storage location of the thumbnail, if generated.
        created_at: Unix timestamp (seconds) when the attachment was stored.
    """

    id: Optional[int]
    record_id: int
    filename: str
    mime_type: str
    path: Optional[str] = None
    thumbnail_path: Optional[str] = None
    created_at: Optional[int] = None


@dataclass
class AssetRecord:
    """In-memory representation of a saved asset.

    Attributes:
        id: Primary key (None for new records).
        record_type: Type discriminator used when querying.
        title: Display title derived from brand/model/category.
        body: Specification text, possibly wrapped in paragraphs.
        excerpt: Free-text notes.
        metadata: Namespaced key -> stored string value.
        primary_attachment_id: Attachment used as the thumbnail image.
        thumbnail_url: Public URL of the thumbnail, when one exists.
        created_at: Unix timestamp (seconds) when the record was inserted.
    """

    id: Optional[int]
    record_type: str
    title: str = ""
    body: str = ""
    excerpt: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)
    primary_attachment_id: Optional[int] = None
    thumbnail_url: str = ""
    created_at: Optional[int] = None

    def meta(self, prefix: str, key: str) -> str:
        """Return the stored value for `prefix + key`, or an empty string."""
        value = self.metadata.get(f"{prefix}{key}")
        return "" if value is None else str(value)

    def price_ranges(self, prefix: str) -> Dict[str, PriceRange]:
        """Group the `valuation_*`/`price_low_*`/`price_high_*` keys by currency suffix."""
        ranges: Dict[str, PriceRange] = {}
        for key, value in self.metadata.items():
            if not key.startswith(prefix):
                continue
            match = _PRICE_KEY.match(key[len(prefix):])
            if not match:
                continue
            kind, suffix = match.groups()
            price_range = ranges.setdefault(suffix, PriceRange())
            text = "" if value is None else str(value)
            if kind == "price_low":
                price_range.low = text
            elif kind == "price_high":
                price_range.high = text
            else:
                price_range.valuation = text
        return ranges
