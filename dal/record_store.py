"""Storage contract used by asset ingestion and table rendering.

Implementations own persistence of records, their key-value metadata and
the single binary attachment each record carries. The services above only
depend on this interface, so storage backends can be swapped freely.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from models.asset_record import AssetRecord, AttachmentRecord


class RecordStore(ABC):
    """Async create/read/query/attach/delete operations on asset records."""

    @abstractmethod
    async def create_record(self, record_type: str, title: str, body: str, excerpt: str) -> AssetRecord:
        """Insert a new record and return it with its assigned id and timestamp."""

    @abstractmethod
    async def get_record(self, record_id: int) -> Optional[AssetRecord]:
        """Return the record for `record_id`, or None if not found."""

    @abstractmethod
    async def set_metadata(self, record_id: int, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""

    @abstractmethod
    async def query_records(
        self,
        record_type: str,
        *,
        limit: int,
        meta_filter: Optional[Mapping[str, str]] = None,
    ) -> List[AssetRecord]:
        """Return up to `limit` records of `record_type`, newest first.

        Args:
            record_type: Type discriminator to match.
            limit: Maximum number of records to return.
            meta_filter: Optional exact-match metadata constraints.
        """

    @abstractmethod
    async def attach_binary(self, record_id: int, filename: str, data: bytes, mime_type: str) -> AttachmentRecord:
        """Store `data` as an attachment owned by `record_id`.

        Raises:
            Exception: Any failure to persist the bytes; callers treat it as
                an attachment storage failure.
        """

    @abstractmethod
    async def set_primary_attachment(self, record_id: int, attachment_id: int) -> None:
        """Mark `attachment_id` as the record's thumbnail image."""

    @abstractmethod
    async def get_attachment(self, attachment_id: int) -> Optional[AttachmentRecord]:
        """Return attachment details, or None if not found."""

    @abstractmethod
    async def read_attachment(self, attachment_id: int, thumbnail: bool = False) -> Optional[bytes]:
        """Return stored bytes for an attachment (or its thumbnail)."""

    @abstractmethod
    async def delete_record(self, record_id: int) -> bool:
        """Delete a record with its metadata and attachments. Returns True if it existed."""
