"""Process-local record store used for tests and ephemeral deployments."""

from __future__ import annotations

import copy
import itertools
import time
from typing import Dict, List, Mapping, Optional

from dal.record_store import RecordStore
from models.asset_record import AssetRecord, AttachmentRecord


class InMemoryRecordStore(RecordStore):
    """Keep records, metadata and attachment bytes in dictionaries."""

    def __init__(self) -> None:
        self._records: Dict[int, AssetRecord] = {}
        self._attachments: Dict[int, AttachmentRecord] = {}
        self._blobs: Dict[int, bytes] = {}
        self._record_ids = itertools.count(1)
        self._attachment_ids = itertools.count(1)
        self._sequence = itertools.count()
        self._order: Dict[int, int] = {}

    async def create_record(self, record_type: str, title: str, body: str, excerpt: str) -> AssetRecord:
        record_id = next(self._record_ids)
        record = AssetRecord(
            id=record_id,
            record_type=record_type,
            title=title,
            body=body,
            excerpt=excerpt,
            created_at=int(time.time()),
        )
        self._records[record_id] = record
        self._order[record_id] = next(self._sequence)
        return copy.deepcopy(record)

    async def get_record(self, record_id: int) -> Optional[AssetRecord]:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record else None

    async def set_metadata(self, record_id: int, key: str, value: str) -> None:
        record = self._records.get(record_id)
        if record is None:
            raise KeyError(f"Record {record_id} not found")
        record.metadata[key] = value

    async def query_records(
        self,
        record_type: str,
        *,
        limit: int,
        meta_filter: Optional[Mapping[str, str]] = None,
    ) -> List[AssetRecord]:
        matches = [
            record
            for record in self._records.values()
            if record.record_type == record_type
            and all(record.metadata.get(key) == value for key, value in (meta_filter or {}).items())
        ]
        matches.sort(key=lambda r: (r.created_at or 0, self._order[r.id]), reverse=True)
        return [copy.deepcopy(record) for record in matches[:limit]]

    async def attach_binary(self, record_id: int, filename: str, data: bytes, mime_type: str) -> AttachmentRecord:
        if record_id not in self._records:
            raise KeyError(f"Record {record_id} not found")
        attachment = AttachmentRecord(
            id=next(self._attachment_ids),
            record_id=record_id,
            filename=filename,
            mime_type=mime_type,
            created_at=int(time.time()),
        )
        self._attachments[attachment.id] = attachment
        self._blobs[attachment.id] = bytes(data)
        return copy.deepcopy(attachment)

    async def set_primary_attachment(self, record_id: int, attachment_id: int) -> None:
        record = self._records.get(record_id)
        if record is None:
            raise KeyError(f"Record {record_id} not found")
        record.primary_attachment_id = attachment_id

    async def get_attachment(self, attachment_id: int) -> Optional[AttachmentRecord]:
        attachment = self._attachments.get(attachment_id)
        return copy.deepcopy(attachment) if attachment else None

    async def read_attachment(self, attachment_id: int, thumbnail: bool = False) -> Optional[bytes]:
        # No thumbnails are generated in memory.
        if thumbnail:
            return None
        return self._blobs.get(attachment_id)

    async def delete_record(self, record_id: int) -> bool:
        if self._records.pop(record_id, None) is None:
            return False
        self._order.pop(record_id, None)
        owned = [aid for aid, att in self._attachments.items() if att.record_id == record_id]
        for attachment_id in owned:
            self._attachments.pop(attachment_id, None)
            self._blobs.pop(attachment_id, None)
        return True
