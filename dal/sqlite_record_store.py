"""Async SQLite implementation of the asset record store.

Records, metadata and attachment rows live in the database managed by
`utils.database_init.AsyncDatabaseInitializer`; attachment bytes and their
PNG thumbnails are written to `<database_dir>/attachments/`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import aiofiles

from dal.record_store import RecordStore
from models.asset_record import AssetRecord, AttachmentRecord
from services.thumbnail_generator import ThumbnailGenerator
from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class SQLiteRecordStore(RecordStore):
    """Record store backed by aiosqlite and files on disk.

    Args:
        db_initializer: Provider of `aiosqlite` connections and storage paths.
        public_base_url: Prefix used when building thumbnail URLs.
        thumbnail_generator: Optional generator used when attaching images.
    """

    _RECORD_COLUMNS = (
        "a.id",
        "a.record_type",
        "a.title",
        "a.body",
        "a.excerpt",
        "a.primary_attachment_id",
        "a.created_at",
        "t.thumbnail_path",
    )
    _RECORD_SELECT = (
        f"SELECT {', '.join(_RECORD_COLUMNS)} FROM ASSET a "
        "LEFT JOIN ATTACHMENT t ON t.id = a.primary_attachment_id"
    )
    _ATTACHMENT_COLUMNS = "id, record_id, filename, mime_type, path, thumbnail_path, created_at"

    def __init__(
        self,
        db_initializer: AsyncDatabaseInitializer,
        public_base_url: str = "",
        thumbnail_generator: Optional[ThumbnailGenerator] = None,
    ) -> None:
        self._db = db_initializer
        self.public_base_url = public_base_url.rstrip("/")
        self.thumbnail_generator = thumbnail_generator or ThumbnailGenerator()

    async def initialize(self) -> None:
        """Create the schema and attachment directory if missing."""
        await self._db.ensure_database()

    async def create_record(self, record_type: str, title: str, body: str, excerpt: str) -> AssetRecord:
        created_at = int(time.time())
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "INSERT INTO ASSET (record_type, title, body, excerpt, created_at) VALUES (?, ?, ?, ?, ?)",
                (record_type, title, body, excerpt, created_at),
            )
            await conn.commit()
            record_id = cur.lastrowid

        return AssetRecord(
            id=record_id,
            record_type=record_type,
            title=title,
            body=body,
            excerpt=excerpt,
            created_at=created_at,
        )

    async def get_record(self, record_id: int) -> Optional[AssetRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(f"{self._RECORD_SELECT} WHERE a.id = ?", (record_id,))
            row = await cur.fetchone()
            if row is None:
                return None
            record = self._row_to_record(row)
            metadata = await self._load_metadata(conn, [record_id])
        record.metadata = metadata.get(record_id, {})
        return record

    async def set_metadata(self, record_id: int, key: str, value: str) -> None:
        async with self._db.connection() as conn:
            await conn.execute(
                "INSERT INTO ASSET_META (record_id, meta_key, meta_value) VALUES (?, ?, ?) "
                "ON CONFLICT(record_id, meta_key) DO UPDATE SET meta_value = excluded.meta_value",
                (record_id, key, value),
            )
            await conn.commit()

    async def query_records(
        self,
        record_type: str,
        *,
        limit: int,
        meta_filter: Optional[Mapping[str, str]] = None,
    ) -> List[AssetRecord]:
        clauses = ["a.record_type = ?"]
        params: List[object] = [record_type]
        for key, value in (meta_filter or {}).items():
            clauses.append(
                "EXISTS (SELECT 1 FROM ASSET_META m WHERE m.record_id = a.id AND m.meta_key = ? AND m.meta_value = ?)"
            )
            params.extend((key, value))
        params.append(limit)

        sql = f"{self._RECORD_SELECT} WHERE {' AND '.join(clauses)} ORDER BY a.created_at DESC, a.id DESC LIMIT ?"

        async with self._db.connection() as conn:
            cur = await conn.execute(sql, tuple(params))
            rows = await cur.fetchall()
            records = [self._row_to_record(r) for r in rows]
            metadata = await self._load_metadata(conn, [r.id for r in records])

        for record in records:
            record.metadata = metadata.get(record.id, {})
        return records

    async def attach_binary(self, record_id: int, filename: str, data: bytes, mime_type: str) -> AttachmentRecord:
        safe_name = Path(filename).name
        original_path = self._db.attachments_dir / safe_name
        thumb_path = original_path.with_name(f"{original_path.stem}_thumb.png")

        # Thumbnail generation is blocking -> run in thread. Bytes Pillow cannot
        # open raise ValueError before anything touches the disk.
        thumb_bytes = await asyncio.to_thread(self.thumbnail_generator.create_thumbnail, data)

        self._db.attachments_dir.mkdir(parents=True, exist_ok=True)
        try:
            async with aiofiles.open(original_path, "wb") as f:
                await f.write(data)
            async with aiofiles.open(thumb_path, "wb") as f:
                await f.write(thumb_bytes)

            created_at = int(time.time())
            async with self._db.connection() as conn:
                cur = await conn.execute(
                    "INSERT INTO ATTACHMENT (record_id, filename, mime_type, path, thumbnail_path, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (record_id, safe_name, mime_type, str(original_path), str(thumb_path), created_at),
                )
                await conn.commit()
                attachment_id = cur.lastrowid
        except Exception:
            await asyncio.to_thread(self._remove_files, [str(original_path), str(thumb_path)])
            raise

        LOGGER.info("Stored attachment %s for record %s at %s", attachment_id, record_id, original_path)
        return AttachmentRecord(
            id=attachment_id,
            record_id=record_id,
            filename=safe_name,
            mime_type=mime_type,
            path=str(original_path),
            thumbnail_path=str(thumb_path),
            created_at=created_at,
        )

    async def set_primary_attachment(self, record_id: int, attachment_id: int) -> None:
        async with self._db.connection() as conn:
            await conn.execute(
                "UPDATE ASSET SET primary_attachment_id = ? WHERE id = ?",
                (attachment_id, record_id),
            )
            await conn.commit()

    async def get_attachment(self, attachment_id: int) -> Optional[AttachmentRecord]:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._ATTACHMENT_COLUMNS} FROM ATTACHMENT WHERE id = ?",
                (attachment_id,),
            )
            row = await cur.fetchone()
            return self._row_to_attachment(row) if row else None

    async def read_attachment(self, attachment_id: int, thumbnail: bool = False) -> Optional[bytes]:
        attachment = await self.get_attachment(attachment_id)
        if attachment is None:
            return None
        path = attachment.thumbnail_path if thumbnail else attachment.path
        if not path or not Path(path).is_file():
            return None
        async with aiofiles.open(path, "rb") as f:
            return await f.read()

    async def delete_record(self, record_id: int) -> bool:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT path, thumbnail_path FROM ATTACHMENT WHERE record_id = ?",
                (record_id,),
            )
            files = [p for row in await cur.fetchall() for p in row if p]

            await conn.execute("DELETE FROM ASSET_META WHERE record_id = ?", (record_id,))
            await conn.execute("DELETE FROM ATTACHMENT WHERE record_id = ?", (record_id,))
            await conn.execute("DELETE FROM ASSET WHERE id = ?", (record_id,))
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()

        await asyncio.to_thread(self._remove_files, files)
        return bool(changed and changed[0] > 0)

    def thumbnail_url(self, attachment_id: int) -> str:
        """Public URL serving the thumbnail of `attachment_id`."""
        return f"{self.public_base_url}/attachments/{attachment_id}/thumbnail"

    @staticmethod
    async def _load_metadata(conn, record_ids: Sequence[int]) -> Dict[int, Dict[str, str]]:
        """Fetch metadata for `record_ids` grouped by record id."""
        if not record_ids:
            return {}
        placeholders = ", ".join("?" for _ in record_ids)
        cur = await conn.execute(
            f"SELECT record_id, meta_key, meta_value FROM ASSET_META WHERE record_id IN ({placeholders})",
            tuple(record_ids),
        )
        grouped: Dict[int, Dict[str, str]] = {}
        for record_id, key, value in await cur.fetchall():
            grouped.setdefault(record_id, {})[key] = value
        return grouped

    @staticmethod
    def _remove_files(paths: Sequence[str]) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as exc:
                LOGGER.warning("Could not remove attachment file %s: %s", path, exc)

    def _row_to_record(self, row: Sequence[object]) -> AssetRecord:
        """Convert a DB row tuple into an AssetRecord."""
        attachment_id = row[5]
        thumbnail_url = self.thumbnail_url(attachment_id) if attachment_id and row[7] else ""
        return AssetRecord(
            id=row[0],
            record_type=row[1],
            title=row[2] or "",
            body=row[3] or "",
            excerpt=row[4] or "",
            primary_attachment_id=attachment_id,
            thumbnail_url=thumbnail_url,
            created_at=row[6],
        )

    @staticmethod
    def _row_to_attachment(row: Sequence[object]) -> AttachmentRecord:
        """Convert a DB row tuple into an AttachmentRecord."""
        return AttachmentRecord(
            id=row[0],
            record_id=row[1],
            filename=row[2],
            mime_type=row[3],
            path=row[4],
            thumbnail_path=row[5],
            created_at=row[6],
        )
