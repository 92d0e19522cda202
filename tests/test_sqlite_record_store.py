"""Tests for the aiosqlite-backed record store."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from dal.sqlite_record_store import SQLiteRecordStore
from image_factory import make_data_url, make_image_bytes
from services.asset_ingestion import AssetIngestionService
from utils.database_init import AsyncDatabaseInitializer
from utils.errors import AttachmentStorageFailed


@pytest.fixture
def sqlite_store(tmp_path) -> SQLiteRecordStore:
    return SQLiteRecordStore(AsyncDatabaseInitializer(tmp_path / "db"), public_base_url="https://valuer.test")


def test_initializer_rejects_file_path(tmp_path) -> None:
    target = tmp_path / "not-a-dir"
    target.write_text("x")
    with pytest.raises(RuntimeError):
        AsyncDatabaseInitializer(target)


@pytest.mark.asyncio
async def test_create_get_and_metadata_round_trip(sqlite_store) -> None:
    record = await sqlite_store.create_record("asset", "Canon EOS R5", "<p>45MP</p>", "notes")
    await sqlite_store.set_metadata(record.id, "_aiav_brand", "Canon")
    await sqlite_store.set_metadata(record.id, "_aiav_brand", "Canon EU")

    loaded = await sqlite_store.get_record(record.id)

    assert loaded.title == "Canon EOS R5"
    assert loaded.body == "<p>45MP</p>"
    assert loaded.excerpt == "notes"
    assert loaded.metadata == {"_aiav_brand": "Canon EU"}
    assert loaded.created_at == record.created_at
    assert await sqlite_store.get_record(9999) is None


@pytest.mark.asyncio
async def test_query_orders_newest_first_and_filters(sqlite_store) -> None:
    first = await sqlite_store.create_record("asset", "First", "", "")
    second = await sqlite_store.create_record("asset", "Second", "", "")
    await sqlite_store.create_record("other", "Other", "", "")
    await sqlite_store.set_metadata(first.id, "_aiav_language", "ar")
    await sqlite_store.set_metadata(second.id, "_aiav_language", "en")

    everything = await sqlite_store.query_records("asset", limit=10)
    arabic = await sqlite_store.query_records("asset", limit=10, meta_filter={"_aiav_language": "ar"})
    limited = await sqlite_store.query_records("asset", limit=1)

    assert [r.title for r in everything] == ["Second", "First"]
    assert [r.title for r in arabic] == ["First"]
    assert arabic[0].metadata == {"_aiav_language": "ar"}
    assert len(limited) == 1


@pytest.mark.asyncio
async def test_attach_binary_writes_original_and_thumbnail(sqlite_store) -> None:
    data = make_image_bytes("JPEG", size=(400, 300))
    record = await sqlite_store.create_record("asset", "Camera", "", "")

    attachment = await sqlite_store.attach_binary(record.id, "asset-abc.jpg", data, "image/jpeg")
    await sqlite_store.set_primary_attachment(record.id, attachment.id)

    assert Path(attachment.path).read_bytes() == data
    assert await sqlite_store.read_attachment(attachment.id) == data

    thumb_path = Path(attachment.thumbnail_path)
    with Image.open(thumb_path) as thumb:
        assert thumb.format == "PNG"
        assert max(thumb.size) <= 150

    loaded = await sqlite_store.get_record(record.id)
    assert loaded.primary_attachment_id == attachment.id
    assert loaded.thumbnail_url == f"https://valuer.test/attachments/{attachment.id}/thumbnail"


@pytest.mark.asyncio
async def test_attach_rejects_bytes_that_are_not_an_image(sqlite_store) -> None:
    record = await sqlite_store.create_record("asset", "Camera", "", "")

    with pytest.raises(ValueError):
        await sqlite_store.attach_binary(record.id, "asset-bad.png", b"definitely not a png", "image/png")


@pytest.mark.asyncio
async def test_delete_removes_metadata_attachments_and_files(sqlite_store, png_bytes) -> None:
    record = await sqlite_store.create_record("asset", "Camera", "", "")
    await sqlite_store.set_metadata(record.id, "_aiav_brand", "Canon")
    attachment = await sqlite_store.attach_binary(record.id, "asset-x.png", png_bytes, "image/png")

    assert await sqlite_store.delete_record(record.id) is True
    assert await sqlite_store.get_record(record.id) is None
    assert await sqlite_store.get_attachment(attachment.id) is None
    assert not Path(attachment.path).exists()
    assert not Path(attachment.thumbnail_path).exists()
    assert await sqlite_store.delete_record(record.id) is False


@pytest.mark.asyncio
async def test_ingestion_rolls_back_when_image_bytes_are_unreadable(sqlite_store, config) -> None:
    service = AssetIngestionService(sqlite_store, config)
    bogus = make_data_url(b"valid base64 but no image", "png")

    with pytest.raises(AttachmentStorageFailed):
        await service.save_asset({"image": bogus, "brand": "Canon"})

    assert await sqlite_store.query_records("asset", limit=10) == []


@pytest.mark.asyncio
async def test_ingestion_end_to_end(sqlite_store, config, png_data_url) -> None:
    saved = await AssetIngestionService(sqlite_store, config).save_asset(
        {"image": png_data_url, "brand": "Canon", "price_low_USD": "100"}
    )

    record = await sqlite_store.get_record(saved.id)
    assert record.primary_attachment_id == saved.attachment_id
    assert record.metadata["_aiav_price_low_usd"] == "100"
    assert record.price_ranges("_aiav_")["usd"].low == "100"
