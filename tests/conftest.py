"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from dal.memory_record_store import InMemoryRecordStore
from image_factory import make_data_url, make_image_bytes
from services.currency_formatter import BabelAmountFormatter, CurrencyFormatter
from utils.settings import ValuerConfig

EDITOR_TOKEN = "test-editor-token"


@pytest.fixture
def config(tmp_path) -> ValuerConfig:
    """Default configuration with a temp database dir and one editor token."""
    return ValuerConfig(
        database_dir=tmp_path / "db",
        editor_tokens=(EDITOR_TOKEN,),
        store_backend="memory",
    )


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def formatter(config) -> CurrencyFormatter:
    return CurrencyFormatter(config, primary=BabelAmountFormatter())


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def png_data_url(png_bytes) -> str:
    return make_data_url(png_bytes, "png")
