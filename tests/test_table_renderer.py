"""Tests for the saved-assets table renderer."""

from __future__ import annotations

import datetime

import pytest

from models.table_models import TableFilters
from services.table_renderer import (
    CONFIDENCE_PLACEHOLDER,
    EMPTY_MESSAGE,
    TableRenderer,
    format_confidence,
    format_record_date,
)
from utils.settings import TABLE_HEADERS


async def _add_record(store, title="Canon EOS R5", **meta):
    record = await store.create_record("asset", title, "", "")
    for key, value in meta.items():
        await store.set_metadata(record.id, f"_aiav_{key}", value)
    return record


@pytest.fixture
def renderer(memory_store, formatter, config) -> TableRenderer:
    return TableRenderer(memory_store, formatter, config)


# ---------------------------------------------------------------------------
# Confidence and date helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0.87", "87.0%"),
        ("1", "100.0%"),
        ("87", "87.0%"),
        ("92.456", "92.5%"),
        ("-1", "-1"),
        ("0", "0"),
        ("", CONFIDENCE_PLACEHOLDER),
        (None, CONFIDENCE_PLACEHOLDER),
        ("high", "high"),
    ],
)
def test_format_confidence(raw, expected) -> None:
    assert format_confidence(raw) == expected


def test_format_record_date_uses_host_locale() -> None:
    timestamp = int(datetime.datetime(2026, 10, 18, 12, 0).timestamp())
    assert format_record_date(timestamp, "en_GB") == "18 October 2026"
    assert format_record_date(None, "en_GB") == ""


def test_format_record_date_unknown_locale_falls_back_to_iso() -> None:
    timestamp = int(datetime.datetime(2026, 10, 18, 12, 0).timestamp())
    assert format_record_date(timestamp, "zz_ZZ") == "2026-10-18"


# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 50), ("", 50), ("abc", 50), (10, 10), ("25", 25), (0, 1), (-5, 1), (1000, 200), ("1000", 200)],
)
def test_clamp_limit(renderer, raw, expected) -> None:
    assert renderer.clamp_limit(raw) == expected


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_empty_table_has_placeholder(renderer) -> None:
    model = await renderer.render_table(TableFilters(limit=1000))

    assert model.rows == []
    assert model.limit == 200
    assert model.empty_message == EMPTY_MESSAGE
    assert model.headers == TABLE_HEADERS

    markup = TableRenderer.render_html(model)
    assert markup.count("<tr") == 2
    assert f'<td colspan="9">{EMPTY_MESSAGE}</td>' in markup


@pytest.mark.asyncio
async def test_rows_keep_store_order_newest_first(renderer, memory_store) -> None:
    await _add_record(memory_store, title="First")
    await _add_record(memory_store, title="Second")

    model = await renderer.render_table()

    assert [row.title for row in model.rows] == ["Second", "First"]
    assert model.empty_message is None


@pytest.mark.asyncio
async def test_limit_bounds_rows(renderer, memory_store) -> None:
    for index in range(3):
        await _add_record(memory_store, title=f"Item {index}")

    model = await renderer.render_table(TableFilters(limit="2"))
    assert len(model.rows) == 2


@pytest.mark.asyncio
async def test_row_values_are_escaped_and_formatted(renderer, memory_store) -> None:
    await _add_record(
        memory_store,
        title="<Canon>",
        category="Camera & Lens",
        brand="Canon",
        model="R5",
        specs="45MP",
        currency="gbp",
        language="en",
        confidence="0.87",
        price_low_gbp="1000",
        price_high_gbp="1500",
    )

    row = (await renderer.render_table()).rows[0]

    assert row.title == "&lt;Canon&gt;"
    assert row.category == "Camera &amp; Lens"
    assert row.valuation == "£1,000.00 – £1,500.00"
    assert row.confidence == "87.0%"
    assert row.currency == "GBP"
    assert row.language == "en"
    assert row.thumbnail_url == ""


@pytest.mark.asyncio
async def test_direct_valuation_wins_over_range(renderer, memory_store) -> None:
    await _add_record(
        memory_store,
        currency="usd",
        valuation_usd="About $1,200",
        price_low_usd="1000",
        price_high_usd="1500",
    )

    row = (await renderer.render_table()).rows[0]
    assert row.valuation == "About $1,200"


@pytest.mark.asyncio
async def test_currency_override_selects_price_keys(renderer, memory_store) -> None:
    await _add_record(memory_store, currency="gbp", price_low_gbp="100", price_low_eur="120")

    row = (await renderer.render_table(TableFilters(currency="eur"))).rows[0]

    assert row.currency == "EUR"
    assert row.valuation == "€120.00"


@pytest.mark.asyncio
async def test_missing_metadata_uses_defaults(renderer, memory_store) -> None:
    await _add_record(memory_store, title="")

    row = (await renderer.render_table()).rows[0]

    assert row.title == "Asset"
    assert row.language == "en"
    assert row.currency == "GBP"
    assert row.valuation == ""
    assert row.confidence == CONFIDENCE_PLACEHOLDER


@pytest.mark.asyncio
async def test_language_filter_is_exact(renderer, memory_store) -> None:
    await _add_record(memory_store, title="English", language="en")
    await _add_record(memory_store, title="Arabic", language="ar")

    model = await renderer.render_table(TableFilters(language="AR"))

    assert [row.title for row in model.rows] == ["Arabic"]
    assert model.rows[0].language == "ar"


@pytest.mark.asyncio
async def test_render_html_has_nine_columns(renderer, memory_store) -> None:
    record = await _add_record(memory_store, brand="Canon")
    await memory_store.set_metadata(record.id, "_aiav_specs", "line one\nline two")

    markup = TableRenderer.render_html(await renderer.render_table())

    assert markup.count("<th>") == 9
    assert "<th>Valuation</th>" in markup
    assert markup.count("<td>") == 9
    assert "line one<br />line two" in markup
