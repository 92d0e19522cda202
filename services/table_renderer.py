"""Build the saved-assets table from stored records.

`TableRenderer.render_table` queries the record store and reconstructs one
display row per record: localized valuation text, a confidence percentage and
the creation date. `render_html` turns the resulting model into markup.
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, List, Optional

from babel.dates import format_date

from dal.record_store import RecordStore
from models.asset_record import AssetRecord
from models.table_models import TableFilters, TableModel, TableRow
from services.currency_formatter import CurrencyFormatter, to_babel_locale
from utils.sanitizer import escape_html, normalize_currency, normalize_language, normalize_number
from utils.settings import TABLE_HEADERS, ValuerConfig

LOGGER = logging.getLogger(__name__)

CONFIDENCE_PLACEHOLDER = "—"
EMPTY_MESSAGE = "No assets found."


def format_confidence(raw: Any) -> str:
    """Render a stored confidence value.

    Values in (0, 1] are treated as fractions, values above 1 as
    percentages already; anything else is shown as stored.
    """
    text = "" if raw is None else str(raw).strip()
    if not text:
        return CONFIDENCE_PLACEHOLDER

    try:
        value = float(text)
    except ValueError:
        return text

    if 0 < value <= 1:
        return f"{value * 100:.1f}%"
    if value > 1:
        return f"{value:.1f}%"
    return text


def format_record_date(timestamp: Optional[int], host_locale: str) -> str:
    """Format a Unix timestamp as a long date in the host locale."""
    if not timestamp:
        return ""
    day = datetime.date.fromtimestamp(timestamp)
    try:
        return format_date(day, format="long", locale=to_babel_locale(host_locale))
    except Exception as exc:  # pylint: disable=broad-exception-caught
        LOGGER.debug("Date formatting failed for locale %s: %s", host_locale, exc)
        return day.isoformat()


class TableRenderer:
    """Render stored assets as table rows.

    Args:
        store: Record store to read from.
        formatter: Currency formatter used for valuation text.
        config: Shared configuration (defaults, limits, metadata prefix).
    """

    def __init__(self, store: RecordStore, formatter: CurrencyFormatter, config: ValuerConfig) -> None:
        self.store = store
        self.formatter = formatter
        self.config = config

    def clamp_limit(self, raw: Any) -> int:
        """Return the requested limit clamped to the configured bounds."""
        limit = normalize_number(raw) if raw is not None and raw != "" else None
        if limit is None:
            return self.config.table_default_limit
        return max(self.config.table_min_limit, min(self.config.table_max_limit, int(limit)))

    async def render_table(self, filters: Optional[TableFilters] = None) -> TableModel:
        """Query stored assets and build the display model.

        Args:
            filters: Optional language filter/override, currency override and limit.

        Returns:
            A `TableModel`; `empty_message` is set when no record matched.
        """
        filters = filters or TableFilters()
        limit = self.clamp_limit(filters.limit)

        language_override = None
        meta_filter = None
        if isinstance(filters.language, str) and filters.language.strip():
            language_override = normalize_language(filters.language, self.config)
            meta_filter = {self.config.meta_key("language"): language_override}

        currency_override = None
        if isinstance(filters.currency, str) and filters.currency.strip():
            currency_override = normalize_currency(filters.currency, self.config)

        records = await self.store.query_records(self.config.record_type, limit=limit, meta_filter=meta_filter)
        rows = [self.build_row(record, language_override, currency_override) for record in records]

        model = TableModel(headers=TABLE_HEADERS, limit=limit, rows=rows)
        if not rows:
            model.empty_message = EMPTY_MESSAGE
        return model

    def build_row(
        self,
        record: AssetRecord,
        language_override: Optional[str] = None,
        currency_override: Optional[str] = None,
    ) -> TableRow:
        """Derive the display values for one record."""
        prefix = self.config.meta_prefix

        language = normalize_language(language_override or record.meta(prefix, "language"), self.config)
        currency = normalize_currency(currency_override or record.meta(prefix, "currency"), self.config)

        price = record.price_ranges(prefix).get(currency.lower())
        valuation = ""
        if price is not None:
            valuation = price.valuation.strip()
            if not valuation:
                valuation = self.formatter.format_price_range(price.low, price.high, currency, language)

        return TableRow(
            id=record.id,
            thumbnail_url=record.thumbnail_url or "",
            title=escape_html(record.title or self.config.default_title),
            category=escape_html(record.meta(prefix, "category")),
            brand=escape_html(record.meta(prefix, "brand")),
            model=escape_html(record.meta(prefix, "model")),
            specs=escape_html(record.meta(prefix, "specs")),
            valuation=escape_html(valuation),
            confidence=escape_html(format_confidence(record.meta(prefix, "confidence"))),
            date=escape_html(format_record_date(record.created_at, self.config.host_locale)),
            language=language,
            currency=currency,
        )

    @staticmethod
    def render_html(model: TableModel) -> str:
        """Emit the table markup for `model`."""
        lines: List[str] = ['<table class="aiav-table">', "<thead><tr>"]
        lines.extend(f"<th>{escape_html(header)}</th>" for header in model.headers)
        lines.append("</tr></thead>")
        lines.append("<tbody>")

        if not model.rows:
            lines.append(
                f'<tr class="aiav-empty"><td colspan="{len(model.headers)}">'
                f"{escape_html(model.empty_message or EMPTY_MESSAGE)}</td></tr>"
            )

        for row in model.rows:
            image = ""
            if row.thumbnail_url:
                image = f'<img src="{escape_html(row.thumbnail_url)}" alt="{row.title}" loading="lazy">'
            cells = (
                image,
                row.title,
                row.category,
                row.brand,
                row.model,
                row.specs.replace("\n", "<br />"),
                row.valuation,
                row.confidence,
                row.date,
            )
            lines.append(f'<tr data-aiav-language="{row.language}" data-aiav-currency="{row.currency}">')
            lines.extend(f"<td>{cell}</td>" for cell in cells)
            lines.append("</tr>")

        lines.append("</tbody>")
        lines.append("</table>")
        return "\n".join(lines)
