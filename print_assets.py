"""Print the saved-assets table from the project's SQLite database.

Rows are rendered exactly as the `/assets/table` endpoint renders them
(valuation, confidence and date included) and printed as plain text.

Run: set the `DATABASE_DIR` environment variable and run
      `python print_assets.py [language] [currency] [limit]`.
"""
import asyncio
import html
import sys
from typing import List, Optional

from dotenv import load_dotenv

from dal.sqlite_record_store import SQLiteRecordStore
from models.table_models import TableFilters, TableModel
from services.currency_formatter import CurrencyFormatter
from services.table_renderer import TableRenderer
from utils.database_init import AsyncDatabaseInitializer
from utils.settings import load_config


def format_rows(model: TableModel) -> List[str]:
    """Return one tab-separated line per row, headers first.

    Args:
        model: Rendered table model.

    Returns:
        Lines ready to print; an empty model yields the headers and its
        placeholder message.
    """
    lines = ["\t".join(model.headers)]
    if not model.rows:
        lines.append(model.empty_message or "")
        return lines

    for row in model.rows:
        cells = (
            row.thumbnail_url,
            row.title,
            row.category,
            row.brand,
            row.model,
            row.specs.replace("\n", " "),
            row.valuation,
            row.confidence,
            row.date,
        )
        lines.append("\t".join(html.unescape(cell) for cell in cells))
    return lines


async def main(argv: Optional[List[str]] = None) -> None:
    """Render the table for the optional language/currency/limit arguments and print it."""
    args = list(sys.argv[1:] if argv is None else argv)
    language, currency, limit = (args + [None, None, None])[:3]

    config = load_config()
    store = SQLiteRecordStore(AsyncDatabaseInitializer(config.database_dir), config.public_base_url)
    renderer = TableRenderer(store, CurrencyFormatter(config), config)
    model = await renderer.render_table(TableFilters(language=language, currency=currency, limit=limit))

    for line in format_rows(model):
        print(line)


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
