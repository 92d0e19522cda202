"""Resolve and render the camera valuation widget templates."""

from __future__ import annotations

import html
import logging
import re
from pathlib import Path
from typing import Any, Optional

import aiofiles

from utils.sanitizer import normalize_currency, normalize_language, resolve_locale
from utils.settings import ValuerConfig

LOGGER = logging.getLogger(__name__)

WIDGET_CONTAINER = re.compile(r'<div\s+id="valuationWidget"', re.IGNORECASE)


class TemplateResolver:
    """Map language codes to static widget markup.

    Args:
        config: Provides the language -> template table and templates directory.
    """

    def __init__(self, config: ValuerConfig) -> None:
        self.config = config

    def resolve(self, language: str) -> Optional[Path]:
        """Return the template path for `language`, or None if it does not exist."""
        name = self.config.supported_languages.get(language)
        if not name:
            return None
        path = Path(self.config.templates_dir) / name
        if not path.is_file():
            LOGGER.warning("Widget template for %r not found at %s", language, path)
            return None
        return path

    async def render_widget(self, language: Any = "en", currency: Any = "GBP") -> str:
        """Return the widget markup with currency/language/locale data attributes.

        The attributes are added to the first `valuationWidget` container;
        everything else in the template is returned untouched. An empty
        string is returned when no readable template exists.
        """
        language = normalize_language(language, self.config)
        currency = normalize_currency(currency, self.config)
        locale_tag = resolve_locale(language, self.config)

        path = self.resolve(language)
        if path is None:
            return ""

        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                markup = await f.read()
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("Widget template %s could not be read: %s", path, exc)
            return ""

        dataset = (
            f' data-aiav-currency="{html.escape(currency, quote=True)}"'
            f' data-aiav-language="{html.escape(language, quote=True)}"'
            f' data-aiav-locale="{html.escape(locale_tag, quote=True)}"'
        )
        return WIDGET_CONTAINER.sub(lambda _m: '<div id="valuationWidget"' + dataset, markup, count=1)
