"""Currency and price-range formatting.

Two interchangeable strategies format a single amount:

- `BabelAmountFormatter` uses Babel's CLDR data for locale-aware currency output.
- `SymbolAmountFormatter` prefixes a known symbol (or the currency code) to the
  amount with two decimals and grouping separators.

`resolve_amount_formatter` picks the strategy once at startup; `CurrencyFormatter`
then always falls back to the symbol strategy if the chosen one fails for a
particular amount, so formatting never raises.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from babel import Locale
from babel.numbers import format_currency, format_decimal

from utils.sanitizer import normalize_number, resolve_locale
from utils.settings import ValuerConfig

LOGGER = logging.getLogger(__name__)

RANGE_SEPARATOR = " – "


def to_babel_locale(locale_tag: str) -> str:
    """Convert a BCP 47 style tag (`en-GB`) into Babel's identifier (`en_GB`)."""
    return (locale_tag or "en-GB").replace("-", "_")


class AmountFormatter(Protocol):
    def format(self, amount: float, currency: str, locale_tag: str) -> str:
        ...


class BabelAmountFormatter:
    """Locale-aware currency formatting backed by Babel."""

    def format(self, amount: float, currency: str, locale_tag: str) -> str:
        return format_currency(amount, currency, locale=to_babel_locale(locale_tag))


class SymbolAmountFormatter:
    """Format as `<symbol><amount>` using the configured symbol table.

    Unknown currencies are prefixed with the code and a space (`CHF 10.00`).
    """

    def __init__(self, config: ValuerConfig) -> None:
        self.config = config

    def symbol_for(self, currency: str) -> str:
        return self.config.currency_symbols.get(currency, f"{currency} ")

    def format(self, amount: float, currency: str, locale_tag: str) -> str:
        try:
            number = format_decimal(amount, format="#,##0.00", locale=to_babel_locale(locale_tag))
        except Exception:  # pylint: disable=broad-exception-caught
            number = f"{amount:,.2f}"
        return f"{self.symbol_for(currency)}{number}"


def resolve_amount_formatter(config: ValuerConfig) -> AmountFormatter:
    """Choose the formatting strategy by probing Babel's locale data.

    The Babel strategy is used when every configured locale loads and can
    format the default currency; otherwise the symbol strategy is used.
    """
    locales = set(config.locale_map.values()) | {config.host_locale}
    try:
        for tag in sorted(locales):
            Locale.parse(to_babel_locale(tag))
            format_currency(1, config.default_currency, locale=to_babel_locale(tag))
    except Exception as exc:  # pylint: disable=broad-exception-caught
        LOGGER.warning("Locale-aware currency formatting unavailable, using symbols: %s", exc)
        return SymbolAmountFormatter(config)

    LOGGER.info("Using Babel currency formatting for locales: %s", ", ".join(sorted(locales)))
    return BabelAmountFormatter()


class CurrencyFormatter:
    """Format amounts and price ranges for a language/currency pair.

    Args:
        config: Shared configuration (symbols, locale map, defaults).
        primary: Strategy to try first; resolved from `config` when omitted.
    """

    def __init__(self, config: ValuerConfig, primary: Optional[AmountFormatter] = None) -> None:
        self.config = config
        self.fallback = SymbolAmountFormatter(config)
        self.primary = primary or resolve_amount_formatter(config)

    def format_amount(self, amount: float, currency: str, language: str) -> str:
        """Format `amount` in `currency` for the locale of `language`."""
        locale_tag = resolve_locale(language, self.config)
        try:
            return self.primary.format(amount, currency, locale_tag)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOGGER.debug("Falling back to symbol formatting for %s/%s: %s", currency, locale_tag, exc)
        return self.fallback.format(amount, currency, locale_tag)

    def format_price_range(self, low: Any, high: Any, currency: str, language: str) -> str:
        """Format a low/high pair as `low – high`.

        Empty or non-numeric bounds are dropped; a single remaining bound is
        returned alone and no bounds yields an empty string.
        """
        if _is_empty(low) and _is_empty(high):
            return ""

        amounts = [normalize_number(bound) for bound in (low, high)]
        parts = [self.format_amount(amount, currency, language) for amount in amounts if amount is not None]
        return RANGE_SEPARATOR.join(parts)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
