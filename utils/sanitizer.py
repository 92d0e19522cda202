"""Normalization helpers for inbound payload fields and display values.

Every function here is total: malformed input degrades to a default or an
empty string rather than raising.
"""

from __future__ import annotations

import html
import math
import re
from typing import Any, Optional

from utils.settings import ValuerConfig

_LANGUAGE_STRIP = re.compile(r"[^a-z_-]")
_CURRENCY_STRIP = re.compile(r"[^A-Z]")
_NUMBER_STRIP = re.compile(r"[^0-9.+-]")
_KEY_STRIP = re.compile(r"[^a-z0-9_-]")

_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAGS = re.compile(r"<[^>]*>")
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_PERCENT_OCTETS = re.compile(r"%[a-fA-F0-9]{2}")
_WHITESPACE = re.compile(r"\s+")
_INLINE_WHITESPACE = re.compile(r"[ \t]+")
_PARAGRAPH_TAG = re.compile(r"<p[\s>]", re.IGNORECASE)
_BLANK_LINES = re.compile(r"\n\s*\n")
_PARAGRAPH_OR_BREAK = re.compile(r"<\s*(/?)\s*(p|br)\b[^>]*>", re.IGNORECASE)


def normalize_language(raw: Any, config: ValuerConfig) -> str:
    """Return a supported language code, falling back to the default."""
    text = raw if isinstance(raw, str) else ""
    language = _LANGUAGE_STRIP.sub("", text.lower())
    if language not in config.supported_languages:
        return config.default_language
    return language


def normalize_currency(raw: Any, config: ValuerConfig) -> str:
    """Return a three letter upper-case currency code, falling back to the default."""
    text = raw if isinstance(raw, str) else ""
    currency = _CURRENCY_STRIP.sub("", text.upper())
    if len(currency) != 3:
        return config.default_currency
    return currency


def normalize_number(raw: Any) -> Optional[float]:
    """Parse `raw` into a finite float, or None when nothing numeric remains."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
        return value if math.isfinite(value) else None
    if not isinstance(raw, str):
        return None

    cleaned = _NUMBER_STRIP.sub("", raw)
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _strip_markup(text: str) -> str:
    text = _SCRIPT_STYLE.sub("", text)
    text = _TAGS.sub("", text)
    text = _PERCENT_OCTETS.sub("", text)
    return _CONTROL.sub("", text)


def normalize_plain_text(raw: Any) -> str:
    """Collapse `raw` to single-line text with markup removed."""
    if not isinstance(raw, str):
        return ""
    return _WHITESPACE.sub(" ", _strip_markup(raw)).strip()


def normalize_multiline_text(raw: Any) -> str:
    """Like `normalize_plain_text` but keeps line breaks."""
    if not isinstance(raw, str):
        return ""
    text = raw.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_WHITESPACE.sub(" ", line).strip() for line in _strip_markup(text).split("\n")]
    return "\n".join(lines).strip()


def _keep_paragraph_tag(match: "re.Match[str]") -> str:
    tag = _PARAGRAPH_OR_BREAK.match(match.group(0))
    if not tag:
        return ""
    closing, name = tag.groups()
    if name.lower() == "br":
        return "<br />"
    return f"<{closing}p>"


def normalize_paragraph_text(raw: Any) -> str:
    """Multiline text that may keep bare <p> and <br> tags; all other markup is removed."""
    if not isinstance(raw, str):
        return ""
    text = _SCRIPT_STYLE.sub("", raw.replace("\r\n", "\n").replace("\r", "\n"))
    text = _TAGS.sub(_keep_paragraph_tag, text)
    text = _CONTROL.sub("", text)
    lines = [_INLINE_WHITESPACE.sub(" ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


def sanitize_key(raw: Any) -> str:
    """Lower-case `raw` and keep only characters safe for metadata keys."""
    if not isinstance(raw, str):
        return ""
    return _KEY_STRIP.sub("", raw.lower())


def resolve_locale(language: str, config: ValuerConfig) -> str:
    """Map a language code to the locale tag used for formatting."""
    if language in config.locale_map:
        return config.locale_map[language]
    return language or "en-GB"


def escape_html(value: Any) -> str:
    """HTML-escape a stored value for display."""
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def has_paragraph_markup(text: str) -> bool:
    """Return True if `text` already contains a paragraph tag."""
    return bool(_PARAGRAPH_TAG.search(text))


def auto_paragraph(text: str) -> str:
    """Wrap blank-line separated blocks in <p> and turn single newlines into <br />."""
    if not text.strip():
        return ""
    blocks = [block.strip() for block in _BLANK_LINES.split(text) if block.strip()]
    return "\n".join("<p>" + block.replace("\n", "<br />\n") + "</p>" for block in blocks)


def format_scalar(value: Any) -> str:
    """Stringify a stored scalar, dropping the trailing `.0` on whole floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return "" if value is None else str(value)
