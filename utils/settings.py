"""Immutable runtime configuration for the valuer service.

Every component receives a `ValuerConfig` explicitly instead of reading
module-level constants, so the sanitizer and formatter can be exercised with
alternative defaults in isolation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent
TEMPLATES_DIR = BASE_DIR / "templates"

TABLE_HEADERS: Tuple[str, ...] = (
    "Image",
    "Title",
    "Category",
    "Brand",
    "Model",
    "Specs",
    "Valuation",
    "Confidence",
    "Date",
)


def _frozen(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ValuerConfig:
    """Defaults shared by sanitizing, formatting, rendering and storage.

    Attributes:
        default_language: Language used when input is missing or unsupported.
        default_currency: ISO 4217 code used when input is not three letters.
        supported_languages: Language code -> widget template file name.
        locale_map: Language code -> locale tag for number formatting.
        currency_symbols: Currency code -> symbol for the fallback formatter.
        meta_prefix: Namespace prepended to every persisted metadata key.
        default_title: Title used when brand, model and category are empty.
        record_type: Record type stored for saved assets.
        host_locale: Locale used for record dates.
        database_dir: Directory holding the SQLite file and attachments.
        templates_dir: Directory holding the widget templates.
        editor_tokens: Bearer tokens allowed to create assets.
        public_base_url: Prefix for links and attachment URLs.
        store_backend: ``sqlite`` or ``memory``.
    """

    default_language: str = "en"
    default_currency: str = "GBP"
    supported_languages: Mapping[str, str] = field(
        default_factory=lambda: _frozen(
            {
                "en": "camera-ai-asset-valuer-english",
                "ar": "camera-ai-asset-valuer-arabic",
            }
        )
    )
    locale_map: Mapping[str, str] = field(
        default_factory=lambda: _frozen({"en": "en-GB", "ar": "ar"})
    )
    currency_symbols: Mapping[str, str] = field(
        default_factory=lambda: _frozen({"USD": "$", "EUR": "€", "GBP": "£"})
    )
    meta_prefix: str = "_aiav_"
    default_title: str = "Asset"
    record_type: str = "asset"
    table_default_limit: int = 50
    table_min_limit: int = 1
    table_max_limit: int = 200
    host_locale: str = "en_GB"
    database_dir: Optional[Path] = None
    templates_dir: Path = TEMPLATES_DIR
    editor_tokens: Tuple[str, ...] = ()
    public_base_url: str = ""
    store_backend: str = "sqlite"

    def meta_key(self, key: str) -> str:
        """Return the namespaced metadata key for `key`."""
        return f"{self.meta_prefix}{key}"


def _split_tokens(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(token.strip() for token in raw.split(",") if token.strip())


def _resolve_database_dir(env_dir: Optional[str]) -> Path:
    if env_dir is None or not env_dir.strip():
        raise RuntimeError(
            "DATABASE_DIR environment variable must be set to a writable "
            "directory path where the SQLite database file will be stored."
        )

    db_dir = Path(env_dir).expanduser()
    if db_dir.exists() and not db_dir.is_dir():
        raise RuntimeError(
            f"DATABASE_DIR={env_dir!r} points to a file, not a directory "
            f"({db_dir}). Please set DATABASE_DIR to a directory path."
        )
    return db_dir


def load_config() -> ValuerConfig:
    """Build a `ValuerConfig` from environment variables.

    Raises:
        RuntimeError: If the sqlite backend is selected and DATABASE_DIR is
            missing or points to a file.
    """
    store_backend = (os.getenv("VALUER_STORE") or "sqlite").strip().lower()
    database_dir = None
    if store_backend == "sqlite":
        database_dir = _resolve_database_dir(os.getenv("DATABASE_DIR"))

    defaults = ValuerConfig()
    templates_env = os.getenv("VALUER_TEMPLATES_DIR")

    return ValuerConfig(
        default_language=os.getenv("VALUER_DEFAULT_LANGUAGE") or defaults.default_language,
        default_currency=(os.getenv("VALUER_DEFAULT_CURRENCY") or defaults.default_currency).upper(),
        host_locale=os.getenv("VALUER_HOST_LOCALE") or defaults.host_locale,
        database_dir=database_dir,
        templates_dir=Path(templates_env).expanduser() if templates_env else TEMPLATES_DIR,
        editor_tokens=_split_tokens(os.getenv("VALUER_EDITOR_TOKENS")),
        public_base_url=(os.getenv("VALUER_PUBLIC_BASE_URL") or "").rstrip("/"),
        store_backend=store_backend,
    )
