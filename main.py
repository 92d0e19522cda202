import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dal.memory_record_store import InMemoryRecordStore
from dal.record_store import RecordStore
from dal.sqlite_record_store import SQLiteRecordStore
from routes.asset_route import router as asset_router
from services.currency_formatter import CurrencyFormatter
from services.template_resolver import TemplateResolver
from utils.database_init import AsyncDatabaseInitializer
from utils.errors import AssetError
from utils.settings import ValuerConfig, load_config

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def build_record_store(config: ValuerConfig) -> RecordStore:
    """Create the record store selected by `config.store_backend`."""
    if config.store_backend == "memory":
        return InMemoryRecordStore()
    if config.store_backend != "sqlite":
        raise RuntimeError(f"Unknown VALUER_STORE backend: {config.store_backend!r}")
    if config.database_dir is None:
        raise RuntimeError("DATABASE_DIR must be set for the sqlite record store")
    db_initializer = AsyncDatabaseInitializer(config.database_dir)
    return SQLiteRecordStore(db_initializer, public_base_url=config.public_base_url)


def create_app(config: Optional[ValuerConfig] = None, record_store: Optional[RecordStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Args:
        config: Optional configuration; read from the environment at startup when omitted.
        record_store: Optional record store; built from the configuration when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the configuration
          - the record store (SQLite schema is created on first use)
          - the currency formatter (strategy chosen once here)
          - the widget template resolver
        and attach them to `app.state`.
        """
        app_config = config or load_config()
        store = record_store or build_record_store(app_config)

        if isinstance(store, SQLiteRecordStore):
            await store.initialize()

        app.state.config = app_config
        app.state.record_store = store
        app.state.currency_formatter = CurrencyFormatter(app_config)
        app.state.template_resolver = TemplateResolver(app_config)

        LOGGER.info("Asset valuer ready (store=%s)", type(store).__name__)
        yield

    app = FastAPI(title="Asset Valuer", lifespan=lifespan)

    @app.exception_handler(AssetError)
    async def asset_error_handler(request: Request, exc: AssetError):
        """Return structured `{code, message, data}` bodies for asset errors."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies the record store and formatter are present.
        """
        has_store = getattr(request.app.state, "record_store", None) is not None
        formatter = getattr(request.app.state, "currency_formatter", None)
        return {
            "ok": True,
            "store_initialized": has_store,
            "formatter": type(formatter.primary).__name__ if formatter else None,
        }

    # Register application routers
    app.include_router(asset_router)

    return app


app = create_app()
