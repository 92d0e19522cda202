from __future__ import annotations

import json
import secrets
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import Response

from models.table_models import TableFilters, TableModel
from services.asset_ingestion import AssetIngestionService
from services.table_renderer import TableRenderer
from utils.errors import InvalidPayload, Unauthorized
from utils.settings import ValuerConfig


def ensure_can_edit(request: Request) -> None:
    """Reject callers without an editor bearer token.

    Raises:
        Unauthorized: If the Authorization header is missing or the token is unknown.
    """
    config: ValuerConfig = request.app.state.config
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized()

    token = token.strip()
    if not any(secrets.compare_digest(token, allowed) for allowed in config.editor_tokens):
        raise Unauthorized()


async def create_asset(request: Request) -> Dict[str, Any]:
    """Validate the JSON body, store the asset and return its identifiers.

    Args:
        request: FastAPI Request (used for the body and app.state collaborators).

    Returns:
        A dict containing: id, link, attachmentRef (also as attachment_id)
    """
    ensure_can_edit(request)

    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else None
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidPayload() from exc

    config: ValuerConfig = request.app.state.config
    service = AssetIngestionService(request.app.state.record_store, config)
    saved = await service.save_asset(payload)

    return {
        "id": saved.id,
        "link": f"{config.public_base_url}/assets/{saved.id}",
        "attachmentRef": saved.attachment_id,
        "attachment_id": saved.attachment_id,
    }


async def get_asset(request: Request, asset_id: int) -> Dict[str, Any]:
    """Return a stored asset as JSON.

    Raises:
        HTTPException(404) if no asset with `asset_id` exists.
    """
    config: ValuerConfig = request.app.state.config
    record = await request.app.state.record_store.get_record(int(asset_id))
    if record is None or record.record_type != config.record_type:
        raise HTTPException(status_code=404, detail="Asset not found")

    prefix = config.meta_prefix
    return {
        "id": record.id,
        "title": record.title,
        "body": record.body,
        "excerpt": record.excerpt,
        "metadata": {key[len(prefix):]: value for key, value in record.metadata.items() if key.startswith(prefix)},
        "attachment_id": record.primary_attachment_id,
        "thumbnail_url": record.thumbnail_url,
        "created_at": record.created_at,
    }


async def build_table(
    request: Request,
    language: Optional[str] = None,
    currency: Optional[str] = None,
    limit: Optional[str] = None,
) -> TableModel:
    """Render the saved-assets table model for the given filters."""
    renderer = TableRenderer(
        request.app.state.record_store,
        request.app.state.currency_formatter,
        request.app.state.config,
    )
    return await renderer.render_table(TableFilters(language=language, currency=currency, limit=limit))


async def render_widget(request: Request, language: str = "en", currency: str = "GBP") -> str:
    """Return the camera widget markup for `language`/`currency`."""
    return await request.app.state.template_resolver.render_widget(language, currency)


async def get_attachment_bytes(request: Request, attachment_id: int, thumbnail: bool = False) -> Response:
    """Return stored attachment bytes (or the PNG thumbnail).

    Raises:
        HTTPException(404) if the attachment or requested file is not found.
    """
    store = request.app.state.record_store
    attachment = await store.get_attachment(int(attachment_id))
    if attachment is None:
        raise HTTPException(status_code=404, detail="Attachment not found")

    data = await store.read_attachment(attachment.id, thumbnail=thumbnail)
    if not data:
        detail = "Thumbnail not available for this attachment" if thumbnail else "Attachment file not found"
        raise HTTPException(status_code=404, detail=detail)

    media_type = "image/png" if thumbnail else attachment.mime_type
    return Response(content=data, media_type=media_type)
