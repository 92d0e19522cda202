"""FastAPI routes for saving assets, the widget and the assets table."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse

from controllers.asset_controller import (
	build_table,
	create_asset,
	get_asset,
	get_attachment_bytes,
	render_widget,
)
from services.table_renderer import TableRenderer
from utils.errors import AssetError

router = APIRouter()


@router.post("/assets", status_code=201)
async def create_asset_route(request: Request):
	"""Store a captured image with its valuation metadata."""
	try:
		result = await create_asset(request)
	except (AssetError, HTTPException):
		raise
	except Exception as exc:
		raise AssetError(str(exc) or None) from exc
	return JSONResponse(status_code=201, content=result)


@router.get("/assets/table", response_class=HTMLResponse)
async def assets_table_route(
	request: Request,
	language: Optional[str] = None,
	currency: Optional[str] = None,
	limit: Optional[str] = None,
):
	"""Return the saved-assets table as HTML."""
	try:
		model = await build_table(request, language, currency, limit)
	except (AssetError, HTTPException):
		raise
	except Exception as exc:
		raise AssetError(str(exc) or None) from exc
	return HTMLResponse(TableRenderer.render_html(model))


@router.get("/assets/table.json")
async def assets_table_json_route(
	request: Request,
	language: Optional[str] = None,
	currency: Optional[str] = None,
	limit: Optional[str] = None,
):
	"""Return the saved-assets table rows as JSON."""
	try:
		model = await build_table(request, language, currency, limit)
	except (AssetError, HTTPException):
		raise
	except Exception as exc:
		raise AssetError(str(exc) or None) from exc
	return model.to_dict()


@router.get("/assets/{asset_id}")
async def get_asset_route(request: Request, asset_id: int):
	"""Return one saved asset."""
	try:
		return await get_asset(request, asset_id)
	except (AssetError, HTTPException):
		raise
	except Exception as exc:
		raise AssetError(str(exc) or None) from exc


@router.get("/widget", response_class=HTMLResponse)
async def widget_route(request: Request, language: str = "en", currency: str = "GBP"):
	"""Return the camera valuation widget markup."""
	try:
		return HTMLResponse(await render_widget(request, language, currency))
	except (AssetError, HTTPException):
		raise
	except Exception as exc:
		raise AssetError(str(exc) or None) from exc


@router.get("/attachments/{attachment_id}")
async def get_attachment_route(request: Request, attachment_id: int):
	"""Return the original image bytes for an attachment."""
	try:
		return await get_attachment_bytes(request, attachment_id)
	except (AssetError, HTTPException):
		raise
	except Exception as exc:
		raise AssetError(str(exc) or None) from exc


@router.get("/attachments/{attachment_id}/thumbnail")
async def get_attachment_thumbnail_route(request: Request, attachment_id: int):
	"""Return the PNG thumbnail bytes for an attachment."""
	try:
		return await get_attachment_bytes(request, attachment_id, thumbnail=True)
	except (AssetError, HTTPException):
		raise
	except Exception as exc:
		raise AssetError(str(exc) or None) from exc
