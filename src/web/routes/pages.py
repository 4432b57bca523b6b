"""
Page routes for the inventory web interface.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("/", response_class=HTMLResponse)
def inventory_page(request: Request):
    """Inventory list, manual add/remove and camera capture controls."""
    ctx = request.app.state.ctx
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "items": ctx.inventory.list_items(),
            "camera_active": ctx.camera.is_active,
        },
    )
