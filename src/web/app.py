"""
FastAPI application factory for the inventory camera service.

Routes:
- /          -> inventory page (Jinja2)
- /api/*     -> REST API (inventory, camera, capture, health)
- /media/*   -> locally stored captures (local-only mode)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from runtime.context import RuntimeContext
from .routes import api, pages


def create_app(ctx: RuntimeContext) -> FastAPI:
    """Create the FastAPI app and wire routes/static assets."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # Teardown: release the camera even if a session is still on.
        logging.info("Shutting down: releasing camera and database")
        ctx.shutdown()

    app = FastAPI(
        title="Inventory Camera",
        version="0.1.0",
        description="Inventory tracker with camera capture and object detection",
        lifespan=lifespan,
    )
    app.state.ctx = ctx

    app.include_router(api.router, prefix="/api")
    app.include_router(pages.router)

    media_dir = ctx.local_media_dir
    if media_dir:
        prefix = ctx.config.storage.media_url_prefix.rstrip("/") or "/media"
        app.mount(prefix, StaticFiles(directory=media_dir), name="media")

    return app
