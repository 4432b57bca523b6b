from __future__ import annotations

import logging
import time

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse

from models.errors import (
    CameraAccessDenied,
    CameraError,
    CaptureError,
    NoActiveSession,
    SurfaceNotReady,
)
from runtime.context import RuntimeContext
from ..api_models import (
    AddItemRequest,
    CameraStatusResponse,
    CaptureResponse,
    CapturesResponse,
    HealthResponse,
    InventoryResponse,
    ItemQuantityResponse,
)
from ..services.camera_service import CameraService
from ..services.inventory_service import normalize_item_name

router = APIRouter()


def _ctx(request: Request) -> RuntimeContext:
    return request.app.state.ctx


def _capture_error_status(e: CaptureError) -> int:
    if isinstance(e, NoActiveSession):
        return 409
    if isinstance(e, SurfaceNotReady):
        return 503
    return 500


def _camera_status(ctx: RuntimeContext) -> CameraStatusResponse:
    session = ctx.camera.session
    return CameraStatusResponse(
        active=session.active,
        track_count=len(session.track_handles),
        started_at=session.started_at,
    )


# -----------------------------------------------------------------------------
# Inventory
# -----------------------------------------------------------------------------

@router.get("/inventory", response_model=InventoryResponse)
def list_inventory(request: Request):
    items = _ctx(request).inventory.list_items()
    return {"items": [i.to_dict() for i in items]}


@router.post("/inventory", response_model=ItemQuantityResponse)
def add_item(req: AddItemRequest, request: Request):
    try:
        quantity = _ctx(request).inventory.add_item(req.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"name": normalize_item_name(req.name), "quantity": quantity}


@router.post("/inventory/{name}/remove", response_model=ItemQuantityResponse)
def remove_item(name: str, request: Request):
    try:
        quantity = _ctx(request).inventory.remove_item(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"name": normalize_item_name(name), "quantity": quantity}


# -----------------------------------------------------------------------------
# Camera
# -----------------------------------------------------------------------------

@router.post("/camera/start", response_model=CameraStatusResponse)
def camera_start(request: Request):
    ctx = _ctx(request)
    try:
        ctx.camera.start()
    except CameraAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CameraError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _camera_status(ctx)


@router.post("/camera/stop", response_model=CameraStatusResponse)
def camera_stop(request: Request):
    ctx = _ctx(request)
    ctx.camera.stop()
    return _camera_status(ctx)


@router.get("/camera/status", response_model=CameraStatusResponse)
def camera_status(request: Request):
    return _camera_status(_ctx(request))


@router.get("/camera/snapshot.jpg")
def camera_snapshot(request: Request):
    try:
        jpeg_bytes = CameraService.snapshot_jpeg(_ctx(request).camera)
    except CaptureError as e:
        raise HTTPException(status_code=_capture_error_status(e), detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return StreamingResponse(
        iter([jpeg_bytes]),
        media_type="image/jpeg",
        headers={"Cache-Control": "no-store"},
    )


@router.get("/camera/stream.mjpg")
def camera_stream(request: Request, fps: int = 5):
    manager = _ctx(request).camera
    if not manager.is_active:
        raise HTTPException(status_code=409, detail="No active camera session")
    return StreamingResponse(
        CameraService.mjpeg_stream(manager, fps=fps),
        media_type="multipart/x-mixed-replace; boundary=frame",
    )


# -----------------------------------------------------------------------------
# Capture
# -----------------------------------------------------------------------------

@router.post("/capture", response_model=CaptureResponse)
async def capture(request: Request):
    ctx = _ctx(request)
    try:
        result = await ctx.orchestrator.capture_and_classify(ctx.camera.session)
    except CaptureError as e:
        raise HTTPException(status_code=_capture_error_status(e), detail=str(e))
    return result.to_dict()


@router.get("/captures", response_model=CapturesResponse)
def recent_captures(request: Request, limit: int = 20):
    records = _ctx(request).inventory.recent_captures(limit)
    return {"captures": [r.to_dict() for r in records]}


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health(request: Request):
    ctx = _ctx(request)
    try:
        item_count = len(ctx.inventory.list_items())
        status = "ok"
    except Exception as e:
        logging.warning(f"Health check could not read inventory: {e}")
        item_count = 0
        status = "degraded"
    return HealthResponse(
        status=status,
        uptime_seconds=int(time.time() - ctx.start_time),
        camera_active=ctx.camera.is_active,
        model_loaded=ctx.classifier.is_loaded,
        blob_store=ctx.blob_store.name,
        item_count=item_count,
    )
