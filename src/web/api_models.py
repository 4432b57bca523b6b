from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ItemModel(BaseModel):
    name: str
    quantity: int
    updated_at: Optional[float] = None


class InventoryResponse(BaseModel):
    items: List[ItemModel]


class AddItemRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Item name")


class ItemQuantityResponse(BaseModel):
    name: str
    quantity: int = Field(..., description="Quantity after the change (0 = removed)")


class CameraStatusResponse(BaseModel):
    active: bool
    track_count: int
    started_at: Optional[float] = None


class DetectionModel(BaseModel):
    label: str
    score: float = Field(..., ge=0.0, le=1.0)
    bbox: List[float] = Field(..., description="[x, y, width, height] in pixels")
    class_id: Optional[int] = None


class CaptureResponse(BaseModel):
    artifact_reference: Optional[str]
    detections: List[DetectionModel]
    classify_status: str = Field(..., description="ok|failed")
    publish_error: Optional[str] = None
    classify_error: Optional[str] = None
    captured_at: Optional[float] = None


class CaptureRecordModel(BaseModel):
    id: int
    timestamp: float
    artifact_reference: Optional[str]
    classify_status: str
    labels: List[str]


class CapturesResponse(BaseModel):
    captures: List[CaptureRecordModel]


class HealthResponse(BaseModel):
    status: str
    uptime_seconds: int
    camera_active: bool
    model_loaded: bool
    blob_store: str
    item_count: int
