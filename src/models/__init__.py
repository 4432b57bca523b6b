"""
Typed models for the inventory camera service.
"""

from .detection import Detection, BoundingBox
from .capture import StillImage, PublishedArtifact, CaptureResult, ClassifyStatus
from .inventory import InventoryItem, CaptureRecord
from .config import (
    Config,
    CameraConfig,
    CaptureConfig,
    DetectionConfig,
    StorageConfig,
    PipelineConfig,
    WebConfig,
)

__all__ = [
    # Detection
    "Detection",
    "BoundingBox",
    # Capture
    "StillImage",
    "PublishedArtifact",
    "CaptureResult",
    "ClassifyStatus",
    # Inventory
    "InventoryItem",
    "CaptureRecord",
    # Config
    "Config",
    "CameraConfig",
    "CaptureConfig",
    "DetectionConfig",
    "StorageConfig",
    "PipelineConfig",
    "WebConfig",
]
