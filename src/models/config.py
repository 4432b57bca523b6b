"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    open_attempts: int = 1
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            open_attempts=d.get("open_attempts", 1),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )


@dataclass
class CaptureConfig:
    """Still capture raster settings."""
    width: int = 640
    height: int = 480
    image_format: str = "png"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CaptureConfig":
        return cls(
            width=d.get("width", 640),
            height=d.get("height", 480),
            image_format=d.get("image_format", "png"),
        )


@dataclass
class DetectionConfig:
    """Detection model configuration (Ultralytics YOLO)."""
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    classes: Optional[List[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None
    preload: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=d.get("conf_threshold", 0.5),
            iou_threshold=d.get("iou_threshold", 0.45),
            classes=d.get("classes"),
            class_name_overrides=d.get("class_name_overrides"),
            preload=d.get("preload", False),
        )


@dataclass
class StorageConfig:
    """Local database and blob storage configuration."""
    local_database_path: str = "data/inventory.sqlite"
    blob_backend: str = "local"
    local_blob_dir: str = "data/blobs"
    media_url_prefix: str = "/media"
    images_folder: str = "images"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StorageConfig":
        return cls(
            local_database_path=d.get("local_database_path", "data/inventory.sqlite"),
            blob_backend=d.get("blob_backend", "local"),
            local_blob_dir=d.get("local_blob_dir", "data/blobs"),
            media_url_prefix=d.get("media_url_prefix", "/media"),
            images_folder=d.get("images_folder", "images"),
        )


@dataclass
class PipelineConfig:
    """Capture orchestrator options."""
    concurrent_branches: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineConfig":
        return cls(concurrent_branches=bool(d.get("concurrent_branches", False)))


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=int(d.get("port", 5000)))


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    `cloud` holds the optional `gcp` section loaded from cloud_config.yaml.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    web: WebConfig = field(default_factory=WebConfig)
    cloud: Optional[Dict[str, Any]] = None
    log_path: str = "logs/inventory_camera.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any], cloud: Optional[Dict[str, Any]] = None) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            capture=CaptureConfig.from_dict(d.get("capture", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            storage=StorageConfig.from_dict(d.get("storage", {}) or {}),
            pipeline=PipelineConfig.from_dict(d.get("pipeline", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            cloud=cloud,
            log_path=d.get("log_path", "logs/inventory_camera.log"),
            log_level=d.get("log_level", "INFO"),
        )
