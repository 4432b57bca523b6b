"""
Camera factory.

This is the single entrypoint the rest of the project should use to create a
camera backend and its session manager.
"""

from __future__ import annotations

from typing import Any, Dict, Union

from models.config import CameraConfig
from .backends.opencv import OpenCVCameraBackend, OpenCVCameraConfig
from .base import CameraBackend
from .session import DeviceSessionManager


def create_camera_backend(camera_cfg: Union[CameraConfig, Dict[str, Any]]) -> CameraBackend:
    if isinstance(camera_cfg, dict):
        camera_cfg = CameraConfig.from_dict(camera_cfg)

    if camera_cfg.backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {camera_cfg.backend}")

    return OpenCVCameraBackend(
        OpenCVCameraConfig(
            device_id=camera_cfg.device_id,
            resolution=tuple(camera_cfg.resolution),
            fps=int(camera_cfg.fps),
            open_attempts=int(camera_cfg.open_attempts),
            swap_rb=bool(camera_cfg.swap_rb),
            rotate=int(camera_cfg.rotate or 0),
            flip_horizontal=bool(camera_cfg.flip_horizontal),
            flip_vertical=bool(camera_cfg.flip_vertical),
        )
    )


def create_session_manager(camera_cfg: Union[CameraConfig, Dict[str, Any]]) -> DeviceSessionManager:
    return DeviceSessionManager(create_camera_backend(camera_cfg))
