"""
OpenCV camera backend.

Supports:
- USB webcams (device_id as int, e.g. 0)
- RTSP/IP cameras and video files (device_id as str)
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

import cv2
import numpy as np

from ..base import CameraBackend, MediaStream, MediaTrack
from models.errors import CameraAccessDenied, CameraUnavailable


@dataclass(frozen=True)
class OpenCVCameraConfig:
    """
    Attributes:
        device_id: Camera index (int), stream URL or file path (str).
        resolution: Requested (width, height) for USB cameras.
        fps: Requested frame rate for USB cameras.
        open_attempts: How many times to try opening the device.
        buffer_size: OpenCV capture buffer size (keeps frames current).
        swap_rb: Swap R/B channels.
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror the frame horizontally.
        flip_vertical: Flip the frame vertically.
    """
    device_id: Union[int, str] = 0
    resolution: Tuple[int, int] = (1280, 720)
    fps: int = 30
    open_attempts: int = 1
    buffer_size: int = 1
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False


def _device_node(device_id: Union[int, str]) -> Optional[str]:
    """Linux device node for a USB camera index, if any."""
    if isinstance(device_id, int) and sys.platform.startswith("linux"):
        return f"/dev/video{device_id}"
    return None


class OpenCVVideoTrack(MediaTrack):
    """Video track backed by a cv2.VideoCapture handle."""

    kind = "video"

    def __init__(self, cap: cv2.VideoCapture, label: str):
        self._cap = cap
        self._lock = threading.Lock()
        self.label = label

    @property
    def live(self) -> bool:
        return self._cap is not None

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        with self._lock:
            if self._cap is None:
                return False, None
            return self._cap.read()

    def stop(self) -> None:
        with self._lock:
            if self._cap is None:
                return
            self._cap.release()
            self._cap = None
        logging.info(f"Camera track stopped: {self.label}")


class OpenCVStream(MediaStream):
    def __init__(self, track: OpenCVVideoTrack, cfg: OpenCVCameraConfig):
        self._track = track
        self._cfg = cfg

    def get_tracks(self) -> List[MediaTrack]:
        return [self._track]

    def read(self) -> Optional[np.ndarray]:
        ok, frame = self._track.read()
        if not ok or frame is None:
            return None
        return self._apply_transforms(frame)

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Apply configured image transforms (rotate, flip, swap_rb)."""
        cfg = self._cfg

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal or cfg.flip_vertical:
            flip_code = -1 if (cfg.flip_horizontal and cfg.flip_vertical) else (1 if cfg.flip_horizontal else 0)
            frame = cv2.flip(frame, flip_code)

        if cfg.swap_rb:
            frame = frame[..., ::-1].copy()

        return frame


class OpenCVCameraBackend(CameraBackend):
    """
    Opens the device with cv2.VideoCapture on each access request.

    Construction does not touch the hardware; the device is opened by
    request_access and released when its track is stopped.
    """

    def __init__(self, cfg: OpenCVCameraConfig):
        self.cfg = cfg

    def request_access(self, constraints: Optional[Dict[str, Any]] = None) -> MediaStream:
        constraints = constraints or {"video": True}
        if not constraints.get("video"):
            raise CameraUnavailable("Only video capture is supported")

        node = _device_node(self.cfg.device_id)
        if node and os.path.exists(node) and not os.access(node, os.R_OK | os.W_OK):
            logging.error(f"Permission denied for camera device {node}")
            raise CameraAccessDenied(f"Permission denied for camera device {node}")

        cap = self._open()
        track = OpenCVVideoTrack(cap, label=str(self.cfg.device_id))
        return OpenCVStream(track, self.cfg)

    def _open(self) -> cv2.VideoCapture:
        attempts = max(1, int(self.cfg.open_attempts))
        for attempt in range(attempts):
            if attempt > 0:
                wait_time = min(2 ** attempt, 10)
                logging.info(f"Retrying camera open (attempt {attempt + 1}/{attempts}) after {wait_time}s")
                time.sleep(wait_time)

            cap = cv2.VideoCapture(self.cfg.device_id)
            if cap.isOpened():
                self._configure(cap)
                logging.info(
                    f"Camera opened (backend=opencv, id={self.cfg.device_id}, "
                    f"res={self.cfg.resolution}, fps={self.cfg.fps})"
                )
                return cap

            cap.release()
            logging.warning(f"Failed to open camera device {self.cfg.device_id}")

        raise CameraUnavailable(
            f"Failed to open camera device {self.cfg.device_id} after {attempts} attempt(s)"
        )

    def _configure(self, cap: cv2.VideoCapture) -> None:
        # Only USB cameras accept capture properties.
        if not isinstance(self.cfg.device_id, int):
            return
        w, h = self.cfg.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_FPS, self.cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, self.cfg.buffer_size)

        actual_width = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_height = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        actual_fps = cap.get(cv2.CAP_PROP_FPS)
        logging.info(f"Camera actual settings - Resolution: ({actual_width}x{actual_height}), FPS: {actual_fps}")
