"""
Frame capture: rasterize the live video surface into a StillImage.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Tuple

import cv2
import numpy as np

from models.capture import StillImage
from models.errors import CaptureError, NoActiveSession, SurfaceNotReady
from .session import DeviceSession

_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


class FrameCapturer:
    """
    Snapshot the current surface frame into a fixed-size still.

    The frame is read at call time; no earlier frames are buffered.
    """

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        image_format: str = "png",
        clock: Callable[[], float] = time.time,
    ):
        fmt = image_format.lower()
        if fmt not in _MIME_TYPES:
            raise ValueError(f"Unsupported image format: {image_format}")
        self.size: Tuple[int, int] = (int(width), int(height))
        self.image_format = fmt
        self._clock = clock

    def capture(self, session: DeviceSession) -> StillImage:
        """
        Capture one still from an active session.

        Raises:
            NoActiveSession: The session is Off.
            SurfaceNotReady: The surface has not produced a frame yet.
            CaptureError: The frame could not be encoded.
        """
        # stop() may clear the surface from another thread; read it once.
        surface = session.surface
        if not session.active or surface is None:
            raise NoActiveSession()

        frame = surface.current_frame()
        if frame is None or frame.size == 0:
            if not surface.attached:
                raise NoActiveSession()
            raise SurfaceNotReady()

        raster = self._rasterize(frame)
        ok, buf = cv2.imencode(f".{self.image_format}", raster)
        if not ok:
            raise CaptureError(f"Failed to encode {self.image_format.upper()}")

        image = StillImage(
            pixels=raster,
            encoded=buf.tobytes(),
            mime_type=_MIME_TYPES[self.image_format],
            captured_at=self._clock(),
        )
        logging.info(f"Captured still {image.width}x{image.height} ({len(image.encoded)} bytes)")
        return image

    def _rasterize(self, frame: np.ndarray) -> np.ndarray:
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        h, w = frame.shape[:2]
        if (w, h) == self.size:
            return frame.copy()
        return cv2.resize(frame, self.size, interpolation=cv2.INTER_AREA)
