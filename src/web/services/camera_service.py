from __future__ import annotations

import time
from typing import Iterable, Optional

import cv2
import numpy as np

from camera.session import DeviceSessionManager
from models.errors import NoActiveSession, SurfaceNotReady


class CameraService:
    """
    Preview of the managed camera surface.

    Never opens the device itself: frames come from the session owned by the
    DeviceSessionManager, so a stopped session ends the preview.
    """

    @staticmethod
    def _encode_jpeg(frame: np.ndarray) -> Optional[bytes]:
        ok, buf = cv2.imencode(".jpg", frame)
        return buf.tobytes() if ok else None

    @staticmethod
    def snapshot_jpeg(manager: DeviceSessionManager) -> bytes:
        session = manager.session
        surface = session.surface
        if not session.active or surface is None:
            raise NoActiveSession()

        frame = surface.current_frame()
        if frame is None:
            if not surface.attached:
                raise NoActiveSession()
            raise SurfaceNotReady()

        jpg = CameraService._encode_jpeg(frame)
        if jpg is None:
            raise RuntimeError("Failed to encode JPEG")
        return jpg

    @staticmethod
    def mjpeg_stream(manager: DeviceSessionManager, fps: int = 5) -> Iterable[bytes]:
        """Yield MJPEG multipart chunks until the session stops."""
        fps = max(1, min(30, int(fps)))
        delay = 1.0 / fps

        while True:
            session = manager.session
            surface = session.surface
            if not session.active or surface is None or not surface.attached:
                return
            frame = surface.current_frame()
            jpg = CameraService._encode_jpeg(frame) if frame is not None else None
            if jpg is not None:
                yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            time.sleep(delay)
