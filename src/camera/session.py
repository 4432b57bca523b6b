"""
Device session management.

The DeviceSessionManager is the only owner of the camera hardware handle.
Everything else sees the camera through start() / stop() / the session
object it returns.

State machine:
    Off --start() ok--> On
    On  --stop()------> Off
    start() failure leaves the manager Off; start() while On is a no-op.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .base import CameraBackend, MediaStream, MediaTrack


class VideoSurface:
    """
    Live binding between a stream and its consumers.

    Reads are serialized because the preview endpoint and the capture
    pipeline may pull from the same handle on different threads.
    """

    def __init__(self, stream: MediaStream):
        self._stream: Optional[MediaStream] = stream
        self._lock = threading.Lock()
        self.frames_read = 0

    @property
    def attached(self) -> bool:
        return self._stream is not None

    def current_frame(self) -> Optional[np.ndarray]:
        with self._lock:
            if self._stream is None:
                return None
            frame = self._stream.read()
            if frame is not None:
                self.frames_read += 1
            return frame

    def detach(self) -> None:
        with self._lock:
            self._stream = None


@dataclass
class DeviceSession:
    """An acquired camera handle. Inactive sessions hold no tracks."""

    active: bool = False
    track_handles: List[MediaTrack] = field(default_factory=list)
    surface: Optional[VideoSurface] = None
    started_at: Optional[float] = None


class DeviceSessionManager:
    """
    Acquire/release the camera and expose its live surface.

    Example:
        manager = DeviceSessionManager(create_camera_backend(camera_cfg))
        session = manager.start()
        ...
        manager.stop()
    """

    def __init__(self, backend: CameraBackend, constraints: Optional[Dict[str, Any]] = None):
        self._backend = backend
        self._constraints = constraints or {"video": True}
        self._session = DeviceSession()
        self._lock = threading.Lock()

    @property
    def session(self) -> DeviceSession:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session.active

    def start(self) -> DeviceSession:
        """
        Request camera access and bind the stream to a video surface.

        Returns the active session. If a session is already active it is
        returned unchanged and no new hardware access is requested.

        Raises:
            CameraAccessDenied: Permission was refused.
            CameraUnavailable: No usable camera device.
        """
        with self._lock:
            if self._session.active:
                logging.debug("Camera already started; reusing active session")
                return self._session

            logging.info("Starting camera")
            try:
                stream = self._backend.request_access(self._constraints)
            except Exception as e:
                logging.error(f"Error accessing the camera: {e}")
                raise

            tracks = list(stream.get_tracks())
            self._session = DeviceSession(
                active=True,
                track_handles=tracks,
                surface=VideoSurface(stream),
                started_at=time.time(),
            )
            logging.info(f"Camera started ({len(tracks)} track(s))")
            return self._session

    def stop(self) -> None:
        """
        Stop every hardware track and detach the surface.

        Always succeeds. Calling it on an inactive session does nothing.
        """
        with self._lock:
            session = self._session
            if not session.active:
                return

            logging.info("Stopping camera...")
            for track in session.track_handles:
                try:
                    track.stop()
                except Exception as e:
                    logging.warning(f"Error stopping camera track {track!r}: {e}")

            if session.surface is not None:
                session.surface.detach()

            # Mutate in place so holders of this session observe it as Off.
            session.active = False
            session.track_handles = []
            session.surface = None
            logging.info("Camera stopped")

    def close(self) -> None:
        """Teardown hook; same as stop()."""
        self.stop()

    def __enter__(self) -> "DeviceSessionManager":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
