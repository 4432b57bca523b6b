"""
Camera capability interfaces.

A backend grants access to the device and hands back a MediaStream; the
stream exposes its hardware tracks (each individually stoppable) and the
latest frame. Only the DeviceSessionManager talks to these objects.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np


class MediaTrack:
    """One hardware track of a stream (e.g. the video track)."""

    kind: str = "video"

    def stop(self) -> None:
        raise NotImplementedError

    @property
    def live(self) -> bool:
        raise NotImplementedError


class MediaStream:
    def get_tracks(self) -> List[MediaTrack]:
        raise NotImplementedError

    def read(self) -> Optional[np.ndarray]:
        """Return the current frame (BGR), or None if none is available."""
        raise NotImplementedError


class CameraBackend:
    """
    Grants access to a physical camera.

    request_access raises CameraAccessDenied when permission is refused and
    CameraUnavailable when no usable device exists.
    """

    def request_access(self, constraints: Optional[Dict[str, Any]] = None) -> MediaStream:
        raise NotImplementedError
