"""
Error taxonomy for the capture-and-classify pipeline.

Each pipeline stage raises its own family so callers can tell which
external collaborator failed:
- CameraError: camera permission / hardware
- CaptureError: no session / surface not ready
- PublishError: network / remote rejection
- ModelError: load / inference failure
"""

from __future__ import annotations


class InventoryCameraError(Exception):
    """Base class for all pipeline errors."""


class CameraError(InventoryCameraError):
    pass


class CameraAccessDenied(CameraError):
    pass


class CameraUnavailable(CameraError):
    pass


class CaptureError(InventoryCameraError):
    pass


class NoActiveSession(CaptureError):
    def __init__(self, message: str = "No active camera session"):
        super().__init__(message)


class SurfaceNotReady(CaptureError):
    def __init__(self, message: str = "Video surface has not produced a frame yet"):
        super().__init__(message)


class PublishError(InventoryCameraError):
    pass


class PublishNetworkError(PublishError):
    pass


class PublishRejected(PublishError):
    pass


class ModelError(InventoryCameraError):
    pass


class ModelLoadFailed(ModelError):
    pass


class InferenceFailed(ModelError):
    pass
