"""
Models produced by one pass through the capture pipeline.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .detection import Detection


@dataclass(frozen=True)
class StillImage:
    """
    An in-memory raster snapshot taken at capture time.

    Attributes:
        pixels: Raw frame as a read-only numpy array (BGR, height x width x 3).
        encoded: Encoded image bytes (PNG by default).
        mime_type: MIME type of `encoded`.
        captured_at: Unix timestamp of the capture.
    """
    pixels: np.ndarray
    encoded: bytes
    mime_type: str = "image/png"
    captured_at: float = 0.0

    def __post_init__(self):
        # Freeze the buffer so the still can be shared by publish and classify.
        if self.pixels.flags.writeable:
            frozen = self.pixels.copy()
            frozen.setflags(write=False)
            object.__setattr__(self, "pixels", frozen)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def data_url(self) -> str:
        payload = base64.b64encode(self.encoded).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"


@dataclass(frozen=True)
class PublishedArtifact:
    """Durable reference to a still stored in the blob store."""
    key: str
    url: str
    published_at: float


class ClassifyStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"


@dataclass
class CaptureResult:
    """
    Consolidated outcome of capture_and_classify.

    `artifact_reference` is None when publishing failed. `classify_status`
    separates "the model found nothing" (OK, empty detections) from
    "the model failed" (FAILED).
    """
    artifact_reference: Optional[str]
    detections: List[Detection] = field(default_factory=list)
    classify_status: ClassifyStatus = ClassifyStatus.OK
    publish_error: Optional[str] = None
    classify_error: Optional[str] = None
    captured_at: Optional[float] = None

    @property
    def published(self) -> bool:
        return self.artifact_reference is not None

    @property
    def classify_failed(self) -> bool:
        return self.classify_status is ClassifyStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "artifact_reference": self.artifact_reference,
            "detections": [d.to_dict() for d in self.detections],
            "classify_status": self.classify_status.value,
            "publish_error": self.publish_error,
            "classify_error": self.classify_error,
            "captured_at": self.captured_at,
        }
