"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates, stored as (x, y, width, height).

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, w, h) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x, self.y, self.x2, self.y2)

    @classmethod
    def from_tuple(cls, t) -> "BoundingBox":
        """Create from (x, y, w, h) sequence."""
        return cls(x=float(t[0]), y=float(t[1]), width=float(t[2]), height=float(t[3]))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    """
    One labeled, scored, localized recognition result.

    Attributes:
        label: Human-readable class name (e.g. "bottle").
        score: Confidence score in [0, 1].
        bbox: Bounding box in pixel coordinates of the still image.
        class_id: Optional numeric class ID from the detector.
    """
    label: str
    score: float
    bbox: BoundingBox
    class_id: Optional[int] = None

    def __post_init__(self):
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score must be within [0, 1], got {self.score}")

    @classmethod
    def from_xyxy(
        cls,
        label: str,
        score: float,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        class_id: Optional[int] = None,
    ) -> "Detection":
        return cls(
            label=label,
            score=score,
            bbox=BoundingBox.from_xyxy(x1, y1, x2, y2),
            class_id=class_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "label": self.label,
            "score": self.score,
            "bbox": list(self.bbox.as_tuple()),
        }
        if self.class_id is not None:
            d["class_id"] = self.class_id
        return d


def labels_of(detections: List[Detection]) -> List[str]:
    """Labels in detection order, duplicates kept."""
    return [d.label for d in detections]
