"""
Smoke tests for typed models.
"""

import base64

import numpy as np
import pytest

from models.capture import CaptureResult, ClassifyStatus, StillImage
from models.detection import BoundingBox, Detection, labels_of
from models.errors import (
    CaptureError,
    InventoryCameraError,
    NoActiveSession,
    PublishError,
    PublishNetworkError,
    SurfaceNotReady,
)
from models.inventory import InventoryItem


class TestBoundingBox:
    def test_properties(self):
        bbox = BoundingBox(x=100, y=100, width=100, height=50)
        assert bbox.x2 == 200
        assert bbox.y2 == 150
        assert bbox.center == (150.0, 125.0)
        assert bbox.area == 5000

    def test_from_xyxy(self):
        bbox = BoundingBox.from_xyxy(10, 20, 60, 100)
        assert bbox.as_tuple() == (10, 20, 50, 80)
        assert bbox.as_xyxy() == (10, 20, 60, 100)


class TestDetection:
    def test_score_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            Detection(label="cup", score=1.2, bbox=BoundingBox(0, 0, 1, 1))

    def test_to_dict(self):
        det = Detection(label="bottle", score=0.87, bbox=BoundingBox(10, 10, 50, 80))
        assert det.to_dict() == {"label": "bottle", "score": 0.87, "bbox": [10, 10, 50, 80]}

    def test_to_dict_includes_class_id(self):
        det = Detection.from_xyxy("cup", 0.9, 0, 0, 4, 4, class_id=41)
        assert det.to_dict()["class_id"] == 41

    def test_labels_keep_duplicates(self):
        dets = [
            Detection("cup", 0.9, BoundingBox(0, 0, 1, 1)),
            Detection("cup", 0.8, BoundingBox(2, 2, 1, 1)),
            Detection("book", 0.7, BoundingBox(4, 4, 1, 1)),
        ]
        assert labels_of(dets) == ["cup", "cup", "book"]


class TestStillImage:
    def test_pixels_are_read_only_copy(self):
        frame = np.zeros((4, 6, 3), dtype=np.uint8)
        image = StillImage(pixels=frame, encoded=b"png")

        frame[0, 0] = 255

        assert image.pixels[0, 0, 0] == 0
        assert not image.pixels.flags.writeable
        assert image.size == (6, 4)

    def test_data_url(self):
        image = StillImage(pixels=np.zeros((1, 1, 3), dtype=np.uint8), encoded=b"\x89PNG")

        assert image.data_url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


class TestCaptureResult:
    def test_defaults(self):
        result = CaptureResult(artifact_reference=None)

        assert result.published is False
        assert result.classify_failed is False
        assert result.detections == []

    def test_to_dict(self):
        result = CaptureResult(
            artifact_reference="images/T1.png",
            detections=[Detection("bottle", 0.87, BoundingBox(10, 10, 50, 80))],
            classify_status=ClassifyStatus.FAILED,
            classify_error="InferenceFailed: boom",
        )

        d = result.to_dict()

        assert d["artifact_reference"] == "images/T1.png"
        assert d["classify_status"] == "failed"
        assert d["detections"][0]["label"] == "bottle"
        assert d["publish_error"] is None


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(NoActiveSession, CaptureError)
        assert issubclass(PublishNetworkError, PublishError)
        assert issubclass(CaptureError, InventoryCameraError)

    def test_default_messages(self):
        assert "session" in str(NoActiveSession()).lower()
        assert "frame" in str(SurfaceNotReady()).lower()


def test_inventory_item_display_name():
    item = InventoryItem(name="cell phone", quantity=2)
    assert item.display_name == "Cell phone"
    assert item.to_dict()["quantity"] == 2
