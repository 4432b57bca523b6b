"""
Tests for the inventory collaborator.
"""

import pytest

from models.capture import CaptureResult, ClassifyStatus
from models.detection import BoundingBox, Detection
from web.services.inventory_service import InventoryService, normalize_item_name


@pytest.fixture
def inventory(temp_db):
    return InventoryService(temp_db)


class TestNormalizeItemName:
    def test_collapses_whitespace(self):
        assert normalize_item_name("  cell   phone ") == "cell phone"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_rejected(self, name):
        with pytest.raises(ValueError):
            normalize_item_name(name)


class TestManualEdits:
    def test_add_new_item(self, inventory):
        assert inventory.add_item("cup") == 1
        assert [(i.name, i.quantity) for i in inventory.list_items()] == [("cup", 1)]

    def test_add_existing_item_increments(self, inventory):
        inventory.add_item("cup")
        assert inventory.add_item("cup") == 2

    def test_remove_decrements(self, inventory):
        inventory.add_item("cup")
        inventory.add_item("cup")

        assert inventory.remove_item("cup") == 1

    def test_remove_last_unit_deletes(self, inventory):
        inventory.add_item("cup")

        assert inventory.remove_item("cup") == 0
        assert inventory.list_items() == []

    def test_remove_unknown_item(self, inventory):
        assert inventory.remove_item("ghost") == 0

    def test_add_empty_name_rejected(self, inventory):
        with pytest.raises(ValueError):
            inventory.add_item("  ")


class TestHandleCapture:
    def test_each_detection_adds_one_unit(self, inventory):
        result = CaptureResult(
            artifact_reference="/media/images/T1.png",
            detections=[
                Detection("bottle", 0.87, BoundingBox(10, 10, 50, 80)),
                Detection("bottle", 0.7, BoundingBox(100, 10, 50, 80)),
                Detection("cup", 0.9, BoundingBox(0, 0, 20, 20)),
            ],
        )

        inventory.handle_capture(result)

        assert {i.name: i.quantity for i in inventory.list_items()} == {"bottle": 2, "cup": 1}

    def test_capture_recorded_in_history(self, inventory):
        inventory.handle_capture(
            CaptureResult(
                artifact_reference="/media/images/T1.png",
                detections=[Detection("cup", 0.9, BoundingBox(0, 0, 20, 20))],
            )
        )

        record = inventory.recent_captures()[0]
        assert record.artifact_reference == "/media/images/T1.png"
        assert record.labels == ["cup"]

    def test_failed_classification_adds_nothing(self, inventory):
        inventory.handle_capture(
            CaptureResult(artifact_reference="/media/images/T1.png", classify_status=ClassifyStatus.FAILED)
        )

        assert inventory.list_items() == []
        assert inventory.recent_captures()[0].classify_status == "failed"

    def test_detections_counted_without_artifact(self, inventory):
        inventory.handle_capture(
            CaptureResult(
                artifact_reference=None,
                detections=[Detection("cup", 0.9, BoundingBox(0, 0, 20, 20))],
            )
        )

        assert inventory.list_items()[0].name == "cup"
