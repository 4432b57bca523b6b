from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

from models.capture import CaptureResult
from models.inventory import CaptureRecord, InventoryItem
from storage.database import Database


def normalize_item_name(name: str) -> str:
    cleaned = " ".join((name or "").split())
    if not cleaned:
        raise ValueError("Item name must not be empty")
    return cleaned


@dataclass
class InventoryService:
    """
    Inventory collaborator: manual add/remove plus the capture callback.
    """
    db: Database

    def add_item(self, name: str) -> int:
        name = normalize_item_name(name)
        quantity = self.db.increment_item(name)
        logging.info(f"Added item {name!r} (quantity={quantity})")
        return quantity

    def remove_item(self, name: str) -> int:
        name = normalize_item_name(name)
        quantity = self.db.decrement_item(name)
        logging.info(f"Removed item {name!r} (quantity={quantity})")
        return quantity

    def list_items(self) -> List[InventoryItem]:
        return self.db.list_items()

    def recent_captures(self, limit: int = 20) -> List[CaptureRecord]:
        return self.db.recent_captures(limit)

    def handle_capture(self, result: CaptureResult) -> None:
        """Add one unit per detected object and record the capture."""
        logging.info(
            f"handle_capture called: artifact={result.artifact_reference}, "
            f"detections={len(result.detections)}, classify={result.classify_status.value}"
        )
        for detection in result.detections:
            try:
                self.add_item(detection.label)
            except ValueError:
                logging.warning(f"Skipping detection with empty label: {detection}")
        self.db.add_capture(result)
