"""
Inventory records kept by the inventory collaborator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class InventoryItem:
    name: str
    quantity: int
    updated_at: Optional[float] = None

    @property
    def display_name(self) -> str:
        return self.name[:1].upper() + self.name[1:]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "quantity": self.quantity, "updated_at": self.updated_at}


@dataclass(frozen=True)
class CaptureRecord:
    """One delivered capture result, as stored in the capture history."""
    id: int
    timestamp: float
    artifact_reference: Optional[str]
    classify_status: str
    labels: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "artifact_reference": self.artifact_reference,
            "classify_status": self.classify_status,
            "labels": list(self.labels),
        }
