"""
Inference backend interface.

A ModelLoader produces a DetectionModel; models return pixel-space
detections in the coordinate system of the image they were given.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import Detection


class DetectionModel(Protocol):
    def detect(self, frame: np.ndarray) -> List[Detection]:
        ...


class ModelLoader(Protocol):
    def load(self) -> DetectionModel:
        ...
