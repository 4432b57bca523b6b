"""
CPU inference backend.

Runs a COCO-pretrained Ultralytics YOLO model. The import and weight
download happen in load(), so constructing the loader is free.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from models.detection import Detection
from .backend import DetectionModel, ModelLoader


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    classes: Optional[Sequence[int]] = None
    class_name_overrides: Optional[Dict[int, str]] = None


def _to_numpy(t: Any) -> np.ndarray:
    return t.cpu().numpy() if hasattr(t, "cpu") else np.asarray(t)


class UltralyticsCpuModel(DetectionModel):
    def __init__(self, model: Any, cfg: CpuYoloConfig):
        self._model = model
        self.cfg = cfg

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            classes=list(self.cfg.classes) if self.cfg.classes is not None else None,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = _to_numpy(boxes.xyxy)
        conf = _to_numpy(boxes.conf)
        cls = _to_numpy(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            label = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
                or str(class_id)
            )
            out.append(
                Detection.from_xyxy(
                    label=label,
                    score=min(1.0, max(0.0, float(c))),
                    x1=float(x1),
                    y1=float(y1),
                    x2=float(x2),
                    y2=float(y2),
                    class_id=class_id,
                )
            )

        return out


class UltralyticsCpuLoader(ModelLoader):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg

    def load(self) -> UltralyticsCpuModel:
        try:
            from ultralytics import YOLO  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics`."
            ) from e

        logging.info(f"Loading detection model: {self.cfg.model}")
        return UltralyticsCpuModel(YOLO(self.cfg.model), self.cfg)
