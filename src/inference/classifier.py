"""
Classifier adapter: lazy model loading plus inference on captured stills.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional

from models.capture import StillImage
from models.detection import Detection
from models.errors import InferenceFailed, ModelLoadFailed
from .backend import DetectionModel, ModelLoader


class ClassifierAdapter:
    """
    Loads the detection model once per process and classifies stills.

    Example:
        classifier = ClassifierAdapter(UltralyticsCpuLoader(CpuYoloConfig()))
        detections = classifier.classify(image)
    """

    def __init__(self, loader: ModelLoader):
        self._loader = loader
        self._model: Optional[DetectionModel] = None
        self._load_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def ensure_model_loaded(self) -> None:
        """
        Load the model if it is not loaded yet. Free after the first success.

        Raises:
            ModelLoadFailed: The model could not be loaded. A later call
                tries again.
        """
        if self._model is not None:
            return
        with self._load_lock:
            if self._model is not None:
                return
            start = time.time()
            try:
                self._model = self._loader.load()
            except Exception as e:
                logging.error(f"Error loading detection model: {e}")
                raise ModelLoadFailed(str(e)) from e
            logging.info(f"Detection model loaded in {time.time() - start:.2f}s")

    def classify(self, image: StillImage) -> List[Detection]:
        """
        Run detection on a still. An empty list means nothing was recognized.

        Raises:
            ModelLoadFailed: The model could not be loaded.
            InferenceFailed: The model raised during inference.
        """
        self.ensure_model_loaded()
        model = self._model

        try:
            detections = list(model.detect(image.pixels))
        except Exception as e:
            logging.error(f"Error detecting objects in image: {e}")
            raise InferenceFailed(str(e)) from e

        logging.info(f"Predictions: {[(d.label, round(d.score, 3)) for d in detections]}")
        return detections
