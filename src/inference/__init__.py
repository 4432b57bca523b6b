"""
Object detection for captured stills.
"""

from .backend import DetectionModel, ModelLoader
from .classifier import ClassifierAdapter
from .cpu_backend import CpuYoloConfig, UltralyticsCpuLoader

__all__ = [
    "DetectionModel",
    "ModelLoader",
    "ClassifierAdapter",
    "CpuYoloConfig",
    "UltralyticsCpuLoader",
]
