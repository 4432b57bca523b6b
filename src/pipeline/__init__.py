"""
Capture-and-classify pipeline.
"""

from .orchestrator import CaptureOrchestrator, CaptureCallback

__all__ = [
    "CaptureOrchestrator",
    "CaptureCallback",
]
