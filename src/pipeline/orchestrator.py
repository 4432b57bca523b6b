"""
Capture orchestrator for the inventory camera.

Sequences one capture: capture -> publish -> classify -> notify.

Failure model:
- capture failure is fatal: there is no image, so the CaptureError propagates
  and the callback is not invoked
- publish and classify are independent: a failure in one is logged and
  recorded on the result, and the other still runs
- the callback receives one consolidated CaptureResult per call

Blocking work (camera read, upload, inference) runs in worker threads so the
event loop only suspends at those boundaries. Calls are serialized: a second
capture waits until the first has notified its callbacks.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional, Tuple

from camera.capture import FrameCapturer
from camera.session import DeviceSession
from cloud.publisher import ArtifactPublisher
from inference.classifier import ClassifierAdapter
from models.capture import CaptureResult, ClassifyStatus, PublishedArtifact, StillImage
from models.detection import Detection
from models.errors import CaptureError, ModelError, PublishError

CaptureCallback = Callable[[CaptureResult], None]


class CaptureOrchestrator:
    """
    Runs the capture pipeline against an active device session.

    Example:
        orchestrator = CaptureOrchestrator(capturer, publisher, classifier,
                                           on_capture=inventory.handle_capture)
        result = await orchestrator.capture_and_classify(manager.session)
    """

    def __init__(
        self,
        capturer: FrameCapturer,
        publisher: ArtifactPublisher,
        classifier: ClassifierAdapter,
        on_capture: Optional[CaptureCallback] = None,
        concurrent_branches: bool = False,
    ):
        self.capturer = capturer
        self.publisher = publisher
        self.classifier = classifier
        self.concurrent_branches = concurrent_branches
        self._callbacks: List[CaptureCallback] = []
        # One capture at a time: the model and the camera handle are shared.
        self._capture_lock = asyncio.Lock()
        if on_capture is not None:
            self._callbacks.append(on_capture)

    def add_callback(self, callback: CaptureCallback) -> None:
        """Register a callback that receives each consolidated result."""
        self._callbacks.append(callback)

    async def capture_and_classify(self, session: DeviceSession) -> CaptureResult:
        """
        Capture a still, then publish and classify it.

        Raises:
            CaptureError: No active session, surface not ready, or encoding
                failed. Nothing is published or classified.
        """
        async with self._capture_lock:
            return await self._run(session)

    async def _run(self, session: DeviceSession) -> CaptureResult:
        try:
            image = await asyncio.to_thread(self.capturer.capture, session)
        except CaptureError as e:
            logging.error(f"Error capturing photo: {e}")
            raise

        if self.concurrent_branches:
            (artifact, publish_error), (detections, classify_error) = await asyncio.gather(
                self._publish(image), self._classify(image)
            )
        else:
            artifact, publish_error = await self._publish(image)
            detections, classify_error = await self._classify(image)

        result = CaptureResult(
            artifact_reference=artifact.url if artifact is not None else None,
            detections=detections,
            classify_status=ClassifyStatus.FAILED if classify_error else ClassifyStatus.OK,
            publish_error=publish_error,
            classify_error=classify_error,
            captured_at=image.captured_at,
        )
        self._notify(result)
        return result

    async def _publish(self, image: StillImage) -> Tuple[Optional[PublishedArtifact], Optional[str]]:
        start = time.time()
        try:
            artifact = await asyncio.to_thread(self.publisher.publish, image)
        except PublishError as e:
            logging.warning(f"Publish failed, continuing without artifact: {e}")
            return None, f"{type(e).__name__}: {e}"
        logging.debug(f"Publish took {(time.time() - start) * 1000:.0f}ms")
        return artifact, None

    async def _classify(self, image: StillImage) -> Tuple[List[Detection], Optional[str]]:
        start = time.time()
        try:
            detections = await asyncio.to_thread(self.classifier.classify, image)
        except ModelError as e:
            logging.warning(f"Classification failed, continuing without detections: {e}")
            return [], f"{type(e).__name__}: {e}"
        logging.debug(f"Classify took {(time.time() - start) * 1000:.0f}ms")
        return detections, None

    def _notify(self, result: CaptureResult) -> None:
        for callback in self._callbacks:
            try:
                callback(result)
            except Exception as e:
                logging.warning(f"Capture callback error: {e}")
