"""
Tests for the capture orchestrator (capture -> publish -> classify -> notify).
"""

import asyncio
import threading
import time
from unittest.mock import MagicMock

import pytest

from camera.capture import FrameCapturer
from camera.session import DeviceSession, DeviceSessionManager
from cloud.publisher import ArtifactPublisher
from inference.classifier import ClassifierAdapter
from models.capture import ClassifyStatus, PublishedArtifact
from models.detection import BoundingBox, Detection
from models.errors import (
    InferenceFailed,
    ModelLoadFailed,
    NoActiveSession,
    PublishNetworkError,
    SurfaceNotReady,
)
from pipeline.orchestrator import CaptureOrchestrator

from conftest import FakeBackend


@pytest.fixture
def publisher():
    pub = MagicMock(spec=ArtifactPublisher)
    pub.publish.return_value = PublishedArtifact(key="images/T1.png", url="images/T1.png", published_at=0.0)
    return pub


@pytest.fixture
def classifier(bottle_detection):
    clf = MagicMock(spec=ClassifierAdapter)
    clf.classify.return_value = [bottle_detection]
    return clf


@pytest.fixture
def callback():
    return MagicMock()


def _orchestrator(publisher, classifier, callback, **kwargs):
    return CaptureOrchestrator(FrameCapturer(), publisher, classifier, on_capture=callback, **kwargs)


class TestCaptureAndClassify:
    def test_end_to_end(self, session_manager, publisher, callback):
        bottle = Detection("bottle", 0.87, BoundingBox(10, 10, 50, 80))
        classifier = MagicMock(spec=ClassifierAdapter)
        classifier.classify.return_value = [bottle]
        orchestrator = _orchestrator(publisher, classifier, callback)

        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        assert result.artifact_reference == "images/T1.png"
        assert result.detections == [bottle]
        assert result.classify_status is ClassifyStatus.OK
        callback.assert_called_once_with(result)

    def test_publish_and_classify_share_the_still(self, session_manager, publisher, classifier, callback):
        orchestrator = _orchestrator(publisher, classifier, callback)

        asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        published = publisher.publish.call_args.args[0]
        classified = classifier.classify.call_args.args[0]
        assert published is classified

    def test_publish_failure_still_classifies(self, session_manager, publisher, callback):
        cup = Detection("cup", 0.9, BoundingBox(0, 0, 20, 20))
        classifier = MagicMock(spec=ClassifierAdapter)
        classifier.classify.return_value = [cup]
        publisher.publish.side_effect = PublishNetworkError("offline")
        orchestrator = _orchestrator(publisher, classifier, callback)

        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        assert result.artifact_reference is None
        assert result.detections == [cup]
        assert result.publish_error.startswith("PublishNetworkError")
        callback.assert_called_once()

    def test_classify_failure_keeps_artifact(self, session_manager, publisher, classifier, callback):
        classifier.classify.side_effect = InferenceFailed("bad tensor")
        orchestrator = _orchestrator(publisher, classifier, callback)

        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        assert result.artifact_reference == "images/T1.png"
        assert result.detections == []
        assert result.classify_status is ClassifyStatus.FAILED
        assert "InferenceFailed" in result.classify_error
        callback.assert_called_once_with(result)

    def test_model_load_failure_reported_as_classify_failure(self, session_manager, publisher, classifier, callback):
        classifier.classify.side_effect = ModelLoadFailed("weights missing")

        result = asyncio.run(
            _orchestrator(publisher, classifier, callback).capture_and_classify(session_manager.start())
        )

        assert result.classify_failed

    def test_nothing_recognized_is_ok(self, session_manager, publisher, classifier, callback):
        classifier.classify.return_value = []

        result = asyncio.run(
            _orchestrator(publisher, classifier, callback).capture_and_classify(session_manager.start())
        )

        assert result.detections == []
        assert result.classify_status is ClassifyStatus.OK

    def test_no_session_raises_without_side_effects(self, publisher, classifier, callback):
        orchestrator = _orchestrator(publisher, classifier, callback)

        with pytest.raises(NoActiveSession):
            asyncio.run(orchestrator.capture_and_classify(DeviceSession()))

        publisher.publish.assert_not_called()
        classifier.classify.assert_not_called()
        callback.assert_not_called()

    def test_surface_not_ready(self, publisher, classifier, callback):
        manager = DeviceSessionManager(FakeBackend(frame=None))
        orchestrator = _orchestrator(publisher, classifier, callback)

        with pytest.raises(SurfaceNotReady):
            asyncio.run(orchestrator.capture_and_classify(manager.start()))
        callback.assert_not_called()

    def test_every_callback_invoked_once(self, session_manager, publisher, classifier, callback):
        second = MagicMock()
        orchestrator = _orchestrator(publisher, classifier, callback)
        orchestrator.add_callback(second)

        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        callback.assert_called_once_with(result)
        second.assert_called_once_with(result)

    def test_callback_error_does_not_fail_capture(self, session_manager, publisher, classifier):
        failing = MagicMock(side_effect=RuntimeError("inventory unavailable"))
        orchestrator = _orchestrator(publisher, classifier, failing)

        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        assert result.artifact_reference == "images/T1.png"

    def test_without_callback(self, session_manager, publisher, classifier):
        orchestrator = CaptureOrchestrator(FrameCapturer(), publisher, classifier)

        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        assert len(result.detections) == 1


class TestConcurrentBranches:
    def test_branches_overlap(self, session_manager, publisher, classifier, callback):
        def slow_publish(image):
            time.sleep(0.3)
            return PublishedArtifact(key="k", url="u", published_at=0.0)

        def slow_classify(image):
            time.sleep(0.3)
            return []

        publisher.publish.side_effect = slow_publish
        classifier.classify.side_effect = slow_classify
        orchestrator = _orchestrator(publisher, classifier, callback, concurrent_branches=True)

        start = time.monotonic()
        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))
        elapsed = time.monotonic() - start

        assert result.artifact_reference == "u"
        assert elapsed < 0.55
        callback.assert_called_once()

    def test_one_branch_failing_does_not_cancel_other(self, session_manager, publisher, classifier, callback):
        publisher.publish.side_effect = PublishNetworkError("offline")
        orchestrator = _orchestrator(publisher, classifier, callback, concurrent_branches=True)

        result = asyncio.run(orchestrator.capture_and_classify(session_manager.start()))

        assert result.artifact_reference is None
        assert [d.label for d in result.detections] == ["bottle"]


class TestSerializedCaptures:
    @pytest.mark.parametrize("concurrent_branches", [False, True])
    def test_overlapping_calls_never_classify_together(
        self, session_manager, publisher, classifier, callback, bottle_detection, concurrent_branches
    ):
        lock = threading.Lock()
        running = {"now": 0, "max": 0}

        def slow_classify(image):
            with lock:
                running["now"] += 1
                running["max"] = max(running["max"], running["now"])
            time.sleep(0.2)
            with lock:
                running["now"] -= 1
            return [bottle_detection]

        classifier.classify.side_effect = slow_classify
        orchestrator = _orchestrator(publisher, classifier, callback, concurrent_branches=concurrent_branches)
        session = session_manager.start()

        async def double_click():
            return await asyncio.gather(
                orchestrator.capture_and_classify(session),
                orchestrator.capture_and_classify(session),
            )

        results = asyncio.run(double_click())

        assert running["max"] == 1
        assert classifier.classify.call_count == 2
        assert callback.call_count == 2
        assert all(r.detections == [bottle_detection] for r in results)

    def test_failed_capture_releases_lock(self, publisher, classifier, callback, session_manager):
        orchestrator = _orchestrator(publisher, classifier, callback)

        async def fail_then_capture():
            with pytest.raises(NoActiveSession):
                await orchestrator.capture_and_classify(DeviceSession())
            return await orchestrator.capture_and_classify(session_manager.start())

        result = asyncio.run(fail_then_capture())

        assert result.artifact_reference == "images/T1.png"
