"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from camera.base import CameraBackend, MediaStream, MediaTrack  # noqa: E402
from camera.session import DeviceSessionManager  # noqa: E402
from models.detection import Detection  # noqa: E402
from storage.database import Database  # noqa: E402


class FakeTrack(MediaTrack):
    """Video track that records stop() calls."""

    def __init__(self, fail_on_stop=False):
        self.stop_calls = 0
        self.fail_on_stop = fail_on_stop

    @property
    def live(self):
        return self.stop_calls == 0

    def stop(self):
        self.stop_calls += 1
        if self.fail_on_stop:
            raise RuntimeError("track already released")


class FakeStream(MediaStream):
    """Stream serving a fixed frame (or None until a frame is set)."""

    def __init__(self, frame=None, tracks=None):
        self.frame = frame
        self.tracks = tracks if tracks is not None else [FakeTrack()]

    def get_tracks(self):
        return list(self.tracks)

    def read(self):
        return self.frame


class FakeBackend(CameraBackend):
    """Backend that hands out FakeStreams or raises a configured error."""

    def __init__(self, frame=None, error=None, tracks_per_stream=1):
        self.frame = frame
        self.error = error
        self.tracks_per_stream = tracks_per_stream
        self.requests = 0
        self.streams = []

    def request_access(self, constraints=None):
        self.requests += 1
        if self.error is not None:
            raise self.error
        stream = FakeStream(
            frame=self.frame,
            tracks=[FakeTrack() for _ in range(self.tracks_per_stream)],
        )
        self.streams.append(stream)
        return stream


class StopAfterFirstRead:
    """
    Session view whose manager is stopped right after the surface is first
    read, as when a stop request lands on another thread mid-capture.
    """

    def __init__(self, manager):
        self._manager = manager
        self._session = manager.session
        self.surface_reads = 0

    @property
    def active(self):
        return self._session.active or self.surface_reads > 0

    @property
    def surface(self):
        surface = self._session.surface
        self.surface_reads += 1
        if self.surface_reads == 1:
            self._manager.stop()
        return surface


class FakeModel:
    """Detection model returning canned detections (or raising)."""

    def __init__(self, detections=None, error=None):
        self.detections = detections or []
        self.error = error
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.detections)


class FakeLoader:
    """Model loader counting load() calls."""

    def __init__(self, model=None, error=None):
        self.model = model if model is not None else FakeModel()
        self.error = error
        self.loads = 0

    def load(self):
        self.loads += 1
        if self.error is not None:
            raise self.error
        return self.model


@pytest.fixture
def test_frame():
    """A 480x640 BGR frame with a bright rectangle."""
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    frame[100:200, 150:300] = (0, 200, 255)
    return frame


@pytest.fixture
def fake_backend(test_frame):
    return FakeBackend(frame=test_frame)


@pytest.fixture
def session_manager(fake_backend):
    manager = DeviceSessionManager(fake_backend)
    yield manager
    manager.stop()


@pytest.fixture
def bottle_detection():
    return Detection.from_xyxy("bottle", 0.87, 10, 10, 60, 90, class_id=39)


@pytest.fixture
def temp_db(tmp_path):
    """An initialized database in a temp directory."""
    db = Database(str(tmp_path / "inventory.sqlite"))
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

capture:
  width: 640
  height: 480
  image_format: "png"

detection:
  model: "yolov8n.pt"
  conf_threshold: 0.5
  iou_threshold: 0.45

storage:
  local_database_path: "data/test.sqlite"
  blob_backend: "local"
  local_blob_dir: "data/blobs"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "capture": {
            "width": 640,
            "height": 480,
            "image_format": "png",
        },
        "detection": {
            "model": "yolov8n.pt",
            "conf_threshold": 0.5,
            "iou_threshold": 0.45,
        },
        "storage": {
            "local_database_path": "data/test.sqlite",
            "blob_backend": "local",
            "local_blob_dir": "data/blobs",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
