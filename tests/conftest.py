"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.frame import FrameData
from models.region import Observation, TrackedRegion
from overlay.layout import PreviewLayout
from overlay.renderer import OverlayRenderer
from runtime.dispatch import UIDispatcher
from tracking.controller import TrackingController
from tracking.primitive import TrackerPrimitive


class ScriptedTracker(TrackerPrimitive):
    """Tracker returning queued results; records every call."""

    def __init__(self, results=None):
        super().__init__()
        self.results = list(results or [])
        self.calls = []
        self.resets = 0

    def track(self, region, frame):
        self.calls.append((region, frame))
        result = self.results.pop(0) if self.results else Observation(region, 1.0)
        if isinstance(result, Exception):
            raise result
        return result

    def reset(self):
        self.resets += 1


def make_frame(width=640, height=480, square=None, index=0):
    """Dark noisy frame with an optional textured bright square at (x, y, size)."""
    rng = np.random.default_rng(7)
    img = rng.integers(0, 40, size=(height, width, 3), dtype=np.uint8)
    if square is not None:
        x, y, size = square
        patch = np.random.default_rng(11).integers(120, 255, size=(size, size, 3), dtype=np.uint8)
        img[y:y + size, x:x + size] = patch
    return FrameData.from_numpy(img, timestamp=0.0, frame_index=index, source="test")


@pytest.fixture
def frame():
    return make_frame()


@pytest.fixture
def dispatcher():
    return UIDispatcher()


@pytest.fixture
def renderer():
    # Identity layout: surface and frame are both 640x480
    return OverlayRenderer(PreviewLayout(surface_size=(640, 480), frame_size=(640, 480), gravity="resize"))


@pytest.fixture
def tracker():
    return ScriptedTracker()


@pytest.fixture
def controller(tracker, renderer, dispatcher):
    return TrackingController(tracker, renderer, dispatcher)


@pytest.fixture
def seeded_controller(controller):
    controller.seed(TrackedRegion.from_xywh(0.25, 0.25, 0.25, 0.25))
    return controller


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

tracking:
  level: "accurate"
  confidence_threshold: 0.3

overlay:
  gravity: "resize_aspect_fill"

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
        "tracking": {
            "level": "accurate",
            "confidence_threshold": 0.3,
            "drag_mode": "anchor",
        },
        "overlay": {
            "gravity": "resize_aspect_fill",
            "border_width": 2,
        },
        "display": {
            "surface_size": [1280, 720],
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
