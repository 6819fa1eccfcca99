"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.detection import BoundingBox, RawCandidate, VehicleClass  # noqa: E402
from models.frame import Frame  # noqa: E402


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def make_candidate(x, y, width, height, confidence=0.9, vehicle_class=VehicleClass.CAR):
    return RawCandidate(
        vehicle_class=vehicle_class,
        confidence=confidence,
        bbox=BoundingBox(x=x, y=y, width=width, height=height),
    )


def make_frame(index: int = 1, width: int = 640, height: int = 640) -> Frame:
    return Frame(
        uri=f"mock://test/frame_{index}",
        width=width,
        height=height,
        timestamp=1_700_000_000_000.0 + index,
        frame_index=index,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def frame():
    return make_frame()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
detection:
  confidence_threshold: 0.7
  nms_threshold: 0.4
  max_detections: 8
  model_input_size: 640

frames:
  target_fps: 10
  skip_frames: 2
  max_concurrent: 2
  image_quality: 0.7

backend:
  name: "simulated"
  load_delay: 0

source:
  kind: "synthetic"
  width: 640
  height: 640

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "detection": {
            "confidence_threshold": 0.7,
            "nms_threshold": 0.4,
            "max_detections": 8,
            "model_input_size": 640,
        },
        "frames": {
            "target_fps": 10,
            "skip_frames": 2,
            "max_concurrent": 2,
            "image_quality": 0.7,
        },
        "backend": {
            "name": "simulated",
            "seed": 42,
            "load_delay": 0,
        },
        "source": {
            "kind": "synthetic",
            "device_id": 0,
            "width": 640,
            "height": 640,
        },
        "web": {
            "enabled": False,
            "port": 5000,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
