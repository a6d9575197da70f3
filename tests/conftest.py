"""Pytest configuration and shared fixtures for the odometer reader.

Provides a scripted detector backend (no model weights needed), helpers to
build raw detector output tensors, synthetic RGB photos and configurations.
"""
import sys
import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pytest

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from odometer_reader.config.settings import Config
from odometer_reader.core.constants import CLASS_NAMES
from odometer_reader.services.detector import Detector
from odometer_reader.services.pipeline import OdometerPipeline


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logging.getLogger('PIL').setLevel(logging.WARNING)

TEST_INPUT_SIZE = 64

# (label, confidence, (cx, cy, w, h))
AnchorSpec = Tuple[str, float, Tuple[float, float, float, float]]


def build_raw_output(anchors: Sequence[AnchorSpec], num_anchors: Optional[int] = None,
                     class_names: Sequence[str] = CLASS_NAMES) -> np.ndarray:
    """Build a [1, 4 + num_classes, A] tensor with one anchor per entry."""
    num_anchors = max(num_anchors or 0, len(anchors), 1)
    raw = np.zeros((1, 4 + len(class_names), num_anchors), dtype=np.float32)
    for i, (label, conf, (cx, cy, w, h)) in enumerate(anchors):
        raw[0, 0:4, i] = (cx, cy, w, h)
        raw[0, 4 + list(class_names).index(label), i] = conf
    return raw


class FakeBackend:
    """Scripted backend: returns queued outputs in order, then the last one."""

    boxes_normalized = False

    def __init__(self, outputs=None, input_size: Optional[int] = TEST_INPUT_SIZE,
                 error: Optional[BaseException] = None):
        self.outputs: List = list(outputs or [build_raw_output([])])
        self.input_size = input_size
        self.error = error
        self.calls: List[np.ndarray] = []
        self.closed = False

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        self.calls.append(tensor)
        if self.error is not None:
            raise self.error
        if len(self.outputs) > 1:
            out = self.outputs.pop(0)
        else:
            out = self.outputs[0]
        if isinstance(out, BaseException):
            raise out
        return out

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def raw_output() -> Callable[..., np.ndarray]:
    """Factory building raw detector output tensors."""
    return build_raw_output


@pytest.fixture
def config() -> Config:
    """Default configuration with the memory guard disabled."""
    cfg = Config()
    cfg.memory_guard_enabled = False
    cfg.model_input_size = TEST_INPUT_SIZE
    return cfg


@pytest.fixture
def make_detector():
    """Factory returning a loaded Detector around a FakeBackend."""
    def _make(outputs=None, input_size: int = TEST_INPUT_SIZE, error=None):
        backend = FakeBackend(outputs, input_size=input_size, error=error)
        detector = Detector(default_input_size=input_size)
        detector.attach(backend, "fake")
        return detector, backend
    return _make


@pytest.fixture
def make_pipeline(make_detector, config):
    """Factory returning (pipeline, backend) for scripted outputs."""
    def _make(outputs=None, error=None):
        detector, backend = make_detector(outputs, error=error)
        return OdometerPipeline(detector, config), backend
    return _make


@pytest.fixture
def sample_image() -> np.ndarray:
    """480x640 RGB photo-like image (aspect 1.33, crop admissible)."""
    rng = np.random.default_rng(1234)
    image = rng.integers(0, 256, (480, 640, 3), dtype=np.uint8)
    image[200:280, 160:480] = (20, 20, 20)  # dark odometer window
    return image


@pytest.fixture
def wide_image() -> np.ndarray:
    """200x400 RGB image (aspect 2.0, crop not admissible)."""
    rng = np.random.default_rng(99)
    return rng.integers(0, 256, (200, 400, 3), dtype=np.uint8)


@pytest.fixture
def digit_row(raw_output):
    """Raw output with four digits '1234' left to right plus a 'digital' label."""
    return raw_output([
        ("3", 0.80, (40.0, 30.0, 6.0, 10.0)),
        ("1", 0.90, (10.0, 30.0, 6.0, 10.0)),
        ("4", 0.70, (55.0, 30.0, 6.0, 10.0)),
        ("2", 0.60, (25.0, 30.0, 6.0, 10.0)),
        ("digital", 0.50, (32.0, 10.0, 60.0, 8.0)),
    ], num_anchors=32)
