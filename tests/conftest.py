"""
Pytest configuration and shared fixtures for Keyframe Tool tests

Fixtures:
- make_clip: Factory for humanoid clips with sinusoidal rotations
- sample_clip: 60-frame humanoid clip at 30fps
- store / engine: OriginalStore with sample_clip captured, and an OverrideEngine on it
- temp_output_dir: Temporary directory for test outputs
"""

import shutil
import tempfile

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from keyframe_tool.engine.channel import AnimationClip, Channel, ChannelKind
from keyframe_tool.engine.euler import eulers_to_quaternions
from keyframe_tool.engine.original_store import OriginalStore
from keyframe_tool.engine.overrides import OverrideEngine

ROTATION_BONES = [
    "Hips",
    "Spine",
    "Neck",
    "Head",
    "LeftArm",
    "LeftForeArm",
    "RightArm",
    "RightForeArm",
    "LeftUpLeg",
    "LeftFoot",
    "RightUpLeg",
    "RightFoot",
]


def _rotation_channel(bone, times, phase):
    t = times.astype(np.float64)
    eulers = np.zeros((t.size, 3))
    eulers[:, 0] = np.sin(t * 2 + phase) * 0.6
    eulers[:, 1] = np.cos(t * 1.5 + phase) * 0.3
    eulers[:, 2] = np.sin(t * 3 + phase) * 0.2
    values = eulers_to_quaternions(eulers).astype(np.float32).ravel()
    return Channel(f"{bone}.quaternion", ChannelKind.QUATERNION, times.copy(), values)


@pytest.fixture
def make_clip():
    """Factory: make_clip(frames=60, fps=30.0, name="dance") -> AnimationClip."""

    def _make(frames=60, fps=30.0, name="dance"):
        times = (np.arange(frames) / fps).astype(np.float32)

        positions = np.zeros((frames, 3), dtype=np.float32)
        positions[:, 0] = np.linspace(0, 2, frames)
        positions[:, 1] = 90 + np.sin(np.arange(frames) / 5.0)

        channels = [Channel("Hips.position", ChannelKind.VECTOR, times.copy(), positions.ravel())]
        for i, bone in enumerate(ROTATION_BONES):
            channels.append(_rotation_channel(bone, times, phase=i * 0.4))

        return AnimationClip(name, channels)

    return _make


@pytest.fixture
def sample_clip(make_clip):
    return make_clip()


@pytest.fixture
def store(sample_clip):
    original_store = OriginalStore()
    original_store.capture(sample_clip)
    return original_store


@pytest.fixture
def engine(store):
    return OverrideEngine(store)


@pytest.fixture
def temp_output_dir():
    """Create a temporary output directory that is cleaned up after test."""
    temp_dir = tempfile.mkdtemp(prefix="keyframe_tool_test_")
    yield temp_dir
    # Cleanup
    shutil.rmtree(temp_dir, ignore_errors=True)


# ========== Test Markers ==========


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
