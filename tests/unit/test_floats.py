"""
Unit tests for floats module

Tests cover:
- float32 append/slice copies
- Channel lengthening (loop-friendly sample doubling)
"""

import numpy as np
import pytest

from keyframe_tool.engine.channel import Channel, ChannelKind
from keyframe_tool.engine.floats import f32_append, f32_slice, lengthen_channels


@pytest.mark.unit
class TestF32Helpers:
    """Test float32 append and slice."""

    def test_append_returns_new_float32_array(self):
        source = np.array([1, 2], dtype=np.float32)

        result = f32_append(source, [3, 4])

        assert result.dtype == np.float32
        np.testing.assert_array_equal(result, [1, 2, 3, 4])
        np.testing.assert_array_equal(source, [1, 2])

    def test_append_empty(self):
        np.testing.assert_array_equal(f32_append([], [5]), [5])
        np.testing.assert_array_equal(f32_append([5], []), [5])

    def test_slice_is_a_copy(self):
        source = np.array([1, 2, 3, 4], dtype=np.float32)

        result = f32_slice(source, 1, 3)
        result[0] = 99

        np.testing.assert_array_equal(source, [1, 2, 3, 4])
        np.testing.assert_array_equal(f32_slice(source, 1), [2, 3, 4])

    def test_slice_converts_to_float32(self):
        assert f32_slice([1.5, 2.5]).dtype == np.float32


@pytest.mark.unit
class TestLengthenChannels:
    """Test sample doubling."""

    def test_doubles_samples(self):
        channel = Channel("Spine.quaternion", ChannelKind.QUATERNION, [0, 0.5, 1], np.arange(12))

        lengthen_channels([channel])

        np.testing.assert_allclose(channel.times, [0, 0.5, 1, 1, 1.5, 2])
        np.testing.assert_array_equal(channel.values, np.concatenate([np.arange(12), np.arange(12)]))

    def test_times_stay_sorted(self):
        channel = Channel("Hips.position", ChannelKind.VECTOR, [0, 1, 2], np.zeros(9))

        lengthen_channels([channel])
        lengthen_channels([channel])

        assert channel.frame_count == 12
        assert np.all(np.diff(channel.times) >= 0)
        assert channel.times[-1] == pytest.approx(8.0)

    def test_empty_channel_skipped(self):
        channel = Channel("Hips.position", ChannelKind.VECTOR, [], [])

        lengthen_channels([channel])

        assert channel.frame_count == 0
