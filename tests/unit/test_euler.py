"""
Unit tests for euler module

Tests cover:
- Quaternion <-> XYZ Euler round trips
- Known rotations about single axes
- Renormalization of non-unit input
- Gimbal lock handling
"""

import math

import numpy as np
import pytest

from keyframe_tool.engine.euler import (
    angular_distance,
    euler_to_quaternion,
    eulers_to_quaternions,
    normalize_quaternions,
    quaternion_to_euler,
    quaternions_to_eulers,
)


def random_unit_quaternions(count, seed=7):
    rng = np.random.default_rng(seed)
    q = rng.normal(size=(count, 4))
    return q / np.linalg.norm(q, axis=1, keepdims=True)


@pytest.mark.unit
class TestRoundTrip:
    """Test quaternion -> Euler -> quaternion reconstruction."""

    def test_random_quaternions_round_trip(self):
        """1000 random unit quaternions reconstruct within 1e-5 rad."""
        quaternions = random_unit_quaternions(1000)

        rebuilt = eulers_to_quaternions(quaternions_to_eulers(quaternions))

        assert np.max(angular_distance(quaternions, rebuilt)) < 1e-5

    def test_single_sample_round_trip(self):
        q = random_unit_quaternions(1, seed=3)[0]

        rebuilt = euler_to_quaternion(*quaternion_to_euler(q))

        assert angular_distance(q, np.array(rebuilt)) < 1e-5

    def test_euler_round_trip_inside_range(self):
        eulers = np.array([[0.3, -0.7, 1.2], [-2.0, 0.4, -0.1], [0.0, 0.0, 0.0]])

        np.testing.assert_allclose(quaternions_to_eulers(eulers_to_quaternions(eulers)), eulers, atol=1e-10)


@pytest.mark.unit
class TestKnownRotations:
    """Test conversions against hand-computed rotations."""

    def test_identity(self):
        assert quaternion_to_euler((0, 0, 0, 1)) == pytest.approx((0, 0, 0))
        assert euler_to_quaternion(0, 0, 0) == pytest.approx((0, 0, 0, 1))

    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_single_axis_rotation(self, axis):
        angle = 0.8
        q = [0.0, 0.0, 0.0, math.cos(angle / 2)]
        q[axis] = math.sin(angle / 2)

        euler = quaternion_to_euler(q)

        expected = [0.0, 0.0, 0.0]
        expected[axis] = angle
        assert euler == pytest.approx(tuple(expected), abs=1e-12)

    def test_gimbal_lock(self):
        """At y = 90 degrees the remaining rotation is folded into x."""
        q = euler_to_quaternion(0.4, math.pi / 2, 0.0)

        x, y, z = quaternion_to_euler(q)

        assert y == pytest.approx(math.pi / 2, abs=1e-6)
        assert z == 0.0
        assert angular_distance(np.array(q), np.array(euler_to_quaternion(x, y, z))) < 1e-5


@pytest.mark.unit
class TestNormalization:
    """Test renormalization of non-unit input."""

    def test_non_unit_quaternion_is_normalized(self):
        q = np.array([0.0, 0.0, 2 * math.sin(0.25), 2 * math.cos(0.25)])

        assert quaternion_to_euler(q) == pytest.approx((0, 0, 0.5))

    def test_zero_quaternion_becomes_identity(self):
        np.testing.assert_array_equal(normalize_quaternions([0, 0, 0, 0]), [0, 0, 0, 1])

    def test_angular_distance_ignores_sign(self):
        q = random_unit_quaternions(1)[0]

        assert angular_distance(q, -q) == pytest.approx(0.0, abs=1e-7)
