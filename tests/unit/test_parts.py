"""
Unit tests for parts module

Tests cover:
- Per-partition classification
- First match wins
- Unmatched names
"""

import pytest

from keyframe_tool.engine.parts import (
    ChannelParts,
    Partition,
    classify_channel,
    is_part,
    partition_table,
    track_name_to_part,
)


@pytest.mark.unit
class TestTrackNameToPart:
    """Test single-partition lookup."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Head.quaternion", "upper"),
            ("Spine2.quaternion", "upper"),
            ("LeftForeArm.quaternion", "upper"),
            ("Hips.position", "lower"),
            ("RightUpLeg.quaternion", "lower"),
            ("LeftFoot.quaternion", "lower"),
        ],
    )
    def test_energy(self, name, expected):
        assert track_name_to_part(name, Partition.ENERGY) == expected

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Neck.quaternion", "head"),
            ("Spine1.quaternion", "body"),
            ("LeftHand.quaternion", "leftArm"),
            ("RightShoulder.quaternion", "rightArm"),
            ("LeftLeg.quaternion", "leftLeg"),
            ("RightFoot.quaternion", "rightLeg"),
        ],
    )
    def test_delay(self, name, expected):
        assert track_name_to_part(name, Partition.DELAY) == expected

    def test_curve_excludes_hands(self):
        assert track_name_to_part("LeftHand.quaternion", Partition.CURVE) is None
        assert track_name_to_part("LeftForeArm.quaternion", Partition.CURVE) == "leftArm"

    def test_axis_point_excludes_torso(self):
        assert track_name_to_part("Spine.quaternion", Partition.AXIS_POINT) is None
        assert track_name_to_part("RightUpLeg.quaternion", Partition.AXIS_POINT) == "rightLeg"

    def test_unmatched(self):
        assert track_name_to_part("Tail.quaternion", Partition.DELAY) is None

    def test_partition_by_value(self):
        assert partition_table("energy") is partition_table(Partition.ENERGY)


@pytest.mark.unit
class TestClassifyChannel:
    """Test full classification."""

    def test_all_partitions(self):
        parts = classify_channel("LeftForeArm.quaternion")

        assert parts == ChannelParts(energy="upper", delay="leftArm", curve="leftArm", axis_point="leftArm")

    def test_unknown_channel(self):
        assert classify_channel("Prop.position") == ChannelParts()

    def test_is_part(self):
        assert is_part(Partition.DELAY, "head", "Head.quaternion")
        assert not is_part(Partition.DELAY, "head", "Hips.quaternion")
        assert not is_part(Partition.DELAY, "tail", "Head.quaternion")
