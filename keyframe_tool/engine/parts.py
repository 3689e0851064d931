"""
Channel Classifier

Maps channel names to body-part keys for the four independent partitions
used by the engine. A channel maps to at most one key per partition: the
first pattern (in table order) that matches the name wins, and no match
leaves the channel out of that partition's effect.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# ==============================================================================
# PARTITION TABLES
# ==============================================================================

# Energy (animation speed) per body half
ENERGY_PARTS = {
    "upper": re.compile(r"Neck|Head|Spine|Shoulder|ForeArm|Arm|Hand"),
    "lower": re.compile(r"Hips|UpLeg|Leg|Foot"),
}

DELAY_PARTS = {
    "head": re.compile(r"Head|Neck"),
    "body": re.compile(r"Hips|Spine"),
    "leftArm": re.compile(r"LeftShoulder|LeftArm|LeftForeArm|LeftHand|LeftInHand"),
    "rightArm": re.compile(r"RightShoulder|RightArm|RightForeArm|RightHand|RightInHand"),
    "leftLeg": re.compile(r"LeftUpLeg|LeftLeg|LeftFoot"),
    "rightLeg": re.compile(r"RightUpLeg|RightLeg|RightFoot"),
}

CURVE_PARTS = {
    "head": re.compile(r"Head|Neck"),
    "body": re.compile(r"Hips|Spine"),
    "leftArm": re.compile(r"LeftShoulder|LeftArm|LeftForeArm"),
    "rightArm": re.compile(r"RightShoulder|RightArm|RightForeArm"),
    "leftLeg": re.compile(r"LeftUpLeg|LeftLeg|LeftFoot"),
    "rightLeg": re.compile(r"RightUpLeg|RightLeg|RightFoot"),
}

AXIS_POINT_PARTS = {
    "leftArm": re.compile(r"LeftShoulder|LeftArm|LeftForeArm"),
    "rightArm": re.compile(r"RightShoulder|RightArm|RightForeArm"),
    "leftLeg": re.compile(r"LeftUpLeg|LeftLeg|LeftFoot"),
    "rightLeg": re.compile(r"RightUpLeg|RightLeg|RightFoot"),
}


class Partition(Enum):
    """The four partition tables."""

    ENERGY = "energy"
    DELAY = "delay"
    CURVE = "curve"
    AXIS_POINT = "axis"


_TABLES = {
    Partition.ENERGY: ENERGY_PARTS,
    Partition.DELAY: DELAY_PARTS,
    Partition.CURVE: CURVE_PARTS,
    Partition.AXIS_POINT: AXIS_POINT_PARTS,
}


def partition_table(partition: Partition) -> dict:
    """Return the ordered key -> pattern table of a partition."""
    return _TABLES[Partition(partition)]


def is_part(partition: Partition, part: str, name: str) -> bool:
    """Check whether a channel name belongs to a part of a partition."""
    pattern = partition_table(partition).get(part)
    if pattern is None:
        return False
    return pattern.search(name) is not None


def track_name_to_part(name: str, partition: Partition) -> Optional[str]:
    """
    Classify a channel name within one partition.

    Args:
        name: Channel name, e.g. "LeftForeArm.quaternion"
        partition: Partition to look up

    Returns:
        str or None: First matching part key, None when nothing matches
    """
    for part, pattern in partition_table(partition).items():
        if pattern.search(name):
            return part
    return None


@dataclass(frozen=True)
class ChannelParts:
    """Partition keys of one channel, resolved once at load time."""

    energy: Optional[str] = None
    delay: Optional[str] = None
    curve: Optional[str] = None
    axis_point: Optional[str] = None


def classify_channel(name: str) -> ChannelParts:
    """Resolve all four partition keys for a channel name."""
    return ChannelParts(
        energy=track_name_to_part(name, Partition.ENERGY),
        delay=track_name_to_part(name, Partition.DELAY),
        curve=track_name_to_part(name, Partition.CURVE),
        axis_point=track_name_to_part(name, Partition.AXIS_POINT),
    )
