"""
Channel Model

Animated channels (one property of one joint) and the clips that group them.

A channel stores parallel sample arrays:
- times: float32, length N, non-decreasing
- values: float32, length N * value_size, laid out sample-major

Channel names encode the joint and the property, e.g. "Spine.quaternion" or
"Hips.position". The suffix decides the channel kind when it is not given.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np

QUATERNION_SUFFIX = ".quaternion"
POSITION_SUFFIX = ".position"

_PROPERTY_SUFFIX = re.compile(r"\.(position|quaternion)")


class ChannelKind(Enum):
    """Kind of sample stored in a channel."""

    VECTOR = "vector"
    QUATERNION = "quaternion"

    @property
    def value_size(self) -> int:
        if self is ChannelKind.VECTOR:
            return 3
        elif self is ChannelKind.QUATERNION:
            return 4
        raise ValueError(f"Unknown channel kind: {self}")


def infer_kind(name: str) -> ChannelKind:
    """Infer the channel kind from the property suffix of its name."""
    if name.endswith(QUATERNION_SUFFIX):
        return ChannelKind.QUATERNION
    return ChannelKind.VECTOR


def to_bone(name: str) -> str:
    """Strip the property suffix from a channel name."""
    return _PROPERTY_SUFFIX.sub("", name)


@dataclass(eq=False)
class Channel:
    """One animated property of one joint."""

    name: str
    kind: ChannelKind
    times: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        if isinstance(self.kind, str):
            self.kind = ChannelKind(self.kind)
        self.times = np.asarray(self.times, dtype=np.float32).ravel()
        self.values = np.asarray(self.values, dtype=np.float32).ravel()

    @property
    def value_size(self) -> int:
        return self.kind.value_size

    @property
    def frame_count(self) -> int:
        return int(self.times.size)

    @property
    def bone(self) -> str:
        return to_bone(self.name)

    @property
    def is_rotation(self) -> bool:
        return self.kind is ChannelKind.QUATERNION

    @property
    def is_position(self) -> bool:
        return self.kind is ChannelKind.VECTOR and POSITION_SUFFIX in self.name

    @property
    def duration(self) -> float:
        if self.frame_count == 0:
            return 0.0
        return float(self.times[-1] - self.times[0])

    def sample(self, index: int) -> np.ndarray:
        """Return a copy of the sample at a frame index."""
        size = self.value_size
        return self.values[index * size : index * size + size].copy()

    def samples(self) -> np.ndarray:
        """Return the values as a (frames, value_size) view."""
        return self.values.reshape(-1, self.value_size)

    def validate(self):
        """
        Check the sample layout contract.

        Raises:
            ValueError: If values do not match times * value_size, or times decrease.
        """
        expected = self.frame_count * self.value_size
        if self.values.size != expected:
            raise ValueError(
                f"Invalid track '{self.name}': expected {expected} values "
                f"({self.frame_count} times x {self.value_size}), got {self.values.size}"
            )

        if self.frame_count > 1 and np.any(np.diff(self.times) < 0):
            raise ValueError(f"Invalid track '{self.name}': times are not sorted")

    def shift(self, offset: float):
        """Shift every time by a constant offset."""
        if offset != 0:
            self.times = (self.times + np.float32(offset)).astype(np.float32)

    def copy(self) -> "Channel":
        return Channel(self.name, self.kind, self.times.copy(), self.values.copy())

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "times": self.times.tolist(),
            "values": self.values.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Channel":
        name = data["name"]
        kind = data.get("kind")
        kind = ChannelKind(kind) if kind else infer_kind(name)
        return cls(name, kind, data.get("times", []), data.get("values", []))


@dataclass
class AnimationClip:
    """Ordered channels sharing one timeline origin."""

    name: str
    channels: List[Channel] = field(default_factory=list)

    @property
    def duration(self) -> float:
        if not self.channels:
            return 0.0
        return max(channel.duration for channel in self.channels)

    def rotation_channels(self) -> List[Channel]:
        return [channel for channel in self.channels if channel.is_rotation]

    def find(self, matcher) -> Optional[Channel]:
        """Find the first channel matching an index, substring or compiled regex."""
        ids = self.query(matcher)
        if not ids:
            return None
        return self.channels[ids[0]]

    def query(self, *matchers) -> List[int]:
        """
        Resolve matchers to channel indexes.

        Integers are taken as indexes, strings match by substring and compiled
        regular expressions match with search(). Order of first match is kept.
        """
        ids = []

        for matcher in matchers:
            if isinstance(matcher, (int, np.integer)) and not isinstance(matcher, bool):
                if 0 <= matcher < len(self.channels) and matcher not in ids:
                    ids.append(int(matcher))
                continue

            for index, channel in enumerate(self.channels):
                if isinstance(matcher, str):
                    matched = matcher in channel.name
                elif isinstance(matcher, re.Pattern):
                    matched = matcher.search(channel.name) is not None
                else:
                    matched = False

                if matched and index not in ids:
                    ids.append(index)

        return ids

    def validate(self):
        for channel in self.channels:
            channel.validate()

    def copy(self) -> "AnimationClip":
        return AnimationClip(self.name, [channel.copy() for channel in self.channels])

    def to_dict(self) -> dict:
        return {"name": self.name, "channels": [channel.to_dict() for channel in self.channels]}

    @classmethod
    def from_dict(cls, data: dict) -> "AnimationClip":
        channels = [Channel.from_dict(entry) for entry in data.get("channels", [])]
        return cls(data.get("name", "clip"), channels)
