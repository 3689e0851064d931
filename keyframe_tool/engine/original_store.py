"""
Original Sample Store

Keeps an immutable copy of every channel's samples as they were when a clip
was loaded (or lengthened). Overrides always start from these originals, so
any combination of parameters can be reverted by running an update with
default parameters.

Usage:
    store = OriginalStore()
    store.capture(clip)

    source = store.original_of(clip.name, index)
    if source is not None:
        channel.times = source.times.copy()
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from keyframe_tool.engine.channel import ChannelKind
from keyframe_tool.engine.euler import quaternions_to_eulers
from keyframe_tool.engine.floats import f32_slice, lengthen_channels
from keyframe_tool.engine.parts import ChannelParts, classify_channel


def _frozen(array):
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class OriginalSource:
    """Original samples of one channel. Arrays are read-only."""

    name: str
    kind: ChannelKind
    times: np.ndarray
    values: np.ndarray
    duration: float
    # Per-sample XYZ Euler angles (N, 3); empty for vector channels
    eulers: np.ndarray
    parts: ChannelParts


def snapshot_channel(channel, cache_eulers=True) -> OriginalSource:
    """
    Capture the original samples of a channel.

    Args:
        channel: Channel to copy
        cache_eulers: Precompute Euler angles for rotation channels

    Returns:
        OriginalSource: Immutable copy
    """
    eulers = np.empty((0, 3), dtype=np.float64)

    if cache_eulers and channel.kind is ChannelKind.QUATERNION and channel.frame_count > 0:
        eulers = quaternions_to_eulers(channel.samples())

    return OriginalSource(
        name=channel.name,
        kind=channel.kind,
        times=_frozen(f32_slice(channel.times)),
        values=_frozen(f32_slice(channel.values)),
        duration=channel.duration,
        eulers=_frozen(eulers),
        parts=classify_channel(channel.name),
    )


class OriginalStore:
    """
    Original samples per clip, indexed by channel position.

    Owned by whoever loads clips and handed to the override engine.
    """

    def __init__(self):
        self._sources: Dict[str, List[OriginalSource]] = {}

    def capture(self, clip, lengthen=0, cache_eulers=True) -> List[OriginalSource]:
        """
        Snapshot a clip, optionally lengthening it first.

        Capturing a clip name that is already stored replaces the entry.

        Args:
            clip: AnimationClip to snapshot
            lengthen: Number of times to double the clip's samples before capturing
            cache_eulers: Precompute Euler angles for rotation channels

        Returns:
            list: OriginalSource per channel
        """
        if lengthen > 0:
            for _ in range(lengthen):
                lengthen_channels(clip.channels)

            print(f"-- keyframe track lengthened by {lengthen} times")

        sources = [snapshot_channel(channel, cache_eulers) for channel in clip.channels]
        self._sources[clip.name] = sources

        return sources

    def original_of(self, clip_name: str, index: int) -> Optional[OriginalSource]:
        """Original samples of a channel, or None if not captured."""
        sources = self._sources.get(clip_name)
        if sources is None or index < 0 or index >= len(sources):
            return None
        return sources[index]

    def sources(self, clip_name: str) -> List[OriginalSource]:
        return list(self._sources.get(clip_name, []))

    def has(self, clip_name: str) -> bool:
        return clip_name in self._sources

    def discard(self, clip_name: str):
        self._sources.pop(clip_name, None)

    def clear(self):
        self._sources.clear()

    def get_cache_stats(self) -> dict:
        """Get cache statistics for debugging."""
        stats = {"cached_clips": len(self._sources), "clips": []}
        for clip_name, sources in self._sources.items():
            stats["clips"].append(
                {
                    "clip": clip_name,
                    "channels": len(sources),
                    "samples": int(sum(source.times.size for source in sources)),
                }
            )
        return stats
