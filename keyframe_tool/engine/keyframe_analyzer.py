"""
Keyframe Analyzer

Read-only indexes over a clip's samples for introspection:
- moves_by_time: time -> [Keyframe(track, value), ...]
- moves_by_track: track name -> [(time, value), ...]

Also provides windowed movement statistics (per-axis series and their
average rate of change) and per-channel summary rows.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from keyframe_tool.engine.channel import ChannelKind, to_bone

DEFAULT_SEARCH_RANGE = 0.1
DEFAULT_MOVEMENT_WINDOW = 200

AXES = ("x", "y", "z", "w")


@dataclass
class Keyframe:
    """One channel's sample at one time."""

    track: str
    value: np.ndarray

    @property
    def bone(self) -> str:
        return to_bone(self.track)


class KeyframeAnalyzer:
    """Index of per-time and per-channel samples."""

    def __init__(self):
        self.channels = []
        self.times: List[float] = []
        self.moves_by_track: Dict[str, List[Tuple[float, np.ndarray]]] = {}
        self.moves_by_time: Dict[float, List[Keyframe]] = {}

    @property
    def ready(self) -> bool:
        return len(self.moves_by_time) > 0

    def reset(self, channels=None):
        """Reset the analyzer's internal state."""
        if channels is not None:
            self.channels = list(channels)

        self.moves_by_track = {}
        self.moves_by_time = {}
        self.times = []

    def add_move(self, time, track, value):
        self.moves_by_track.setdefault(track, []).append((time, value))
        self.moves_by_time.setdefault(time, []).append(Keyframe(track, value))

    def analyze(self, channels):
        """
        Rebuild both indexes from a list of channels.

        Source channels are only read; stored values are copies.
        """
        self.reset(channels)

        for channel in self.channels:
            if channel.kind not in (ChannelKind.VECTOR, ChannelKind.QUATERNION):
                continue

            samples = channel.samples()
            for time, value in zip(channel.times.tolist(), samples):
                self.add_move(time, channel.name, value.astype(np.float64))

        self.times = sorted(self.moves_by_time.keys())

        print(f"> analyzed {len(self.channels)} tracks.")

    def get_keyframes(self, index, matcher=None):
        """Keyframes at the index-th distinct time."""
        time = self.times[index]
        return {"time": time, "keyframes": self.get_keyframes_at_time(time, matcher)}

    def get_keyframes_at_time(self, time, matcher=None) -> List[Keyframe]:
        """
        Keyframes recorded at exactly `time`, filtered by matcher.

        Times are stored as float32, so `time` is rounded to float32 before
        the lookup (1 / 30 finds the frame stored at float32(1 / 30)).
        """
        keyframes = self.moves_by_time.get(float(np.float32(time)))
        if not keyframes:
            return []

        return self.filter_keyframes(keyframes, matcher)

    def search_keyframes_around_time(self, time, matcher=None, range=DEFAULT_SEARCH_RANGE, limit=1) -> List[Keyframe]:
        """
        Keyframes at `time`, or at the nearest available times up to `time + range`.

        An exact match is returned as-is. Otherwise up to `limit` candidate
        times are taken nearest-first and their keyframes concatenated.
        """
        keyframes = self.get_keyframes_at_time(time, matcher)
        if keyframes:
            return keyframes

        results = []
        for nearby in self.nearby_times(time, range)[:limit]:
            results.extend(self.get_keyframes_at_time(nearby, matcher))

        return results

    def nearby_times(self, time, range=DEFAULT_SEARCH_RANGE) -> List[float]:
        """Available times at or before time + range, nearest to `time` first."""
        candidates = [t for t in self.times if t <= time + range]
        return sorted(candidates, key=lambda t: (abs(t - time), t))

    def filter_keyframes(self, keyframes, matcher=None) -> List[Keyframe]:
        """
        Filter keyframes by track name.

        Args:
            matcher: None (keep all), substring, or compiled regular expression
        """
        if matcher is None:
            return list(keyframes)

        if isinstance(matcher, str):
            return [move for move in keyframes if matcher in move.track]

        if isinstance(matcher, re.Pattern):
            return [move for move in keyframes if matcher.search(move.track)]

        return []

    def summarize(self) -> List[dict]:
        return summarize_channels(self.channels)


# ==============================================================================
# MOVEMENT STATISTICS
# ==============================================================================


def keyframes_at(channel, start_time, offset=0, window_size=DEFAULT_MOVEMENT_WINDOW, axes=AXES) -> Optional[dict]:
    """
    Per-axis (time, value) series over a window of frames.

    Args:
        channel: Channel to read
        start_time: The window starts at the first frame with time >= start_time
        offset: Frame offset added to the start (never moves before the first frame)
        window_size: Number of frames
        axes: Visible axes; hidden axes get an empty series

    Returns:
        dict: {"series": [[(t, v), ...] per component], "start": time, "end": time}
            or None for an empty channel
    """
    if channel.frame_count == 0:
        return None

    after = np.nonzero(channel.times >= start_time)[0]
    start = int(after[0]) if after.size else channel.frame_count - 1
    start = max(0, start, start + offset)
    start = min(start, channel.frame_count - 1)

    end = min(start + window_size, channel.frame_count)
    size = channel.value_size
    visible = [axis in axes for axis in AXES[:size]]

    samples = channel.samples()
    series = [[] for _ in range(size)]

    for frame in range(start, end):
        t = float(channel.times[frame])
        for axis in range(size):
            if visible[axis]:
                series[axis].append((t, float(samples[frame, axis])))

    return {
        "series": series,
        "start": float(channel.times[start]),
        "end": float(channel.times[end - 1]),
    }


def get_acceleration(series):
    """Average rate of change between the first and last point of a series."""
    if len(series) < 2:
        return 0.0

    (x0, y0), (x1, y1) = series[0], series[-1]
    if x1 == x0:
        return 0.0

    return (y1 - y0) / (x1 - x0)


def movement_stats(channel, start_time=0.0, window_size=DEFAULT_MOVEMENT_WINDOW):
    """
    Rate of change of every component over a window.

    Returns:
        dict: {"acceleration": [per component]} or None for an empty channel
    """
    keyframe = keyframes_at(channel, start_time, offset=0, window_size=window_size)
    if keyframe is None:
        return None

    return {"acceleration": [get_acceleration(series) for series in keyframe["series"]]}


def summarize_channels(channels) -> List[dict]:
    """
    Per-channel summary statistics.

    Returns:
        list: One row per channel with frame count, time range and per-component
            min/max/mean/std
    """
    rows = []

    for channel in channels:
        row = {
            "track": channel.name,
            "kind": channel.kind.value,
            "frames": channel.frame_count,
            "start_time": float(channel.times[0]) if channel.frame_count else 0.0,
            "end_time": float(channel.times[-1]) if channel.frame_count else 0.0,
        }

        samples = channel.samples().astype(np.float64)
        for axis in range(channel.value_size):
            column = samples[:, axis]
            name = AXES[axis]
            if column.size:
                row[f"{name}_min"] = float(column.min())
                row[f"{name}_max"] = float(column.max())
                row[f"{name}_mean"] = float(column.mean())
                row[f"{name}_std"] = float(column.std())
            else:
                row[f"{name}_min"] = row[f"{name}_max"] = row[f"{name}_mean"] = row[f"{name}_std"] = 0.0

        rows.append(row)

    return rows
