"""
External Body Space Module

Slows an animation down inside regions of near-constant motion ("valleys").

Pipeline:
1. Aggregate motion signal: mean absolute quaternion component per rotation
   channel, averaged across channels, one value per frame.
2. Capped normalization: values above the cap are pulled down to the largest
   value under it, then the signal is min-max scaled to [0, 1].
3. Valley detection: a valley is a run of frames whose frame-to-frame change
   stays under threshold / 100, closed by a change that exceeds it.
4. Padding: filler intervals are inserted at a fixed stride between detected
   valleys so that delay also spreads across busy regions. Overlapping or
   touching intervals are then merged.
5. Delay injection: frames inside a valley are shifted by delay / valley length;
   from the valley's end frame on, the full delay is carried to every later frame.

Valleys are (start_frame, end_frame) tuples, both inclusive.
"""

import math

import numpy as np

from keyframe_tool.engine.channel import ChannelKind

# ==============================================================================
# CONSTANTS
# ==============================================================================

# Ceiling applied to the aggregate motion signal before normalization
NORMALIZE_CAP = 0.05

# Filler intervals span FILLER_SPAN + 1 frames: [x, x + FILLER_SPAN]
FILLER_SPAN = 3


# ==============================================================================
# SIGNAL
# ==============================================================================


def motion_averages(channels):
    """
    Aggregate rotational motion magnitude per frame.

    Args:
        channels: Channels of one clip; only rotation channels contribute

    Returns:
        np.array: (frames,) averages, frames = shortest rotation channel
    """
    rotations = [channel for channel in channels if channel.kind is ChannelKind.QUATERNION]
    if not rotations:
        return np.zeros(0, dtype=np.float64)

    frames = min(channel.frame_count for channel in rotations)

    per_channel = np.empty((len(rotations), frames), dtype=np.float64)
    for row, channel in enumerate(rotations):
        samples = np.abs(channel.samples()[:frames].astype(np.float64))
        per_channel[row] = samples.mean(axis=1)

    return per_channel.mean(axis=0)


def capped_normalize(values, cap=NORMALIZE_CAP):
    """
    Clamp values above `cap` to the largest value not above it, then scale to [0, 1].

    A constant signal normalizes to all zeros.

    Args:
        values: 1-D series
        cap: Ceiling

    Returns:
        np.array: Normalized series
    """
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        return values.copy()

    below = values[values <= cap]
    ceiling = below.max() if below.size else cap
    capped = np.where(values > cap, ceiling, values)

    lo = capped.min()
    span = capped.max() - lo
    if span == 0:
        return np.zeros_like(capped)

    return (capped - lo) / span


# ==============================================================================
# VALLEYS
# ==============================================================================


def detect_valleys(series, threshold, min_window):
    """
    Find runs of near-constant motion in a normalized series.

    A run ends where the absolute frame-to-frame change exceeds
    threshold / 100; the run is kept when it spans more than `min_window`
    frames. A series without any such change has nothing to contrast
    against and yields no valleys.

    Args:
        series: Normalized motion signal
        threshold: Change threshold in percent of the normalized range
        min_window: Minimum run length (exclusive)

    Returns:
        list: (start, end) inclusive frame pairs in increasing order
    """
    series = np.asarray(series, dtype=np.float64)
    if series.size < 2:
        return []

    limit = threshold / 100
    breaks = np.nonzero(np.abs(np.diff(series)) > limit)[0] + 1
    if breaks.size == 0:
        return []

    valleys = []
    start = 0

    for i in breaks:
        i = int(i)
        if i - start > min_window:
            valleys.append((start, i - 1))
        start = i

    # trailing run
    if series.size - start > min_window:
        valleys.append((start, int(series.size - 1)))

    return valleys


def merge_valleys(valleys):
    """
    Sort valleys and merge overlapping or touching intervals.

    Merged intervals keep the earliest start and the latest end.
    """
    merged = []

    for start, end in sorted(valleys):
        if merged and start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))

    return merged


def pad_valleys(valleys, threshold, frame_count=None):
    """
    Insert filler intervals between detected valleys.

    Fillers of FILLER_SPAN + 1 frames are placed every floor(100 * (1 - threshold))
    frames after a valley ends, as long as they fit before the next valley
    starts. The result is merged so it stays ordered and disjoint.

    Args:
        valleys: Detected (start, end) pairs
        threshold: Space threshold (same value given to detect_valleys)
        frame_count: Optional timeline length; fillers never pass its end

    Returns:
        list: Ordered, disjoint (start, end) pairs
    """
    valleys = merge_valleys(valleys)
    # rounded first so that e.g. threshold 0.9 gives 10, not 9
    stride = int(math.floor(round(100 * (1 - threshold), 9)))

    if stride <= 0 or len(valleys) < 2:
        return valleys

    padded = list(valleys)

    for (_, prev_end), (next_start, _) in zip(valleys, valleys[1:]):
        x = prev_end + stride
        while x + FILLER_SPAN < next_start:
            if frame_count is not None and x + FILLER_SPAN >= frame_count:
                break
            padded.append((x, x + FILLER_SPAN))
            x += stride

    return merge_valleys(padded)


def apply_valley_delay(channels, valleys, delay):
    """
    Shift rotation channel times by the delay accumulated over valleys.

    Frames from a valley's start up to (not including) its end are shifted
    by delay / L, L being the valley length, on top of the delay of all
    completed valleys. At a valley's end frame the full `delay` is added to
    the carried total, so every completed valley adds exactly `delay`.

    Args:
        channels: Channels (rotation channels modified in place)
        valleys: Ordered, disjoint (start, end) pairs
        delay: Delay per valley in seconds
    """
    starts = {start: end for start, end in valleys}
    ends = {end for _, end in valleys}

    for channel in channels:
        if channel.kind is not ChannelKind.QUATERNION:
            continue

        times = channel.times.astype(np.float64)

        global_delay = 0.0
        delay_per_frame = 0.0
        adjusting = False

        for frame in range(times.size):
            if frame in ends:
                global_delay += delay
                delay_per_frame = 0.0
                adjusting = False

            if frame in starts:
                length = abs(starts[frame] - frame)
                if length > 0:
                    delay_per_frame = delay / length
                    adjusting = True

            times[frame] += global_delay
            if adjusting:
                times[frame] += delay_per_frame

        channel.times = times.astype(np.float32)


def find_valleys(channels, space):
    """
    Detect and pad valleys for a clip's rotation channels.

    Args:
        channels: Channels sharing one timeline
        space: SpaceConfig (threshold, min_window)

    Returns:
        list: Ordered, disjoint (start, end) pairs
    """
    averages = motion_averages(channels)
    if averages.size == 0:
        return []

    normalized = capped_normalize(averages, NORMALIZE_CAP)
    valleys = detect_valleys(normalized, space.threshold, space.min_window)

    return pad_valleys(valleys, space.threshold, frame_count=averages.size)


def apply_external_body_space(channels, space):
    """
    Run the full external body space pipeline over a clip's channels.

    Does nothing when space.delay is 0.

    Args:
        channels: List of channels sharing one timeline (modified in place)
        space: SpaceConfig (delay, threshold, min_window)

    Returns:
        list: The same channel list
    """
    if space.delay == 0:
        return channels

    valleys = find_valleys(channels, space)
    apply_valley_delay(channels, valleys, space.delay)

    print(f"Found {len(valleys)} valleys with low change.")

    return channels
