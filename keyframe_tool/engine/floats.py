"""
Sample Array Utilities

Fixed-precision (float32) helpers shared by every engine module. Keyframe
samples are stored as float32 to match the precision of the source clips, so
any array that ends up back in a channel passes through here.
"""

import numpy as np


def f32_append(source, items):
    """
    Append items to a float32 array.

    Args:
        source: Existing samples
        items: Samples to append

    Returns:
        np.ndarray: New float32 array (source is not modified)
    """
    source = np.asarray(source, dtype=np.float32)
    items = np.asarray(items, dtype=np.float32).ravel()

    dest = np.empty(source.size + items.size, dtype=np.float32)
    dest[: source.size] = source
    dest[source.size :] = items

    return dest


def f32_slice(source, start=0, end=None):
    """
    Copy a slice of a float32 array.

    Args:
        source: Samples to copy from
        start: First index (inclusive)
        end: Last index (exclusive), None for the end of the array

    Returns:
        np.ndarray: New float32 array
    """
    return np.array(np.asarray(source, dtype=np.float32)[start:end], dtype=np.float32, copy=True)


def lengthen_channels(channels):
    """
    Lengthen every channel by appending a second copy of its samples.

    A clip that is played once and looped at track level needs its samples
    repeated; the copy starts at the final time of the original so times stay
    non-decreasing.

    Args:
        channels: Iterable of Channel objects (modified in place)
    """
    for channel in channels:
        if channel.frame_count == 0:
            continue

        final_time = channel.times[-1]
        next_times = channel.times + final_time

        channel.times = f32_append(channel.times, next_times)
        channel.values = f32_append(channel.values, channel.values)

        channel.validate()
