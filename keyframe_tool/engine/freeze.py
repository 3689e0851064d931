"""
Track freezing: hold a channel at the pose it has at one moment in time.
"""

from keyframe_tool.engine.channel import ChannelKind


def freeze_track(channel, time=1.0):
    """
    Overwrite every sample of a channel with the sample nearest to `time`.

    Rotation channels and position channels are frozen; other vector
    channels (e.g. scale) are left untouched.

    Args:
        channel: Channel to modify in place
        time: Moment to hold, in seconds

    Raises:
        ValueError: If a quaternion track does not hold 4 components per
            sample or a position track does not hold 3.
    """
    if channel.frame_count == 0:
        return

    if channel.kind is ChannelKind.QUATERNION:
        expected = 4
    elif channel.kind is ChannelKind.VECTOR:
        if not channel.is_position:
            return
        expected = 3
    else:
        raise ValueError(f"Unsupported channel kind: {channel.kind}")

    size = channel.values.size // channel.frame_count
    if size != expected or channel.values.size != channel.frame_count * expected:
        kind = "quaternion" if expected == 4 else "position"
        raise ValueError(f"invalid {kind} track: {channel.name} has {channel.values.size} values for {channel.frame_count} times")

    last = channel.frame_count - 1
    final_time = float(channel.times[last])
    frame = int(round((time / final_time) * last)) if final_time > 0 else 0
    frame = min(max(frame, 0), last)

    data = channel.values[frame * size : frame * size + size].copy()

    channel.values = channel.values.reshape(-1, size)
    channel.values[:] = data
    channel.values = channel.values.ravel()
