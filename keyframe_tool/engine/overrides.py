"""
Override Engine

Applies energy (duration) scaling, per-part delay, curve transforms and
per-axis rotation scaling to a clip's channels. Every update starts from the
original samples held in an OriginalStore, so overrides never compound.

Per channel, in order:
1. Root position lock (when flags.lock_position): zero-fill or restore Hips.position
2. Timing (when flags.timing): reset times, delay shift, energy scaling
3. Curve (when flags.curve): reset values, filter selected rotation channels in Euler space
4. Rotation (when flags.rotation): scale the original Euler angles per axis

Then, for timing updates, the external body space delay runs over the whole clip.

Channels without original samples are skipped; the rest of the clip still updates.
"""

import time as _time
from dataclasses import dataclass, field
from typing import List

import numpy as np

from keyframe_tool.engine.body_space import apply_valley_delay, find_valleys
from keyframe_tool.engine.channel import ChannelKind
from keyframe_tool.engine.config import UpdateFlags
from keyframe_tool.engine.euler import eulers_to_quaternions, quaternions_to_eulers
from keyframe_tool.engine.floats import f32_slice
from keyframe_tool.engine.transforms import apply_track_transform, get_transform, identity

ROOT_POSITION_TRACK = "Hips.position"


# ==============================================================================
# SINGLE-CHANNEL OVERRIDES
# ==============================================================================


def override_energy(channel, factor=1.0):
    """
    Scale a channel's time axis by 1 / factor.

    factor == 1 leaves the times untouched. Times whose division yields NaN
    keep their original value.
    """
    if factor == 1:
        return

    times = channel.times.astype(np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = times / factor

    channel.times = np.where(np.isnan(scaled), times, scaled).astype(np.float32)


def delay_offset(delay, time):
    """Time offset for a delay parameter at the current playback time."""
    return -(time / 100) * delay


def override_delay(channel, part, delays, time):
    """
    Shift a channel backwards in time according to its delay partition.

    Only negative offsets are applied; a computed forward shift is ignored.

    Args:
        channel: Channel to shift
        part: Delay-partition key of the channel (None skips)
        delays: DelayConfig
        time: Current playback time in seconds
    """
    if part is None:
        return

    offset = delay_offset(delays.factor_for(part), time)
    if offset < 0:
        channel.shift(offset)


def override_rotation(channel, rotations, eulers):
    """
    Rebuild a rotation channel from scaled original Euler angles.

    Args:
        channel: Rotation channel (other kinds are ignored)
        rotations: RotationConfig with per-axis factors
        eulers: Original Euler angles (N, 3)
    """
    if channel.kind is not ChannelKind.QUATERNION:
        return

    frames = min(channel.frame_count, len(eulers))
    if frames == 0:
        return

    scaled = np.asarray(eulers[:frames], dtype=np.float64) * np.array(rotations.as_tuple(), dtype=np.float64)
    quaternions = eulers_to_quaternions(scaled).astype(np.float32)

    values = channel.values.copy()
    values[: frames * 4] = quaternions.ravel()
    channel.values = values


def lock_root_position(channel, original, locked, position=None):
    """
    Lock or unlock one root position channel.

    Locked: every sample is set to `position` (zeros when None).
    Unlocked: samples are restored from `original` (skipped when None).
    """
    if locked:
        values = np.empty((channel.frame_count, 3), dtype=np.float32)
        values[:] = position if position is not None else 0.0
        channel.values = values.ravel()
    elif original is not None:
        channel.values = f32_slice(original.values)


def sync_position_lock(clip, locked, store, position=None):
    """Lock or unlock the root position channel of a clip."""
    for index, channel in enumerate(clip.channels):
        if channel.name == ROOT_POSITION_TRACK:
            lock_root_position(channel, store.original_of(clip.name, index), locked, position)
            break


def restore_root_position(clip, store):
    """Restore the root position channel from the originals."""
    sync_position_lock(clip, False, store)


# ==============================================================================
# ENGINE
# ==============================================================================


@dataclass
class UpdateReport:
    """Summary of one update."""

    updated: int = 0
    skipped: List[str] = field(default_factory=list)
    valleys: list = field(default_factory=list)
    elapsed_ms: float = 0.0


class OverrideEngine:
    """
    Re-applies parameter overrides to a clip from its original samples.

    Every update walks every channel, so callers that react to continuous
    control changes should debounce before calling update().
    """

    def __init__(self, store):
        self.store = store

    def update(self, clip, params, flags=None, time=None) -> UpdateReport:
        """
        Update a clip's live channels for the current parameters.

        Args:
            clip: AnimationClip whose channels are modified in place
            params: Params
            flags: UpdateFlags (defaults to a timing update)
            time: Playback time for delay shifts (defaults to params.time)

        Returns:
            UpdateReport
        """
        start = _time.perf_counter()

        flags = flags or UpdateFlags()
        time = params.time if time is None else time
        report = UpdateReport()

        transform = None
        if flags.curve:
            transform = get_transform(params.curve.equation)

        for index, channel in enumerate(clip.channels):
            original = self.store.original_of(clip.name, index)
            if original is None or original.name != channel.name:
                report.skipped.append(channel.name)
                continue

            self._update_channel(channel, original, params, flags, time, transform)
            report.updated += 1

        if flags.timing and params.space.delay != 0:
            report.valleys = find_valleys(clip.channels, params.space)
            apply_valley_delay(clip.channels, report.valleys, params.space.delay)

        report.elapsed_ms = (_time.perf_counter() - start) * 1000
        return report

    def _update_channel(self, channel, original, params, flags, time, transform):
        parts = original.parts

        if channel.name == ROOT_POSITION_TRACK:
            if flags.lock_position:
                lock_root_position(channel, original, params.lock_position)

            # a locked root stays at rest; only its times follow the originals
            if params.lock_position:
                if flags.timing:
                    channel.times = f32_slice(original.times)
                return

        if flags.timing:
            channel.times = f32_slice(original.times)

            override_delay(channel, parts.delay, params.delays, time)

            energy = params.energy.factor_for(parts.energy)
            if energy is None:
                return

            override_energy(channel, energy)

        if flags.curve:
            channel.values = f32_slice(original.values)

            selected = parts.curve is not None and params.curve.parts.get(parts.curve, False)
            if selected and transform is not identity and channel.kind is ChannelKind.QUATERNION:
                channel.values = apply_track_transform(
                    channel,
                    transform,
                    {"threshold": params.curve.threshold},
                    axes=params.curve.enabled_axes,
                )

        if flags.rotation and channel.kind is ChannelKind.QUATERNION:
            eulers = original.eulers
            if eulers.size == 0 and original.values.size:
                # snapshot captured without cached angles
                eulers = quaternions_to_eulers(original.values.reshape(-1, 4))
            override_rotation(channel, params.rotations, eulers)
