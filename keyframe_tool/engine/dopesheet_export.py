"""
Dopesheet Export Module
Exports channel samples in dopesheet format: channel components as rows, frames as columns.
"""
import csv

import numpy as np

from keyframe_tool.engine.channel import ChannelKind
from keyframe_tool.engine.euler import quaternions_to_eulers
from keyframe_tool.engine.utils import prepare_output_file, write_dict_list_to_csv

VECTOR_COMPONENTS = ["Tx", "Ty", "Tz"]
ROTATION_COMPONENTS = ["Rx", "Ry", "Rz"]


def export_dopesheet(clip, output_path):
    """
    Export a clip's samples as a dopesheet CSV.

    Rotation channels are written as XYZ Euler angles in degrees, vector
    channels as their raw components. A "Time" row per channel holds the
    sample times.
    """
    prepare_output_file(output_path)

    frame_count = max((channel.frame_count for channel in clip.channels), default=0)

    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        header = ["Bone", "Component"] + [f"Frame_{i:03d}" for i in range(frame_count)]
        writer.writerow(header)

        for channel in clip.channels:
            writer.writerow([channel.bone, "Time"] + [f"{t:.6f}" for t in channel.times])

            if channel.kind is ChannelKind.QUATERNION:
                components = ROTATION_COMPONENTS
                data = np.degrees(quaternions_to_eulers(channel.samples())) if channel.frame_count else np.empty((0, 3))
            else:
                components = VECTOR_COMPONENTS
                data = channel.samples()

            for axis, component in enumerate(components):
                writer.writerow([channel.bone, component] + [f"{v:.6f}" for v in data[:, axis]])

    rows = len(clip.channels) * 4
    print(f"Dopesheet exported: {len(clip.channels)} channels × {frame_count} frames = {rows} rows")


def export_valleys(valleys, output_path, times=None):
    """
    Export valley intervals to CSV.

    Args:
        valleys: (start, end) inclusive frame pairs
        output_path: Output CSV path
        times: Optional timeline to add start/end times
    """
    rows = []
    for start, end in valleys:
        row = {"start_frame": start, "end_frame": end, "frames": end - start + 1}
        if times is not None and end < len(times):
            row["start_time"] = float(times[start])
            row["end_time"] = float(times[end])
        rows.append(row)

    write_dict_list_to_csv(rows, output_path)
