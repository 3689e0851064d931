"""
Clip Loader Module
Handles loading animation clips from JSON documents and extracting clip metadata.

Document layout:
    {
        "name": "idle",
        "channels": [
            {"name": "Hips.position", "times": [...], "values": [...]},
            {"name": "Spine.quaternion", "kind": "quaternion", "times": [...], "values": [...]}
        ]
    }

"kind" is optional and inferred from the channel name suffix.
"""

import json
import os

import numpy as np

from keyframe_tool.engine.channel import AnimationClip
from keyframe_tool.engine.utils import prepare_output_file


def load_clip(path):
    """
    Load an animation clip from a JSON file.

    Args:
        path (str): Full path to the clip file.

    Returns:
        AnimationClip: The loaded, validated clip

    Raises:
        FileNotFoundError: If the clip file does not exist.
        ValueError: If a channel's samples do not match its layout.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Clip file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    if "name" not in data:
        data["name"] = os.path.splitext(os.path.basename(path))[0]

    clip = AnimationClip.from_dict(data)
    clip.validate()

    return clip


def save_clip(clip, path):
    """Write a clip to a JSON file."""
    prepare_output_file(path)

    with open(path, "w") as f:
        json.dump(clip.to_dict(), f)


def get_clip_metadata(clip):
    """
    Extract useful metadata from a clip.

    Args:
        clip (AnimationClip): The clip.

    Returns:
        dict: Duration, frame count, channel counts and estimated frame rate.
    """
    if not clip.channels:
        return {"has_animation": False, "name": clip.name}

    rotation_count = len(clip.rotation_channels())
    frame_count = max(channel.frame_count for channel in clip.channels)

    # Median spacing of the longest channel
    longest = max(clip.channels, key=lambda channel: channel.frame_count)
    frame_rate = 0.0
    if longest.frame_count > 1:
        spacing = np.median(np.diff(longest.times.astype(np.float64)))
        if spacing > 0:
            frame_rate = float(1.0 / spacing)

    return {
        "has_animation": True,
        "name": clip.name,
        "duration": clip.duration,
        "frame_count": frame_count,
        "frame_rate": frame_rate,
        "channel_count": len(clip.channels),
        "rotation_channel_count": rotation_count,
        "vector_channel_count": len(clip.channels) - rotation_count,
        "bone_count": len({channel.bone for channel in clip.channels}),
    }
