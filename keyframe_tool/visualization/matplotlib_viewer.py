"""
Curve Visualization Module

Plots channel curves and the external body space motion signal with matplotlib.
Renders per-axis series over a window of frames and shades detected valleys.
"""

import numpy as np
import matplotlib.pyplot as plt

from keyframe_tool.engine.body_space import NORMALIZE_CAP, capped_normalize, find_valleys, motion_averages
from keyframe_tool.engine.clip_loader import get_clip_metadata
from keyframe_tool.engine.keyframe_analyzer import AXES, DEFAULT_MOVEMENT_WINDOW, keyframes_at


class CurveVisualizer:
    """
    Curve plotting for one animation clip.

    Features:
    - Per-axis channel curves over a frame window
    - Normalized motion signal with valley shading
    """

    def __init__(self, clip):
        """
        Initialize visualizer with a clip.

        Args:
            clip: AnimationClip
        """
        self.clip = clip
        self.metadata = get_clip_metadata(clip)

        # Visualization settings
        self.axis_colors = {'x': 'tab:red', 'y': 'tab:green', 'z': 'tab:blue', 'w': 'tab:gray'}
        self.valley_color = 'orange'
        self.line_width = 1.5

    def plot_channel(self, matcher, start_time=0.0, window_size=DEFAULT_MOVEMENT_WINDOW, axes=AXES, save_path=None):
        """
        Plot the component curves of one channel.

        Args:
            matcher: Channel index, name substring or compiled regex
            start_time: Window start time
            window_size: Number of frames to plot
            axes: Visible components
            save_path: Optional path to save image

        Raises:
            KeyError: If no channel matches.
        """
        channel = self.clip.find(matcher)
        if channel is None:
            raise KeyError(f"No channel matches {matcher!r}")

        keyframe = keyframes_at(channel, start_time, offset=0, window_size=window_size, axes=axes)

        fig, ax = plt.subplots(figsize=(12, 5))

        if keyframe:
            for axis, series in zip(AXES, keyframe['series']):
                if not series:
                    continue
                data = np.array(series)
                ax.plot(data[:, 0], data[:, 1], label=axis, color=self.axis_colors[axis], linewidth=self.line_width)

        ax.set_xlabel('Time (s)')
        ax.set_ylabel('Value')
        ax.set_title(f'{channel.name} ({self.clip.name})')
        ax.legend(loc='upper right')

        self._finish(fig, save_path)

    def plot_motion_valleys(self, space, save_path=None):
        """
        Plot the normalized aggregate motion signal and shade its valleys.

        Args:
            space: SpaceConfig used for detection
            save_path: Optional path to save image

        Returns:
            list: Valleys that were shaded
        """
        averages = motion_averages(self.clip.channels)
        normalized = capped_normalize(averages, NORMALIZE_CAP)
        valleys = find_valleys(self.clip.channels, space)

        fig, ax = plt.subplots(figsize=(12, 5))
        ax.plot(np.arange(normalized.size), normalized, color='black', linewidth=self.line_width)

        for start, end in valleys:
            ax.axvspan(start, end, color=self.valley_color, alpha=0.3)

        ax.set_xlabel('Frame')
        ax.set_ylabel('Normalized motion')
        ax.set_title(f'Motion valleys - {len(valleys)} found ({self.clip.name})')

        self._finish(fig, save_path)

        return valleys

    def _finish(self, fig, save_path):
        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"✓ Saved visualization: {save_path}")
        else:
            plt.show()

        plt.close(fig)


def plot_motion_valleys(clip, space, save_path=None):
    """
    Quick function to plot a clip's motion valleys.

    Args:
        clip: AnimationClip
        space: SpaceConfig
        save_path: Optional path to save image
    """
    visualizer = CurveVisualizer(clip)
    return visualizer.plot_motion_valleys(space, save_path)
