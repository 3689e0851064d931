"""
Visualization module for Keyframe Tool.
"""

from keyframe_tool.visualization.matplotlib_viewer import CurveVisualizer, plot_motion_valleys

__all__ = [
    'CurveVisualizer',
    'plot_motion_valleys'
]
