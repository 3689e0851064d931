"""
Keyframe Tool - real-time retiming and reshaping of skeletal animation clips.
"""

__version__ = "1.0.0"

# Convenience imports
from keyframe_tool.engine.clip_loader import load_clip
from keyframe_tool.engine.config import Params, UpdateFlags
from keyframe_tool.engine.original_store import OriginalStore
from keyframe_tool.engine.overrides import OverrideEngine

__all__ = ["load_clip", "Params", "UpdateFlags", "OriginalStore", "OverrideEngine"]
