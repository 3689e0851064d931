"""
CLI entry point for Keyframe Tool.

Enables: python -m keyframe_tool
"""

import sys

from keyframe_tool.cli import main

if __name__ == "__main__":
    sys.exit(main())
