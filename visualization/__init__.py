"""
Visualization Module for the Path Visualizer.

This module provides the session facade hosts drive (requests, interaction
forwarding, frames and distance reports) and the `navpath` command line.
"""

from visualization.session import (
    PathVisualizer,
    MISSING_INPUT_MESSAGE,
    FETCH_FAILED_PREFIX,
)

__all__ = [
    "PathVisualizer",
    "MISSING_INPUT_MESSAGE",
    "FETCH_FAILED_PREFIX",
]
