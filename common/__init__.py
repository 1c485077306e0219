"""
Common utilities and infrastructure for the Path Visualizer.

This package provides foundational components used across all modules:
- Earth-model, interaction and palette constants
- Value types (coordinates, paths, view modes)
- Unit registry for distance reporting
- Configuration
- Logging and audit trail infrastructure
"""

from common.constants import GeodesyConstants, InteractionConstants, Palette
from common.units import UnitRegistry, ureg, Q_
from common.types import (
    Coordinates,
    GeoPath,
    InvalidCoordinateError,
    PathType,
    ProjectionKind,
    ViewMode,
    Viewport,
)
from common.config import VisualizerConfig
from common.logging_config import get_logger, AuditLogger

__all__ = [
    "GeodesyConstants",
    "InteractionConstants",
    "Palette",
    "UnitRegistry",
    "ureg",
    "Q_",
    "Coordinates",
    "GeoPath",
    "InvalidCoordinateError",
    "PathType",
    "ProjectionKind",
    "ViewMode",
    "Viewport",
    "VisualizerConfig",
    "get_logger",
    "AuditLogger",
]
