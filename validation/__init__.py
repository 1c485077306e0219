"""
Validation Framework for the Path Visualizer.

This module provides consistency checks for distances, sampled paths and
view states.
"""

from validation.path_checks import (
    ConsistencyViolation,
    PathConsistencyChecker,
    ValidationResult,
)

__all__ = [
    "ConsistencyViolation",
    "PathConsistencyChecker",
    "ValidationResult",
]
