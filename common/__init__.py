"""
Common utilities and infrastructure for the map projection engine.

This package provides foundational components used across all modules:
- Numerical constants with provenance
- Point, direction and parameter types
- The exception hierarchy
- Logging infrastructure
"""

from common.constants import Constant, ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError, ProjectionError
from common.types import (
    Direction,
    GeoPoint,
    ProjectedPoint,
    ProjectionParameters,
)
from common.logging_config import get_logger, set_log_level

__all__ = [
    "Constant",
    "ProjectionConstants",
    "ProjectionError",
    "ConfigurationError",
    "ConvergenceError",
    "Direction",
    "GeoPoint",
    "ProjectedPoint",
    "ProjectionParameters",
    "get_logger",
    "set_log_level",
]
