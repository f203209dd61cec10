"""
Validation Framework for the map projection engine.

This module provides round-trip consistency checks for projections.
"""

from validation.round_trip import RoundTripChecker, ValidationResult

__all__ = [
    "RoundTripChecker",
    "ValidationResult",
]
