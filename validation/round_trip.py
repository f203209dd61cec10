"""
Round-Trip Validation of Map Projections.

Checks that projecting a set of geographic points and inverting the result
returns the original positions, and reports the largest residuals.

Test Categories
---------------
1. Domain (every point projects and inverts)
2. Longitude residual
3. Latitude residual
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

import numpy as np

from common.errors import ConfigurationError, ConvergenceError, ProjectionError
from common.logging_config import get_logger
from common.types import GeoPoint
from geospatial.projections import MapProjection

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes
    ----------
    test_name : str
        Name of the test.
    passed : bool
        Whether the test passed.
    message : str
        Description of result.
    details : dict
        Additional details.
    """
    test_name: str
    passed: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


def _longitude_residual(a: float, b: float) -> float:
    """Difference of two longitudes in degrees, across the antimeridian."""
    diff = np.abs(a - b) % 360.0
    return float(min(diff, 360.0 - diff))


class RoundTripChecker:
    """Checker for forward/inverse consistency of a projection.

    Parameters
    ----------
    tolerance : float
        Largest accepted residual in degrees.
    strict_mode : bool
        If True, raise :class:`ProjectionError` when a check fails.
    log_violations : bool
        Whether to log failing points.
    """

    def __init__(
        self,
        tolerance: float = 0.001,
        strict_mode: bool = False,
        log_violations: bool = True
    ):
        if not np.isfinite(tolerance) or tolerance <= 0:
            raise ConfigurationError(f"Tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance
        self.strict_mode = strict_mode
        self.log_violations = log_violations
        self._logger = get_logger("RoundTripChecker")

    def check(
        self,
        projection: MapProjection,
        points: Iterable[Union[GeoPoint, Tuple[float, float]]]
    ) -> ValidationResult:
        """Round-trip every point through ``projection``.

        Parameters
        ----------
        projection : MapProjection
            Projection under test.
        points : iterable of GeoPoint or (longitude, latitude)
            Points in decimal degrees; all are expected inside the domain.

        Returns
        -------
        ValidationResult
            ``details`` holds ``max_longitude_residual`` and
            ``max_latitude_residual`` (degrees), ``num_points``,
            ``rejected`` and ``violations`` (lists of points).

        Raises
        ------
        ProjectionError
            In strict mode, if any point is rejected or exceeds the tolerance.
        """
        geo_points = [p if isinstance(p, GeoPoint) else GeoPoint(*p) for p in points]

        max_dlon = 0.0
        max_dlat = 0.0
        rejected: List[GeoPoint] = []
        violations: List[GeoPoint] = []

        for point in geo_points:
            try:
                projected = projection.to_projected(point)
                restored = None if projected is None else projection.to_geographic(projected)
            except ConvergenceError as exc:
                self._report(f"{projection.name}: {point} did not converge: {exc}")
                restored = None

            if restored is None:
                rejected.append(point)
                self._report(f"{projection.name}: {point} did not round trip")
                continue

            dlon = _longitude_residual(restored.longitude, point.longitude)
            # Longitude is arbitrary at a pole
            if np.abs(point.latitude) == 90.0:
                dlon = 0.0
            dlat = float(np.abs(restored.latitude - point.latitude))
            max_dlon = max(max_dlon, dlon)
            max_dlat = max(max_dlat, dlat)

            if dlon > self.tolerance or dlat > self.tolerance:
                violations.append(point)
                self._report(
                    f"{projection.name}: {point} returned as {restored} "
                    f"(residuals {dlon:.3e}°, {dlat:.3e}°)"
                )

        passed = not rejected and not violations
        result = ValidationResult(
            test_name=f"round_trip[{projection.name}]",
            passed=passed,
            message=(
                f"Round trip of {len(geo_points)} points: {len(rejected)} rejected, "
                f"{len(violations)} above {self.tolerance}°"
            ),
            details={
                'num_points': len(geo_points),
                'max_longitude_residual': max_dlon,
                'max_latitude_residual': max_dlat,
                'tolerance': self.tolerance,
                'rejected': rejected,
                'violations': violations,
            }
        )

        if not passed and self.strict_mode:
            raise ProjectionError(result.message)
        return result

    def check_all(
        self,
        projections: Sequence[MapProjection],
        points: Sequence[Union[GeoPoint, Tuple[float, float]]]
    ) -> List[ValidationResult]:
        """Run :meth:`check` for each projection on the same points."""
        return [self.check(projection, points) for projection in projections]

    def _report(self, message: str) -> None:
        if self.log_violations:
            self._logger.warning(message)
