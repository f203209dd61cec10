"""
Tissot's Indicatrix: Local Distortion of a Projection.

Measures how a projection distorts an infinitesimal circle at a point by
differentiating the forward transform numerically. Works for any
:class:`geospatial.projections.MapProjection`.

Scientific Context
------------------
Domain: Cartography
Model: Tissot (1881) distortion ellipse (Snyder 1987, eqs. 4-9 to 4-13).

With M, N the meridian and prime-vertical radii of curvature::

    h  = |∂(x, y)/∂φ| / M                 scale along the meridian
    k  = |∂(x, y)/∂λ| / (N cosφ)          scale along the parallel
    s  = h k sin θ'                        area scale (θ' = angle between the
                                           projected meridian and parallel)
    a' = sqrt(h² + k² + 2s),  b' = sqrt(h² + k² - 2s)
    a  = (a' + b') / 2,       b  = (a' - b') / 2
    ω  = 2 asin((a - b) / (a + b))         maximum angular distortion

Notes
-----
- Conformal projections: a = b, ω = 0.
- Equal-area projections: s = 1.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from common.logging_config import get_logger
from common.types import GeoPoint
from geospatial.ellipsoid import (
    radius_of_curvature_meridian,
    radius_of_curvature_prime_vertical,
)
from geospatial.projections import HALF_PI, MapProjection

logger = get_logger(__name__)


@dataclass(frozen=True)
class TissotIndicatrix:
    """Tissot's indicatrix describing local distortion at a point.

    The Tissot indicatrix shows how an infinitesimally small circle
    on the Earth's surface is distorted into an ellipse on the map.

    Attributes
    ----------
    h : float
        Scale factor along the meridian.
    k : float
        Scale factor along the parallel.
    semi_major : float
        Semi-major axis of the distortion ellipse (maximum scale factor).
    semi_minor : float
        Semi-minor axis of the distortion ellipse (minimum scale factor).
    area_scale : float
        Area distortion factor.
    angular_distortion_rad : float
        Maximum angular distortion in radians.
    """
    h: float
    k: float
    semi_major: float
    semi_minor: float
    area_scale: float
    angular_distortion_rad: float

    def is_conformal(self, tolerance: float = 1e-6) -> bool:
        """Check if projection is locally conformal (circle, no angular distortion)."""
        return bool(np.abs(self.semi_major - self.semi_minor) < tolerance)

    def is_equal_area(self, tolerance: float = 1e-6) -> bool:
        """Check if projection is locally equal-area."""
        return bool(np.abs(self.area_scale - 1.0) < tolerance)


def compute_tissot_indicatrix(
    projection: MapProjection,
    point: GeoPoint,
    delta: float = 1e-5
) -> Optional[TissotIndicatrix]:
    """Compute Tissot's indicatrix numerically.

    Parameters
    ----------
    projection : MapProjection
        The projection to analyze.
    point : GeoPoint
        Location in decimal degrees.
    delta : float
        Angular step of the central differences, in radians.

    Returns
    -------
    TissotIndicatrix or None
        Local distortion characteristics, or None if the point or one of
        its neighbours is outside the projection's domain.
    """
    lon_rad, lat_rad = point.to_radians()
    if np.abs(lat_rad) + delta >= HALF_PI:
        logger.warning(f"Tissot indicatrix is undefined at {point}: too close to a pole")
        return None

    def project(d_lon: float, d_lat: float):
        return projection.to_projected(GeoPoint.from_radians(lon_rad + d_lon, lat_rad + d_lat))

    east, west = project(delta, 0.0), project(-delta, 0.0)
    north, south = project(0.0, delta), project(0.0, -delta)
    if any(p is None for p in (east, west, north, south)):
        logger.warning(f"Tissot indicatrix is undefined at {point}: outside the domain")
        return None

    # Partial derivatives
    dx_dlon = (east.easting - west.easting) / (2 * delta)
    dy_dlon = (east.northing - west.northing) / (2 * delta)
    dx_dlat = (north.easting - south.easting) / (2 * delta)
    dy_dlat = (north.northing - south.northing) / (2 * delta)

    ellipsoid = projection.geographic_ellipsoid
    M = radius_of_curvature_meridian(lat_rad, ellipsoid)
    N = radius_of_curvature_prime_vertical(lat_rad, ellipsoid)
    parallel_radius = N * np.cos(lat_rad)

    h = np.hypot(dx_dlat, dy_dlat) / M
    k = np.hypot(dx_dlon, dy_dlon) / parallel_radius
    area_scale = np.abs(dx_dlat * dy_dlon - dy_dlat * dx_dlon) / (M * parallel_radius)

    sum_sq = h**2 + k**2
    a_prime = np.sqrt(sum_sq + 2 * area_scale)
    b_prime = np.sqrt(max(sum_sq - 2 * area_scale, 0.0))
    semi_major = (a_prime + b_prime) / 2
    semi_minor = (a_prime - b_prime) / 2
    omega = 2 * np.arcsin(np.clip((semi_major - semi_minor) / (semi_major + semi_minor), 0.0, 1.0))

    return TissotIndicatrix(
        h=float(h),
        k=float(k),
        semi_major=float(semi_major),
        semi_minor=float(semi_minor),
        area_scale=float(area_scale),
        angular_distortion_rad=float(omega),
    )
