"""
Lambert Conformal Conic Projection.

A conformal (angle-preserving) projection suitable for mid-latitude regions
that extend primarily east-west. The cone either touches the ellipsoid along
one standard parallel (tangent case) or cuts it along two (secant case).

Scientific Context
------------------
Domain: Cartography
Model: Ellipsoidal Lambert conformal conic (Snyder 1987, pp. 104-110).

Constants (φ1, φ2 standard parallels, φ0 origin latitude)::

    t(φ) = tan(π/4 - φ/2) / ((1 - e sinφ) / (1 + e sinφ))^(e/2)
    m(φ) = cosφ / sqrt(1 - e² sin²φ)
    n    = (ln m1 - ln m2) / (ln t1 - ln t2)    or sin φ1 (tangent cone)
    F    = m1 / (n t1^n)
    ρ0   = a F t0^n

Forward: ρ = a F t^n, θ = n (λ - λ0), x = ρ sinθ + FE, y = ρ0 - ρ cosθ + FN.

The inverse recovers t from ρ and solves for latitude by fixed-point
iteration (:func:`solve_conformal_latitude`).

Notes
-----
The cone's apex lies over the pole on the side of the cone constant's sign.
That pole maps to a single point (ρ = 0); the opposite pole is at infinite
distance and is outside the domain.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper
  1395, eqs. 15-1 to 15-11. Worked example (Clarke 1866, 33°/45°, origin
  23°N 96°W) on p. 296.
"""

from typing import Optional, Tuple

import numpy as np

from common.constants import ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError
from common.logging_config import get_logger
from common.types import Direction, ProjectionParameters
from geospatial.ellipsoid import SPHERE, Ellipsoid
from geospatial.projections import (
    HALF_PI,
    MapProjection,
    check_standard_parallels,
    conformal_t,
    ellipsoid_proj4,
    parallel_scale_m,
    validate_origin,
    wrap_longitude,
)

logger = get_logger(__name__)


def solve_conformal_latitude(
    t: float,
    e: float,
    tolerance: float = ProjectionConstants.LATITUDE_TOLERANCE.value,
    max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
) -> float:
    """Invert Snyder's t for geodetic latitude.

    Iterates φ = π/2 - 2 atan(t ((1 - e sinφ) / (1 + e sinφ))^(e/2)) from the
    spherical seed φ = π/2 - 2 atan(t) (Snyder 1987, eq. 7-9).

    Parameters
    ----------
    t : float
        Isometric variable t >= 0.
    e : float
        First eccentricity of the ellipsoid.
    tolerance : float
        Convergence threshold on the latitude change, in radians.
    max_iterations : int
        Maximum number of refinements.

    Returns
    -------
    float
        Latitude in radians.

    Raises
    ------
    ConvergenceError
        If the change is still above ``tolerance`` after ``max_iterations``.
    """
    phi = HALF_PI - 2 * np.arctan(t)
    if e == 0.0:
        return phi

    delta = np.inf
    for iteration in range(1, max_iterations + 1):
        sin_phi = np.sin(phi)
        ratio = (1 - e * sin_phi) / (1 + e * sin_phi)
        phi_next = HALF_PI - 2 * np.arctan(t * ratio ** (e / 2))
        delta = np.abs(phi_next - phi)
        phi = phi_next
        if delta < tolerance:
            logger.debug(f"Conformal latitude converged after {iteration} iterations")
            return phi

    raise ConvergenceError(
        f"Conformal latitude did not converge in {max_iterations} iterations "
        f"(last change {delta:.3e} rad)",
        iterations=max_iterations,
        residual=float(delta)
    )


class LambertConformalConic(MapProjection):
    """Lambert Conformal Conic projection.

    Parameters
    ----------
    standard_parallel_1 : float
        First (or only) standard parallel in degrees.
    central_meridian : float
        Longitude of origin in degrees.
    origin_latitude : float
        Latitude of origin in degrees.
    standard_parallel_2 : float, optional
        Second standard parallel in degrees. Omitted, or within 1e-10 rad of
        the first, selects the tangent cone.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: sphere of radius 6378137 m).
    false_easting, false_northing : float
        False origin offsets in meters.
    direction : Direction
        Direction of :meth:`transform_coords`.
    tolerance : float
        Convergence tolerance of the inverse latitude iteration, in radians.
    max_iterations : int
        Iteration cap of the inverse latitude iteration.

    Raises
    ------
    ConfigurationError
        For degenerate standard parallels or an origin at the pole opposite
        the cone's apex.

    Examples
    --------
    >>> from geospatial.ellipsoid import CLARKE_1866
    >>> lcc = LambertConformalConic(33, -96, 23, 45, ellipsoid=CLARKE_1866)
    """

    def __init__(
        self,
        standard_parallel_1: float,
        central_meridian: float,
        origin_latitude: float,
        standard_parallel_2: Optional[float] = None,
        ellipsoid: Ellipsoid = SPHERE,
        false_easting: float = 0.0,
        false_northing: float = 0.0,
        direction: Direction = Direction.FROM_GEOGRAPHIC,
        tolerance: float = ProjectionConstants.LATITUDE_TOLERANCE.value,
        max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
    ):
        super().__init__(ellipsoid, direction)
        validate_origin(central_meridian, origin_latitude, false_easting, false_northing)
        if standard_parallel_2 is None:
            standard_parallel_2 = standard_parallel_1

        self._lat1 = float(standard_parallel_1)
        self._lat2 = float(standard_parallel_2)
        self._lon0 = float(central_meridian)
        self._lat0 = float(origin_latitude)
        self._false_easting = float(false_easting)
        self._false_northing = float(false_northing)
        self._tolerance = tolerance
        self._max_iterations = max_iterations

        phi1 = np.radians(self._lat1)
        phi2 = np.radians(self._lat2)
        phi0 = np.radians(self._lat0)
        self._lambda0 = np.radians(self._lon0)

        self._is_tangent = check_standard_parallels(
            phi1, phi2,
            ProjectionConstants.TANGENT_PARALLEL_TOLERANCE.value,
            ProjectionConstants.MIN_PARALLEL_SEPARATION.value
        )

        e = ellipsoid.e
        self._e = e
        self._a = ellipsoid.a

        m1 = parallel_scale_m(phi1, e)
        t1 = conformal_t(phi1, e)

        if self._is_tangent:
            n = np.sin(phi1)
        else:
            m2 = parallel_scale_m(phi2, e)
            t2 = conformal_t(phi2, e)
            n = (np.log(m1) - np.log(m2)) / (np.log(t1) - np.log(t2))

        self._n = float(n)
        self._F = float(m1 / (n * t1**n))
        self._rho0 = self._rho(phi0)

        if self._rho0 is None:
            raise ConfigurationError(
                f"Origin latitude {self._lat0}° is the pole opposite the cone's apex"
            )

    @property
    def name(self) -> str:
        if self._is_tangent:
            return f"Lambert Conformal Conic ({self._lat1}°)"
        return f"Lambert Conformal Conic ({self._lat1}°, {self._lat2}°)"

    @property
    def parameters(self) -> ProjectionParameters:
        parallels = (self._lat1,) if self._is_tangent else (self._lat1, self._lat2)
        return ProjectionParameters(
            central_meridian=self._lon0,
            origin_latitude=self._lat0,
            standard_parallels=parallels,
            false_easting=self._false_easting,
            false_northing=self._false_northing,
        )

    @property
    def proj4_string(self) -> str:
        return (
            f"+proj=lcc +lat_1={self._lat1!r} +lat_2={self._lat2!r} "
            f"+lat_0={self._lat0!r} +lon_0={self._lon0!r} "
            f"+x_0={self._false_easting!r} +y_0={self._false_northing!r} "
            f"{ellipsoid_proj4(self._ellipsoid)} +units=m +no_defs"
        )

    @property
    def preserves_angles(self) -> bool:
        return True

    @property
    def cone_constant(self) -> float:
        """Cone constant n."""
        return self._n

    @property
    def is_tangent(self) -> bool:
        return self._is_tangent

    def _rho(self, phi: float) -> Optional[float]:
        """Radius of the parallel φ on the developed cone, None at infinity."""
        if np.abs(phi) >= HALF_PI - 1e-12:
            if np.sign(phi) == np.sign(self._n):
                return 0.0
            return None
        return float(self._a * self._F * conformal_t(phi, self._e) ** self._n)

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        rho = self._rho(lat_rad)
        if rho is None:
            return None

        theta = self._n * wrap_longitude(lon_rad - self._lambda0)
        easting = rho * np.sin(theta) + self._false_easting
        northing = self._rho0 - rho * np.cos(theta) + self._false_northing
        return easting, northing

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        x = easting - self._false_easting
        dy = self._rho0 - (northing - self._false_northing)
        sign = np.sign(self._n)

        rho = sign * np.sqrt(x**2 + dy**2)
        if rho == 0.0:
            return self._lambda0, sign * HALF_PI

        theta = np.arctan2(sign * x, sign * dy)
        lon_rad = theta / self._n + self._lambda0

        t = (rho / (self._a * self._F)) ** (1 / self._n)
        lat_rad = solve_conformal_latitude(t, self._e, self._tolerance, self._max_iterations)
        return lon_rad, lat_rad
