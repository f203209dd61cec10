"""
Swiss Oblique Conformal Cylindrical Projection.

The projection of the Swiss national survey (CH1903): a double projection
that first maps the ellipsoid conformally onto a Gaussian sphere touching it
at the fundamental point, then projects the sphere onto a cylinder tangent
along the great circle through the fundamental point perpendicular to its
meridian.

Scientific Context
------------------
Domain: Cartography, national grids
Model: Rosenmund's oblique conformal cylindrical projection (EPSG method
9815, PROJ ``somerc``).

Constants (φ0, λ0 fundamental point, ψ(φ) isometric latitude)::

    α  = sqrt(1 + e² cos⁴φ0 / (1 - e²))
    b0 = asin(sin φ0 / α)
    K  = ln tan(π/4 + b0/2) - α ψ(φ0)
    R  = a sqrt(1 - e²) / (1 - e² sin²φ0)

Forward: the sphere latitude b follows from α ψ(φ) + K and the sphere
longitude from l = α (λ - λ0); rotating the sphere by b0 about the east
axis gives the oblique coordinates (b̄, l̄)::

    E = FE + R l̄
    N = FN + R atanh(sin b̄)

Inverse: the rotation is undone in closed form; geodetic latitude is
recovered from the sphere latitude by Newton iteration on ψ
(:func:`solve_isometric_latitude`).

References
----------
- swisstopo (2016). Formulas and constants for the calculation of the Swiss
  conformal cylindrical projection and for the transformation between
  coordinate systems.
- IOGP (2019). Geomatics Guidance Note 7-2, section 3.2.5.
"""

from typing import Optional, Tuple

import numpy as np

from common.constants import ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError
from common.logging_config import get_logger
from common.types import Direction, ProjectionParameters
from geospatial.ellipsoid import BESSEL_1841, Ellipsoid
from geospatial.projections import (
    HALF_PI,
    QUARTER_PI,
    MapProjection,
    conformal_t,
    ellipsoid_proj4,
    validate_origin,
    wrap_longitude,
)

logger = get_logger(__name__)


def isometric_latitude(lat_rad: float, e: float) -> float:
    """ψ = ln tan(π/4 + φ/2) - (e/2) ln((1 + e sinφ) / (1 - e sinφ))."""
    return float(-np.log(conformal_t(lat_rad, e)))


def solve_isometric_latitude(
    psi: float,
    e: float,
    initial: float,
    tolerance: float = ProjectionConstants.LATITUDE_TOLERANCE.value,
    max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
) -> float:
    """Invert the isometric latitude ψ for geodetic latitude by Newton iteration.

    Parameters
    ----------
    psi : float
        Isometric latitude.
    e : float
        First eccentricity.
    initial : float
        Starting latitude in radians (the sphere latitude is a good one).
    tolerance : float
        Convergence threshold on the latitude correction, in radians.
    max_iterations : int
        Iteration cap.

    Returns
    -------
    float
        Latitude in radians.

    Raises
    ------
    ConvergenceError
        If the correction is still above ``tolerance`` after ``max_iterations``.
    """
    e2 = e * e
    phi = initial
    dphi = np.inf
    for iteration in range(1, max_iterations + 1):
        sin_phi = np.sin(phi)
        # dψ/dφ = (1 - e²) / ((1 - e² sin²φ) cos φ)
        dphi = (isometric_latitude(phi, e) - psi) * (1 - e2 * sin_phi**2) * np.cos(phi) / (1 - e2)
        phi = phi - dphi
        if np.abs(dphi) <= tolerance:
            logger.debug(f"Isometric latitude converged after {iteration} iterations")
            return phi

    raise ConvergenceError(
        f"Isometric latitude did not converge in {max_iterations} iterations "
        f"(last correction {np.abs(dphi):.3e} rad)",
        iterations=max_iterations,
        residual=float(np.abs(dphi))
    )


class SwissObliqueCylindrical(MapProjection):
    """Swiss oblique conformal cylindrical projection.

    Parameters
    ----------
    centre_latitude, centre_longitude : float
        Fundamental point in degrees (default: the old observatory of Bern).
    false_easting, false_northing : float
        Grid coordinates of the fundamental point, in meters (default: the
        LV03 values 600 km and 200 km).
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: Bessel 1841).
    direction : Direction
        Direction of :meth:`transform_coords`.
    tolerance : float
        Convergence threshold of the inverse latitude iteration, in radians.
    max_iterations : int
        Iteration cap of the inverse latitude iteration.

    Raises
    ------
    ConfigurationError
        If the fundamental point is at a pole.

    Examples
    --------
    >>> from common.types import GeoPoint
    >>> p = SwissObliqueCylindrical().to_projected(GeoPoint(7.4395833333, 46.9524055556))
    >>> round(p.easting), round(p.northing)
    (600000, 200000)
    """

    def __init__(
        self,
        centre_latitude: float = ProjectionConstants.BERN_LATITUDE.value,
        centre_longitude: float = ProjectionConstants.BERN_LONGITUDE.value,
        false_easting: float = 600_000.0,
        false_northing: float = 200_000.0,
        ellipsoid: Ellipsoid = BESSEL_1841,
        direction: Direction = Direction.FROM_GEOGRAPHIC,
        tolerance: float = ProjectionConstants.LATITUDE_TOLERANCE.value,
        max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
    ):
        super().__init__(ellipsoid, direction)
        validate_origin(centre_longitude, centre_latitude, false_easting, false_northing)
        if np.abs(centre_latitude) >= 90.0:
            raise ConfigurationError("The fundamental point cannot be at a pole")

        self._lat0 = float(centre_latitude)
        self._lon0 = float(centre_longitude)
        self._false_easting = float(false_easting)
        self._false_northing = float(false_northing)
        self._tolerance = tolerance
        self._max_iterations = max_iterations

        phi0 = np.radians(self._lat0)
        self._lambda0 = np.radians(self._lon0)

        e2 = ellipsoid.e2
        self._e = ellipsoid.e
        sin_phi0 = np.sin(phi0)

        self._alpha = float(np.sqrt(1 + e2 * np.cos(phi0) ** 4 / (1 - e2)))
        b0 = np.arcsin(sin_phi0 / self._alpha)
        self._sin_b0 = np.sin(b0)
        self._cos_b0 = np.cos(b0)
        self._K = float(
            np.log(np.tan(QUARTER_PI + b0 / 2)) - self._alpha * isometric_latitude(phi0, self._e)
        )
        self._R = float(ellipsoid.a * np.sqrt(1 - e2) / (1 - e2 * sin_phi0**2))

    @property
    def name(self) -> str:
        return f"Swiss Oblique Cylindrical (centre {self._lat0}°, {self._lon0}°)"

    @property
    def parameters(self) -> ProjectionParameters:
        return ProjectionParameters(
            central_meridian=self._lon0,
            origin_latitude=self._lat0,
            scale_factor=1.0,
            false_easting=self._false_easting,
            false_northing=self._false_northing,
            azimuth=90.0,
        )

    @property
    def proj4_string(self) -> str:
        return (
            f"+proj=somerc +lat_0={self._lat0!r} +lon_0={self._lon0!r} +k_0=1 "
            f"+x_0={self._false_easting!r} +y_0={self._false_northing!r} "
            f"{ellipsoid_proj4(self._ellipsoid)} +units=m +no_defs"
        )

    @property
    def preserves_angles(self) -> bool:
        return True

    @property
    def sphere_radius(self) -> float:
        """Radius R of the Gaussian sphere, in meters."""
        return self._R

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        if np.abs(lat_rad) >= HALF_PI - 1e-12:
            b = np.copysign(HALF_PI, lat_rad)
        else:
            S = self._alpha * isometric_latitude(lat_rad, self._e) + self._K
            b = 2 * np.arctan(np.exp(S)) - HALF_PI
        lam = self._alpha * wrap_longitude(lon_rad - self._lambda0)

        sin_b = np.sin(b)
        cos_b = np.cos(b)
        cos_lam = np.cos(lam)
        sin_b_bar = self._cos_b0 * sin_b - self._sin_b0 * cos_b * cos_lam

        # Poles of the oblique cylinder
        if 1.0 - np.abs(sin_b_bar) < 1e-12:
            return None

        l_bar = np.arctan2(cos_b * np.sin(lam), self._sin_b0 * sin_b + self._cos_b0 * cos_b * cos_lam)

        easting = self._R * l_bar + self._false_easting
        northing = self._R * np.arctanh(sin_b_bar) + self._false_northing
        return easting, northing

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        l_bar = (easting - self._false_easting) / self._R
        if np.abs(l_bar) > np.pi:
            return None
        b_bar = 2 * np.arctan(np.exp((northing - self._false_northing) / self._R)) - HALF_PI

        sin_b_bar = np.sin(b_bar)
        cos_b_bar = np.cos(b_bar)
        cos_l_bar = np.cos(l_bar)
        # Undo the rotation on the unit vector of the sphere point
        x = self._cos_b0 * cos_b_bar * cos_l_bar - self._sin_b0 * sin_b_bar
        y = cos_b_bar * np.sin(l_bar)
        z = self._cos_b0 * sin_b_bar + self._sin_b0 * cos_b_bar * cos_l_bar
        b = np.arctan2(z, np.hypot(x, y))
        lam = np.arctan2(y, x)

        lon_rad = self._lambda0 + lam / self._alpha
        if np.abs(b) >= HALF_PI - 1e-12:
            return lon_rad, np.copysign(HALF_PI, b)

        psi = (np.log(np.tan(QUARTER_PI + b / 2)) - self._K) / self._alpha
        lat_rad = solve_isometric_latitude(
            psi, self._e, b, self._tolerance, self._max_iterations
        )
        return lon_rad, lat_rad
