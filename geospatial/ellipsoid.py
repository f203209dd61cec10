"""
Reference Ellipsoids and Ellipsoidal Earth Geometry.

This module defines the reference ellipsoid shared by every projection in
the engine, the table of named historical ellipsoids, and the basic
ellipsoidal geometry the projections and the datum shift are built on:
radii of curvature and the geodetic <-> Earth-Centered Earth-Fixed
conversion.

Scientific Context
------------------
Domain: Geodesy, Earth geometry
Model: Oblate ellipsoid of revolution, defined by its equatorial radius a
and its flattening f = (a - b) / a. A sphere is the special case f = 0.

National mapping systems are defined on the ellipsoid that was adopted when
the system was surveyed (Airy 1830 for Great Britain, Clarke 1880 for the
French NTF, Bessel 1841 for Switzerland, ...). The historical presets below
are stored, as in the published tables, by equatorial radius and squared
eccentricity.

References
----------
- NIMA TR8350.2 (2000), Department of Defense World Geodetic System 1984,
  Appendix A.1: Reference ellipsoid names and constants.
- Torge, W. (2001). Geodesy (3rd ed.). de Gruyter.
- Bowring, B.R. (1976). Transformation from spatial to geographical
  coordinates. Survey Review, 23(181), 323-327.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from common.constants import ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError
from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Ellipsoid:
    """Parameters defining a reference ellipsoid.

    Attributes
    ----------
    a : float
        Semi-major axis (equatorial radius) in meters.
    f : float
        Flattening: f = (a - b) / a
    name : str
        Identifier for the ellipsoid.

    Derived Parameters
    ------------------
    b : float
        Semi-minor axis (polar radius) in meters.
    e2 : float
        First eccentricity squared: e² = (a² - b²) / a²
    e : float
        First eccentricity.
    ep2 : float
        Second eccentricity squared: e'² = (a² - b²) / b²
    n : float
        Third flattening: n = (a - b) / (a + b)

    Raises
    ------
    ConfigurationError
        If the axis is not a positive finite number or the flattening is
        outside [0, 1).
    """
    a: float
    f: float
    name: str = "Custom"

    def __post_init__(self):
        """Validate the defining parameters."""
        if not np.isfinite(self.a) or self.a <= 0:
            raise ConfigurationError(
                f"Ellipsoid semi-major axis must be positive, got {self.a}"
            )
        if not np.isfinite(self.f) or not 0.0 <= self.f < 1.0:
            raise ConfigurationError(
                f"Ellipsoid flattening must lie in [0, 1), got {self.f}"
            )

    @classmethod
    def from_eccentricity(cls, a: float, e2: float, name: str = "Custom") -> 'Ellipsoid':
        """Create an ellipsoid from its equatorial radius and squared eccentricity.

        Parameters
        ----------
        a : float
            Semi-major axis in meters.
        e2 : float
            First eccentricity squared, in [0, 1).
        name : str, optional
            Identifier for the ellipsoid.

        Returns
        -------
        Ellipsoid
            The ellipsoid with f = 1 - sqrt(1 - e²).
        """
        if not np.isfinite(e2) or not 0.0 <= e2 < 1.0:
            raise ConfigurationError(
                f"Squared eccentricity must lie in [0, 1), got {e2}"
            )
        return cls(a=a, f=float(1.0 - np.sqrt(1.0 - e2)), name=name)

    @classmethod
    def from_axes(cls, a: float, b: float, name: str = "Custom") -> 'Ellipsoid':
        """Create an ellipsoid from its semi-major and semi-minor axes."""
        if not np.isfinite(b) or b <= 0 or b > a:
            raise ConfigurationError(
                f"Semi-minor axis must lie in (0, a], got b={b} for a={a}"
            )
        return cls(a=a, f=(a - b) / a, name=name)

    @property
    def b(self) -> float:
        """Semi-minor axis in meters."""
        return self.a * (1 - self.f)

    @property
    def e2(self) -> float:
        """First eccentricity squared."""
        return self.f * (2 - self.f)

    @property
    def e(self) -> float:
        """First eccentricity."""
        return float(np.sqrt(self.e2))

    @property
    def ep2(self) -> float:
        """Second eccentricity squared."""
        return self.e2 / (1 - self.e2)

    @property
    def n(self) -> float:
        """Third flattening (a - b) / (a + b)."""
        return (self.a - self.b) / (self.a + self.b)

    @property
    def is_sphere(self) -> bool:
        return self.f == 0.0

    def __str__(self) -> str:
        return f"{self.name} (a={self.a:.3f} m, 1/f={self.inverse_flattening:.9f})"

    @property
    def inverse_flattening(self) -> float:
        """Inverse flattening 1/f, infinite for a sphere."""
        return np.inf if self.f == 0.0 else 1.0 / self.f


# =============================================================================
# Named ellipsoids (equatorial radius, squared eccentricity)
# =============================================================================

AIRY_1830 = Ellipsoid.from_eccentricity(6377563.396, 0.0066705397616, "Airy 1830")
AUSTRALIAN_NATIONAL = Ellipsoid.from_eccentricity(6378160.0, 0.006694542, "Australian National")
BESSEL_1841 = Ellipsoid.from_eccentricity(6377397.0, 0.006674372, "Bessel 1841")
BESSEL_1841_NAMIBIA = Ellipsoid.from_eccentricity(6377484.0, 0.006674372, "Bessel 1841 (Namibia)")
CLARKE_1866 = Ellipsoid.from_eccentricity(6378206.0, 0.006768658, "Clarke 1866")
CLARKE_1880 = Ellipsoid.from_eccentricity(6378249.0, 0.006803511, "Clarke 1880")
EVEREST = Ellipsoid.from_eccentricity(6377276.0, 0.006637847, "Everest")
FISCHER_1960 = Ellipsoid.from_eccentricity(6378166.0, 0.006693422, "Fischer 1960")
FISCHER_1968 = Ellipsoid.from_eccentricity(6378150.0, 0.006693422, "Fischer 1968")
GRS_1967 = Ellipsoid.from_eccentricity(6378160.0, 0.006694605, "GRS 1967")
GRS_1980 = Ellipsoid.from_eccentricity(6378137.0, 0.00669438, "GRS 1980")
HELMERT_1906 = Ellipsoid.from_eccentricity(6378200.0, 0.006693422, "Helmert 1906")
HOUGH = Ellipsoid.from_eccentricity(6378270.0, 0.00672267, "Hough")
INTERNATIONAL = Ellipsoid.from_eccentricity(6378388.0, 0.00672267, "International")
KRASSOVSKY = Ellipsoid.from_eccentricity(6378245.0, 0.006693422, "Krassovsky")
MODIFIED_AIRY = Ellipsoid.from_eccentricity(6377340.189, 0.00667054, "Modified Airy")
MODIFIED_EVEREST = Ellipsoid.from_eccentricity(6377304.0, 0.006637847, "Modified Everest")
MODIFIED_FISCHER_1960 = Ellipsoid.from_eccentricity(6378155.0, 0.006693422, "Modified Fischer 1960")
SOUTH_AMERICAN = Ellipsoid.from_eccentricity(6378160.0, 0.006694542, "South American")
WGS_60 = Ellipsoid.from_eccentricity(6378165.0, 0.006693422, "WGS 60")
WGS_66 = Ellipsoid.from_eccentricity(6378145.0, 0.006694542, "WGS 66")
WGS_72 = Ellipsoid.from_eccentricity(6378135.0, 0.006694318, "WGS 72")
WGS_84 = Ellipsoid(
    a=ProjectionConstants.EARTH_SEMI_MAJOR_AXIS.value,
    f=1.0 / ProjectionConstants.EARTH_INVERSE_FLATTENING.value,
    name="WGS 84"
)
SPHERE = Ellipsoid(a=ProjectionConstants.EARTH_SEMI_MAJOR_AXIS.value, f=0.0, name="Sphere")

ELLIPSOIDS: Dict[str, Ellipsoid] = {
    ellipsoid.name: ellipsoid for ellipsoid in (
        AIRY_1830, AUSTRALIAN_NATIONAL, BESSEL_1841, BESSEL_1841_NAMIBIA,
        CLARKE_1866, CLARKE_1880, EVEREST, FISCHER_1960, FISCHER_1968,
        GRS_1967, GRS_1980, HELMERT_1906, HOUGH, INTERNATIONAL, KRASSOVSKY,
        MODIFIED_AIRY, MODIFIED_EVEREST, MODIFIED_FISCHER_1960,
        SOUTH_AMERICAN, WGS_60, WGS_66, WGS_72, WGS_84, SPHERE,
    )
}

_ALIASES: Dict[str, str] = {
    "wgs1984": "WGS 84",
    "grs80": "GRS 1980",
    "airy": "Airy 1830",
    "bessel": "Bessel 1841",
    "intl": "International",
    "hayford": "International",
}


def _normalize_name(name: str) -> str:
    return re.sub(r'[^a-z0-9]', '', name.lower())


_LOOKUP: Dict[str, Ellipsoid] = {
    _normalize_name(name): ellipsoid for name, ellipsoid in ELLIPSOIDS.items()
}
_LOOKUP.update({alias: ELLIPSOIDS[name] for alias, name in _ALIASES.items()})


def get_ellipsoid(name: Optional[str]) -> Ellipsoid:
    """Look up a named ellipsoid.

    Matching ignores case, spaces and punctuation, so ``"WGS 84"``,
    ``"wgs84"`` and ``"WGS-84"`` all resolve to the same preset.

    Parameters
    ----------
    name : str
        Name of the ellipsoid, e.g. ``"Airy 1830"`` or ``"grs80"``.

    Returns
    -------
    Ellipsoid
        The matching preset.

    Raises
    ------
    ConfigurationError
        If ``name`` is None or matches no preset. There is no default.
    """
    if name is None:
        raise ConfigurationError("An ellipsoid name is required")

    ellipsoid = _LOOKUP.get(_normalize_name(name))
    if ellipsoid is None:
        raise ConfigurationError(
            f"Unknown ellipsoid '{name}'. Known: {', '.join(sorted(ELLIPSOIDS))}"
        )
    return ellipsoid


def radius_of_curvature_meridian(
    latitude_rad: float,
    ellipsoid: Ellipsoid = WGS_84
) -> float:
    """Compute the radius of curvature in the meridian plane.

    This is the radius of curvature for north-south motion along
    a meridian (line of constant longitude).

    Parameters
    ----------
    latitude_rad : float
        Geodetic latitude in radians.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).

    Returns
    -------
    float
        Radius of curvature M in meters.

    Notes
    -----
    M = a(1 - e²) / (1 - e² sin²φ)^(3/2)

    At the equator (φ=0): M ≈ 6,335,439 m
    At the poles (φ=±90°): M ≈ 6,399,594 m
    """
    sin_lat = np.sin(latitude_rad)
    denominator = (1 - ellipsoid.e2 * sin_lat**2) ** 1.5
    return ellipsoid.a * (1 - ellipsoid.e2) / denominator


def radius_of_curvature_prime_vertical(
    latitude_rad: float,
    ellipsoid: Ellipsoid = WGS_84
) -> float:
    """Compute the radius of curvature in the prime vertical.

    This is the radius of curvature for east-west motion along
    a parallel (line of constant latitude).

    Parameters
    ----------
    latitude_rad : float
        Geodetic latitude in radians.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).

    Returns
    -------
    float
        Radius of curvature N in meters.

    Notes
    -----
    N = a / (1 - e² sin²φ)^(1/2)
    """
    sin_lat = np.sin(latitude_rad)
    denominator = np.sqrt(1 - ellipsoid.e2 * sin_lat**2)
    return ellipsoid.a / denominator


def geodetic_to_ecef(
    latitude_rad: float,
    longitude_rad: float,
    altitude_m: float = 0.0,
    ellipsoid: Ellipsoid = WGS_84
) -> Tuple[float, float, float]:
    """Convert geodetic coordinates to Earth-Centered Earth-Fixed (ECEF).

    Parameters
    ----------
    latitude_rad : float
        Geodetic latitude in radians.
    longitude_rad : float
        Geodetic longitude in radians.
    altitude_m : float
        Height above ellipsoid in meters.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).

    Returns
    -------
    Tuple[float, float, float]
        (X, Y, Z) coordinates in meters in ECEF frame.

    Notes
    -----
    The ECEF frame has:
    - Origin at the ellipsoid centre
    - X-axis through the prime meridian (0° longitude) at equator
    - Y-axis through 90°E at equator
    - Z-axis through the North Pole
    """
    sin_lat = np.sin(latitude_rad)
    cos_lat = np.cos(latitude_rad)
    sin_lon = np.sin(longitude_rad)
    cos_lon = np.cos(longitude_rad)

    N = radius_of_curvature_prime_vertical(latitude_rad, ellipsoid)

    X = (N + altitude_m) * cos_lat * cos_lon
    Y = (N + altitude_m) * cos_lat * sin_lon
    Z = (N * (1 - ellipsoid.e2) + altitude_m) * sin_lat

    return X, Y, Z


def ecef_to_geodetic(
    X: float,
    Y: float,
    Z: float,
    ellipsoid: Ellipsoid = WGS_84,
    max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value),
    tolerance: float = ProjectionConstants.ECEF_LATITUDE_TOLERANCE.value
) -> Tuple[float, float, float]:
    """Convert ECEF coordinates to geodetic (latitude, longitude, altitude).

    Uses Bowring's iterative method for numerical stability.

    Parameters
    ----------
    X, Y, Z : float
        ECEF coordinates in meters.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).
    max_iterations : int
        Maximum iterations for convergence.
    tolerance : float
        Convergence tolerance in radians.

    Returns
    -------
    Tuple[float, float, float]
        (latitude_rad, longitude_rad, altitude_m)

    Raises
    ------
    ConvergenceError
        If the latitude has not settled within ``max_iterations``.

    Notes
    -----
    Bowring's method typically converges in 2-3 iterations for
    points on or near the ellipsoid surface.
    """
    longitude_rad = np.arctan2(Y, X)

    # Distance from Z-axis
    p = np.sqrt(X**2 + Y**2)

    if p < 1e-10:
        latitude_rad = np.sign(Z) * np.pi / 2
        altitude_m = np.abs(Z) - ellipsoid.b
        return latitude_rad, longitude_rad, altitude_m

    latitude_rad = np.arctan2(Z, p * (1 - ellipsoid.e2))

    correction = np.inf
    for iteration in range(1, max_iterations + 1):
        sin_lat = np.sin(latitude_rad)
        N = radius_of_curvature_prime_vertical(latitude_rad, ellipsoid)

        latitude_new = np.arctan2(Z + ellipsoid.e2 * N * sin_lat, p)
        correction = np.abs(latitude_new - latitude_rad)
        latitude_rad = latitude_new

        if correction < tolerance:
            logger.debug(f"ECEF latitude converged after {iteration} iterations")
            break
    else:
        raise ConvergenceError(
            f"ECEF to geodetic latitude did not converge in {max_iterations} iterations",
            iterations=max_iterations,
            residual=float(correction)
        )

    sin_lat = np.sin(latitude_rad)
    cos_lat = np.cos(latitude_rad)
    N = radius_of_curvature_prime_vertical(latitude_rad, ellipsoid)

    if np.abs(cos_lat) > 1e-10:
        altitude_m = p / cos_lat - N
    else:
        altitude_m = np.abs(Z) / np.abs(sin_lat) - N * (1 - ellipsoid.e2)

    return latitude_rad, longitude_rad, altitude_m

