"""
Albers Equal-Area Conic Projection and Regional Presets.

An equal-area (area-preserving) conic projection, the standard choice for
thematic maps of mid-latitude regions such as the conterminous United States
or a Canadian province.

Scientific Context
------------------
Domain: Cartography
Model: Ellipsoidal Albers equal-area conic (Snyder 1987, pp. 98-103).

Constants (φ1, φ2 standard parallels, φ0 origin latitude)::

    m(φ) = cosφ / sqrt(1 - e² sin²φ)
    q(φ) = (1 - e²) [sinφ / (1 - e² sin²φ) - (1/2e) ln((1 - e sinφ) / (1 + e sinφ))]
    n    = (m1² - m2²) / (q2 - q1)         or sin φ1 (tangent cone)
    C    = m1² + n q1
    ρ0   = a sqrt(C - n q0) / n

Forward: ρ = a sqrt(C - n q) / n, θ = n (λ - λ0),
x = ρ sinθ + FE, y = ρ0 - ρ cosθ + FN.

The inverse recovers q and solves for latitude by Newton iteration
(Snyder eq. 3-16). A q equal to its polar value maps straight to the pole.

Presets
-------
The regional configurations are data, not subclasses: see
:data:`ALBERS_PRESETS` and :meth:`AlbersEqualAreaConic.from_preset`.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper
  1395, eqs. 14-1 to 14-21.
- USGS General Cartographic Transformation Package (GCTP), ALBFOR/ALBINV.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from common.constants import ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError
from common.logging_config import get_logger
from common.types import Direction, ProjectionParameters
from geospatial.ellipsoid import GRS_1980, WGS_84, Ellipsoid
from geospatial.projections import (
    HALF_PI,
    MapProjection,
    authalic_q,
    check_standard_parallels,
    ellipsoid_proj4,
    parallel_scale_m,
    validate_origin,
    wrap_longitude,
)

logger = get_logger(__name__)

# Largest negative ρ radicand still treated as round-off.
RADICAND_ROUNDOFF = 1e-12


@dataclass(frozen=True)
class AlbersPreset:
    """A named Albers configuration.

    Attributes
    ----------
    key : str
        Lookup key.
    description : str
        Region the preset is designed for.
    ellipsoid : Ellipsoid
        Reference ellipsoid.
    standard_parallel_1, standard_parallel_2 : float
        Standard parallels in degrees.
    central_meridian, origin_latitude : float
        Natural origin in degrees.
    false_easting, false_northing : float
        False origin offsets in meters.
    """
    key: str
    description: str
    ellipsoid: Ellipsoid
    standard_parallel_1: float
    standard_parallel_2: float
    central_meridian: float
    origin_latitude: float
    false_easting: float = 0.0
    false_northing: float = 0.0


ALBERS_PRESETS: Dict[str, AlbersPreset] = {
    preset.key: preset for preset in (
        AlbersPreset(
            key="bc",
            description="British Columbia (BC Environment Albers)",
            ellipsoid=GRS_1980,
            standard_parallel_1=50.0,
            standard_parallel_2=58.5,
            central_meridian=-126.0,
            origin_latitude=45.0,
            false_easting=1_000_000.0,
        ),
        AlbersPreset(
            key="us",
            description="United States, all states",
            ellipsoid=GRS_1980,
            standard_parallel_1=20.0,
            standard_parallel_2=60.0,
            central_meridian=-96.0,
            origin_latitude=40.0,
        ),
        AlbersPreset(
            key="us_conterminous",
            description="Conterminous United States",
            ellipsoid=GRS_1980,
            standard_parallel_1=29.5,
            standard_parallel_2=45.5,
            central_meridian=-96.0,
            origin_latitude=23.0,
        ),
    )
}


def solve_authalic_latitude(
    q: float,
    e: float,
    tolerance: float = ProjectionConstants.LATITUDE_TOLERANCE.value,
    max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
) -> float:
    """Invert Snyder's q for geodetic latitude by Newton iteration.

    Parameters
    ----------
    q : float
        Authalic function value, strictly inside the polar values.
    e : float
        First eccentricity.
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
    phi = np.arcsin(np.clip(0.5 * q, -1.0, 1.0))
    if e < 1e-10:
        return phi

    e2 = e**2
    dphi = np.inf
    for iteration in range(1, max_iterations + 1):
        sin_phi = np.sin(phi)
        cos_phi = np.cos(phi)
        con = e * sin_phi
        com = 1.0 - con**2
        dphi = 0.5 * com**2 / cos_phi * (
            q / (1.0 - e2)
            - sin_phi / com
            + 0.5 / e * np.log((1.0 - con) / (1.0 + con))
        )
        phi = phi + dphi
        if np.abs(dphi) <= tolerance:
            logger.debug(f"Authalic latitude converged after {iteration} iterations")
            return phi

    raise ConvergenceError(
        f"Authalic latitude did not converge in {max_iterations} iterations "
        f"(last correction {np.abs(dphi):.3e} rad)",
        iterations=max_iterations,
        residual=float(np.abs(dphi))
    )


class AlbersEqualAreaConic(MapProjection):
    """Albers Equal-Area Conic projection.

    Parameters
    ----------
    standard_parallel_1, standard_parallel_2 : float
        Standard parallels in degrees. Coincident parallels select the
        tangent cone.
    central_meridian : float
        Longitude of origin in degrees.
    origin_latitude : float
        Latitude of origin in degrees.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).
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
        For degenerate standard parallels.

    Examples
    --------
    >>> us = AlbersEqualAreaConic.from_preset("us")
    >>> us.parameters.standard_parallels
    (20.0, 60.0)
    """

    def __init__(
        self,
        standard_parallel_1: float,
        standard_parallel_2: float,
        central_meridian: float = 0.0,
        origin_latitude: float = 0.0,
        ellipsoid: Ellipsoid = WGS_84,
        false_easting: float = 0.0,
        false_northing: float = 0.0,
        direction: Direction = Direction.FROM_GEOGRAPHIC,
        tolerance: float = ProjectionConstants.LATITUDE_TOLERANCE.value,
        max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
    ):
        super().__init__(ellipsoid, direction)
        validate_origin(central_meridian, origin_latitude, false_easting, false_northing)

        self._lat1 = float(standard_parallel_1)
        self._lat2 = float(standard_parallel_2)
        self._lon0 = float(central_meridian)
        self._lat0 = float(origin_latitude)
        self._false_easting = float(false_easting)
        self._false_northing = float(false_northing)
        self._tolerance = tolerance
        self._max_iterations = max_iterations
        self._preset: Optional[str] = None

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
        q1 = authalic_q(phi1, e)

        if self._is_tangent:
            n = np.sin(phi1)
        else:
            m2 = parallel_scale_m(phi2, e)
            q2 = authalic_q(phi2, e)
            n = (m1**2 - m2**2) / (q2 - q1)

        self._n = float(n)
        self._C = float(m1**2 + n * q1)
        self._q_pole = float(authalic_q(HALF_PI, e))
        self._rho0 = self._rho(phi0)
        if self._rho0 is None:
            raise ConfigurationError(
                f"Origin latitude {origin_latitude} lies beyond the apex of the cone"
            )

    @classmethod
    def from_preset(
        cls,
        key: str,
        direction: Direction = Direction.FROM_GEOGRAPHIC
    ) -> 'AlbersEqualAreaConic':
        """Build a projection from one of :data:`ALBERS_PRESETS`.

        Parameters
        ----------
        key : str
            ``"bc"``, ``"us"`` or ``"us_conterminous"`` (case-insensitive).
        direction : Direction
            Direction of :meth:`transform_coords`.

        Raises
        ------
        ConfigurationError
            If the key names no preset.
        """
        preset = ALBERS_PRESETS.get(str(key).strip().lower())
        if preset is None:
            raise ConfigurationError(
                f"Unknown Albers preset '{key}'. Known: {', '.join(ALBERS_PRESETS)}"
            )

        projection = cls(
            preset.standard_parallel_1,
            preset.standard_parallel_2,
            central_meridian=preset.central_meridian,
            origin_latitude=preset.origin_latitude,
            ellipsoid=preset.ellipsoid,
            false_easting=preset.false_easting,
            false_northing=preset.false_northing,
            direction=direction,
        )
        projection._preset = preset.key
        return projection

    @property
    def name(self) -> str:
        if self._preset is not None:
            return f"Albers Equal-Area Conic ({ALBERS_PRESETS[self._preset].description})"
        return f"Albers Equal-Area Conic ({self._lat1}°, {self._lat2}°)"

    @property
    def parameters(self) -> ProjectionParameters:
        parallels = (self._lat1,) if self._is_tangent else (self._lat1, self._lat2)
        return ProjectionParameters(
            central_meridian=self._lon0,
            origin_latitude=self._lat0,
            standard_parallels=parallels,
            false_easting=self._false_easting,
            false_northing=self._false_northing,
            zone=self._preset,
        )

    @property
    def proj4_string(self) -> str:
        return (
            f"+proj=aea +lat_1={self._lat1!r} +lat_2={self._lat2!r} "
            f"+lat_0={self._lat0!r} +lon_0={self._lon0!r} "
            f"+x_0={self._false_easting!r} +y_0={self._false_northing!r} "
            f"{ellipsoid_proj4(self._ellipsoid)} +units=m +no_defs"
        )

    @property
    def preserves_area(self) -> bool:
        return True

    @property
    def cone_constant(self) -> float:
        """Cone constant n."""
        return self._n

    def _rho(self, phi: float) -> Optional[float]:
        radicand = self._C - self._n * authalic_q(phi, self._e)
        # Round-off can push the radicand just below zero at the apex pole.
        if radicand < -RADICAND_ROUNDOFF:
            return None
        return float(self._a * np.sqrt(max(radicand, 0.0)) / self._n)

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
        sign = 1.0 if self._n >= 0 else -1.0

        rho = sign * np.sqrt(x**2 + dy**2)
        theta = np.arctan2(sign * x, sign * dy) if rho != 0.0 else 0.0

        con = rho * self._n / self._a
        q = (self._C - con**2) / self._n

        if np.abs(q) > np.abs(self._q_pole) + 1e-10:
            return None
        if np.abs(np.abs(q) - np.abs(self._q_pole)) <= 1e-10:
            lat_rad = HALF_PI if q >= 0 else -HALF_PI
        else:
            lat_rad = solve_authalic_latitude(q, self._e, self._tolerance, self._max_iterations)

        lon_rad = theta / self._n + self._lambda0
        return lon_rad, lat_rad
