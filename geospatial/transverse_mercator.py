"""
Transverse Mercator and Universal Transverse Mercator (UTM).

A conformal projection onto a cylinder tangent along a meridian, suitable
for regions that extend primarily north-south. UTM divides the world into
sixty 6° zones, each a Transverse Mercator with scale 0.9996 on its central
meridian.

Scientific Context
------------------
Domain: Cartography, national and military grids
Model: Ellipsoidal Transverse Mercator by series expansion in the longitude
offset, as published by the Ordnance Survey (terms I to VI forward,
VII to XIIA inverse). The meridional arc M is expanded to third order in
the third flattening n.

Forward::

    N = I + II λ² + III λ⁴ + IIIA λ⁶
    E = FE + IV λ + V λ³ + VI λ⁵

Inverse: the footpoint latitude φ' (the latitude whose meridional arc equals
the northing) is found by iteration (:func:`solve_footpoint_latitude`), then
latitude and longitude follow from the series VII to XIIA in the easting.

Notes
-----
The series are accurate to millimeters within a few degrees of the central
meridian and degrade further out. Points more than 15° of longitude from the
central meridian are outside the domain.

References
----------
- Ordnance Survey (2020). A Guide to Coordinate Systems in Great Britain,
  Annexe C: Transverse Mercator map projection formulae.
- DMA TM 8358.2 (1989). The Universal Grids: UTM and UPS.
"""

from typing import Optional, Tuple

import numpy as np

from common.constants import ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError
from common.logging_config import get_logger
from common.types import Direction, ProjectionParameters
from geospatial.ellipsoid import WGS_84, Ellipsoid
from geospatial.projections import (
    HALF_PI,
    MapProjection,
    ellipsoid_proj4,
    validate_origin,
    wrap_longitude,
)

logger = get_logger(__name__)

# Latitude band letters from 80°S northwards, 8° each (X spans 72°N-84°N).
UTM_BAND_LETTERS = "CDEFGHJKLMNPQRSTUVWX"


def meridional_arc(
    lat_rad: float,
    origin_lat_rad: float,
    ellipsoid: Ellipsoid,
    scale_factor: float = 1.0
) -> float:
    """Scaled meridian distance from the origin latitude to ``lat_rad``.

    Parameters
    ----------
    lat_rad, origin_lat_rad : float
        Latitudes in radians.
    ellipsoid : Ellipsoid
        Reference ellipsoid.
    scale_factor : float
        Central meridian scale factor applied to the arc.

    Returns
    -------
    float
        Arc length M in meters (negative south of the origin).
    """
    n = ellipsoid.n
    n2 = n * n
    n3 = n2 * n
    d = lat_rad - origin_lat_rad
    s = lat_rad + origin_lat_rad

    return ellipsoid.b * scale_factor * (
        (1 + n + 1.25 * n2 + 1.25 * n3) * d
        - (3 * n + 3 * n2 + 2.625 * n3) * np.sin(d) * np.cos(s)
        + (1.875 * n2 + 1.875 * n3) * np.sin(2 * d) * np.cos(2 * s)
        - (35.0 / 24.0) * n3 * np.sin(3 * d) * np.cos(3 * s)
    )


def solve_footpoint_latitude(
    northing: float,
    origin_lat_rad: float,
    ellipsoid: Ellipsoid,
    scale_factor: float,
    tolerance: float = ProjectionConstants.FOOTPOINT_ARC_TOLERANCE.value,
    max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
) -> float:
    """Find the latitude whose meridional arc equals ``northing``.

    Parameters
    ----------
    northing : float
        Northing relative to the false northing, in meters.
    origin_lat_rad : float
        Latitude of origin in radians.
    ellipsoid : Ellipsoid
        Reference ellipsoid.
    scale_factor : float
        Central meridian scale factor.
    tolerance : float
        Largest accepted arc residual, in meters.
    max_iterations : int
        Iteration cap.

    Returns
    -------
    float
        Footpoint latitude φ' in radians.

    Raises
    ------
    ConvergenceError
        If the residual is still above ``tolerance`` after ``max_iterations``
        corrections.
    """
    radius = ellipsoid.a * scale_factor
    phi = northing / radius + origin_lat_rad

    residual = np.inf
    for iteration in range(max_iterations):
        residual = northing - meridional_arc(phi, origin_lat_rad, ellipsoid, scale_factor)
        if np.abs(residual) < tolerance:
            logger.debug(f"Footpoint latitude converged after {iteration} corrections")
            return phi
        phi = phi + residual / radius

    raise ConvergenceError(
        f"Footpoint latitude did not converge in {max_iterations} iterations "
        f"(residual {np.abs(residual):.3e} m)",
        iterations=max_iterations,
        residual=float(np.abs(residual))
    )


class TransverseMercator(MapProjection):
    """Transverse Mercator projection.

    Parameters
    ----------
    central_meridian : float
        Central meridian longitude in degrees.
    origin_latitude : float
        Latitude of origin in degrees.
    scale_factor : float
        Scale factor at central meridian (default: 0.9996 for UTM).
    false_easting : float
        False easting in meters (default: 500000 for UTM).
    false_northing : float
        False northing in meters (default: 0 for northern hemisphere).
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).
    direction : Direction
        Direction of :meth:`transform_coords`.
    tolerance : float
        Arc residual accepted by the footpoint iteration, in meters.
    max_iterations : int
        Iteration cap of the footpoint iteration.

    Notes
    -----
    Distortion increases with distance from the central meridian.
    Typically valid within 3° of the central meridian for high accuracy.
    """

    def __init__(
        self,
        central_meridian: float,
        origin_latitude: float = 0.0,
        scale_factor: float = ProjectionConstants.UTM_SCALE_FACTOR.value,
        false_easting: float = ProjectionConstants.UTM_FALSE_EASTING.value,
        false_northing: float = 0.0,
        ellipsoid: Ellipsoid = WGS_84,
        direction: Direction = Direction.FROM_GEOGRAPHIC,
        tolerance: float = ProjectionConstants.FOOTPOINT_ARC_TOLERANCE.value,
        max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
    ):
        super().__init__(ellipsoid, direction)
        validate_origin(central_meridian, origin_latitude, false_easting, false_northing)
        if not np.isfinite(scale_factor) or scale_factor <= 0:
            raise ConfigurationError(f"Scale factor must be positive, got {scale_factor}")

        self._lon0 = float(central_meridian)
        self._lat0 = float(origin_latitude)
        self._k0 = float(scale_factor)
        self._false_easting = float(false_easting)
        self._false_northing = float(false_northing)
        self._tolerance = tolerance
        self._max_iterations = max_iterations

        self._lambda0 = np.radians(self._lon0)
        self._phi0 = np.radians(self._lat0)
        self._max_offset = np.radians(ProjectionConstants.TRANSVERSE_MERCATOR_MAX_OFFSET.value)

    @property
    def name(self) -> str:
        return f"Transverse Mercator (CM={self._lon0}°)"

    @property
    def parameters(self) -> ProjectionParameters:
        return ProjectionParameters(
            central_meridian=self._lon0,
            origin_latitude=self._lat0,
            scale_factor=self._k0,
            false_easting=self._false_easting,
            false_northing=self._false_northing,
        )

    @property
    def proj4_string(self) -> str:
        return (
            f"+proj=tmerc +lat_0={self._lat0!r} +lon_0={self._lon0!r} "
            f"+k={self._k0!r} +x_0={self._false_easting!r} +y_0={self._false_northing!r} "
            f"{ellipsoid_proj4(self._ellipsoid)} +units=m +no_defs"
        )

    @property
    def preserves_angles(self) -> bool:
        return True

    def _radii(self, phi: float) -> Tuple[float, float, float]:
        """Scaled ν, ρ and η² at latitude φ."""
        e2 = self._ellipsoid.e2
        ak0 = self._ellipsoid.a * self._k0
        sin2 = np.sin(phi) ** 2
        nu = ak0 / np.sqrt(1 - e2 * sin2)
        rho = ak0 * (1 - e2) / (1 - e2 * sin2) ** 1.5
        return nu, rho, nu / rho - 1

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        lam = wrap_longitude(lon_rad - self._lambda0)
        if np.abs(lam) > self._max_offset:
            return None

        phi = lat_rad
        sin_phi = np.sin(phi)
        cos_phi = np.cos(phi)
        cos3 = cos_phi**3
        cos5 = cos3 * cos_phi**2
        tan2 = np.tan(phi) ** 2
        tan4 = tan2 * tan2

        nu, rho, eta2 = self._radii(phi)
        M = meridional_arc(phi, self._phi0, self._ellipsoid, self._k0)

        I = M + self._false_northing
        II = nu / 2 * sin_phi * cos_phi
        III = nu / 24 * sin_phi * cos3 * (5 - tan2 + 9 * eta2)
        IIIA = nu / 720 * sin_phi * cos5 * (61 - 58 * tan2 + tan4)
        IV = nu * cos_phi
        V = nu / 6 * cos3 * (nu / rho - tan2)
        VI = nu / 120 * cos5 * (5 - 18 * tan2 + tan4 + 14 * eta2 - 58 * tan2 * eta2)

        lam2 = lam * lam
        northing = I + II * lam2 + III * lam2**2 + IIIA * lam2**3
        easting = self._false_easting + IV * lam + V * lam**3 + VI * lam**5
        return easting, northing

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        dn = northing - self._false_northing
        if np.abs(dn / (self._ellipsoid.a * self._k0) + self._phi0) > HALF_PI + 0.1:
            return None

        phi = solve_footpoint_latitude(
            dn, self._phi0, self._ellipsoid, self._k0,
            self._tolerance, self._max_iterations
        )
        if np.abs(phi) >= HALF_PI:
            return None

        sec_phi = 1 / np.cos(phi)
        tan_phi = np.tan(phi)
        tan2 = tan_phi**2
        tan4 = tan2 * tan2
        tan6 = tan4 * tan2

        nu, rho, eta2 = self._radii(phi)
        nu3 = nu**3
        nu5 = nu3 * nu**2
        nu7 = nu5 * nu**2

        VII = tan_phi / (2 * rho * nu)
        VIII = tan_phi / (24 * rho * nu3) * (5 + 3 * tan2 + eta2 - 9 * tan2 * eta2)
        IX = tan_phi / (720 * rho * nu5) * (61 + 90 * tan2 + 45 * tan4)
        X = sec_phi / nu
        XI = sec_phi / (6 * nu3) * (nu / rho + 2 * tan2)
        XII = sec_phi / (120 * nu5) * (5 + 28 * tan2 + 24 * tan4)
        XIIA = sec_phi / (5040 * nu7) * (61 + 662 * tan2 + 1320 * tan4 + 720 * tan6)

        E = easting - self._false_easting
        E2 = E * E

        d_lambda = X * E - XI * E**3 + XII * E**5 - XIIA * E**7
        if np.abs(d_lambda) > self._max_offset:
            return None

        lat_rad = phi - VII * E2 + VIII * E2**2 - IX * E2**3
        return self._lambda0 + d_lambda, lat_rad


def utm_zone(latitude: float, longitude: float) -> Tuple[int, str]:
    """Derive the UTM zone of a location.

    Parameters
    ----------
    latitude, longitude : float
        Location in decimal degrees.

    Returns
    -------
    Tuple[int, str]
        Zone number (1-60) and latitude band letter (C-X, or ``"Z"`` outside
        80°S to 84°N).

    Raises
    ------
    ConfigurationError
        If either coordinate is not finite.

    Notes
    -----
    Two exceptions to the regular 6° grid apply: southern Norway
    (56°N-64°N, 3°E-12°E) is zone 32, and Svalbard (72°N-84°N) uses the
    widened zones 31, 33, 35 and 37.

    Examples
    --------
    >>> utm_zone(60.0, 7.0)
    (32, 'V')
    """
    if not (np.isfinite(latitude) and np.isfinite(longitude)):
        raise ConfigurationError(f"Cannot derive a UTM zone for ({latitude}, {longitude})")

    lon = (longitude + 180.0) % 360.0 - 180.0
    width = ProjectionConstants.UTM_ZONE_WIDTH.value
    number = int((lon + 180.0) // width) + 1

    if 56.0 <= latitude < 64.0 and 3.0 <= lon < 12.0:
        number = 32

    if 72.0 <= latitude < 84.0:
        if 0.0 <= lon < 9.0:
            number = 31
        elif 9.0 <= lon < 21.0:
            number = 33
        elif 21.0 <= lon < 33.0:
            number = 35
        elif 33.0 <= lon < 42.0:
            number = 37

    return number, utm_band_letter(latitude)


def utm_band_letter(latitude: float) -> str:
    """Latitude band letter, ``"Z"`` outside 80°S to 84°N."""
    if not -80.0 <= latitude <= 84.0:
        return "Z"
    if latitude >= 72.0:
        return "X"
    height = ProjectionConstants.UTM_BAND_HEIGHT.value
    return UTM_BAND_LETTERS[int((latitude + 80.0) // height)]


class UTM(TransverseMercator):
    """Universal Transverse Mercator for one zone.

    Parameters
    ----------
    zone_number : int
        Longitudinal zone, 1 to 60.
    zone_letter : str
        Latitude band, C to X (I and O are not used). Bands C to M are in
        the southern hemisphere and carry a 10,000 km false northing; the
        band decides the hemisphere in both directions.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).
    direction : Direction
        Direction of :meth:`transform_coords`.

    Raises
    ------
    ConfigurationError
        For a zone number outside 1-60 or an invalid band letter.

    Examples
    --------
    >>> utm = UTM.for_location(51.5, -0.12)
    >>> utm.zone
    '30U'
    """

    def __init__(
        self,
        zone_number: int,
        zone_letter: str,
        ellipsoid: Ellipsoid = WGS_84,
        direction: Direction = Direction.FROM_GEOGRAPHIC,
        tolerance: float = ProjectionConstants.FOOTPOINT_ARC_TOLERANCE.value,
        max_iterations: int = int(ProjectionConstants.MAX_ITERATIONS.value)
    ):
        if isinstance(zone_number, bool) or not isinstance(zone_number, (int, np.integer)):
            raise ConfigurationError(f"UTM zone number must be an integer, got {zone_number!r}")
        if not 1 <= zone_number <= 60:
            raise ConfigurationError(f"UTM zone number must be 1-60, got {zone_number}")

        letter = str(zone_letter).strip().upper()
        if len(letter) != 1 or letter not in UTM_BAND_LETTERS:
            raise ConfigurationError(
                f"UTM zone letter must be one of {UTM_BAND_LETTERS}, got {zone_letter!r}"
            )

        self._zone_number = int(zone_number)
        self._zone_letter = letter

        width = ProjectionConstants.UTM_ZONE_WIDTH.value
        central_meridian = (self._zone_number - 1) * width - 180.0 + width / 2
        false_northing = (
            ProjectionConstants.UTM_SOUTHERN_FALSE_NORTHING.value
            if self.is_southern else 0.0
        )

        super().__init__(
            central_meridian,
            origin_latitude=0.0,
            scale_factor=ProjectionConstants.UTM_SCALE_FACTOR.value,
            false_easting=ProjectionConstants.UTM_FALSE_EASTING.value,
            false_northing=false_northing,
            ellipsoid=ellipsoid,
            direction=direction,
            tolerance=tolerance,
            max_iterations=max_iterations,
        )

    @classmethod
    def for_location(
        cls,
        latitude: float,
        longitude: float,
        ellipsoid: Ellipsoid = WGS_84,
        direction: Direction = Direction.FROM_GEOGRAPHIC
    ) -> 'UTM':
        """Build the UTM projection for the zone containing a location.

        Raises
        ------
        ConfigurationError
            If the location lies outside the UTM latitude limits.
        """
        number, letter = utm_zone(latitude, longitude)
        return cls(number, letter, ellipsoid=ellipsoid, direction=direction)

    def with_zone(self, zone_number: int, zone_letter: str) -> 'UTM':
        """Return a projection for another zone with the same ellipsoid and direction."""
        return UTM(
            zone_number, zone_letter,
            ellipsoid=self._ellipsoid,
            direction=self._direction,
            tolerance=self._tolerance,
            max_iterations=self._max_iterations,
        )

    @property
    def zone_number(self) -> int:
        return self._zone_number

    @property
    def zone_letter(self) -> str:
        return self._zone_letter

    @property
    def zone(self) -> str:
        return f"{self._zone_number}{self._zone_letter}"

    @property
    def is_southern(self) -> bool:
        return self._zone_letter < "N"

    @property
    def name(self) -> str:
        return f"UTM zone {self.zone}"

    @property
    def parameters(self) -> ProjectionParameters:
        return ProjectionParameters(
            central_meridian=self._lon0,
            origin_latitude=self._lat0,
            scale_factor=self._k0,
            false_easting=self._false_easting,
            false_northing=self._false_northing,
            zone=self.zone,
        )
