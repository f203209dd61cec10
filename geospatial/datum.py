"""
Datum Shifts Between Reference Ellipsoids.

National grids are defined on local geodetic datums, while callers supply
WGS84 coordinates. This module moves a geographic point from one datum to
another using a three-parameter (translation only) model of the offset
between the two ellipsoid centres.

Scientific Context
------------------
Domain: Geodesy, datum transformation
Model: Each supported local datum is described by the translation
(dX, dY, dZ) from its ellipsoid centre to the WGS84 centre. Shifts between
two local datums are routed through WGS84.

Two methods are provided:

- ``"molodensky"``: the standard Molodensky formulae, which apply the
  translation and the change of ellipsoid shape directly to geodetic
  coordinates. Accurate to well under a metre for the translations used here.
- ``"geocentric"``: exact translation through Earth-Centered Earth-Fixed
  coordinates (geodetic -> ECEF, translate, ECEF -> geodetic).

The two agree to better than 1e-5 degrees for points on the ellipsoid.

References
----------
- NIMA TR8350.2 (2000), Appendix B: Datum transformations, and
  Appendix D: Molodensky formulae.
- swisstopo (2016). Formulas and constants for the calculation of the Swiss
  conformal cylindrical projection and for the transformation between
  coordinate systems.

Notes
-----
Heights are taken as zero on the source ellipsoid; only the horizontal
position is returned.
"""

from dataclasses import dataclass
from typing import Dict, Tuple, Union

import numpy as np

from common.errors import ConfigurationError
from common.logging_config import get_logger
from common.types import GeoPoint
from geospatial.ellipsoid import (
    AIRY_1830,
    BESSEL_1841,
    CLARKE_1880,
    GRS_1980,
    WGS_84,
    Ellipsoid,
    ecef_to_geodetic,
    geodetic_to_ecef,
    get_ellipsoid,
    radius_of_curvature_meridian,
    radius_of_curvature_prime_vertical,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class DatumShift:
    """Translation from a local datum to WGS84.

    Attributes
    ----------
    ellipsoid : Ellipsoid
        Ellipsoid of the local datum.
    datum : str
        Name of the local datum.
    dx, dy, dz : float
        Translation of the ellipsoid centre, local -> WGS84, in meters.
    source : str
        Reference for the parameters.
    """
    ellipsoid: Ellipsoid
    datum: str
    dx: float
    dy: float
    dz: float
    source: str

    @property
    def translation(self) -> Tuple[float, float, float]:
        return self.dx, self.dy, self.dz


DATUM_SHIFTS: Dict[str, DatumShift] = {
    "NTF": DatumShift(
        ellipsoid=CLARKE_1880,
        datum="Nouvelle Triangulation de France",
        dx=-168.0, dy=-60.0, dz=320.0,
        source="NIMA TR8350.2, Table B.1 (NTF, France)"
    ),
    "OSGB36": DatumShift(
        ellipsoid=AIRY_1830,
        datum="Ordnance Survey of Great Britain 1936",
        dx=375.0, dy=-111.0, dz=431.0,
        source="NIMA TR8350.2, Table B.1 (OSGB 1936, mean solution)"
    ),
    "CH1903": DatumShift(
        ellipsoid=BESSEL_1841,
        datum="Swiss CH1903",
        dx=674.374, dy=15.056, dz=405.346,
        source="swisstopo, CH1903 to WGS84 three-parameter approximation"
    ),
}

# Ellipsoids treated as the WGS84 frame itself.
WGS84_FRAMES = (WGS_84, GRS_1980)

SHIFT_METHODS = ("molodensky", "geocentric")


def _resolve(ellipsoid: Union[Ellipsoid, str]) -> Ellipsoid:
    if isinstance(ellipsoid, str):
        return get_ellipsoid(ellipsoid)
    return ellipsoid


def _is_wgs84_frame(ellipsoid: Ellipsoid) -> bool:
    return any(ellipsoid == frame for frame in WGS84_FRAMES)


def find_datum_shift(ellipsoid: Union[Ellipsoid, str]) -> DatumShift:
    """Return the local-to-WGS84 shift for a supported ellipsoid.

    Raises
    ------
    ConfigurationError
        If no datum shift is defined for the ellipsoid.
    """
    ellipsoid = _resolve(ellipsoid)
    for shift in DATUM_SHIFTS.values():
        if shift.ellipsoid == ellipsoid:
            return shift
    raise ConfigurationError(
        f"No datum shift to WGS84 is defined for {ellipsoid.name}"
    )


def molodensky_shift(
    longitude_rad: float,
    latitude_rad: float,
    source: Ellipsoid,
    target: Ellipsoid,
    translation: Tuple[float, float, float],
    height_m: float = 0.0
) -> Tuple[float, float, float]:
    """Apply the standard Molodensky formulae.

    Parameters
    ----------
    longitude_rad, latitude_rad : float
        Position on the source ellipsoid, in radians.
    source, target : Ellipsoid
        Source and target ellipsoids. The change of shape is taken as
        (target - source).
    translation : tuple of float
        (dX, dY, dZ) from the source centre to the target centre, in meters.
    height_m : float
        Height above the source ellipsoid.

    Returns
    -------
    Tuple[float, float, float]
        (longitude_rad, latitude_rad, height_m) on the target ellipsoid.
    """
    dx, dy, dz = translation
    a = source.a
    f = source.f
    e2 = source.e2
    da = target.a - source.a
    df = target.f - source.f

    sin_lat = np.sin(latitude_rad)
    cos_lat = np.cos(latitude_rad)
    sin_lon = np.sin(longitude_rad)
    cos_lon = np.cos(longitude_rad)

    Rm = radius_of_curvature_meridian(latitude_rad, source)
    Rn = radius_of_curvature_prime_vertical(latitude_rad, source)
    b_over_a = 1.0 - f

    d_lat = (
        -dx * sin_lat * cos_lon
        - dy * sin_lat * sin_lon
        + dz * cos_lat
        + da * (Rn * e2 * sin_lat * cos_lat) / a
        + df * (Rm / b_over_a + Rn * b_over_a) * sin_lat * cos_lat
    ) / (Rm + height_m)

    d_lon = (-dx * sin_lon + dy * cos_lon) / ((Rn + height_m) * cos_lat)

    d_h = (
        dx * cos_lat * cos_lon
        + dy * cos_lat * sin_lon
        + dz * sin_lat
        - da * a / Rn
        + df * b_over_a * Rn * sin_lat**2
    )

    return longitude_rad + d_lon, latitude_rad + d_lat, height_m + d_h


def geocentric_shift(
    longitude_rad: float,
    latitude_rad: float,
    source: Ellipsoid,
    target: Ellipsoid,
    translation: Tuple[float, float, float],
    height_m: float = 0.0
) -> Tuple[float, float, float]:
    """Translate a position through ECEF coordinates.

    Same arguments and return value as :func:`molodensky_shift`.
    """
    X, Y, Z = geodetic_to_ecef(latitude_rad, longitude_rad, height_m, source)
    dx, dy, dz = translation
    lat, lon, h = ecef_to_geodetic(X + dx, Y + dy, Z + dz, target)
    return lon, lat, h


_SHIFT_FUNCTIONS = {
    "molodensky": molodensky_shift,
    "geocentric": geocentric_shift,
}


def shift_datum(
    point: GeoPoint,
    from_ellipsoid: Union[Ellipsoid, str],
    to_ellipsoid: Union[Ellipsoid, str],
    method: str = "molodensky"
) -> GeoPoint:
    """Move a geographic point from one datum to another.

    Parameters
    ----------
    point : GeoPoint
        Position in decimal degrees on ``from_ellipsoid``.
    from_ellipsoid, to_ellipsoid : Ellipsoid or str
        Source and target ellipsoids (or their names). WGS 84 and GRS 1980
        are the WGS84 frame; Clarke 1880 (NTF), Airy 1830 (OSGB36) and
        Bessel 1841 (CH1903) are supported local datums.
    method : str
        ``"molodensky"`` (default) or ``"geocentric"``.

    Returns
    -------
    GeoPoint
        Position in decimal degrees on ``to_ellipsoid``. The input is
        returned unchanged when both ellipsoids are the same frame.

    Raises
    ------
    ConfigurationError
        If the method is unknown or either ellipsoid has no datum shift.

    Examples
    --------
    >>> paris = GeoPoint(longitude=2.35, latitude=48.85)
    >>> ntf = shift_datum(paris, WGS_84, CLARKE_1880)
    """
    if method not in _SHIFT_FUNCTIONS:
        raise ConfigurationError(
            f"Unknown datum shift method '{method}'. Use one of {SHIFT_METHODS}"
        )
    shift_function = _SHIFT_FUNCTIONS[method]

    source = _resolve(from_ellipsoid)
    target = _resolve(to_ellipsoid)

    source_is_wgs84 = _is_wgs84_frame(source)
    target_is_wgs84 = _is_wgs84_frame(target)

    if source == target or (source_is_wgs84 and target_is_wgs84):
        logger.debug(f"Datum shift {source.name} -> {target.name} is the identity")
        return point

    # Resolve both ends before computing so unsupported pairs fail fast.
    to_wgs84 = None if source_is_wgs84 else find_datum_shift(source)
    from_wgs84 = None if target_is_wgs84 else find_datum_shift(target)

    lon, lat = point.to_radians()
    h = 0.0

    if to_wgs84 is not None:
        lon, lat, h = shift_function(lon, lat, source, WGS_84, to_wgs84.translation, h)

    if from_wgs84 is not None:
        dx, dy, dz = from_wgs84.translation
        lon, lat, h = shift_function(lon, lat, WGS_84, target, (-dx, -dy, -dz), h)

    return GeoPoint.from_radians(lon, lat)
