"""
Projection Factory, Selection and Batch Transforms.

Builds any projection of the engine from a kind name and a
:class:`common.types.ProjectionParameters` record, picks a suitable
projection for a geographic extent, and applies a projection to numpy
arrays of coordinates.

Examples
--------
>>> from common.types import ProjectionParameters
>>> params = ProjectionParameters(
...     central_meridian=-96, origin_latitude=23, standard_parallels=(33, 45)
... )
>>> lcc = create_projection("lambert_conformal_conic", "clarke 1866", params)
>>> utm = create_projection("utm", parameters=ProjectionParameters(zone="32V"))
"""

import re
from typing import Callable, Dict, Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from common.constants import ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError
from common.logging_config import get_logger
from common.types import GeoPoint, ProjectedPoint, ProjectionParameters
from geospatial.albers import AlbersEqualAreaConic
from geospatial.ellipsoid import WGS_84, Ellipsoid, get_ellipsoid
from geospatial.lambert import LambertConformalConic
from geospatial.national_grids import OSGB, FrenchNTF, SwissGrid
from geospatial.oblique_mercator import ObliqueMercator
from geospatial.projections import MapProjection
from geospatial.swiss import SwissObliqueCylindrical
from geospatial.transverse_mercator import UTM, TransverseMercator
from geospatial.web_mercator import WebMercator

logger = get_logger(__name__)

_UTM_ZONE_PATTERN = re.compile(r"^\s*(\d{1,2})\s*([A-Za-z])\s*$")

SELECTION_PURPOSES = ("conformal", "equal_area")


# =============================================================================
# Builders
# =============================================================================

def _require(parameters: Optional[ProjectionParameters], kind: str) -> ProjectionParameters:
    if parameters is None:
        raise ConfigurationError(f"Projection kind '{kind}' requires ProjectionParameters")
    return parameters


def _parallels(parameters: ProjectionParameters, kind: str) -> Tuple[float, float]:
    parallels = parameters.standard_parallels
    if not parallels:
        raise ConfigurationError(f"Projection kind '{kind}' requires at least one standard parallel")
    return parallels[0], parallels[-1]


def _fixed_ellipsoid(kind: str, ellipsoid: Optional[Ellipsoid]) -> None:
    if ellipsoid is not None:
        raise ConfigurationError(f"Projection kind '{kind}' has a fixed ellipsoid")


def _build_web_mercator(ellipsoid, parameters, options):
    _fixed_ellipsoid("web_mercator", ellipsoid)
    return WebMercator(**options)


def _build_lambert(ellipsoid, parameters, options):
    p = _require(parameters, "lambert_conformal_conic")
    lat1, lat2 = _parallels(p, "lambert_conformal_conic")
    if ellipsoid is not None:
        options["ellipsoid"] = ellipsoid
    return LambertConformalConic(
        lat1, p.central_meridian, p.origin_latitude, lat2,
        false_easting=p.false_easting,
        false_northing=p.false_northing,
        **options
    )


def _build_albers(ellipsoid, parameters, options):
    p = _require(parameters, "albers_equal_area_conic")
    lat1, lat2 = _parallels(p, "albers_equal_area_conic")
    if ellipsoid is not None:
        options["ellipsoid"] = ellipsoid
    return AlbersEqualAreaConic(
        lat1, lat2,
        central_meridian=p.central_meridian,
        origin_latitude=p.origin_latitude,
        false_easting=p.false_easting,
        false_northing=p.false_northing,
        **options
    )


def _albers_preset(key: str):
    def build(ellipsoid, parameters, options):
        _fixed_ellipsoid(f"albers_{key}", ellipsoid)
        return AlbersEqualAreaConic.from_preset(key, **options)
    return build


def _build_transverse_mercator(ellipsoid, parameters, options):
    p = _require(parameters, "transverse_mercator")
    if ellipsoid is not None:
        options["ellipsoid"] = ellipsoid
    return TransverseMercator(
        p.central_meridian,
        origin_latitude=p.origin_latitude,
        scale_factor=p.scale_factor,
        false_easting=p.false_easting,
        false_northing=p.false_northing,
        **options
    )


def _build_utm(ellipsoid, parameters, options):
    if "zone_number" in options or "zone_letter" in options:
        number = options.pop("zone_number", None)
        letter = options.pop("zone_letter", None)
    else:
        zone = _require(parameters, "utm").zone
        match = _UTM_ZONE_PATTERN.match(zone or "")
        if match is None:
            raise ConfigurationError(f"UTM zone must look like '32V', got {zone!r}")
        number, letter = int(match.group(1)), match.group(2)
    if ellipsoid is not None:
        options["ellipsoid"] = ellipsoid
    return UTM(number, letter, **options)


def _build_oblique_mercator(ellipsoid, parameters, options):
    p = _require(parameters, "oblique_mercator")
    if p.azimuth is None:
        raise ConfigurationError("Projection kind 'oblique_mercator' requires an azimuth")
    if ellipsoid is not None:
        options["ellipsoid"] = ellipsoid
    return ObliqueMercator(
        p.origin_latitude,
        p.central_meridian,
        p.azimuth,
        rectified_bearing=p.rectified_bearing,
        scale_factor=p.scale_factor,
        false_easting=p.false_easting,
        false_northing=p.false_northing,
        **options
    )


def _build_swiss(ellipsoid, parameters, options):
    _fixed_ellipsoid("swiss", ellipsoid)
    return ObliqueMercator.swiss(**options)


def _build_swiss_oblique_cylindrical(ellipsoid, parameters, options):
    p = _require(parameters, "swiss_oblique_cylindrical")
    if ellipsoid is not None:
        options["ellipsoid"] = ellipsoid
    return SwissObliqueCylindrical(
        p.origin_latitude,
        p.central_meridian,
        false_easting=p.false_easting,
        false_northing=p.false_northing,
        **options
    )


def _build_swiss_grid(ellipsoid, parameters, options):
    _fixed_ellipsoid("swiss_grid", ellipsoid)
    frame = options.pop("frame", None)
    if frame is None and parameters is not None:
        frame = parameters.zone
    return SwissGrid("LV03" if frame is None else frame, **options)


def _build_french_ntf(ellipsoid, parameters, options):
    _fixed_ellipsoid("french_ntf", ellipsoid)
    zone = options.pop("zone", None)
    if zone is None and parameters is not None:
        zone = parameters.zone
    return FrenchNTF("2e" if zone is None else zone, **options)


def _build_osgb(ellipsoid, parameters, options):
    _fixed_ellipsoid("osgb", ellipsoid)
    return OSGB(**options)


_BUILDERS: Dict[str, Callable[..., MapProjection]] = {
    "web_mercator": _build_web_mercator,
    "lambert_conformal_conic": _build_lambert,
    "albers_equal_area_conic": _build_albers,
    "albers_bc": _albers_preset("bc"),
    "albers_us": _albers_preset("us"),
    "albers_us_conterminous": _albers_preset("us_conterminous"),
    "transverse_mercator": _build_transverse_mercator,
    "utm": _build_utm,
    "oblique_mercator": _build_oblique_mercator,
    "swiss": _build_swiss,
    "swiss_oblique_cylindrical": _build_swiss_oblique_cylindrical,
    "swiss_grid": _build_swiss_grid,
    "french_ntf": _build_french_ntf,
    "osgb": _build_osgb,
}

PROJECTION_KINDS = tuple(_BUILDERS)


def create_projection(
    kind: str,
    ellipsoid: Optional[Union[Ellipsoid, str]] = None,
    parameters: Optional[ProjectionParameters] = None,
    **options
) -> MapProjection:
    """Build a projection by kind.

    Parameters
    ----------
    kind : str
        One of :data:`PROJECTION_KINDS` (case-insensitive, ``-`` and spaces
        are read as ``_``).
    ellipsoid : Ellipsoid or str, optional
        Reference ellipsoid, or its name. Omitted selects the projection's
        default. Kinds with a fixed ellipsoid (Web Mercator, presets,
        national grids) reject an explicit one.
    parameters : ProjectionParameters, optional
        Numerical configuration. Required by the generic kinds.
    **options
        Passed to the constructor (``direction``, ``tolerance``,
        ``max_iterations``; ``zone`` for ``french_ntf``; ``frame`` for
        ``swiss_grid``; ``zone_number`` and ``zone_letter`` for ``utm``).

    Returns
    -------
    MapProjection
        A new projection. Equal arguments give projections with identical
        outputs.

    Raises
    ------
    ConfigurationError
        For an unknown kind or ellipsoid, or missing or invalid parameters.
    """
    key = re.sub(r"[\s\-]+", "_", str(kind).strip().lower())
    builder = _BUILDERS.get(key)
    if builder is None:
        raise ConfigurationError(
            f"Unknown projection kind '{kind}'. Available: {', '.join(PROJECTION_KINDS)}"
        )
    if isinstance(ellipsoid, str):
        ellipsoid = get_ellipsoid(ellipsoid)
    try:
        return builder(ellipsoid, parameters, dict(options))
    except TypeError as exc:
        raise ConfigurationError(f"Invalid options for projection kind '{kind}': {exc}") from exc


# =============================================================================
# Selection
# =============================================================================

def select_projection(
    min_lat: float,
    max_lat: float,
    min_lon: float,
    max_lon: float,
    purpose: str = "conformal",
    ellipsoid: Ellipsoid = WGS_84
) -> MapProjection:
    """Select a projection for a given geographic extent.

    Parameters
    ----------
    min_lat, max_lat : float
        Latitude range in degrees.
    min_lon, max_lon : float
        Longitude range in degrees (no antimeridian crossing).
    purpose : str
        One of:
        - "conformal": Preserve shapes and angles
        - "equal_area": Preserve areas
    ellipsoid : Ellipsoid
        Reference ellipsoid of the result.

    Returns
    -------
    MapProjection
        A projection centred on the extent.

    Raises
    ------
    ConfigurationError
        For an invalid extent or purpose, or an equal-area extent centred
        on the equator.

    Notes
    -----
    Selection logic:
    1. Conformal, taller than wide: Transverse Mercator on the centre meridian
    2. Conformal, wider than tall: Lambert Conformal Conic
    3. Equal-area: Albers Equal-Area Conic
    Standard parallels sit one sixth of the latitude range inside each edge.
    """
    if purpose not in SELECTION_PURPOSES:
        raise ConfigurationError(
            f"Unknown purpose '{purpose}'. Use one of {SELECTION_PURPOSES}"
        )
    extent = (min_lat, max_lat, min_lon, max_lon)
    if not np.all(np.isfinite(extent)):
        raise ConfigurationError(f"Extent must be finite, got {extent}")
    if not -90.0 <= min_lat < max_lat <= 90.0 or not -180.0 <= min_lon < max_lon <= 180.0:
        raise ConfigurationError(f"Invalid extent {extent}")

    lat_extent = max_lat - min_lat
    lon_extent = max_lon - min_lon
    center_lat = (min_lat + max_lat) / 2
    center_lon = (min_lon + max_lon) / 2

    lat1 = min_lat + lat_extent / 6
    lat2 = max_lat - lat_extent / 6

    if purpose == "equal_area":
        logger.debug(f"Selected Albers for extent {extent}")
        return AlbersEqualAreaConic(
            lat1, lat2,
            central_meridian=center_lon,
            origin_latitude=center_lat,
            ellipsoid=ellipsoid,
        )

    # Cones degenerate for extents centred on the equator
    if lat_extent > lon_extent * np.cos(np.radians(center_lat)) or np.abs(lat1 + lat2) < 1e-6:
        logger.debug(f"Selected Transverse Mercator for extent {extent}")
        return TransverseMercator(
            center_lon,
            scale_factor=ProjectionConstants.UTM_SCALE_FACTOR.value,
            ellipsoid=ellipsoid,
        )

    logger.debug(f"Selected Lambert Conformal Conic for extent {extent}")
    return LambertConformalConic(
        lat1, center_lon, center_lat, lat2,
        ellipsoid=ellipsoid,
    )


# =============================================================================
# Batch transforms
# =============================================================================

def _apply(
    transform: Callable,
    first: ArrayLike,
    second: ArrayLike
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    first, second = np.broadcast_arrays(
        np.asarray(first, dtype=np.float64), np.asarray(second, dtype=np.float64)
    )
    out_first = np.full(first.shape, np.nan)
    out_second = np.full(first.shape, np.nan)

    failures = 0
    for index in np.ndindex(first.shape):
        try:
            result = transform(first[index], second[index])
        except ConvergenceError as exc:
            logger.warning(f"Point {index} did not converge: {exc}")
            result = None
        if result is None:
            failures += 1
            continue
        out_first[index], out_second[index] = result

    if failures:
        logger.info(f"{failures} of {first.size} points could not be transformed")
    return out_first, out_second


def batch_project(
    projection: MapProjection,
    longitudes: ArrayLike,
    latitudes: ArrayLike
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Project arrays of coordinates.

    Parameters
    ----------
    projection : MapProjection
        Projection to use.
    longitudes, latitudes : array_like
        Coordinates in degrees (broadcast against each other).

    Returns
    -------
    Tuple[ndarray, ndarray]
        (easting, northing) in meters. Points outside the domain, or whose
        transform did not converge, are NaN.
    """
    def project(lon, lat):
        result = projection.to_projected(GeoPoint(longitude=float(lon), latitude=float(lat)))
        return None if result is None else (result.easting, result.northing)

    return _apply(project, longitudes, latitudes)


def batch_unproject(
    projection: MapProjection,
    eastings: ArrayLike,
    northings: ArrayLike
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Inverse-project arrays of coordinates.

    Returns
    -------
    Tuple[ndarray, ndarray]
        (longitude, latitude) in degrees, NaN where the inverse failed.
    """
    def unproject(easting, northing):
        result = projection.to_geographic(
            ProjectedPoint(easting=float(easting), northing=float(northing))
        )
        return None if result is None else (result.longitude, result.latitude)

    return _apply(unproject, eastings, northings)
