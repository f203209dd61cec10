"""
Geospatial Module of the map projection engine.

All projections share the ellipsoid model and the datum shifts defined
here. No projection implements ellipsoid geometry independently.

This module provides:
- Reference ellipsoids, radii of curvature and ECEF conversion
- Datum shifts between WGS84 and the supported local datums
- Map projections with a common forward/inverse contract
- Distortion analysis, projection factory and batch transforms
"""

from geospatial.ellipsoid import (
    Ellipsoid,
    ELLIPSOIDS,
    SPHERE,
    WGS_84,
    get_ellipsoid,
    geodetic_to_ecef,
    ecef_to_geodetic,
    radius_of_curvature_meridian,
    radius_of_curvature_prime_vertical,
)

from geospatial.datum import (
    DatumShift,
    DATUM_SHIFTS,
    shift_datum,
    molodensky_shift,
    geocentric_shift,
)

from geospatial.projections import MapProjection
from geospatial.web_mercator import WebMercator
from geospatial.lambert import LambertConformalConic
from geospatial.albers import AlbersEqualAreaConic, AlbersPreset, ALBERS_PRESETS
from geospatial.transverse_mercator import TransverseMercator, UTM, utm_zone
from geospatial.oblique_mercator import ObliqueMercator
from geospatial.swiss import SwissObliqueCylindrical
from geospatial.national_grids import FrenchNTF, OSGB, SwissGrid
from geospatial.distortion import TissotIndicatrix, compute_tissot_indicatrix
from geospatial.factory import (
    create_projection,
    select_projection,
    batch_project,
    batch_unproject,
)

__all__ = [
    # Ellipsoids
    "Ellipsoid",
    "ELLIPSOIDS",
    "SPHERE",
    "WGS_84",
    "get_ellipsoid",
    "geodetic_to_ecef",
    "ecef_to_geodetic",
    "radius_of_curvature_meridian",
    "radius_of_curvature_prime_vertical",
    # Datums
    "DatumShift",
    "DATUM_SHIFTS",
    "shift_datum",
    "molodensky_shift",
    "geocentric_shift",
    # Projections
    "MapProjection",
    "WebMercator",
    "LambertConformalConic",
    "AlbersEqualAreaConic",
    "AlbersPreset",
    "ALBERS_PRESETS",
    "TransverseMercator",
    "UTM",
    "utm_zone",
    "ObliqueMercator",
    "SwissObliqueCylindrical",
    "FrenchNTF",
    "OSGB",
    "SwissGrid",
    # Analysis and helpers
    "TissotIndicatrix",
    "compute_tissot_indicatrix",
    "create_projection",
    "select_projection",
    "batch_project",
    "batch_unproject",
]
