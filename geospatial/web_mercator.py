"""
Web (Spherical) Mercator Projection.

The Mercator projection evaluated on a sphere with the WGS84 equatorial
radius, as used by web map tile services (EPSG:3857). Longitudes and
latitudes are treated as spherical coordinates, so the projection is not
exactly conformal on the ellipsoid.

Notes
-----
Latitudes are limited to ±88°: northings grow without bound towards the
poles, and tile schemes cut off well before them.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual, pp. 38-47.
- IOGP Guidance Note 7-2, section 1.3.3.2: Popular Visualisation
  Pseudo-Mercator.
"""

from typing import Optional, Tuple

import numpy as np

from common.constants import ProjectionConstants
from common.types import Direction, ProjectionParameters
from geospatial.ellipsoid import SPHERE
from geospatial.projections import HALF_PI, QUARTER_PI, MapProjection, ellipsoid_proj4

_ROUNDOFF = 1e-9  # radians


class WebMercator(MapProjection):
    """Spherical Mercator with the prime meridian as central meridian.

    Parameters
    ----------
    direction : Direction
        Direction of :meth:`transform_coords`.

    Examples
    --------
    >>> from common.types import GeoPoint
    >>> WebMercator().to_projected(GeoPoint(longitude=0.0, latitude=0.0))
    ProjectedPoint(easting=0.0, northing=0.0)
    """

    def __init__(self, direction: Direction = Direction.FROM_GEOGRAPHIC):
        super().__init__(SPHERE, direction)
        self._radius = ProjectionConstants.WEB_MERCATOR_RADIUS.value
        self._max_lat = np.radians(ProjectionConstants.WEB_MERCATOR_MAX_LATITUDE.value)

    @property
    def name(self) -> str:
        return "Web Mercator"

    @property
    def parameters(self) -> ProjectionParameters:
        return ProjectionParameters()

    @property
    def proj4_string(self) -> str:
        return (
            f"+proj=merc {ellipsoid_proj4(self._ellipsoid)} +lat_ts=0 +lon_0=0 "
            "+x_0=0 +y_0=0 +k=1 +units=m +no_defs"
        )

    @property
    def preserves_angles(self) -> bool:
        return True

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        if np.abs(lat_rad) > self._max_lat:
            return None

        easting = self._radius * lon_rad
        northing = self._radius * np.log(np.tan(QUARTER_PI + lat_rad / 2))
        return easting, northing

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        lon_rad = easting / self._radius
        lat_rad = HALF_PI - 2 * np.arctan(np.exp(-northing / self._radius))

        if np.abs(lon_rad) > np.pi + _ROUNDOFF or np.abs(lat_rad) > self._max_lat + _ROUNDOFF:
            return None
        return lon_rad, lat_rad
