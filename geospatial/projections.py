"""
Map Projection Contract and Shared Projection Mathematics.

This module defines :class:`MapProjection`, the interface every projection
in the engine implements, together with the small functions of latitude that
the conic and Mercator-family projections share.

Scientific Context
------------------
Domain: Cartography, mathematical geodesy
Model: Projections of a reference ellipsoid onto a plane.

Every projection provides a forward transform (geographic -> projected) and
an inverse transform (projected -> geographic). Geographic positions are
longitude/latitude in decimal degrees, projected positions are
easting/northing in meters from the false origin.

Domain Policy
-------------
A transform never clamps its input. Points that are not finite, longitudes
outside [-180, 180], latitudes outside [-90, 90], and points in a
projection's own singular region (a pole, a parallel the cone cannot reach,
...) are rejected: the transform returns ``None`` and logs a warning.
Configuration problems raise :class:`common.errors.ConfigurationError` at
construction, and iterative inverses that fail to converge raise
:class:`common.errors.ConvergenceError`.

References
----------
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper 1395.
- IOGP (2019). Geomatics Guidance Note 7, part 2: Coordinate Conversions
  and Transformations including Formulas.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple, Union

import numpy as np
from pyproj import CRS

from common.errors import ConfigurationError
from common.logging_config import get_logger
from common.types import Direction, GeoPoint, ProjectedPoint, ProjectionParameters
from geospatial.ellipsoid import Ellipsoid

logger = get_logger(__name__)

HALF_PI = np.pi / 2
QUARTER_PI = np.pi / 4


# =============================================================================
# Shared functions of latitude
# =============================================================================

def wrap_longitude(lon_rad: float) -> float:
    """Bring a longitude into [-π, π].

    Values already inside the interval, including ±π, are returned unchanged.
    Values within round-off of ±π stay on their own side of the antimeridian.
    """
    if np.abs(lon_rad) <= np.pi + 1e-12:
        return float(np.clip(lon_rad, -np.pi, np.pi))
    return lon_rad - 2 * np.pi * np.round(lon_rad / (2 * np.pi))


def conformal_t(lat_rad: float, e: float) -> float:
    """Snyder's t: tan(π/4 - φ/2) / ((1 - e sinφ) / (1 + e sinφ))^(e/2).

    Used by the Lambert conformal conic and oblique Mercator projections
    (Snyder 1987, eq. 15-9). Zero at the north pole.
    """
    sin_lat = np.sin(lat_rad)
    ratio = (1 - e * sin_lat) / (1 + e * sin_lat)
    return np.tan(QUARTER_PI - lat_rad / 2) / ratio ** (e / 2)


def parallel_scale_m(lat_rad: float, e: float) -> float:
    """Snyder's m: cosφ / sqrt(1 - e² sin²φ) (eq. 14-15)."""
    sin_lat = np.sin(lat_rad)
    return np.cos(lat_rad) / np.sqrt(1 - (e * sin_lat) ** 2)


def authalic_q(lat_rad: float, e: float) -> float:
    """Snyder's q for equal-area projections (eq. 3-12).

    q = (1 - e²) [sinφ / (1 - e² sin²φ) - (1 / 2e) ln((1 - e sinφ) / (1 + e sinφ))]

    Reduces to 2 sinφ on the sphere.
    """
    sin_lat = np.sin(lat_rad)
    if e < 1e-7:
        return 2 * sin_lat
    con = e * sin_lat
    return (1 - e**2) * (
        sin_lat / (1 - con**2)
        - (0.5 / e) * np.log((1 - con) / (1 + con))
    )


def check_standard_parallels(
    lat1_rad: float,
    lat2_rad: float,
    tangent_tolerance: float,
    min_separation: float
) -> bool:
    """Classify a pair of standard parallels.

    Returns
    -------
    bool
        True for the tangent (single parallel) case, False for a secant cone.

    Raises
    ------
    ConfigurationError
        If the parallels are distinct but too close to give a well
        conditioned cone constant, if either lies at a pole, or if they are
        symmetric about the equator (the cone degenerates to a cylinder).
    """
    for lat in (lat1_rad, lat2_rad):
        if not np.isfinite(lat) or np.abs(lat) >= HALF_PI:
            raise ConfigurationError(
                f"Standard parallel {np.degrees(lat)}° must lie strictly between the poles"
            )

    separation = np.abs(lat1_rad - lat2_rad)
    if separation < tangent_tolerance:
        if np.abs(lat1_rad) < tangent_tolerance:
            raise ConfigurationError("A tangent cone cannot touch the equator")
        return True

    if separation < min_separation:
        raise ConfigurationError(
            f"Standard parallels {np.degrees(lat1_rad)}° and {np.degrees(lat2_rad)}° "
            "are too close to define a cone"
        )

    if np.abs(lat1_rad + lat2_rad) < tangent_tolerance:
        raise ConfigurationError(
            "Standard parallels symmetric about the equator give a cone constant of zero"
        )
    return False


def validate_origin(
    central_meridian: float,
    origin_latitude: float,
    false_easting: float = 0.0,
    false_northing: float = 0.0
) -> None:
    """Reject a non-finite or out-of-range natural origin.

    Raises
    ------
    ConfigurationError
        If any value is not finite, the central meridian lies outside
        [-180, 180] or the origin latitude outside [-90, 90].
    """
    values = {
        "central_meridian": central_meridian,
        "origin_latitude": origin_latitude,
        "false_easting": false_easting,
        "false_northing": false_northing,
    }
    for label, value in values.items():
        if value is None or not np.isfinite(value):
            raise ConfigurationError(f"{label} must be a finite number, got {value}")
    if not -180.0 <= central_meridian <= 180.0:
        raise ConfigurationError(f"Central meridian {central_meridian}° is outside [-180, 180]")
    if not -90.0 <= origin_latitude <= 90.0:
        raise ConfigurationError(f"Origin latitude {origin_latitude}° is outside [-90, 90]")


def ellipsoid_proj4(ellipsoid: Ellipsoid) -> str:
    """PROJ.4 ellipsoid terms for an ellipsoid."""
    if ellipsoid.is_sphere:
        return f"+R={ellipsoid.a!r}"
    return f"+a={ellipsoid.a!r} +b={ellipsoid.b!r}"


# =============================================================================
# Projection contract
# =============================================================================

class MapProjection(ABC):
    """Abstract base class for map projections.

    All projections in this system implement this interface to ensure
    consistent handling of coordinates, directions and domain errors.

    Subclasses implement :meth:`_project` and :meth:`_unproject` on radians
    and meters; the public transforms wrap them with type checks, the domain
    policy and logging.

    Parameters
    ----------
    ellipsoid : Ellipsoid
        Reference ellipsoid the projection is defined on.
    direction : Direction
        Direction of :meth:`transform_coords`. Fixed at construction.
    """

    def __init__(
        self,
        ellipsoid: Ellipsoid,
        direction: Direction = Direction.FROM_GEOGRAPHIC
    ):
        if not isinstance(ellipsoid, Ellipsoid):
            raise ConfigurationError(f"Expected an Ellipsoid, got {type(ellipsoid).__name__}")
        if not isinstance(direction, Direction):
            raise ConfigurationError(f"Expected a Direction, got {direction!r}")
        self._ellipsoid = ellipsoid
        self._direction = direction
        self._do_interpolation = True

    # ------------------------------------------------------------------
    # Description
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the projection."""
        pass

    @property
    @abstractmethod
    def parameters(self) -> ProjectionParameters:
        """Numerical configuration of the projection."""
        pass

    @property
    @abstractmethod
    def proj4_string(self) -> str:
        """PROJ.4 definition string."""
        pass

    @property
    def preserves_angles(self) -> bool:
        """Whether this is a conformal projection."""
        return False

    @property
    def preserves_area(self) -> bool:
        """Whether this is an equal-area projection."""
        return False

    @property
    def ellipsoid(self) -> Ellipsoid:
        return self._ellipsoid

    @property
    def geographic_ellipsoid(self) -> Ellipsoid:
        """Ellipsoid of the longitude/latitude side of the transforms."""
        return self._ellipsoid

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def description(self) -> str:
        if self._direction is Direction.FROM_GEOGRAPHIC:
            return f"Longitude/latitude to {self.name} transformation."
        return f"{self.name} to longitude/latitude transformation."

    @property
    def do_interpolation(self) -> bool:
        """Advisory flag for raster resampling: interpolate (True) or nearest neighbour."""
        return self._do_interpolation

    @do_interpolation.setter
    def do_interpolation(self, value: bool) -> None:
        self._do_interpolation = bool(value)

    def to_crs(self) -> CRS:
        """Equivalent pyproj coordinate reference system."""
        return CRS.from_proj4(self.proj4_string)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} ({self._direction.describe()})>"

    # ------------------------------------------------------------------
    # Transforms
    # ------------------------------------------------------------------

    @abstractmethod
    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        """Forward transform on radians.

        Returns
        -------
        Tuple[float, float] or None
            (easting, northing) in meters, or None inside the singular region.
        """
        pass

    @abstractmethod
    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        """Inverse transform to radians.

        Returns
        -------
        Tuple[float, float] or None
            (lon_rad, lat_rad), or None if the position has no geographic
            counterpart.
        """
        pass

    def to_projected(self, point: GeoPoint) -> Optional[ProjectedPoint]:
        """Transform a geographic point to the projection plane.

        Parameters
        ----------
        point : GeoPoint
            Longitude/latitude in decimal degrees.

        Returns
        -------
        ProjectedPoint or None
            Easting/northing in meters, or None if the point lies outside the
            projection's domain.

        Raises
        ------
        TypeError
            If ``point`` is not a GeoPoint.
        ConvergenceError
            If an iterative step (e.g. a datum shift) does not converge.
        """
        if not isinstance(point, GeoPoint):
            raise TypeError(f"Expected a GeoPoint, got {type(point).__name__}")

        if not point.is_finite():
            logger.warning(f"{self.name}: rejected non-finite point {point}")
            return None
        if not -180.0 <= point.longitude <= 180.0 or not -90.0 <= point.latitude <= 90.0:
            logger.warning(f"{self.name}: {point} is outside the longitude/latitude range")
            return None

        result = self._project(*point.to_radians())
        if result is None or not np.all(np.isfinite(result)):
            logger.warning(f"{self.name}: {point} is outside the projection domain")
            return None

        easting, northing = result
        return ProjectedPoint(easting=float(easting), northing=float(northing))

    def to_geographic(self, point: ProjectedPoint) -> Optional[GeoPoint]:
        """Transform a projected point back to longitude/latitude.

        Parameters
        ----------
        point : ProjectedPoint
            Easting/northing in meters.

        Returns
        -------
        GeoPoint or None
            Longitude/latitude in decimal degrees, or None if the position has
            no geographic counterpart.

        Raises
        ------
        TypeError
            If ``point`` is not a ProjectedPoint.
        ConvergenceError
            If the inverse latitude iteration does not converge.
        """
        if not isinstance(point, ProjectedPoint):
            raise TypeError(f"Expected a ProjectedPoint, got {type(point).__name__}")

        if not point.is_finite():
            logger.warning(f"{self.name}: rejected non-finite point {point}")
            return None

        result = self._unproject(point.easting, point.northing)
        if result is None or not np.all(np.isfinite(result)):
            logger.warning(f"{self.name}: {point} has no geographic position")
            return None

        lon_rad, lat_rad = result
        if np.abs(lat_rad) > HALF_PI + 1e-12:
            logger.warning(f"{self.name}: {point} maps beyond the pole")
            return None

        lat_rad = float(np.clip(lat_rad, -HALF_PI, HALF_PI))
        return GeoPoint.from_radians(wrap_longitude(lon_rad), lat_rad)

    def transform_coords(
        self,
        point: Union[GeoPoint, ProjectedPoint]
    ) -> Optional[Union[GeoPoint, ProjectedPoint]]:
        """Transform a point in the configured direction."""
        if self._direction is Direction.FROM_GEOGRAPHIC:
            return self.to_projected(point)
        return self.to_geographic(point)

    def inv_transform_coords(
        self,
        point: Union[GeoPoint, ProjectedPoint]
    ) -> Optional[Union[GeoPoint, ProjectedPoint]]:
        """Transform a point against the configured direction."""
        if self._direction is Direction.FROM_GEOGRAPHIC:
            return self.to_geographic(point)
        return self.to_projected(point)
