"""
Type Definitions for the Projection Engine.

This module defines the small immutable records passed between the
ellipsoid model, the datum shift and the projections. Using typed
dataclasses instead of raw tuples keeps the axis order explicit: a
geographic point is always (longitude, latitude) in DEGREES, a projected
point is always (easting, northing) in METERS.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from common.errors import ConfigurationError


@dataclass(frozen=True)
class GeoPoint:
    """A geographic position.

    Attributes
    ----------
    longitude : float
        Longitude in DEGREES, positive east.
    latitude : float
        Geodetic latitude in DEGREES, positive north.

    Notes
    -----
    Construction never rejects a value. Whether a point lies inside the
    valid region is decided by the projection that receives it, which
    returns ``None`` for points it cannot transform.

    Examples
    --------
    >>> p = GeoPoint(longitude=-0.1276, latitude=51.5072)
    >>> lon_rad, lat_rad = p.to_radians()
    """
    longitude: float  # degrees
    latitude: float  # degrees

    def to_radians(self) -> Tuple[float, float]:
        """Return (longitude, latitude) in radians."""
        return float(np.radians(self.longitude)), float(np.radians(self.latitude))

    @classmethod
    def from_radians(cls, lon_rad: float, lat_rad: float) -> 'GeoPoint':
        """Create a point from radians.

        Parameters
        ----------
        lon_rad : float
            Longitude in radians.
        lat_rad : float
            Latitude in radians.

        Returns
        -------
        GeoPoint
            Point with internally stored degrees.
        """
        return cls(
            longitude=float(np.degrees(lon_rad)),
            latitude=float(np.degrees(lat_rad))
        )

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.longitude) and np.isfinite(self.latitude))


@dataclass(frozen=True)
class ProjectedPoint:
    """A position on the projection plane.

    Attributes
    ----------
    easting : float
        X coordinate in METERS, including the false easting.
    northing : float
        Y coordinate in METERS, including the false northing.
    """
    easting: float  # m
    northing: float  # m

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.easting) and np.isfinite(self.northing))


class Direction(Enum):
    """Transform direction a projection instance is configured for."""
    FROM_GEOGRAPHIC = "from_geographic"
    TO_GEOGRAPHIC = "to_geographic"

    def describe(self) -> str:
        if self is Direction.FROM_GEOGRAPHIC:
            return "geographic to projected"
        return "projected to geographic"


@dataclass(frozen=True)
class ProjectionParameters:
    """Numerical configuration of a projection.

    Every projection reports its configuration through one of these
    records, and :func:`geospatial.factory.create_projection` accepts one to
    build a projection. Fields that a projection does not use keep their
    defaults.

    Attributes
    ----------
    central_meridian : float
        Longitude of origin in DEGREES.
    origin_latitude : float
        Latitude of origin in DEGREES.
    standard_parallels : tuple of float
        Zero, one or two standard parallels in DEGREES. One parallel, or two
        coincident ones, selects the tangent cone.
    scale_factor : float
        Scale factor at the natural origin (or at the projection centre).
    false_easting : float
        Easting of the natural origin in METERS.
    false_northing : float
        Northing of the natural origin in METERS.
    zone : str, optional
        Zone designation for zoned systems ("31U", "2e", ...).
    azimuth : float, optional
        Azimuth of the initial line in DEGREES (oblique projections).
    rectified_bearing : float, optional
        Angle from the rectified grid to the skew grid in DEGREES. Defaults
        to the azimuth when omitted.
    """
    central_meridian: float = 0.0
    origin_latitude: float = 0.0
    standard_parallels: Tuple[float, ...] = ()
    scale_factor: float = 1.0
    false_easting: float = 0.0
    false_northing: float = 0.0
    zone: Optional[str] = None
    azimuth: Optional[float] = None
    rectified_bearing: Optional[float] = None

    def __post_init__(self):
        """Normalize the parallels to a tuple and check their count."""
        parallels = tuple(float(p) for p in self.standard_parallels)
        if len(parallels) > 2:
            raise ConfigurationError(
                f"At most two standard parallels are allowed, got {len(parallels)}"
            )
        object.__setattr__(self, 'standard_parallels', parallels)
