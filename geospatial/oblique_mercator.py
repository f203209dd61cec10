"""
Hotine Oblique Mercator (Rectified Skew Orthomorphic) Projection.

A conformal projection onto a cylinder tangent along an oblique great-circle
like line through the projection centre, suited to regions elongated in a
direction that is neither north-south nor east-west (Switzerland, Malaysia,
the Alaska panhandle).

Scientific Context
------------------
Domain: Cartography, national grids
Model: Hotine oblique Mercator on the ellipsoid (IOGP method 9812,
variant A: grid coordinates measured from the natural origin where the
centre line meets the aposphere's equator).

Constants (φc, λc centre, αc azimuth of the centre line, γc rectified
bearing, kc scale at the centre)::

    B  = sqrt(1 + e² cos⁴φc / (1 - e²))
    A  = a B kc sqrt(1 - e²) / (1 - e² sin²φc)
    D  = B sqrt(1 - e²) / (cosφc sqrt(1 - e² sin²φc))
    F  = D + sqrt(D² - 1)              (sign of φc)
    H  = F t(φc)^B
    G  = (F - 1/F) / 2
    γ0 = asin(sin αc / D)
    λ0 = λc - asin(G tan γ0) / B        (λc - π / 2B when αc = 90°)

Both directions are closed-form; the inverse recovers latitude from the
conformal latitude by a series in e².

References
----------
- IOGP (2019). Geomatics Guidance Note 7-2, section 3.2.4.
- Snyder, J.P. (1987). Map Projections - A Working Manual, pp. 66-75.
"""

from typing import Optional, Tuple

import numpy as np

from common.errors import ConfigurationError
from common.logging_config import get_logger
from common.types import Direction, ProjectionParameters
from geospatial.ellipsoid import BESSEL_1841, WGS_84, Ellipsoid
from geospatial.projections import (
    HALF_PI,
    MapProjection,
    conformal_t,
    ellipsoid_proj4,
    validate_origin,
)

logger = get_logger(__name__)


class ObliqueMercator(MapProjection):
    """Hotine Oblique Mercator projection.

    Parameters
    ----------
    centre_latitude, centre_longitude : float
        Projection centre in degrees.
    azimuth : float
        Azimuth of the centre line at the centre, in degrees east of north.
    rectified_bearing : float, optional
        Angle from the rectified grid to the skew grid in degrees. Defaults
        to the azimuth.
    scale_factor : float
        Scale factor on the centre line.
    false_easting, false_northing : float
        Grid coordinates of the natural origin, in meters.
    ellipsoid : Ellipsoid
        Reference ellipsoid (default: WGS84).
    direction : Direction
        Direction of :meth:`transform_coords`.

    Raises
    ------
    ConfigurationError
        If the centre is at a pole or the azimuth cannot be reached from
        the centre latitude.
    """

    def __init__(
        self,
        centre_latitude: float,
        centre_longitude: float,
        azimuth: float,
        rectified_bearing: Optional[float] = None,
        scale_factor: float = 1.0,
        false_easting: float = 0.0,
        false_northing: float = 0.0,
        ellipsoid: Ellipsoid = WGS_84,
        direction: Direction = Direction.FROM_GEOGRAPHIC
    ):
        super().__init__(ellipsoid, direction)
        validate_origin(centre_longitude, centre_latitude, false_easting, false_northing)
        if rectified_bearing is None:
            rectified_bearing = azimuth
        for label, value in (("azimuth", azimuth), ("rectified_bearing", rectified_bearing)):
            if not np.isfinite(value):
                raise ConfigurationError(f"{label} must be a finite number, got {value}")
        if not np.isfinite(scale_factor) or scale_factor <= 0:
            raise ConfigurationError(f"Scale factor must be positive, got {scale_factor}")
        if np.abs(centre_latitude) >= 90.0:
            raise ConfigurationError("The projection centre cannot be at a pole")

        self._lat_c = float(centre_latitude)
        self._lon_c = float(centre_longitude)
        self._azimuth = float(azimuth)
        self._bearing = float(rectified_bearing)
        self._kc = float(scale_factor)
        self._false_easting = float(false_easting)
        self._false_northing = float(false_northing)

        fc = np.radians(self._lat_c)
        lc = np.radians(self._lon_c)
        ac = np.radians(self._azimuth)
        gc = np.radians(self._bearing)

        e2 = ellipsoid.e2
        e = ellipsoid.e
        a = ellipsoid.a
        sin_fc = np.sin(fc)
        cos_fc = np.cos(fc)

        self._e = e
        self._e2 = e2
        self._sin_gc = np.sin(gc)
        self._cos_gc = np.cos(gc)

        self._B = np.sqrt(1.0 + e2 * cos_fc**4 / (1 - e2))
        self._A = a * self._B * self._kc * np.sqrt(1 - e2) / (1 - e2 * sin_fc**2)
        t0 = conformal_t(fc, e)
        D = self._B * np.sqrt(1 - e2) / (cos_fc * np.sqrt(1 - e2 * sin_fc**2))
        D2 = max(D * D, 1.0)

        F = D + np.sqrt(D2 - 1)
        if fc < 0:
            F = -F
        self._H = F * t0**self._B
        G = (F - 1 / F) / 2

        sin_g0 = np.sin(ac) / D
        if np.abs(sin_g0) > 1.0:
            raise ConfigurationError(
                f"Azimuth {self._azimuth}° is not reachable from centre latitude {self._lat_c}°"
            )
        g0 = np.arcsin(sin_g0)
        self._sin_g0 = sin_g0
        self._cos_g0 = np.cos(g0)

        self._is_right_azimuth = np.abs(self._azimuth - 90.0) < 1e-12
        if self._is_right_azimuth:
            self._lambda0 = lc - HALF_PI / self._B
            self._uc = self._A * (lc - self._lambda0)
        else:
            self._lambda0 = lc - np.arcsin(G * np.tan(g0)) / self._B
            self._uc = (self._A / self._B) * np.arctan(np.sqrt(D2 - 1) / np.cos(ac))
            if fc < 0:
                self._uc = -self._uc

    @classmethod
    def swiss(cls, direction: Direction = Direction.FROM_GEOGRAPHIC) -> 'ObliqueMercator':
        """Hotine approximation of the Swiss grid on Bessel 1841.

        Centre at the old observatory of Bern (46°57'08.66"N, 7°26'22.5"E),
        azimuth 90°, unit scale. Bern maps to northing 1,200,000 m and
        easting 2,599,999.756 m.

        Notes
        -----
        The false easting is the EPSG value, derived for a = 6377397.155 m.
        On this engine's Bessel 1841 (a = 6377397.0 m) the centre-line
        offset u_c is 0.244 m shorter, so the grid sits about a quarter
        meter west of EPSG:2056 (LV95) across Switzerland, e.g. 0.245 m at
        8°E 47°N. Use :class:`geospatial.national_grids.SwissGrid` for the
        survey's own oblique conformal cylindrical projection, which puts
        Bern exactly on its false origin.
        """
        return cls(
            centre_latitude=46.952405555555556,
            centre_longitude=7.4395833333333333,
            azimuth=90.0,
            rectified_bearing=90.0,
            scale_factor=1.0,
            false_easting=-7_419_820.5907,
            false_northing=1_200_000.0,
            ellipsoid=BESSEL_1841,
            direction=direction,
        )

    @property
    def name(self) -> str:
        return f"Oblique Mercator (centre {self._lat_c}°, {self._lon_c}°, azimuth {self._azimuth}°)"

    @property
    def parameters(self) -> ProjectionParameters:
        return ProjectionParameters(
            central_meridian=self._lon_c,
            origin_latitude=self._lat_c,
            scale_factor=self._kc,
            false_easting=self._false_easting,
            false_northing=self._false_northing,
            azimuth=self._azimuth,
            rectified_bearing=self._bearing,
        )

    @property
    def proj4_string(self) -> str:
        return (
            f"+proj=omerc +lat_0={self._lat_c!r} +lonc={self._lon_c!r} "
            f"+alpha={self._azimuth!r} +gamma={self._bearing!r} +k={self._kc!r} "
            f"+x_0={self._false_easting!r} +y_0={self._false_northing!r} +no_uoff "
            f"{ellipsoid_proj4(self._ellipsoid)} +units=m +no_defs"
        )

    @property
    def preserves_angles(self) -> bool:
        return True

    @property
    def centre_line_offset(self) -> float:
        """u coordinate of the projection centre, in meters."""
        return float(self._uc)

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        if np.abs(lat_rad) >= HALF_PI - 1e-12:
            return None

        B = self._B
        t = conformal_t(lat_rad, self._e)
        Q = self._H / t**B
        S = (Q - 1 / Q) / 2
        T = (Q + 1 / Q) / 2
        dl = B * (lon_rad - self._lambda0)
        V = np.sin(dl)
        U = (-V * self._cos_g0 + S * self._sin_g0) / T

        # 90° from the centre line
        if 1.0 - np.abs(U) < 1e-12:
            return None

        v = self._A * np.log((1 - U) / (1 + U)) / (2 * B)
        u = self._A * np.arctan2(S * self._cos_g0 + V * self._sin_g0, np.cos(dl)) / B

        easting = v * self._cos_gc + u * self._sin_gc + self._false_easting
        northing = u * self._cos_gc - v * self._sin_gc + self._false_northing
        return easting, northing

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        B = self._B
        A = self._A
        de = easting - self._false_easting
        dn = northing - self._false_northing

        v = de * self._cos_gc - dn * self._sin_gc
        u = dn * self._cos_gc + de * self._sin_gc

        Q = np.exp(-B * v / A)
        S = (Q - 1 / Q) / 2
        T = (Q + 1 / Q) / 2
        V = np.sin(B * u / A)
        U = (V * self._cos_g0 + S * self._sin_g0) / T

        if 1.0 - np.abs(U) < 1e-12:
            return None

        t = (self._H / np.sqrt((1 + U) / (1 - U))) ** (1 / B)
        chi = HALF_PI - 2 * np.arctan(t)

        e2 = self._e2
        e4 = e2 * e2
        e6 = e4 * e2
        e8 = e6 * e2
        lat_rad = (
            chi
            + np.sin(2 * chi) * (e2 / 2 + 5 * e4 / 24 + e6 / 12 + 13 * e8 / 360)
            + np.sin(4 * chi) * (7 * e4 / 48 + 29 * e6 / 240 + 811 * e8 / 11520)
            + np.sin(6 * chi) * (7 * e6 / 120 + 81 * e8 / 1120)
            + np.sin(8 * chi) * (4279 * e8 / 161280)
        )
        lon_rad = self._lambda0 - np.arctan2(S * self._cos_g0 - V * self._sin_g0, np.cos(B * u / A)) / B
        return lon_rad, lat_rad
