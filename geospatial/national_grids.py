"""
National Grid Projections with Datum Shifts.

Grids whose projection is defined on a local ellipsoid rather than on the
WGS84 frame callers supply coordinates in. Each wraps the shared projection
mathematics with a datum shift: forward transforms move the WGS84 position
onto the local datum before projecting, inverse transforms move the result
back to WGS84.

Grids
-----
- French NTF Lambert zones I, II, III, IV and II étendu on Clarke 1880,
  longitudes measured from Greenwich with the central meridian on Paris.
- Ordnance Survey National Grid of Great Britain on Airy 1830.
- Swiss CH1903 grid (LV03, or LV95 false origin) on Bessel 1841.

Notes
-----
The datum shift is the three-parameter translation from
:mod:`geospatial.datum`; its accuracy is a few meters, far below the
accuracy of the national realisations (NTF grid, OSTN15).

References
----------
- IGN (1995). NTF: Système géodésique, Notes techniques NT/G 71.
- Ordnance Survey (2020). A Guide to Coordinate Systems in Great Britain.
- swisstopo (2016). Formulas and constants for the calculation of the Swiss
  conformal cylindrical projection.
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple, Union

from common.constants import ProjectionConstants
from common.errors import ConfigurationError
from common.logging_config import get_logger
from common.types import Direction, GeoPoint, ProjectionParameters
from geospatial.datum import find_datum_shift, shift_datum
from geospatial.ellipsoid import AIRY_1830, BESSEL_1841, CLARKE_1880, WGS_84, Ellipsoid
from geospatial.lambert import LambertConformalConic
from geospatial.swiss import SwissObliqueCylindrical
from geospatial.transverse_mercator import TransverseMercator

logger = get_logger(__name__)


def _to_local(lon_rad: float, lat_rad: float, ellipsoid: Ellipsoid) -> Tuple[float, float]:
    shifted = shift_datum(GeoPoint.from_radians(lon_rad, lat_rad), WGS_84, ellipsoid)
    return shifted.to_radians()


def _to_wgs84(lon_rad: float, lat_rad: float, ellipsoid: Ellipsoid) -> Tuple[float, float]:
    shifted = shift_datum(GeoPoint.from_radians(lon_rad, lat_rad), ellipsoid, WGS_84)
    return shifted.to_radians()


def _towgs84(ellipsoid: Ellipsoid) -> str:
    dx, dy, dz = find_datum_shift(ellipsoid).translation
    return f"+towgs84={dx!r},{dy!r},{dz!r},0,0,0,0"


# =============================================================================
# French NTF Lambert zones
# =============================================================================

@dataclass(frozen=True)
class NTFZone:
    """Lambert parameters of one NTF zone (degrees and meters)."""
    key: str
    label: str
    origin_latitude: float
    standard_parallel_1: float
    standard_parallel_2: float
    false_easting: float
    false_northing: float


NTF_ZONES: Dict[str, NTFZone] = {
    zone.key: zone for zone in (
        NTFZone("1", "I", 49.5, 50.39591167, 48.59852278, 600_000.0, 200_000.0),
        NTFZone("2", "II", 46.8, 47.69601444, 45.89891889, 600_000.0, 200_000.0),
        NTFZone("3", "III", 44.1, 44.99609389, 43.19929139, 600_000.0, 200_000.0),
        NTFZone("4", "IV", 42.165, 42.76766333, 41.56038778, 234_358.0, 185_861.369),
        NTFZone("2e", "II étendu", 46.8, 47.69601444, 45.89891889, 600_000.0, 2_200_000.0),
    )
}

_ROMAN_ZONES = {"i": "1", "ii": "2", "iii": "3", "iv": "4", "iie": "2e"}


def get_ntf_zone(zone: Union[str, int]) -> NTFZone:
    """Look up an NTF zone by number or Roman numeral (case-insensitive).

    Raises
    ------
    ConfigurationError
        If the zone is not one of 1, 2, 3, 4, 2e (I, II, III, IV, IIe).
    """
    key = str(zone).strip().lower()
    key = _ROMAN_ZONES.get(key, key)
    if key not in NTF_ZONES:
        raise ConfigurationError(
            f"Unknown NTF Lambert zone '{zone}'. Available: {', '.join(NTF_ZONES)}"
        )
    return NTF_ZONES[key]


class FrenchNTF(LambertConformalConic):
    """French NTF Lambert grid for one zone.

    Parameters
    ----------
    zone : str or int
        ``"1"``, ``"2"``, ``"3"``, ``"4"`` or ``"2e"`` (or I, II, III, IV,
        IIe). Default: Lambert II étendu, the zone covering all of France.
    direction : Direction
        Direction of :meth:`transform_coords`.

    Examples
    --------
    >>> ntf = FrenchNTF("2e")
    >>> ntf.zone_number, ntf.zone_letter
    (2, 'e')
    """

    def __init__(
        self,
        zone: Union[str, int] = "2e",
        direction: Direction = Direction.FROM_GEOGRAPHIC,
        **solver_options
    ):
        self._zone = get_ntf_zone(zone)
        super().__init__(
            standard_parallel_1=self._zone.standard_parallel_1,
            central_meridian=ProjectionConstants.PARIS_MERIDIAN.value,
            origin_latitude=self._zone.origin_latitude,
            standard_parallel_2=self._zone.standard_parallel_2,
            ellipsoid=CLARKE_1880,
            false_easting=self._zone.false_easting,
            false_northing=self._zone.false_northing,
            direction=direction,
            **solver_options
        )

    def with_zone(self, zone: Union[str, int]) -> 'FrenchNTF':
        """Same grid for another zone."""
        return FrenchNTF(zone, self._direction, tolerance=self._tolerance,
                         max_iterations=self._max_iterations)

    @property
    def zone_number(self) -> int:
        return int(self._zone.key[0])

    @property
    def zone_letter(self) -> str:
        """``"e"`` for Lambert II étendu, empty otherwise."""
        return self._zone.key[1:]

    @property
    def zone(self) -> str:
        return self._zone.key

    @property
    def name(self) -> str:
        return f"NTF Lambert zone {self._zone.label}"

    @property
    def parameters(self) -> ProjectionParameters:
        return replace(super().parameters, zone=self._zone.key)

    @property
    def geographic_ellipsoid(self) -> Ellipsoid:
        return WGS_84

    @property
    def proj4_string(self) -> str:
        return f"{super().proj4_string} {_towgs84(CLARKE_1880)}"

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        return super()._project(*_to_local(lon_rad, lat_rad, CLARKE_1880))

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        result = super()._unproject(easting, northing)
        if result is None:
            return None
        return _to_wgs84(*result, CLARKE_1880)


# =============================================================================
# Ordnance Survey National Grid
# =============================================================================

OSGB_SCALE_FACTOR = 0.9996012717
OSGB_ORIGIN_LATITUDE = 49.0
OSGB_CENTRAL_MERIDIAN = -2.0
OSGB_FALSE_EASTING = 400_000.0
OSGB_FALSE_NORTHING = -100_000.0


class OSGB(TransverseMercator):
    """Ordnance Survey National Grid (OSGB36 / British National Grid).

    Transverse Mercator on Airy 1830 with true origin 49°N 2°W, scale
    0.9996012717 and false origin 400 km west, 100 km north of it.
    """

    def __init__(self, direction: Direction = Direction.FROM_GEOGRAPHIC, **solver_options):
        super().__init__(
            central_meridian=OSGB_CENTRAL_MERIDIAN,
            origin_latitude=OSGB_ORIGIN_LATITUDE,
            scale_factor=OSGB_SCALE_FACTOR,
            false_easting=OSGB_FALSE_EASTING,
            false_northing=OSGB_FALSE_NORTHING,
            ellipsoid=AIRY_1830,
            direction=direction,
            **solver_options
        )

    @property
    def name(self) -> str:
        return "Ordnance Survey National Grid"

    @property
    def geographic_ellipsoid(self) -> Ellipsoid:
        return WGS_84

    @property
    def proj4_string(self) -> str:
        return f"{super().proj4_string} {_towgs84(AIRY_1830)}"

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        return super()._project(*_to_local(lon_rad, lat_rad, AIRY_1830))

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        result = super()._unproject(easting, northing)
        if result is None:
            return None
        return _to_wgs84(*result, AIRY_1830)


# =============================================================================
# Swiss CH1903 grid
# =============================================================================

SWISS_FRAMES: Dict[str, Tuple[float, float]] = {
    "LV03": (600_000.0, 200_000.0),
    "LV95": (2_600_000.0, 1_200_000.0),
}


class SwissGrid(SwissObliqueCylindrical):
    """Swiss national grid (CH1903) on Bessel 1841.

    The oblique conformal cylindrical projection centred on the old
    observatory of Bern. LV03 places Bern at (600 km, 200 km), LV95 at
    (2600 km, 1200 km); the two frames differ by their false origin only.

    Parameters
    ----------
    frame : str
        ``"LV03"`` (default) or ``"LV95"`` (case-insensitive).
    direction : Direction
        Direction of :meth:`transform_coords`.

    Raises
    ------
    ConfigurationError
        If the frame is unknown.
    """

    def __init__(
        self,
        frame: str = "LV03",
        direction: Direction = Direction.FROM_GEOGRAPHIC,
        **solver_options
    ):
        key = str(frame).strip().upper()
        if key not in SWISS_FRAMES:
            raise ConfigurationError(
                f"Unknown Swiss frame '{frame}'. Available: {', '.join(SWISS_FRAMES)}"
            )
        self._frame = key
        false_easting, false_northing = SWISS_FRAMES[key]
        super().__init__(
            false_easting=false_easting,
            false_northing=false_northing,
            ellipsoid=BESSEL_1841,
            direction=direction,
            **solver_options
        )

    @property
    def frame(self) -> str:
        return self._frame

    @property
    def name(self) -> str:
        return f"Swiss CH1903 {self._frame}"

    @property
    def parameters(self) -> ProjectionParameters:
        return replace(super().parameters, zone=self._frame)

    @property
    def geographic_ellipsoid(self) -> Ellipsoid:
        return WGS_84

    @property
    def proj4_string(self) -> str:
        return f"{super().proj4_string} {_towgs84(BESSEL_1841)}"

    def _project(self, lon_rad: float, lat_rad: float) -> Optional[Tuple[float, float]]:
        return super()._project(*_to_local(lon_rad, lat_rad, BESSEL_1841))

    def _unproject(self, easting: float, northing: float) -> Optional[Tuple[float, float]]:
        result = super()._unproject(easting, northing)
        if result is None:
            return None
        return _to_wgs84(*result, BESSEL_1841)
