"""
Tests for Transverse Mercator, UTM and UTM zone derivation.

The Transverse Mercator reference value is the Ordnance Survey worked
example (A Guide to Coordinate Systems in Great Britain, Annexe C):
52°39'27.2531"N 1°43'4.5177"E on Airy 1830 projects to
E 651409.903, N 313177.270.
"""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from common.constants import ProjectionConstants
from common.errors import ConfigurationError, ConvergenceError
from common.types import Direction, GeoPoint, ProjectedPoint
from geospatial.ellipsoid import AIRY_1830, WGS_84
from geospatial.transverse_mercator import (
    UTM,
    TransverseMercator,
    meridional_arc,
    solve_footpoint_latitude,
    utm_band_letter,
    utm_zone,
)


BAND_EDGE = ProjectionConstants.TRANSVERSE_MERCATOR_MAX_OFFSET.value - 0.05


def dms(degrees, minutes, seconds):
    return degrees + minutes / 60.0 + seconds / 3600.0


@pytest.fixture
def national_grid_tm():
    return TransverseMercator(
        -2.0, origin_latitude=49.0, scale_factor=0.9996012717,
        false_easting=400_000.0, false_northing=-100_000.0, ellipsoid=AIRY_1830
    )


class TestTransverseMercator:
    """Test the series Transverse Mercator."""

    def test_ordnance_survey_forward(self, national_grid_tm):
        """Ordnance Survey worked example."""
        point = GeoPoint(dms(1, 43, 4.5177), dms(52, 39, 27.2531))
        p = national_grid_tm.to_projected(point)
        assert p.easting == pytest.approx(651409.903, abs=0.01)
        assert p.northing == pytest.approx(313177.270, abs=0.01)

    def test_ordnance_survey_inverse(self, national_grid_tm):
        """Inverse of the Ordnance Survey worked example."""
        g = national_grid_tm.to_geographic(ProjectedPoint(651409.903, 313177.270))
        assert g.latitude == pytest.approx(dms(52, 39, 27.2531), abs=1e-7)
        assert g.longitude == pytest.approx(dms(1, 43, 4.5177), abs=1e-7)

    def test_central_meridian_scale(self):
        """On the central meridian the easting is the false easting."""
        tm = TransverseMercator(9.0)
        p = tm.to_projected(GeoPoint(9.0, 45.0))
        assert p.easting == pytest.approx(500_000.0, abs=1e-6)
        expected = meridional_arc(np.radians(45.0), 0.0, WGS_84, 0.9996)
        assert p.northing == pytest.approx(expected, abs=1e-6)

    def test_symmetric_about_central_meridian(self):
        """Points mirrored across the central meridian mirror their eastings."""
        tm = TransverseMercator(9.0)
        east = tm.to_projected(GeoPoint(11.0, 50.0))
        west = tm.to_projected(GeoPoint(7.0, 50.0))
        assert east.easting - 500_000.0 == pytest.approx(500_000.0 - west.easting, abs=1e-6)
        assert east.northing == pytest.approx(west.northing, abs=1e-6)

    def test_far_from_central_meridian_rejected(self):
        """More than 15° from the central meridian is outside the domain."""
        tm = TransverseMercator(0.0)
        assert tm.to_projected(GeoPoint(14.0, 10.0)) is not None
        assert tm.to_projected(GeoPoint(-14.0, 10.0)) is not None
        assert tm.to_projected(GeoPoint(16.0, 10.0)) is None
        assert tm.to_projected(GeoPoint(21.0, 0.0)) is None
        assert tm.to_projected(GeoPoint(-150.0, 10.0)) is None

    def test_whole_band_round_trips(self):
        """Every point of the accepted band round trips within 1e-3°."""
        utm = UTM(31, "N")
        limit = ProjectionConstants.TRANSVERSE_MERCATOR_MAX_OFFSET.value
        offsets = list(np.arange(0.0, limit, 1.0)) + [limit - 0.05]
        for offset in offsets:
            for lat in range(-84, 85, 2):
                for lon in (3.0 + offset, 3.0 - offset):
                    restored = utm.to_geographic(utm.to_projected(GeoPoint(lon, lat)))
                    assert restored is not None, (lon, lat)
                    assert restored.latitude == pytest.approx(lat, abs=1e-3), (lon, lat)
                    assert restored.longitude == pytest.approx(lon, abs=1e-3), (lon, lat)

    def test_pole_inverse_rejected(self):
        """Northings beyond the pole have no geographic counterpart."""
        tm = TransverseMercator(0.0)
        assert tm.to_geographic(ProjectedPoint(500_000.0, 2.0e7)) is None

    def test_reference_points_round_trip(self, great_britain, assert_round_trip, national_grid_tm):
        """European and British points round trip on the national grid parameters."""
        assert_round_trip(national_grid_tm, great_britain)

    def test_invalid_scale_factor_rejected(self):
        with pytest.raises(ConfigurationError):
            TransverseMercator(0.0, scale_factor=0.0)

    @given(
        offset=st.floats(min_value=-3.0, max_value=3.0),
        lat=st.floats(min_value=-80.0, max_value=84.0),
    )
    @settings(deadline=None, max_examples=200)
    def test_round_trip_property(self, offset, lat):
        """Points within 3° of the central meridian round trip to 1e-7°."""
        tm = TransverseMercator(15.0)
        restored = tm.to_geographic(tm.to_projected(GeoPoint(15.0 + offset, lat)))
        assert restored.latitude == pytest.approx(lat, abs=1e-7)
        assert restored.longitude == pytest.approx(15.0 + offset, abs=1e-7)

    @given(
        offset=st.floats(min_value=-BAND_EDGE, max_value=BAND_EDGE),
        lat=st.floats(min_value=-84.0, max_value=84.0),
    )
    @settings(deadline=None, max_examples=300)
    def test_round_trip_property_full_band(self, offset, lat):
        """Anywhere in the accepted band the round trip holds to 1e-3°."""
        tm = TransverseMercator(15.0)
        restored = tm.to_geographic(tm.to_projected(GeoPoint(15.0 + offset, lat)))
        assert restored is not None
        assert restored.latitude == pytest.approx(lat, abs=1e-3)
        assert restored.longitude == pytest.approx(15.0 + offset, abs=1e-3)


class TestFootpointLatitude:
    """Test the bounded footpoint iteration."""

    def test_inverts_meridional_arc(self):
        """The footpoint of M(φ) is φ."""
        phi = np.radians(52.0)
        arc = meridional_arc(phi, 0.0, WGS_84, 0.9996)
        footpoint = solve_footpoint_latitude(arc, 0.0, WGS_84, 0.9996)
        assert footpoint == pytest.approx(phi, abs=1e-10)

    def test_iteration_cap_raises(self):
        """One correction cannot reach 0.1 mm at 52°N."""
        arc = meridional_arc(np.radians(52.0), 0.0, WGS_84, 0.9996)
        with pytest.raises(ConvergenceError) as excinfo:
            solve_footpoint_latitude(arc, 0.0, WGS_84, 0.9996, max_iterations=1)
        assert excinfo.value.residual > 1e-4


class TestUTMZone:
    """Test zone derivation."""

    @pytest.mark.parametrize("lat, lon, expected", [
        (60.0, 7.0, (32, "V")),      # Norway exception
        (60.0, 2.0, (31, "V")),
        (78.0, 15.0, (33, "X")),     # Svalbard
        (78.0, 8.0, (31, "X")),
        (78.0, 40.0, (37, "X")),
        (0.0, 0.0, (31, "N")),
        (-33.9, 18.4, (34, "H")),
        (51.5, -0.12, (30, "U")),
        (-80.0, -180.0, (1, "C")),
        (84.0, 179.9, (60, "X")),
    ])
    def test_zones(self, lat, lon, expected):
        assert utm_zone(lat, lon) == expected

    def test_outside_band_limits(self):
        """Outside 80°S to 84°N the band letter is Z."""
        assert utm_band_letter(85.0) == "Z"
        assert utm_band_letter(-81.0) == "Z"

    def test_longitude_wraps(self):
        """180°E is the same zone as 180°W."""
        assert utm_zone(10.0, 180.0) == utm_zone(10.0, -180.0)

    def test_non_finite_rejected(self):
        with pytest.raises(ConfigurationError):
            utm_zone(np.nan, 0.0)


class TestUTM:
    """Test the UTM projection."""

    def test_zone_central_meridian(self):
        """Zone 32 has its central meridian at 9°E."""
        utm = UTM(32, "U")
        assert utm.parameters.central_meridian == 9.0
        assert utm.parameters.scale_factor == 0.9996
        assert utm.parameters.false_easting == 500_000.0
        assert utm.parameters.zone == "32U"

    def test_equator_on_central_meridian(self):
        """The equator on the central meridian is (500000, 0)."""
        p = UTM(31, "N").to_projected(GeoPoint(3.0, 0.0))
        assert p.easting == pytest.approx(500_000.0, abs=1e-6)
        assert p.northing == pytest.approx(0.0, abs=1e-6)

    def test_southern_false_northing(self):
        """Bands C to M carry a 10,000 km false northing."""
        south = UTM(34, "H")
        assert south.is_southern
        assert south.parameters.false_northing == 10_000_000.0
        p = south.to_projected(GeoPoint(21.0, 0.0))
        assert p.northing == pytest.approx(10_000_000.0, abs=1e-6)
        assert not UTM(34, "N").is_southern

    def test_southern_round_trip(self, assert_round_trip):
        """Southern hemisphere points round trip in a southern zone."""
        cape_town = GeoPoint(18.4, -33.9)
        assert_round_trip(UTM(34, "H"), [cape_town], tolerance=1e-7)

    @given(
        zone=st.integers(min_value=1, max_value=60),
        letter=st.sampled_from("CDEFGHJKLM"),
        offset=st.floats(min_value=-BAND_EDGE, max_value=BAND_EDGE),
        lat=st.floats(min_value=-80.0, max_value=0.0),
    )
    @settings(deadline=None, max_examples=200)
    def test_southern_round_trip_property(self, zone, letter, offset, lat):
        """Southern zones round trip to 1e-3° across the whole band."""
        utm = UTM(zone, letter)
        lon = (utm.parameters.central_meridian + offset + 180.0) % 360.0 - 180.0
        restored = utm.to_geographic(utm.to_projected(GeoPoint(lon, lat)))
        assert restored is not None
        assert restored.latitude == pytest.approx(lat, abs=1e-3)
        dlon = (restored.longitude - lon + 180.0) % 360.0 - 180.0
        assert dlon == pytest.approx(0.0, abs=1e-3)

    def test_for_location(self):
        """for_location picks the zone containing the point."""
        utm = UTM.for_location(60.0, 7.0)
        assert (utm.zone_number, utm.zone_letter) == (32, "V")
        assert utm.name == "UTM zone 32V"

    def test_with_zone_returns_new_instance(self):
        """with_zone leaves the original untouched."""
        utm = UTM(32, "U", direction=Direction.TO_GEOGRAPHIC)
        other = utm.with_zone(33, "u")
        assert other is not utm
        assert other.zone == "33U"
        assert utm.zone == "32U"
        assert other.direction is Direction.TO_GEOGRAPHIC
        assert other.ellipsoid is utm.ellipsoid

    @pytest.mark.parametrize("number, letter", [
        (0, "N"), (61, "N"), (32, "I"), (32, "O"), (32, "Y"), (32, "Z"), (32, "NN"), (32.0, "N"),
    ])
    def test_invalid_zone_rejected(self, number, letter):
        with pytest.raises(ConfigurationError):
            UTM(number, letter)
