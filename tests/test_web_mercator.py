"""
Tests for the Web (spherical) Mercator projection.
"""

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from common.types import Direction, GeoPoint, ProjectedPoint
from geospatial.web_mercator import WebMercator

HALF_CIRCUMFERENCE = np.pi * 6378137.0


class TestWebMercatorForward:
    """Test the forward transform against closed-form values."""

    def test_origin(self):
        """The origin maps to (0, 0)."""
        p = WebMercator().to_projected(GeoPoint(0.0, 0.0))
        assert p.easting == pytest.approx(0.0, abs=1e-9)
        assert p.northing == pytest.approx(0.0, abs=1e-9)

    def test_antimeridian_easting(self):
        """±180° map to ±πR."""
        wm = WebMercator()
        assert wm.to_projected(GeoPoint(180.0, 0.0)).easting == pytest.approx(HALF_CIRCUMFERENCE)
        assert wm.to_projected(GeoPoint(-180.0, 0.0)).easting == pytest.approx(-HALF_CIRCUMFERENCE)

    def test_northing_formula(self):
        """y = R ln tan(π/4 + φ/2)."""
        p = WebMercator().to_projected(GeoPoint(-0.0377655, 51.528625))
        expected = 6378137.0 * np.log(np.tan(np.pi / 4 + np.radians(51.528625) / 2))
        assert p.northing == pytest.approx(expected, rel=1e-12)
        assert p.easting == pytest.approx(6378137.0 * np.radians(-0.0377655), rel=1e-12)

    def test_symmetric_about_equator(self):
        """Northings of ±φ are opposite."""
        wm = WebMercator()
        north = wm.to_projected(GeoPoint(-170.0, 80.0))
        south = wm.to_projected(GeoPoint(-170.0, -80.0))
        assert north.northing == pytest.approx(-south.northing)


class TestWebMercatorDomain:
    """Test domain rejections."""

    def test_latitude_limit(self):
        """±88° is accepted, anything beyond is rejected."""
        wm = WebMercator()
        assert wm.to_projected(GeoPoint(0.0, 88.0)) is not None
        assert wm.to_projected(GeoPoint(0.0, -88.0)) is not None
        assert wm.to_projected(GeoPoint(0.0, 88.5)) is None
        assert wm.to_projected(GeoPoint(0.0, -90.0)) is None

    def test_out_of_range_points(self, out_of_range):
        """Points outside the longitude/latitude range are rejected."""
        wm = WebMercator()
        for point in out_of_range:
            assert wm.to_projected(point) is None

    def test_inverse_beyond_limits(self):
        """Positions beyond the map edges have no geographic counterpart."""
        wm = WebMercator()
        assert wm.to_geographic(ProjectedPoint(HALF_CIRCUMFERENCE * 1.01, 0.0)) is None
        assert wm.to_geographic(ProjectedPoint(0.0, 3.0e7)) is None


class TestWebMercatorRoundTrip:
    """Test forward/inverse consistency."""

    def test_reference_points(self, web_mercator_points, assert_round_trip):
        """The reference points round trip within 0.001°."""
        assert_round_trip(WebMercator(), web_mercator_points)

    @given(
        lon=st.floats(min_value=-180.0, max_value=180.0),
        lat=st.floats(min_value=-88.0, max_value=88.0),
    )
    @settings(deadline=None, max_examples=200)
    def test_round_trip_property(self, lon, lat):
        """Every point inside the domain round trips to 1e-9°."""
        wm = WebMercator()
        restored = wm.to_geographic(wm.to_projected(GeoPoint(lon, lat)))
        assert restored.latitude == pytest.approx(lat, abs=1e-9)
        assert restored.longitude == pytest.approx(lon, abs=1e-9)


class TestWebMercatorDescription:
    """Test descriptive properties."""

    def test_metadata(self):
        """Name, conformality and description follow the direction."""
        wm = WebMercator()
        assert wm.name == "Web Mercator"
        assert wm.preserves_angles
        assert not wm.preserves_area
        assert wm.description == "Longitude/latitude to Web Mercator transformation."

    def test_inverse_description(self):
        """An inverse instance describes the opposite direction."""
        wm = WebMercator(Direction.TO_GEOGRAPHIC)
        assert wm.description == "Web Mercator to longitude/latitude transformation."
