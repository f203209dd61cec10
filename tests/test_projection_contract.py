"""
Tests for the behaviour every projection shares: type checks, direction
dispatch, the domain policy, description and logging.
"""

import logging

import numpy as np
import pytest
from pyproj import CRS

from common.errors import ConfigurationError
from common.types import Direction, GeoPoint, ProjectedPoint
from geospatial.albers import AlbersEqualAreaConic
from geospatial.ellipsoid import CLARKE_1866
from geospatial.lambert import LambertConformalConic
from geospatial.national_grids import OSGB, FrenchNTF, SwissGrid
from geospatial.oblique_mercator import ObliqueMercator
from geospatial.projections import MapProjection, wrap_longitude
from geospatial.swiss import SwissObliqueCylindrical
from geospatial.transverse_mercator import UTM, TransverseMercator
from geospatial.web_mercator import WebMercator


def all_projections(direction=Direction.FROM_GEOGRAPHIC):
    return [
        WebMercator(direction),
        LambertConformalConic(33, -96, 23, 45, ellipsoid=CLARKE_1866, direction=direction),
        AlbersEqualAreaConic.from_preset("us", direction),
        TransverseMercator(9.0, direction=direction),
        UTM(32, "U", direction=direction),
        ObliqueMercator.swiss(direction),
        FrenchNTF("2e", direction),
        OSGB(direction),
        SwissObliqueCylindrical(direction=direction),
        SwissGrid("LV95", direction),
    ]


PROJECTION_IDS = [
    "web_mercator", "lambert", "albers", "transverse_mercator", "utm", "swiss", "ntf", "osgb",
    "swiss_oblique_cylindrical", "swiss_grid",
]


class TestPointTypes:
    """Transforms accept only the matching point type."""

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    def test_forward_rejects_projected_point(self, projection):
        with pytest.raises(TypeError):
            projection.to_projected(ProjectedPoint(0.0, 0.0))

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    def test_inverse_rejects_geo_point(self, projection):
        with pytest.raises(TypeError):
            projection.to_geographic(GeoPoint(0.0, 0.0))

    def test_tuples_rejected(self):
        with pytest.raises(TypeError):
            WebMercator().to_projected((0.0, 0.0))

    def test_direction_mismatch_rejected(self):
        """An inverse instance cannot transform a geographic point."""
        with pytest.raises(TypeError):
            WebMercator(Direction.TO_GEOGRAPHIC).transform_coords(GeoPoint(0.0, 0.0))


class TestDirection:
    """Test direction dispatch."""

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    def test_forward_dispatch(self, projection):
        point = GeoPoint(8.0, 47.0)
        assert projection.transform_coords(point) == projection.to_projected(point)
        projected = projection.to_projected(point)
        assert projection.inv_transform_coords(projected) == projection.to_geographic(projected)

    @pytest.mark.parametrize("projection", all_projections(Direction.TO_GEOGRAPHIC),
                             ids=PROJECTION_IDS)
    def test_inverse_dispatch(self, projection):
        point = GeoPoint(8.0, 47.0)
        projected = projection.inv_transform_coords(point)
        assert projected == projection.to_projected(point)
        assert projection.transform_coords(projected) == projection.to_geographic(projected)

    def test_invalid_direction_rejected(self):
        with pytest.raises(ConfigurationError):
            WebMercator("forward")

    def test_repr(self):
        text = repr(UTM(32, "U", direction=Direction.TO_GEOGRAPHIC))
        assert "UTM zone 32U" in text
        assert "projected to geographic" in text


class TestDomainPolicy:
    """Out-of-domain points give None and a warning."""

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    @pytest.mark.parametrize("lon, lat", [
        (np.nan, 45.0), (0.0, np.inf), (-np.inf, 0.0), (0.0, 91.0), (181.0, 0.0),
    ])
    def test_invalid_input_rejected(self, projection, lon, lat):
        assert projection.to_projected(GeoPoint(lon, lat)) is None

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    def test_non_finite_projected_rejected(self, projection):
        assert projection.to_geographic(ProjectedPoint(np.nan, 0.0)) is None
        assert projection.to_geographic(ProjectedPoint(0.0, np.inf)) is None

    def test_rejection_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="geospatial.projections"):
            assert WebMercator().to_projected(GeoPoint(0.0, 89.0)) is None
        assert "Web Mercator" in caplog.text
        assert "outside the projection domain" in caplog.text

    def test_non_finite_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="geospatial.projections"):
            WebMercator().to_projected(GeoPoint(np.nan, 0.0))
        assert "non-finite" in caplog.text

    def test_no_clamping(self):
        """A latitude just outside the range is rejected, not clamped."""
        assert WebMercator().to_projected(GeoPoint(0.0, 90.0000001)) is None

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    def test_outputs_are_finite(self, projection):
        p = projection.to_projected(GeoPoint(8.0, 47.0))
        assert p is not None
        assert p.is_finite()


class TestDescription:
    """Test metadata shared by all projections."""

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    def test_description(self, projection):
        assert projection.description == (
            f"Longitude/latitude to {projection.name} transformation."
        )

    @pytest.mark.parametrize("projection", all_projections(Direction.TO_GEOGRAPHIC),
                             ids=PROJECTION_IDS)
    def test_inverse_description(self, projection):
        assert projection.description == (
            f"{projection.name} to longitude/latitude transformation."
        )

    def test_do_interpolation(self):
        wm = WebMercator()
        assert wm.do_interpolation
        wm.do_interpolation = False
        assert not wm.do_interpolation

    @pytest.mark.parametrize("projection", all_projections(), ids=PROJECTION_IDS)
    def test_is_map_projection(self, projection):
        assert isinstance(projection, MapProjection)
        assert projection.preserves_angles != projection.preserves_area

    @pytest.mark.parametrize("projection", all_projections()[:5], ids=PROJECTION_IDS[:5])
    def test_to_crs(self, projection):
        crs = projection.to_crs()
        assert isinstance(crs, CRS)
        assert crs.is_projected

    def test_abstract(self):
        with pytest.raises(TypeError):
            MapProjection(CLARKE_1866)


class TestWrapLongitude:
    """Test longitude normalisation."""

    @pytest.mark.parametrize("value, expected", [
        (0.0, 0.0), (np.pi, np.pi), (-np.pi, -np.pi), (3 * np.pi / 2, -np.pi / 2),
        (-3 * np.pi / 2, np.pi / 2), (np.pi + 1e-14, np.pi),
    ])
    def test_wrap(self, value, expected):
        assert wrap_longitude(value) == pytest.approx(expected, abs=1e-12)
