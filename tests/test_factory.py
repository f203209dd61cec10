"""
Tests for the projection factory, automatic selection and batch transforms.
"""

import logging

import numpy as np
import pytest

from common.errors import ConfigurationError
from common.types import Direction, GeoPoint, ProjectionParameters
from geospatial.albers import AlbersEqualAreaConic
from geospatial.ellipsoid import BESSEL_1841, CLARKE_1866, GRS_1980, WGS_84
from geospatial.factory import (
    PROJECTION_KINDS,
    batch_project,
    batch_unproject,
    create_projection,
    select_projection,
)
from geospatial.lambert import LambertConformalConic
from geospatial.national_grids import OSGB, FrenchNTF, SwissGrid
from geospatial.oblique_mercator import ObliqueMercator
from geospatial.swiss import SwissObliqueCylindrical
from geospatial.transverse_mercator import UTM, TransverseMercator
from geospatial.web_mercator import WebMercator

SNYDER_LCC = ProjectionParameters(
    central_meridian=-96.0, origin_latitude=23.0, standard_parallels=(33.0, 45.0)
)
SNYDER_ALBERS = ProjectionParameters(
    central_meridian=-96.0, origin_latitude=23.0, standard_parallels=(29.5, 45.5)
)


class TestCreateProjection:
    """Test building projections by kind."""

    def test_kinds(self):
        assert set(PROJECTION_KINDS) == {
            "web_mercator", "lambert_conformal_conic", "albers_equal_area_conic",
            "albers_bc", "albers_us", "albers_us_conterminous", "transverse_mercator",
            "utm", "oblique_mercator", "swiss", "swiss_oblique_cylindrical", "swiss_grid",
            "french_ntf", "osgb",
        }

    def test_lambert_by_ellipsoid_name(self):
        """Snyder's Lambert example through the factory."""
        lcc = create_projection("lambert_conformal_conic", "clarke 1866", SNYDER_LCC)
        assert isinstance(lcc, LambertConformalConic)
        assert lcc.ellipsoid is CLARKE_1866
        p = lcc.to_projected(GeoPoint(-75.0, 35.0))
        assert p.easting == pytest.approx(1894410.9, abs=1.0)
        assert p.northing == pytest.approx(1564649.5, abs=1.0)

    def test_lambert_single_parallel(self):
        params = ProjectionParameters(central_meridian=-133.459, origin_latitude=12.19,
                                      standard_parallels=(25.0,))
        lcc = create_projection("lambert_conformal_conic", parameters=params)
        assert lcc.is_tangent

    def test_albers(self):
        albers = create_projection("Albers-Equal-Area-Conic", CLARKE_1866, SNYDER_ALBERS)
        assert isinstance(albers, AlbersEqualAreaConic)
        p = albers.to_projected(GeoPoint(-75.0, 35.0))
        assert p.easting == pytest.approx(1885472.7, abs=1.0)
        assert p.northing == pytest.approx(1535925.0, abs=1.0)

    @pytest.mark.parametrize("kind, key", [
        ("albers_bc", "bc"), ("albers_us", "us"), ("albers_us_conterminous", "us_conterminous"),
    ])
    def test_albers_presets(self, kind, key):
        albers = create_projection(kind)
        assert albers.parameters.zone == key
        assert albers.ellipsoid is GRS_1980

    def test_transverse_mercator(self):
        params = ProjectionParameters(central_meridian=9.0, scale_factor=0.9996,
                                      false_easting=500_000.0)
        tm = create_projection("transverse mercator", "wgs84", params)
        assert isinstance(tm, TransverseMercator)
        assert tm.to_projected(GeoPoint(9.0, 0.0)).easting == pytest.approx(500_000.0)

    @pytest.mark.parametrize("zone", ["32V", "32v", " 32 V "])
    def test_utm_from_zone_string(self, zone):
        utm = create_projection("utm", parameters=ProjectionParameters(zone=zone))
        assert isinstance(utm, UTM)
        assert utm.zone == "32V"

    def test_utm_from_options(self):
        utm = create_projection("utm", zone_number=34, zone_letter="H")
        assert utm.is_southern

    def test_oblique_mercator(self):
        params = ProjectionParameters(central_meridian=8.0, origin_latitude=46.0,
                                      azimuth=30.0)
        om = create_projection("oblique_mercator", BESSEL_1841, params)
        assert isinstance(om, ObliqueMercator)
        assert om.parameters.rectified_bearing == 30.0

    def test_swiss_oblique_cylindrical(self):
        params = ProjectionParameters(central_meridian=7.4395833333333333,
                                      origin_latitude=46.952405555555556,
                                      false_easting=2_600_000.0, false_northing=1_200_000.0)
        swiss = create_projection("swiss oblique cylindrical", BESSEL_1841, params)
        assert isinstance(swiss, SwissObliqueCylindrical)
        p = swiss.to_projected(GeoPoint(7.4395833333333333, 46.952405555555556))
        assert p.easting == pytest.approx(2_600_000.0, abs=1e-6)
        assert p.northing == pytest.approx(1_200_000.0, abs=1e-6)

    def test_swiss_grid(self):
        assert create_projection("swiss_grid").frame == "LV03"
        assert create_projection("swiss-grid", frame="lv95").frame == "LV95"
        grid = create_projection("swiss_grid", parameters=ProjectionParameters(zone="LV95"))
        assert isinstance(grid, SwissGrid)
        assert grid.frame == "LV95"

    def test_fixed_kinds(self):
        assert isinstance(create_projection("web_mercator"), WebMercator)
        assert isinstance(create_projection("swiss"), ObliqueMercator)
        assert isinstance(create_projection("osgb"), OSGB)
        assert create_projection("french_ntf").zone == "2e"
        assert create_projection("french_ntf", zone="III").zone == "3"
        ntf = create_projection("french_ntf", parameters=ProjectionParameters(zone="1"))
        assert isinstance(ntf, FrenchNTF)
        assert ntf.zone == "1"

    def test_direction_option(self):
        wm = create_projection("web_mercator", direction=Direction.TO_GEOGRAPHIC)
        assert wm.direction is Direction.TO_GEOGRAPHIC

    def test_equal_arguments_give_equal_outputs(self):
        first = create_projection("lambert_conformal_conic", "clarke 1866", SNYDER_LCC)
        second = create_projection("lambert_conformal_conic", "clarke 1866", SNYDER_LCC)
        assert first is not second
        point = GeoPoint(-100.0, 40.0)
        assert first.to_projected(point) == second.to_projected(point)

    @pytest.mark.parametrize("kind, ellipsoid, parameters, options", [
        ("mollweide", None, None, {}),
        ("lambert_conformal_conic", None, None, {}),
        ("lambert_conformal_conic", None, ProjectionParameters(), {}),
        ("lambert_conformal_conic", "no such ellipsoid", SNYDER_LCC, {}),
        ("oblique_mercator", None, ProjectionParameters(origin_latitude=46.0), {}),
        ("utm", None, ProjectionParameters(zone="32"), {}),
        ("utm", None, ProjectionParameters(zone="61N"), {}),
        ("web_mercator", WGS_84, None, {}),
        ("osgb", "airy", None, {}),
        ("swiss", None, None, {"unknown": 1}),
        ("french_ntf", None, None, {"zone": "9"}),
        ("swiss_grid", BESSEL_1841, None, {}),
        ("swiss_grid", None, None, {"frame": "LV85"}),
        ("swiss_oblique_cylindrical", None, None, {}),
    ])
    def test_configuration_errors(self, kind, ellipsoid, parameters, options):
        with pytest.raises(ConfigurationError):
            create_projection(kind, ellipsoid, parameters, **options)


class TestSelectProjection:
    """Test automatic selection for an extent."""

    def test_tall_extent_gives_transverse_mercator(self):
        projection = select_projection(40.0, 60.0, 0.0, 5.0)
        assert isinstance(projection, TransverseMercator)
        assert projection.parameters.central_meridian == 2.5
        assert projection.parameters.scale_factor == 0.9996

    def test_wide_extent_gives_lambert(self):
        projection = select_projection(30.0, 50.0, -120.0, -70.0)
        assert isinstance(projection, LambertConformalConic)
        params = projection.parameters
        assert params.central_meridian == -95.0
        assert params.origin_latitude == 40.0
        assert params.standard_parallels == pytest.approx((30.0 + 20.0 / 6, 50.0 - 20.0 / 6))

    def test_equatorial_extent_gives_transverse_mercator(self):
        """Parallels symmetric about the equator cannot define a cone."""
        projection = select_projection(-10.0, 10.0, -60.0, 60.0)
        assert isinstance(projection, TransverseMercator)

    def test_equal_area_gives_albers(self):
        projection = select_projection(30.0, 50.0, -120.0, -70.0, purpose="equal_area",
                                       ellipsoid=GRS_1980)
        assert isinstance(projection, AlbersEqualAreaConic)
        assert projection.preserves_area
        assert projection.ellipsoid is GRS_1980

    def test_selected_projection_works(self, north_america, assert_round_trip):
        projection = select_projection(20.0, 70.0, -170.0, -60.0)
        assert_round_trip(projection, north_america[2:])

    @pytest.mark.parametrize("args", [
        (50.0, 40.0, 0.0, 5.0),
        (40.0, 40.0, 0.0, 5.0),
        (-95.0, 40.0, 0.0, 5.0),
        (40.0, 50.0, 10.0, -10.0),
        (40.0, 50.0, 0.0, np.nan),
    ])
    def test_invalid_extent_rejected(self, args):
        with pytest.raises(ConfigurationError):
            select_projection(*args)

    def test_unknown_purpose_rejected(self):
        with pytest.raises(ConfigurationError):
            select_projection(40.0, 60.0, 0.0, 5.0, purpose="equidistant")

    def test_selection_is_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="geospatial.factory"):
            select_projection(30.0, 50.0, -120.0, -70.0)
        assert "Lambert Conformal Conic" in caplog.text


class TestBatchTransforms:
    """Test array transforms."""

    def test_matches_single_point(self):
        lcc = create_projection("lambert_conformal_conic", "clarke 1866", SNYDER_LCC)
        lons = np.array([-75.0, -100.0, -120.0])
        lats = np.array([35.0, 40.0, 45.0])
        eastings, northings = batch_project(lcc, lons, lats)
        for lon, lat, e, n in zip(lons, lats, eastings, northings):
            p = lcc.to_projected(GeoPoint(lon, lat))
            assert e == p.easting
            assert n == p.northing

    def test_rejected_points_are_nan(self):
        wm = WebMercator()
        eastings, northings = batch_project(wm, [0.0, 0.0, 200.0, np.nan], [0.0, 89.0, 0.0, 0.0])
        assert np.isfinite(eastings[0]) and np.isfinite(northings[0])
        assert np.all(np.isnan(eastings[1:]))
        assert np.all(np.isnan(northings[1:]))

    def test_broadcasting(self):
        wm = WebMercator()
        eastings, northings = batch_project(wm, [[-10.0], [10.0]], [0.0, 10.0, 20.0])
        assert eastings.shape == (2, 3)
        assert northings.shape == (2, 3)
        assert np.all(eastings[0] < 0)

    def test_round_trip(self):
        albers = create_projection("albers_us_conterminous")
        lons = np.linspace(-120.0, -70.0, 11)
        lats = np.linspace(25.0, 50.0, 11)
        eastings, northings = batch_project(albers, lons, lats)
        restored_lons, restored_lats = batch_unproject(albers, eastings, northings)
        np.testing.assert_allclose(restored_lons, lons, atol=1e-9)
        np.testing.assert_allclose(restored_lats, lats, atol=1e-9)

    def test_convergence_failure_is_nan(self):
        """A transform that does not converge is reported as NaN."""
        lcc = LambertConformalConic(33, -96, 23, 45, ellipsoid=CLARKE_1866, max_iterations=1)
        lons, lats = batch_unproject(lcc, [1894410.9], [1564649.5])
        assert np.isnan(lons[0])
        assert np.isnan(lats[0])
