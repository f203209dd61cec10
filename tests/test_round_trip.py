"""
Tests for the round-trip validation checker.
"""

import logging

import pytest

from common.errors import ConfigurationError, ProjectionError
from common.types import GeoPoint
from geospatial.ellipsoid import CLARKE_1866
from geospatial.lambert import LambertConformalConic
from geospatial.transverse_mercator import UTM
from geospatial.web_mercator import WebMercator
from validation.round_trip import RoundTripChecker, ValidationResult


class TestRoundTripChecker:
    """Test forward/inverse consistency checks."""

    def test_passes_for_reference_points(self, web_mercator_points):
        result = RoundTripChecker().check(WebMercator(), web_mercator_points)
        assert isinstance(result, ValidationResult)
        assert result.passed
        assert result.test_name == "round_trip[Web Mercator]"
        assert result.details['num_points'] == len(web_mercator_points)
        assert result.details['max_latitude_residual'] < 1e-9
        assert result.details['max_longitude_residual'] < 1e-9
        assert result.details['rejected'] == []

    def test_accepts_tuples(self):
        result = RoundTripChecker().check(WebMercator(), [(10.0, 20.0), (-30.0, -40.0)])
        assert result.passed
        assert result.details['num_points'] == 2

    def test_rejected_points_fail(self):
        checker = RoundTripChecker(log_violations=False)
        result = checker.check(WebMercator(), [GeoPoint(0.0, 0.0), GeoPoint(0.0, 89.0)])
        assert not result.passed
        assert result.details['rejected'] == [GeoPoint(0.0, 89.0)]
        assert "1 rejected" in result.message

    def test_convergence_failure_counts_as_rejected(self):
        lcc = LambertConformalConic(33, -96, 23, 45, ellipsoid=CLARKE_1866, max_iterations=1)
        result = RoundTripChecker(log_violations=False).check(lcc, [GeoPoint(-75.0, 35.0)])
        assert not result.passed
        assert len(result.details['rejected']) == 1

    def test_strict_mode_raises(self):
        checker = RoundTripChecker(strict_mode=True, log_violations=False)
        with pytest.raises(ProjectionError):
            checker.check(WebMercator(), [GeoPoint(0.0, 89.0)])

    def test_violations_are_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="RoundTripChecker"):
            RoundTripChecker().check(WebMercator(), [GeoPoint(0.0, 89.0)])
        assert any(record.name == "RoundTripChecker" for record in caplog.records)
        assert "did not round trip" in caplog.text

    def test_check_all(self, great_britain):
        results = RoundTripChecker().check_all([UTM(30, "U"), UTM(31, "U")], great_britain)
        assert len(results) == 2
        assert all(result.passed for result in results)

    @pytest.mark.parametrize("tolerance", [0.0, -1.0, float("nan")])
    def test_invalid_tolerance_rejected(self, tolerance):
        with pytest.raises(ConfigurationError):
            RoundTripChecker(tolerance=tolerance)
