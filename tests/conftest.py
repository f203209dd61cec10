"""
Shared fixtures for the projection engine test suite.

Point sets are longitude/latitude pairs in decimal degrees.
"""

import pytest

from common.types import GeoPoint


NORTH_AMERICA = [
    (-165.0, 65.0), (-180.0, 52.0), (-127.0, 59.0), (-157.0, 20.0),
    (-98.0, 26.0), (-68.0, 45.0), (-99.0, 39.0),
]

EUROPE = [
    (2.5, 51.0), (-4.8, 48.3), (8.0, 49.0), (2.9, 42.0),
    (8.5, 47.4), (6.0, 46.1), (10.5, 46.9),
]

GREAT_BRITAIN = [
    (-5.3, 50.0), (1.7, 52.7), (-4.8, 53.4), (-7.5, 57.6), (-0.9, 60.8),
]

WEB_MERCATOR = [
    (0.0, 0.0), (0.0, 52.0), (170.0, 80.0), (-170.0, -80.0),
    (-180.0, 80.0), (-0.0377655, 51.528625), (-100.33333, 24.381787),
]

OUT_OF_RANGE = [(0.0, -91.0), (0.0, 91.0), (-180.001, 0.0), (180.00001, 0.0)]


def longitude_difference(a: float, b: float) -> float:
    """Absolute difference of two longitudes in degrees, across the antimeridian."""
    diff = abs(a - b) % 360.0
    return min(diff, 360.0 - diff)


@pytest.fixture
def north_america():
    return [GeoPoint(lon, lat) for lon, lat in NORTH_AMERICA]


@pytest.fixture
def north_america_lambert():
    return [GeoPoint(lon, lat) for lon, lat in NORTH_AMERICA + [(-75.0, 35.0)]]


@pytest.fixture
def europe():
    return [GeoPoint(lon, lat) for lon, lat in EUROPE]


@pytest.fixture
def great_britain():
    return [GeoPoint(lon, lat) for lon, lat in EUROPE + GREAT_BRITAIN]


@pytest.fixture
def web_mercator_points():
    return [GeoPoint(lon, lat) for lon, lat in WEB_MERCATOR]


@pytest.fixture
def out_of_range():
    return [GeoPoint(lon, lat) for lon, lat in OUT_OF_RANGE]


@pytest.fixture
def assert_round_trip():
    """Assert that a projection returns every point within ``tolerance`` degrees."""
    def check(projection, points, tolerance=1e-3):
        for point in points:
            projected = projection.to_projected(point)
            assert projected is not None, f"{projection.name} rejected {point}"
            restored = projection.to_geographic(projected)
            assert restored is not None, f"{projection.name} could not invert {projected}"
            assert abs(restored.latitude - point.latitude) < tolerance, (point, restored)
            if abs(point.latitude) < 90.0:
                assert longitude_difference(restored.longitude, point.longitude) < tolerance, (
                    point, restored
                )
    return check


@pytest.fixture
def lon_diff():
    return longitude_difference

