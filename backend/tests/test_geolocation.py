from __future__ import annotations

import math

import pytest

from backend.app.services.geolocation import (
    calculate_distance,
    find_nearest_location,
    nearest_location_with_distance,
)
from conftest import make_location


@pytest.mark.parametrize(
    "a, b",
    [
        ((0.0, 0.0), (10.0, 10.0)),
        ((40.7128, -74.0060), (34.0522, -118.2437)),
        ((-33.8688, 151.2093), (51.5074, -0.1278)),
    ],
)
def test_distance_is_symmetric(a: tuple[float, float], b: tuple[float, float]) -> None:
    assert calculate_distance(*a, *b) == pytest.approx(calculate_distance(*b, *a))


def test_distance_to_same_point_is_zero() -> None:
    assert calculate_distance(38.8977, -77.0365, 38.8977, -77.0365) == 0


def test_distance_is_in_miles() -> None:
    # one degree of latitude along a meridian
    assert calculate_distance(0, 0, 1, 0) == pytest.approx(3959 * math.pi / 180)
    # New York -> Los Angeles is roughly 2,445 miles
    assert calculate_distance(40.7128, -74.0060, 34.0522, -118.2437) == pytest.approx(2445, rel=0.01)


def test_nearest_location_picks_closest() -> None:
    far = make_location("far", 10.0, 10.0)
    near = make_location("near", 0.0, 0.0)
    assert find_nearest_location(1.0, 1.0, [far, near]) is near


def test_nearest_location_empty_list() -> None:
    assert find_nearest_location(1.0, 1.0, []) is None


def test_nearest_location_ignores_missing_coordinates() -> None:
    only_lat = make_location("only-lat", 1.0, None)
    only_lon = make_location("only-lon", None, 1.0)
    neither = make_location("neither", None, None)
    assert find_nearest_location(1.0, 1.0, [only_lat, only_lon, neither]) is None

    placed = make_location("placed", 50.0, 50.0)
    result = find_nearest_location(1.0, 1.0, [only_lat, placed, only_lon])
    assert result is placed
    assert result.has_coordinates


def test_nearest_location_tie_keeps_first() -> None:
    first = make_location("first", 1.0, 0.0)
    second = make_location("second", -1.0, 0.0)
    assert find_nearest_location(0.0, 0.0, [first, second]) is first
    assert find_nearest_location(0.0, 0.0, [second, first]) is second


def test_nearest_location_with_distance_reports_miles() -> None:
    office = make_location("office", 0.0, 0.0)
    location, distance = nearest_location_with_distance(0.0, 1.0, [office])
    assert location is office
    assert distance == pytest.approx(calculate_distance(0.0, 1.0, 0.0, 0.0))
