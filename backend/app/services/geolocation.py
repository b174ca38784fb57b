"""
Distance and nearest-facility helpers.
Distances use the haversine formula and are reported in miles.
"""

import math
from collections.abc import Iterable

from ..schemas.place import Location

EARTH_RADIUS_MILES = 3959


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points.

    Args:
        lat1: latitude of the first point (degrees)
        lon1: longitude of the first point (degrees)
        lat2: latitude of the second point (degrees)
        lon2: longitude of the second point (degrees)

    Returns:
        distance in miles
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_MILES * c


def nearest_location_with_distance(
    latitude: float, longitude: float, locations: Iterable[Location]
) -> tuple[Location, float] | None:
    """
    Nearest facility to the given point together with its distance in miles.

    Facilities missing either coordinate are skipped. On a tie the first
    facility in input order is kept.
    """
    nearest: tuple[Location, float] | None = None
    for location in locations:
        if not location.has_coordinates:
            continue
        distance = calculate_distance(latitude, longitude, location.latitude, location.longitude)
        if nearest is None or distance < nearest[1]:
            nearest = (location, distance)
    return nearest


def find_nearest_location(latitude: float, longitude: float, locations: Iterable[Location]) -> Location | None:
    match = nearest_location_with_distance(latitude, longitude, locations)
    return match[0] if match else None
