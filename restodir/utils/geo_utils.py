"""
Geographic utility functions for distance calculations and location-based operations.
"""

import math
from typing import Optional, Sequence

# Mean radius of Earth in metres
EARTH_RADIUS_M = 6371008.8


def calculate_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the distance between two points on Earth using the Haversine formula.

    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point

    Returns:
        Distance in metres
    """
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return EARTH_RADIUS_M * c


def point_distance_m(a: Sequence[float], b: Sequence[float]) -> float:
    """Distance in metres between two GeoJSON ``[longitude, latitude]`` pairs."""
    return calculate_distance_m(a[1], a[0], b[1], b[0])


def validate_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    """
    Validate that coordinates are within valid ranges.

    Args:
        latitude: Latitude value
        longitude: Longitude value

    Returns:
        True if coordinates are valid, False otherwise
    """
    if latitude is None or longitude is None:
        return False

    return -90 <= latitude <= 90 and -180 <= longitude <= 180
