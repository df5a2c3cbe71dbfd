"""GeoJSON constants."""

# GeoJSON type tag accepted for restaurant locations
POINT = "Point"

# Default radius for location queries, in metres
DEFAULT_MAX_DISTANCE_METERS = 10000
