"""
Shared utilities (NOT business logic).

Usage:
    from refuel.shared import haversine, distance_km, nearest_point_index
    from refuel.shared.exceptions import ParseError
"""
from .geo import (
    haversine,
    distance_km,
    nearest_point_index,
    min_distance_to_route,
    cumulative_distance_to,
    calculate_total_distance,
    points_equal,
    bounding_box,
    BoundingBox,
    EARTH_RADIUS_KM,
)
