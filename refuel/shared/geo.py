"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from .constants import KM_PER_DEGREE

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(a, b) -> float:
    """Haversine distance between two GeoPoint-like objects."""
    return haversine(a.latitude, a.longitude, b.latitude, b.longitude)


def nearest_point_index(point, route: Sequence) -> int:
    """
    Index of the route point closest to `point`.

    Ties resolve to the lowest index.

    Raises:
        ValueError: If route is empty
    """
    if not route:
        raise ValueError("Route must contain at least one point")

    best_index = 0
    best_distance = math.inf

    for i, route_point in enumerate(route):
        d = distance_km(point, route_point)
        if d < best_distance:
            best_distance = d
            best_index = i

    return best_index


def min_distance_to_route(point, route: Sequence) -> float:
    """Smallest distance (km) from point to any route point."""
    return min(distance_km(point, route_point) for route_point in route)


def cumulative_distance_to(index: int, route: Sequence) -> float:
    """
    Path length from the first route point up to route[index].

    Args:
        index: Target point index
        route: Ordered route points

    Returns:
        Distance in kilometers (0 for index 0)
    """
    total = 0.0

    for i in range(index):
        total += distance_km(route[i], route[i + 1])

    return total


def calculate_total_distance(points: Sequence) -> float:
    """
    Calculate total distance for a route.

    Args:
        points: Ordered GeoPoint-like objects

    Returns:
        Total distance in kilometers
    """
    return cumulative_distance_to(max(len(points) - 1, 0), points)


def points_equal(a, b, tolerance: float = 1e-6) -> bool:
    """True when both coordinates differ by less than `tolerance` degrees."""
    return (
        abs(a.latitude - b.latitude) < tolerance and
        abs(a.longitude - b.longitude) < tolerance
    )


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in degrees."""
    south: float
    west: float
    north: float
    east: float

    def as_overpass(self) -> str:
        """Format as Overpass `(south,west,north,east)` filter body."""
        return f"{self.south},{self.west},{self.north},{self.east}"


def bounding_box(points: Iterable, padding_km: float = 0.0) -> BoundingBox:
    """
    Bounding box around points, widened by `padding_km` on every side.

    The km to degrees conversion uses a flat 111 km per degree for both
    axes. It only ever widens the search box; exact distances are checked
    afterwards.

    Raises:
        ValueError: If points is empty
    """
    points = list(points)
    if not points:
        raise ValueError("Cannot compute bounding box of no points")

    lats = [p.latitude for p in points]
    lons = [p.longitude for p in points]
    padding_deg = padding_km / KM_PER_DEGREE

    return BoundingBox(
        south=max(min(lats) - padding_deg, -90.0),
        west=max(min(lons) - padding_deg, -180.0),
        north=min(max(lats) + padding_deg, 90.0),
        east=min(max(lons) + padding_deg, 180.0),
    )
