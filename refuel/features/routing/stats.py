"""
Route statistics.

Distance and climbing for display, and the difference a modified route
makes compared to the original.
"""

from typing import Optional

from pydantic import BaseModel

from refuel.features.gpx.schemas import Route, RouteInfo
from refuel.shared.geo import calculate_total_distance


def total_distance_km(route: Route) -> float:
    """Sum of haversine distances between consecutive points."""
    return calculate_total_distance(route.points)


def total_elevation_gain_m(route: Route) -> float:
    """
    Total climbing, in the unit of the input elevations (metres for GPX).

    Only pairs where both points carry an elevation count; descents count
    as zero.
    """
    gain = 0.0
    points = route.points

    for i in range(1, len(points)):
        prev_ele = points[i - 1].elevation
        ele = points[i].elevation
        if prev_ele is None or ele is None:
            continue
        diff = ele - prev_ele
        if diff > 0:
            gain += diff

    return gain


def has_elevation_data(route: Route) -> bool:
    return any(p.elevation is not None for p in route.points)


class RouteComparison(BaseModel):
    """Stats of the displayed route relative to the original."""

    distance_km: float
    elevation_gain_m: float
    added_distance_km: float = 0.0
    added_elevation_gain_m: float = 0.0
    has_elevation: bool = False
    is_modified: bool = False


def compare_routes(original: Route, modified: Optional[Route] = None) -> RouteComparison:
    """
    Stats for `modified` (or the original when there is none).

    Added amounts are relative to the original route.
    """
    original_distance = total_distance_km(original)
    original_gain = total_elevation_gain_m(original)

    shown = modified if modified is not None else original
    distance = total_distance_km(shown)
    gain = total_elevation_gain_m(shown)

    return RouteComparison(
        distance_km=round(distance, 2),
        elevation_gain_m=round(gain, 0),
        added_distance_km=round(distance - original_distance, 2),
        added_elevation_gain_m=round(gain - original_gain, 0),
        has_elevation=has_elevation_data(original),
        is_modified=modified is not None,
    )


def summarize_route(route: Route) -> RouteInfo:
    """RouteInfo for API responses."""
    points = route.points
    return RouteInfo(
        name=route.name,
        points_count=len(points),
        distance_km=round(total_distance_km(route), 2),
        elevation_gain_m=round(total_elevation_gain_m(route), 0),
        has_elevation=has_elevation_data(route),
        start_lat=points[0].latitude if points else None,
        start_lon=points[0].longitude if points else None,
        end_lat=points[-1].latitude if points else None,
        end_lon=points[-1].longitude if points else None,
    )
