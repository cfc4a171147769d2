"""
Route generation module.

Usage:
    from refuel.features.routing import RouteGenerator, get_directions_provider
    from refuel.features.routing import total_distance_km, compare_routes

Components:
- RouteGenerator: Modified route with routed detours (async)
- generate_route: Modified route with straight insertion only (sync)
- DirectionsProvider: Provider interface (Mapbox, OSRM implementations)
- Statistics: distance, elevation gain, comparison with the original
"""

from .directions import (
    DirectionsProvider,
    MapboxDirectionsClient,
    OSRMDirectionsClient,
    get_directions_provider,
)
from .generator import RouteGenerator, generate_route
from .stats import (
    RouteComparison,
    compare_routes,
    has_elevation_data,
    summarize_route,
    total_distance_km,
    total_elevation_gain_m,
)

__all__ = [
    # Generation
    "RouteGenerator",
    "generate_route",
    # Directions
    "DirectionsProvider",
    "MapboxDirectionsClient",
    "OSRMDirectionsClient",
    "get_directions_provider",
    # Statistics
    "RouteComparison",
    "compare_routes",
    "has_elevation_data",
    "summarize_route",
    "total_distance_km",
    "total_elevation_gain_m",
]
