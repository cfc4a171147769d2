"""
GPX file handling module.

Usage:
    from refuel.features.gpx import GPXParserService, Route, GeoPoint

Components:
- GPXParserService: Parse GPX files into routes, write routes as GPX 1.1
- GeoPoint, Route: Immutable value types
- RouteInfo: Pydantic schema for route summaries
"""

from .parser import GPXParserService
from .schemas import GeoPoint, Route, RouteInfo

__all__ = [
    # Services
    "GPXParserService",
    # Schemas
    "GeoPoint",
    "Route",
    "RouteInfo",
]
