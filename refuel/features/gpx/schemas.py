"""
GPX-related schemas.

Immutable value types for points and routes.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """Single point of a track or route."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    elevation: Optional[float] = None
    timestamp: Optional[str] = None


class Route(BaseModel):
    """
    Ordered sequence of points.

    A route without points means "no route loaded"; it is never a valid
    input for route generation.
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    points: Tuple[GeoPoint, ...] = ()

    @property
    def is_empty(self) -> bool:
        return len(self.points) == 0


class RouteInfo(BaseModel):
    """Route summary for API responses."""

    name: Optional[str] = None
    points_count: int
    distance_km: float
    elevation_gain_m: float
    has_elevation: bool = False

    # Start/end coordinates
    start_lat: Optional[float] = None
    start_lon: Optional[float] = None
    end_lat: Optional[float] = None
    end_lon: Optional[float] = None
