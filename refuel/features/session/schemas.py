"""
Session-related schemas.

Request/response models for the session API.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from refuel.features.gpx.schemas import GeoPoint, RouteInfo
from refuel.features.poi.schemas import CategoryFilter


class SessionInfo(BaseModel):
    """Session overview."""

    session_id: str
    file_name: Optional[str] = None
    route: Optional[RouteInfo] = None
    filters: List[CategoryFilter]
    max_deviation_km: float
    pois_count: int = 0
    selected_count: int = 0
    has_modified_route: bool = False


class SettingsUpdate(BaseModel):
    """Discovery settings; omitted fields are left unchanged."""

    max_deviation_km: Optional[float] = Field(default=None)
    enabled_filters: Optional[List[str]] = Field(
        default=None,
        description="Ids of the categories to enable; all others are disabled"
    )


class RouteResponse(BaseModel):
    """Full route with summary."""

    info: RouteInfo
    points: List[GeoPoint]
