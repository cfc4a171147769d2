"""
Directions providers.

Given 2 or 3 waypoints (entry, POI, optional exit) a provider returns the
travel path between them, or None when it has no path to offer.

Providers:
- MapboxDirectionsClient: Mapbox Directions API (default, cycling profile)
- OSRMDirectionsClient: any OSRM-compatible server
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import httpx

from refuel.config import settings
from refuel.features.gpx.schemas import GeoPoint
from refuel.shared.exceptions import DirectionsError

logger = logging.getLogger(__name__)


class DirectionsProvider(ABC):
    """Road/path-following routing between waypoints."""

    @abstractmethod
    async def route(self, waypoints: Sequence[GeoPoint]) -> Optional[List[GeoPoint]]:
        """
        Path through the waypoints, in travel order.

        Returns:
            Points of the path, or None if unavailable / no route

        Raises:
            DirectionsError: If the provider call fails
        """
        pass


def format_waypoints(waypoints: Sequence[GeoPoint]) -> str:
    """'lon,lat;lon,lat[;lon,lat]' as used by Mapbox and OSRM."""
    if not 2 <= len(waypoints) <= 3:
        raise ValueError(f"Expected 2 or 3 waypoints, got {len(waypoints)}")
    return ";".join(f"{p.longitude},{p.latitude}" for p in waypoints)


def geojson_to_points(coordinates: Optional[list]) -> Optional[List[GeoPoint]]:
    """GeoJSON [lon, lat] pairs to GeoPoints, None if there are none."""
    if not coordinates:
        return None
    try:
        return [GeoPoint(latitude=lat, longitude=lon) for lon, lat, *_ in coordinates]
    except (TypeError, ValueError) as e:
        raise DirectionsError(f"Malformed route geometry: {e}") from e


async def _get_json(
    url: str,
    params: dict,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport],
    provider: str,
    ok_statuses: tuple = (200,)
) -> dict:
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get(url, params=params, timeout=timeout)
    except httpx.HTTPError as e:
        raise DirectionsError(f"{provider} request failed: {e}") from e

    if response.status_code not in ok_statuses:
        raise DirectionsError(
            f"{provider} Directions API error: {response.status_code} {response.text[:200]}"
        )

    try:
        return response.json()
    except ValueError as e:
        raise DirectionsError(f"{provider} returned invalid JSON: {e}") from e


class MapboxDirectionsClient(DirectionsProvider):
    """
    Mapbox Directions API client.

    Without an access token the client is "unavailable": it returns None
    so that callers fall back to straight insertion.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        profile: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.access_token = access_token if access_token is not None else settings.mapbox_access_token
        self.profile = profile or settings.mapbox_profile
        self.api_url = (api_url or settings.mapbox_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout
        self._transport = transport

    @property
    def available(self) -> bool:
        return bool(self.access_token)

    async def route(self, waypoints: Sequence[GeoPoint]) -> Optional[List[GeoPoint]]:
        if not self.available:
            logger.info("Missing Mapbox token, no routed detour")
            return None

        url = f"{self.api_url}/{self.profile}/{format_waypoints(waypoints)}"
        data = await _get_json(
            url,
            params={
                "geometries": "geojson",
                "overview": "full",
                "access_token": self.access_token,
            },
            timeout=self.timeout,
            transport=self._transport,
            provider="Mapbox",
        )

        routes = data.get("routes") or []
        if not routes:
            return None
        return geojson_to_points((routes[0].get("geometry") or {}).get("coordinates"))


class OSRMDirectionsClient(DirectionsProvider):
    """OSRM `route` service client."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        profile: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = (api_url or settings.osrm_api_url).rstrip("/")
        self.profile = profile or settings.osrm_profile
        self.timeout = timeout or settings.http_timeout
        self._transport = transport

    async def route(self, waypoints: Sequence[GeoPoint]) -> Optional[List[GeoPoint]]:
        url = f"{self.api_url}/route/v1/{self.profile}/{format_waypoints(waypoints)}"
        # OSRM answers 400 with a JSON body for "no route" style errors
        data = await _get_json(
            url,
            params={"overview": "full", "geometries": "geojson", "steps": "false"},
            timeout=self.timeout,
            transport=self._transport,
            provider="OSRM",
            ok_statuses=(200, 400),
        )

        code = data.get("code")
        if code in ("NoRoute", "NoSegment"):
            return None
        if code != "Ok":
            raise DirectionsError(f"OSRM error: {code} {data.get('message', '')}")

        routes = data.get("routes") or []
        if not routes:
            return None
        return geojson_to_points((routes[0].get("geometry") or {}).get("coordinates"))


# Module-level singleton
_directions_provider: Optional[DirectionsProvider] = None


def get_directions_provider() -> Optional[DirectionsProvider]:
    """Get or create the configured directions provider (None if disabled)."""
    global _directions_provider
    if _directions_provider is not None:
        return _directions_provider

    if settings.directions_provider == "mapbox":
        _directions_provider = MapboxDirectionsClient()
        logger.info("MapboxDirectionsClient initialized (profile=%s)", settings.mapbox_profile)
    elif settings.directions_provider == "osrm":
        _directions_provider = OSRMDirectionsClient()
        logger.info("OSRMDirectionsClient initialized: %s", settings.osrm_api_url)

    return _directions_provider
