"""
POI providers.

A provider answers "which features with these tags lie inside this box".
The production provider is the OpenStreetMap Overpass API.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import httpx

from refuel.config import settings
from refuel.features.gpx.schemas import GeoPoint
from refuel.shared.exceptions import POIProviderError
from refuel.shared.geo import BoundingBox
from .schemas import ProviderFeature

logger = logging.getLogger(__name__)


# =============================================================================
# Provider interface
# =============================================================================

class POIProvider(ABC):
    """Source of geotagged features."""

    @abstractmethod
    async def fetch_features(
        self,
        bbox: BoundingBox,
        tags: Sequence[Tuple[str, str]]
    ) -> List[ProviderFeature]:
        """
        Return every feature inside `bbox` carrying any of `tags`.

        Raises:
            POIProviderError: If the provider cannot be reached or answers
                with an error
        """
        pass


# =============================================================================
# Overpass
# =============================================================================

def build_overpass_query(
    bbox: BoundingBox,
    tags: Sequence[Tuple[str, str]],
    timeout: int = 25
) -> str:
    """
    Build a single batched Overpass QL query.

    Nodes and ways are requested for each tag; `out center` gives ways a
    representative coordinate.
    """
    box = bbox.as_overpass()
    lines = [f"[out:json][timeout:{timeout}];", "("]
    for key, value in tags:
        lines.append(f'  node["{key}"="{value}"]({box});')
        lines.append(f'  way["{key}"="{value}"]({box});')
    lines.append(");")
    lines.append("out center;")
    return "\n".join(lines)


def _geo_point(data: dict) -> GeoPoint:
    return GeoPoint(latitude=data["lat"], longitude=data["lon"])


def parse_overpass_elements(elements: list) -> List[ProviderFeature]:
    """Convert Overpass JSON elements to ProviderFeature records."""
    features: List[ProviderFeature] = []

    for element in elements:
        if not isinstance(element, dict):
            logger.debug(f"Skipping non-object Overpass element: {element!r}")
            continue
        try:
            point = None
            if element.get("type") == "node" and "lat" in element and "lon" in element:
                point = _geo_point(element)
            center = _geo_point(element["center"]) if element.get("center") else None
            geometry = [_geo_point(vertex) for vertex in element.get("geometry") or []]

            tags = element.get("tags") or {}
            if not isinstance(tags, dict):
                raise TypeError(f"tags is {type(tags).__name__}")

            features.append(ProviderFeature(
                id=str(element["id"]),
                tags=tags,
                point=point,
                center=center,
                geometry=geometry,
            ))
        except (KeyError, TypeError, ValueError) as e:
            logger.debug(f"Skipping malformed Overpass element: {e}")

    return features


class OverpassClient(POIProvider):
    """
    Async client for the Overpass API.

    Usage:
        client = OverpassClient()
        features = await client.fetch_features(bbox, [("amenity", "cafe")])
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        query_timeout: Optional[int] = None,
        http_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = api_url or settings.overpass_api_url
        self.query_timeout = query_timeout or settings.overpass_query_timeout
        self.http_timeout = http_timeout or settings.http_timeout
        self._transport = transport

    async def fetch_features(
        self,
        bbox: BoundingBox,
        tags: Sequence[Tuple[str, str]]
    ) -> List[ProviderFeature]:
        query = build_overpass_query(bbox, tags, self.query_timeout)
        logger.info(f"Overpass query for {len(tags)} tags in bbox {bbox.as_overpass()}")

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    self.api_url,
                    data={"data": query},
                    timeout=self.http_timeout,
                )
        except httpx.HTTPError as e:
            logger.error(f"Overpass request failed: {e}")
            raise POIProviderError(f"Overpass request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "Overpass API error: %s %s",
                response.status_code,
                response.text[:200],
            )
            raise POIProviderError(f"Overpass API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise POIProviderError(f"Overpass returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise POIProviderError(f"Overpass returned unexpected JSON: {type(data).__name__}")
        elements = data.get("elements") or []
        if not isinstance(elements, list):
            raise POIProviderError("Overpass returned malformed elements")

        features = parse_overpass_elements(elements)
        logger.info(f"Overpass returned {len(features)} features")
        return features


# Module-level singleton
_poi_provider: Optional[POIProvider] = None


def get_poi_provider() -> POIProvider:
    """Get or create the configured POI provider singleton."""
    global _poi_provider
    if _poi_provider is None:
        _poi_provider = OverpassClient()
        logger.info("OverpassClient initialized: %s", settings.overpass_api_url)
    return _poi_provider
