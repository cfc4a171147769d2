"""
POI discovery along a route.

Turns raw provider features into CandidatePOI records: deduplicated,
filtered by exact distance to the route and ordered by position along it.
"""

import logging
import math
from typing import List, Optional, Sequence

from refuel.features.gpx.schemas import GeoPoint
from refuel.shared.constants import UNKNOWN_CATEGORY
from refuel.shared.exceptions import ValidationError
from refuel.shared.geo import (
    bounding_box,
    cumulative_distance_to,
    min_distance_to_route,
    nearest_point_index,
)
from .provider import POIProvider
from .schemas import CandidatePOI, CategoryFilter, ProviderFeature

logger = logging.getLogger(__name__)


def resolve_location(feature: ProviderFeature) -> Optional[GeoPoint]:
    """
    Representative coordinate: the point itself, the provider's center,
    or the mean of the outline vertices.
    """
    if feature.point is not None:
        return feature.point
    if feature.center is not None:
        return feature.center

    vertices = list(feature.geometry)
    # Closed rings repeat the first vertex
    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices = vertices[:-1]
    if not vertices:
        return None

    return GeoPoint(
        latitude=sum(v.latitude for v in vertices) / len(vertices),
        longitude=sum(v.longitude for v in vertices) / len(vertices),
    )


def resolve_category(tags: dict, filters: Sequence[CategoryFilter]) -> str:
    """Label of the first filter whose tags match, else 'Unknown'."""
    for category in filters:
        if category.matches(tags):
            return category.label
    return UNKNOWN_CATEGORY


def resolve_name(
    feature_id: str,
    tags: dict,
    category: str,
    language: str = "en"
) -> str:
    """name -> name:<language> -> operator -> '<category> #<id>'."""
    return (
        tags.get("name")
        or tags.get(f"name:{language}")
        or tags.get("operator")
        or f"{category} #{feature_id}"
    )


class POIDiscoveryService:
    """
    Finds candidate POIs near a route.

    Usage:
        service = POIDiscoveryService(get_poi_provider())
        pois = await service.fetch_candidates(route.points, filters, 5.0)
    """

    def __init__(self, provider: POIProvider, language: str = "en"):
        self.provider = provider
        self.language = language

    async def fetch_candidates(
        self,
        route: Sequence[GeoPoint],
        filters: Sequence[CategoryFilter],
        max_deviation_km: float
    ) -> List[CandidatePOI]:
        """
        Query the provider and shape the results.

        Args:
            route: Ordered route points
            filters: All category filters; only enabled ones are searched
            max_deviation_km: Maximum distance from the route

        Returns:
            Candidates sorted by distance along the route. Empty without a
            provider call if the route is empty or no filter is enabled.

        Raises:
            ValidationError: If max_deviation_km is not a positive number
            NetworkError: If the provider call fails (no partial results)
        """
        if not math.isfinite(max_deviation_km) or max_deviation_km <= 0:
            raise ValidationError("Deviation distance must be greater than 0")

        enabled = [f for f in filters if f.enabled]
        if not route or not enabled:
            return []

        bbox = bounding_box(route, padding_km=max_deviation_km)
        tags = []
        for category in enabled:
            for pair in category.tag_pairs():
                if pair not in tags:
                    tags.append(pair)

        features = await self.provider.fetch_features(bbox, tags)

        candidates: List[CandidatePOI] = []
        seen_ids = set()
        too_far = 0

        for feature in features:
            if feature.id in seen_ids:
                continue
            seen_ids.add(feature.id)

            location = resolve_location(feature)
            if location is None:
                continue

            distance_from_route = min_distance_to_route(location, route)
            if distance_from_route > max_deviation_km:
                too_far += 1
                continue

            index = nearest_point_index(location, route)
            category = resolve_category(feature.tags, enabled)

            candidates.append(CandidatePOI(
                id=feature.id,
                name=resolve_name(feature.id, feature.tags, category, self.language),
                category=category,
                location=location,
                distance_from_route=distance_from_route,
                distance_along_route=cumulative_distance_to(index, route),
            ))

        candidates.sort(key=lambda poi: poi.distance_along_route)

        logger.info(
            f"Discovered {len(candidates)} POIs within {max_deviation_km} km "
            f"({len(features)} features, {too_far} too far)"
        )
        return candidates
