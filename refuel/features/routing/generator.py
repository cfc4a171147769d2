"""
Route Generator

Builds a modified route that detours to every selected POI.

Each selected POI is attached to its nearest original point. Walking the
original points in order, every point is emitted, followed by the detours
attached to it: a routed path from the directions provider when one is
available, otherwise the POI coordinate itself (straight insertion).
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from refuel.features.gpx.schemas import GeoPoint, Route
from refuel.features.poi.schemas import CandidatePOI
from refuel.shared.constants import MODIFIED_ROUTE_SUFFIX, SEAM_TOLERANCE_DEG
from refuel.shared.exceptions import EmptyRouteError
from refuel.shared.geo import nearest_point_index, points_equal
from .directions import DirectionsProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Detour:
    """A selected POI attached to an original route point."""
    entry_index: int
    poi: CandidatePOI


def group_detours(original: Route, selected: Sequence[CandidatePOI]) -> List[Detour]:
    """
    Attach POIs to their nearest original point.

    Returns detours in emission order: by entry index, then by distance
    along the route within the same entry index.
    """
    by_index: Dict[int, List[CandidatePOI]] = defaultdict(list)
    for poi in selected:
        by_index[nearest_point_index(poi.location, original.points)].append(poi)

    detours = []
    for index in sorted(by_index):
        group = sorted(by_index[index], key=lambda poi: poi.distance_along_route)
        detours.extend(Detour(entry_index=index, poi=poi) for poi in group)
    return detours


def trim_seams(
    path: Sequence[GeoPoint],
    entry: GeoPoint,
    exit_point: Optional[GeoPoint]
) -> List[GeoPoint]:
    """Drop a leading point equal to `entry` and a trailing point equal to `exit_point`."""
    trimmed = list(path)
    if trimmed and points_equal(trimmed[0], entry, SEAM_TOLERANCE_DEG):
        trimmed = trimmed[1:]
    if trimmed and exit_point is not None and points_equal(trimmed[-1], exit_point, SEAM_TOLERANCE_DEG):
        trimmed = trimmed[:-1]
    return trimmed


def modified_name(original: Route) -> str:
    return f"{original.name or 'Route'} {MODIFIED_ROUTE_SUFFIX}"


def assemble_route(
    original: Route,
    detours: Sequence[Detour],
    paths: Sequence[Optional[Sequence[GeoPoint]]]
) -> Route:
    """
    Interleave detour points with the original points.

    Args:
        original: Route being modified
        detours: Detours in emission order (see group_detours)
        paths: Routed path per detour, None where no path is available

    Returns:
        New route containing every original point in order
    """
    by_index: Dict[int, List[tuple]] = defaultdict(list)
    for detour, path in zip(detours, paths):
        by_index[detour.entry_index].append((detour, path))

    points: List[GeoPoint] = []
    count = len(original.points)

    for i, current in enumerate(original.points):
        points.append(current)
        next_point = original.points[i + 1] if i + 1 < count else None

        for detour, path in by_index.get(i, []):
            routed = trim_seams(path, current, next_point) if path else []
            if routed:
                logger.info(
                    f"Inserting routed segment for POI {detour.poi.id} "
                    f"at index {i} ({len(routed)} points)"
                )
                points.extend(routed)
            else:
                logger.info(f"Fallback to direct insert for POI {detour.poi.id} at index {i}")
                points.append(detour.poi.location)

    return Route(name=modified_name(original), points=tuple(points))


def _selected(original: Route, candidates: Sequence[CandidatePOI]) -> List[CandidatePOI]:
    if original.is_empty:
        raise EmptyRouteError("Cannot modify an empty route")
    return [poi for poi in candidates if poi.selected]


def generate_route(original: Route, candidates: Sequence[CandidatePOI]) -> Route:
    """
    Offline generation: straight insertion for every selected POI.

    Returns the original route (same name and points) when nothing is
    selected.

    Raises:
        EmptyRouteError: If original has no points
    """
    selected = _selected(original, candidates)
    if not selected:
        return Route(name=original.name, points=original.points)

    detours = group_detours(original, selected)
    return assemble_route(original, detours, [None] * len(detours))


class RouteGenerator:
    """
    Route generator with routed detours.

    Directions calls run in route order, at most `max_concurrency` at a
    time; points are always assembled in route order. A failing call only
    affects its own POI, which falls back to straight insertion.

    Usage:
        generator = RouteGenerator(get_directions_provider())
        modified = await generator.generate(route, pois)
    """

    def __init__(
        self,
        directions: Optional[DirectionsProvider] = None,
        max_concurrency: int = 1
    ):
        self.directions = directions
        self.max_concurrency = max(1, max_concurrency)

    async def generate(
        self,
        original: Route,
        candidates: Sequence[CandidatePOI]
    ) -> Route:
        """
        Build the modified route.

        Args:
            original: Non-empty route to modify
            candidates: All candidates; only selected ones are visited

        Returns:
            New Route named "<name> (Modified)", or a copy of the original
            when nothing is selected

        Raises:
            EmptyRouteError: If original has no points
        """
        selected = _selected(original, candidates)

        logger.info(
            f"Generating route: {len(candidates)} POIs, {len(selected)} selected, "
            f"{len(original.points)} original points"
        )

        if not selected:
            return Route(name=original.name, points=original.points)

        detours = group_detours(original, selected)

        if self.directions is None:
            paths = [None] * len(detours)
        else:
            semaphore = asyncio.Semaphore(self.max_concurrency)
            paths = await asyncio.gather(*(
                self._fetch_path(original, detour, semaphore) for detour in detours
            ))

        route = assemble_route(original, detours, paths)

        logger.info(
            f"Modified route summary: {len(original.points)} -> {len(route.points)} points"
        )
        return route

    async def _fetch_path(
        self,
        original: Route,
        detour: Detour,
        semaphore: asyncio.Semaphore
    ) -> Optional[List[GeoPoint]]:
        """Routed path entry -> POI -> next point, None on any provider failure."""
        i = detour.entry_index
        waypoints = [original.points[i], detour.poi.location]
        if i + 1 < len(original.points):
            waypoints.append(original.points[i + 1])

        async with semaphore:
            try:
                return await self.directions.route(waypoints)
            except Exception as e:
                logger.warning(
                    f"Error fetching detour for POI {detour.poi.id} at index {i}: {e}"
                )
                return None
