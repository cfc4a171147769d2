"""
Application state for one planning session.

Holds the loaded route, category filters, deviation, discovered POIs and
the derived modified route. Routes and POIs are immutable; every update
replaces values instead of mutating them.
"""

import logging
import math
from typing import Iterable, List, Optional

from refuel.config import settings
from refuel.features.gpx.parser import GPXParserService
from refuel.features.gpx.schemas import Route
from refuel.features.poi.schemas import CandidatePOI, CategoryFilter
from refuel.shared.constants import DEFAULT_CATEGORIES
from refuel.shared.exceptions import ValidationError

logger = logging.getLogger(__name__)


def default_filters() -> List[CategoryFilter]:
    return [
        CategoryFilter(id=id_, label=label, enabled=enabled, provider_tags=frozenset(tags))
        for id_, label, enabled, tags in DEFAULT_CATEGORIES
    ]


class AppState:
    """
    Owned state of one session.

    Usage:
        state = AppState()
        state.load_route(route, "ride.gpx")
        state.set_max_deviation(2.5)
        state.set_pois(await discovery.fetch_candidates(...))
        state.toggle_poi(poi_id)
    """

    def __init__(
        self,
        default_max_deviation_km: Optional[float] = None,
        max_deviation_limit_km: Optional[float] = None
    ):
        self.default_max_deviation_km = default_max_deviation_km or settings.default_max_deviation_km
        self.max_deviation_limit_km = max_deviation_limit_km or settings.max_deviation_limit_km

        # Bumped on every change; results computed from an older value are stale.
        # route_revision covers the loaded route, revision also the POI list.
        self.route_revision = 0
        self.revision = 0
        self.reset()

    def _bump(self, route_changed: bool = False) -> None:
        self.revision += 1
        if route_changed:
            self.route_revision += 1

    def reset(self) -> None:
        """Back to the initial state: no route, default filters and deviation."""
        self._bump(route_changed=True)
        self.original_route: Optional[Route] = None
        self.modified_route: Optional[Route] = None
        self.file_name: Optional[str] = None
        self.filters: List[CategoryFilter] = default_filters()
        self.max_deviation_km: float = self.default_max_deviation_km
        self.pois: List[CandidatePOI] = []

    # -------------------------------------------------------------------------
    # Route
    # -------------------------------------------------------------------------

    def load_route(self, route: Route, file_name: Optional[str] = None) -> None:
        """
        Replace the loaded route. Previous POIs and modified route are dropped.

        Raises:
            EmptyRouteError: If route has no points
        """
        GPXParserService.validate(route)
        self._bump(route_changed=True)
        self.original_route = route
        self.file_name = file_name
        self.pois = []
        self.modified_route = None
        logger.info(f"Loaded route {route.name!r} with {len(route.points)} points")

    def set_modified_route(self, route: Route, revision: Optional[int] = None) -> bool:
        """
        Store a generated route.

        With `revision` (the value read before generating), the route is
        only stored if neither the route nor the POIs changed since.

        Returns:
            True if stored
        """
        if revision is not None and revision != self.revision:
            logger.info(f"Discarding modified route from revision {revision} (now {self.revision})")
            return False
        self.modified_route = route
        return True

    @property
    def has_route(self) -> bool:
        return self.original_route is not None and not self.original_route.is_empty

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def _filter_index(self, filter_id: str) -> int:
        for i, category in enumerate(self.filters):
            if category.id == filter_id:
                return i
        raise KeyError(filter_id)

    def toggle_filter(self, filter_id: str) -> CategoryFilter:
        """
        Flip a category filter.

        Raises:
            KeyError: If filter_id is unknown
        """
        i = self._filter_index(filter_id)
        updated = self.filters[i].model_copy(update={"enabled": not self.filters[i].enabled})
        self.filters[i] = updated
        return updated

    def set_enabled_filters(self, filter_ids: Iterable[str]) -> None:
        """
        Enable exactly the given filters.

        Raises:
            KeyError: If any id is unknown
        """
        wanted = set(filter_ids)
        unknown = wanted - {f.id for f in self.filters}
        if unknown:
            raise KeyError(", ".join(sorted(unknown)))
        self.filters = [
            f.model_copy(update={"enabled": f.id in wanted}) for f in self.filters
        ]

    @property
    def enabled_filters(self) -> List[CategoryFilter]:
        return [f for f in self.filters if f.enabled]

    def set_max_deviation(self, deviation_km: float) -> None:
        """
        Raises:
            ValidationError: If not a number in (0, max_deviation_limit_km]
        """
        try:
            value = float(deviation_km)
        except (TypeError, ValueError):
            raise ValidationError("Please enter a valid deviation distance (greater than 0).")

        if not math.isfinite(value) or value <= 0:
            raise ValidationError("Please enter a valid deviation distance (greater than 0).")
        if value > self.max_deviation_limit_km:
            raise ValidationError(
                f"Deviation distance must not exceed {self.max_deviation_limit_km:g} km."
            )
        self.max_deviation_km = value

    # -------------------------------------------------------------------------
    # POIs
    # -------------------------------------------------------------------------

    def set_pois(
        self,
        pois: Iterable[CandidatePOI],
        route_revision: Optional[int] = None
    ) -> bool:
        """
        Replace the candidate POIs; the modified route becomes stale.

        With `route_revision` (read before discovery), the POIs are only
        stored if the same route is still loaded.

        Returns:
            True if stored
        """
        if route_revision is not None and route_revision != self.route_revision:
            logger.info(
                f"Discarding POIs found for route revision {route_revision} "
                f"(now {self.route_revision})"
            )
            return False
        self.pois = list(pois)
        self.modified_route = None
        self._bump()
        return True

    def toggle_poi(self, poi_id: str) -> CandidatePOI:
        """
        Flip `selected` on a POI. The modified route becomes stale.

        Raises:
            KeyError: If poi_id is unknown
        """
        for i, poi in enumerate(self.pois):
            if poi.id == poi_id:
                updated = poi.model_copy(update={"selected": not poi.selected})
                self.pois[i] = updated
                self.modified_route = None
                self._bump()
                return updated
        raise KeyError(poi_id)

    @property
    def selected_pois(self) -> List[CandidatePOI]:
        return [poi for poi in self.pois if poi.selected]
