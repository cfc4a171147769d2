"""
POI-related schemas.

Pydantic models for category filters and candidate points of interest,
plus the provider-neutral feature record returned by POI providers.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from refuel.features.gpx.schemas import GeoPoint


def split_tag(tag: str) -> Tuple[str, str]:
    """'amenity=cafe' -> ('amenity', 'cafe')."""
    key, _, value = tag.partition("=")
    return key.strip(), value.strip()


class CategoryFilter(BaseModel):
    """A POI category the user can switch on or off."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    enabled: bool = False
    provider_tags: FrozenSet[str] = frozenset()

    def tag_pairs(self) -> List[Tuple[str, str]]:
        """(key, value) pairs in a stable order."""
        return [split_tag(tag) for tag in sorted(self.provider_tags)]

    def matches(self, tags: dict) -> bool:
        """True if any of this category's tags is present on the feature."""
        return any(tags.get(key) == value for key, value in self.tag_pairs())


class CandidatePOI(BaseModel):
    """
    A point of interest found near the route.

    Distances are in km. `selected` is flipped by replacing the instance
    (see AppState.toggle_poi), never in place.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    category: str
    location: GeoPoint
    distance_from_route: float
    distance_along_route: float
    selected: bool = False


@dataclass
class ProviderFeature:
    """
    Raw feature as returned by a POI provider.

    Exactly one of `point`, `center` or `geometry` is usually set: nodes carry
    a point, ways carry a center and/or an outline.
    """
    id: str
    tags: dict = field(default_factory=dict)
    point: Optional[GeoPoint] = None
    center: Optional[GeoPoint] = None
    geometry: List[GeoPoint] = field(default_factory=list)
