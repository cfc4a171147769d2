"""
POI discovery module.

Usage:
    from refuel.features.poi import POIDiscoveryService, get_poi_provider

Components:
- POIDiscoveryService: Find candidate POIs along a route
- POIProvider: Provider interface; OverpassClient is the OSM implementation
- CandidatePOI, CategoryFilter: Pydantic schemas
"""

from .discovery import POIDiscoveryService, resolve_category, resolve_location, resolve_name
from .provider import (
    OverpassClient,
    POIProvider,
    build_overpass_query,
    get_poi_provider,
    parse_overpass_elements,
)
from .schemas import CandidatePOI, CategoryFilter, ProviderFeature

__all__ = [
    # Services
    "POIDiscoveryService",
    "resolve_category",
    "resolve_location",
    "resolve_name",
    # Providers
    "POIProvider",
    "OverpassClient",
    "build_overpass_query",
    "get_poi_provider",
    "parse_overpass_elements",
    # Schemas
    "CandidatePOI",
    "CategoryFilter",
    "ProviderFeature",
]
