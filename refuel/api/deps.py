"""
API dependencies.

Override these in tests with `app.dependency_overrides`.
"""

from fastapi import Depends, HTTPException

from refuel.config import settings
from refuel.features.poi import POIDiscoveryService, get_poi_provider
from refuel.features.routing import RouteGenerator, get_directions_provider
from refuel.features.session import AppState, SessionStore, session_store


def get_session_store() -> SessionStore:
    return session_store


def get_discovery_service() -> POIDiscoveryService:
    return POIDiscoveryService(get_poi_provider())


def get_route_generator() -> RouteGenerator:
    return RouteGenerator(
        get_directions_provider(),
        max_concurrency=settings.detour_concurrency,
    )


def get_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
) -> AppState:
    """Session state for the path's session_id, 404 if unknown or expired."""
    state = store.get(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return state


def get_loaded_session(state: AppState = Depends(get_session)) -> AppState:
    """Session state that has a route loaded, 409 otherwise."""
    if not state.has_route:
        raise HTTPException(
            status_code=409,
            detail="No route loaded. Please load a GPX file first."
        )
    return state
