"""
Session Routes

Endpoints for loading GPX files into a planning session and managing
its settings.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from refuel.api.deps import get_loaded_session, get_session, get_session_store
from refuel.config import settings
from refuel.features.gpx import GPXParserService, Route
from refuel.features.routing import summarize_route
from refuel.features.session import AppState, SessionStore
from refuel.features.session.schemas import RouteResponse, SessionInfo, SettingsUpdate
from refuel.shared.exceptions import EmptyRouteError, ParseError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def session_info(session_id: str, state: AppState) -> SessionInfo:
    """Build the SessionInfo response for a state."""
    return SessionInfo(
        session_id=session_id,
        file_name=state.file_name,
        route=summarize_route(state.original_route) if state.has_route else None,
        filters=state.filters,
        max_deviation_km=state.max_deviation_km,
        pois_count=len(state.pois),
        selected_count=len(state.selected_pois),
        has_modified_route=state.modified_route is not None,
    )


async def read_gpx_upload(file: UploadFile) -> Route:
    """
    Validate and parse an uploaded GPX file.

    Raises:
        HTTPException: 400 for bad files, 422 for files without points
    """
    if not file.filename or not file.filename.lower().endswith('.gpx'):
        raise HTTPException(status_code=400, detail="Only .gpx files are allowed")

    content = await file.read()

    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty")

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"File too large (max {settings.max_upload_size_mb}MB)"
        )

    try:
        return GPXParserService.load(content)
    except ParseError as e:
        raise HTTPException(
            status_code=400,
            detail=f"Failed to load GPX file. Please try another file. ({e})"
        )
    except EmptyRouteError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("", response_model=SessionInfo, status_code=201)
async def create_session(
    file: UploadFile = File(...),
    store: SessionStore = Depends(get_session_store)
):
    """
    Upload a GPX file and start a planning session.

    Returns the session id and route summary.
    """
    route = await read_gpx_upload(file)

    session_id, state = store.create()
    state.load_route(route, file.filename)

    return session_info(session_id, state)


@router.get("/{session_id}", response_model=SessionInfo)
async def get_session_info(
    session_id: str,
    state: AppState = Depends(get_session)
):
    """Get session overview."""
    return session_info(session_id, state)


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store)
):
    """Reset: forget the session and everything loaded into it."""
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


@router.put("/{session_id}/gpx", response_model=SessionInfo)
async def replace_gpx(
    session_id: str,
    file: UploadFile = File(...),
    state: AppState = Depends(get_session)
):
    """Load a new GPX file; previous POIs and modified route are discarded."""
    route = await read_gpx_upload(file)
    state.load_route(route, file.filename)
    return session_info(session_id, state)


@router.put("/{session_id}/settings", response_model=SessionInfo)
async def update_settings(
    session_id: str,
    update: SettingsUpdate,
    state: AppState = Depends(get_session)
):
    """Update deviation distance and/or enabled POI categories."""
    if update.max_deviation_km is not None:
        try:
            state.set_max_deviation(update.max_deviation_km)
        except ValidationError as e:
            raise HTTPException(status_code=422, detail=str(e))

    if update.enabled_filters is not None:
        try:
            state.set_enabled_filters(update.enabled_filters)
        except KeyError as e:
            raise HTTPException(status_code=404, detail=f"Unknown category: {e.args[0]}")

    return session_info(session_id, state)


@router.post("/{session_id}/filters/{filter_id}/toggle", response_model=SessionInfo)
async def toggle_filter(
    session_id: str,
    filter_id: str,
    state: AppState = Depends(get_session)
):
    """Switch a POI category on or off."""
    try:
        state.toggle_filter(filter_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown category: {filter_id}")
    return session_info(session_id, state)


@router.get("/{session_id}/route", response_model=RouteResponse)
async def get_original_route(state: AppState = Depends(get_loaded_session)):
    """Get the loaded route with all points."""
    route = state.original_route
    return RouteResponse(info=summarize_route(route), points=list(route.points))
