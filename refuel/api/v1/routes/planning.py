"""
Planning Routes

Endpoints for generating the modified route, comparing it with the
original and exporting it as GPX.
"""

import logging
import re

from fastapi import APIRouter, Depends, HTTPException, Response

from refuel.api.deps import get_loaded_session, get_route_generator
from refuel.features.gpx import GPXParserService, Route
from refuel.features.routing import RouteComparison, RouteGenerator, compare_routes, summarize_route
from refuel.features.session import AppState
from refuel.features.session.schemas import RouteResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# Attempts before giving up when the selection keeps changing mid-generation
MAX_GENERATION_ATTEMPTS = 3


async def generate_current_route(state: AppState, generator: RouteGenerator) -> Route:
    """
    Generate and store the modified route for the current selection.

    A result is only stored if the route and POIs did not change while
    directions were fetched; otherwise generation starts over.

    Raises:
        HTTPException: 409 if no stable result after MAX_GENERATION_ATTEMPTS
    """
    for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
        revision = state.revision
        route = await generator.generate(state.original_route, state.pois)
        if state.set_modified_route(route, revision):
            return route
        logger.info(f"Selection changed during generation (attempt {attempt}), regenerating")

    raise HTTPException(
        status_code=409,
        detail="Route or POI selection changed during generation. Please try again."
    )


async def ensure_modified_route(state: AppState, generator: RouteGenerator) -> Route:
    """Modified route for the current selection, regenerated when stale."""
    if state.modified_route is None:
        return await generate_current_route(state, generator)
    return state.modified_route


def export_filename(state: AppState) -> str:
    """'<source name>_modified.gpx' with unsafe characters replaced."""
    base = state.file_name or "route.gpx"
    if base.lower().endswith(".gpx"):
        base = base[:-4]
    base = re.sub(r"[^A-Za-z0-9._-]+", "_", base).strip("._") or "route"
    return f"{base}_modified.gpx"


@router.post("/{session_id}/modified-route", response_model=RouteResponse)
async def generate_modified_route(
    state: AppState = Depends(get_loaded_session),
    generator: RouteGenerator = Depends(get_route_generator)
):
    """
    Build the route through the selected POIs.

    Detours that cannot be routed are inserted as straight lines. Fails
    with 409 only if the selection keeps changing during generation.
    """
    route = await generate_current_route(state, generator)
    return RouteResponse(info=summarize_route(route), points=list(route.points))


@router.get("/{session_id}/stats", response_model=RouteComparison)
async def get_route_stats(state: AppState = Depends(get_loaded_session)):
    """Distance and elevation gain, with amounts added by detours."""
    return compare_routes(state.original_route, state.modified_route)


@router.get("/{session_id}/export")
async def export_gpx(
    state: AppState = Depends(get_loaded_session),
    generator: RouteGenerator = Depends(get_route_generator)
):
    """Download the modified route as a GPX 1.1 file."""
    route = await ensure_modified_route(state, generator)
    content = GPXParserService.serialize(route)
    filename = export_filename(state)

    logger.info(f"Exporting {len(route.points)} points as {filename}")

    return Response(
        content=content,
        media_type="application/gpx+xml",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
