"""
POI Routes

Endpoints for discovering points of interest along the loaded route and
choosing which ones to visit.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from refuel.api.deps import get_discovery_service, get_loaded_session, get_session
from refuel.features.poi import CandidatePOI, POIDiscoveryService
from refuel.features.session import AppState
from refuel.shared.exceptions import NetworkError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/{session_id}/pois/discover", response_model=List[CandidatePOI])
async def discover_pois(
    state: AppState = Depends(get_loaded_session),
    discovery: POIDiscoveryService = Depends(get_discovery_service)
):
    """
    Search POIs within the session's deviation distance of the route.

    Replaces any previous results. Provider failures return 502 and can
    be retried.
    """
    route_revision = state.route_revision
    try:
        pois = await discovery.fetch_candidates(
            state.original_route.points,
            state.filters,
            state.max_deviation_km,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except NetworkError as e:
        logger.error(f"POI discovery failed: {e}")
        raise HTTPException(
            status_code=502,
            detail="Failed to fetch POIs. Please try again."
        )

    if not state.set_pois(pois, route_revision):
        raise HTTPException(
            status_code=409,
            detail="Route changed during POI discovery. Please try again."
        )
    return state.pois


@router.get("/{session_id}/pois", response_model=List[CandidatePOI])
async def list_pois(state: AppState = Depends(get_session)):
    """List discovered POIs in route order."""
    return state.pois


@router.post("/{session_id}/pois/{poi_id}/toggle", response_model=CandidatePOI)
async def toggle_poi(
    poi_id: str,
    state: AppState = Depends(get_session)
):
    """Select or deselect a POI."""
    try:
        return state.toggle_poi(poi_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="POI not found")
