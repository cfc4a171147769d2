"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from refuel.api.v1.routes import planning, pois, sessions

api_router = APIRouter()

api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(pois.router, prefix="/sessions", tags=["POIs"])
api_router.include_router(planning.router, prefix="/sessions", tags=["Planning"])
