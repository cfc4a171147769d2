"""
Refuel API

FastAPI application for planning refuelling detours along GPX routes.
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from refuel import __version__
from refuel.api.v1.router import api_router
from refuel.config import settings
from refuel.features.session import session_store


# === Logging Setup ===
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)


# === Lifespan ===
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting Refuel API...")
    if settings.directions_provider == "mapbox" and not settings.mapbox_access_token:
        logger.info("Directions skipped (MAPBOX_TOKEN not set), detours use straight insertion")
    else:
        logger.info(f"Directions provider: {settings.directions_provider}")

    yield

    logger.info(f"Shutting down, dropping {len(session_store)} sessions...")


# === App Creation ===
app = FastAPI(
    title="Refuel API",
    description="Find water, food and stores along a GPX route and detour to them",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# === Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# === Routes ===
app.include_router(api_router, prefix="/api/v1")


# === Health Check ===
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("refuel.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
