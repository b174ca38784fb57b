from fastapi import APIRouter

from .routes import config, health, locations, sessions

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
api_router.include_router(locations.router, prefix="/locations", tags=["locations"])
api_router.include_router(sessions.router, prefix="/session", tags=["session"])
