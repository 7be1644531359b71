"""API routes for StationPlay"""

from fastapi import APIRouter

from .health import router as health_router
from .playback import router as playback_router
from .programs import router as programs_router
from .scheduler import router as scheduler_router

# Create the main API router
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["Health"])
api_router.include_router(playback_router, tags=["Playback"])
api_router.include_router(scheduler_router, tags=["Scheduler"])
api_router.include_router(programs_router, tags=["Programs"])

__all__ = ["api_router"]
