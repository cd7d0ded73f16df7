"""
Health Check Endpoints

- /health/live - Liveness check (is process running)
- /health - Basic status including the last feed sync state
"""

from fastapi import APIRouter, Depends
from datetime import datetime, timezone

from .. import __version__
from ..services.feed_loader import CalendarFeedLoader
from ..utils.dependencies import get_feed_loader

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/live")
@router.get("/live/")
async def liveness_check():
    """
    Liveness probe - is the process running?
    """
    return {
        "status": "alive",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("")
@router.get("/")
async def simple_health_check(loader: CalendarFeedLoader = Depends(get_feed_loader)):
    """
    Simple health check. A failed feed sync degrades the service but the
    calendar still answers (with empty rows).
    """
    return {
        "status": "degraded" if loader.error else "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "sync_status": loader.status.value
    }
