from typing import Annotated
from fastapi import APIRouter, Depends, Query, Response
import logging

from xmltv_bridge import __version__
from xmltv_bridge.config import settings
from xmltv_bridge.dependencies import get_guide_service, get_warm_scheduler
from xmltv_bridge.schemas import GuideQuery, HealthResponse
from xmltv_bridge.services.guide_service import GuideService
from xmltv_bridge.services.scheduler_service import GuideWarmScheduler


logger = logging.getLogger(__name__)

XMLTV_MEDIA_TYPE = "application/xml; charset=utf-8"

main_router = APIRouter()


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    return {
        "service": "XMLTV Bridge",
        "version": __version__,
        "default_playlist": settings.default_playlist_url,
        "endpoints": {
            "xmltv": "/xmltv - XMLTV guide for the playlist (optional ?m3u=<url>)",
            "epg.xml": "/epg.xml - Alias of /xmltv",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health", response_model=HealthResponse)
async def health_check(
    guide_service: Annotated[GuideService, Depends(get_guide_service)],
    scheduler: Annotated[GuideWarmScheduler, Depends(get_warm_scheduler)],
) -> HealthResponse:
    """Health check endpoint"""
    key = guide_service.cache_key()
    next_run = scheduler.get_next_run_time()
    return HealthResponse(
        status="ok",
        guide_cached=guide_service.cache.get(key) is not None,
        guide_rebuilding=guide_service.cache.is_computing(key),
        warm_scheduler_running=scheduler.running,
        next_warm_up=next_run.isoformat() if next_run else None,
    )


@main_router.get("/xmltv")
@main_router.get("/epg.xml")
async def get_guide(
    query: Annotated[GuideQuery, Query()],
    guide_service: Annotated[GuideService, Depends(get_guide_service)],
) -> Response:
    """
    XMLTV guide for the default or overridden playlist

    Always answers 200; a failed build yields an empty guide without
    public caching.
    """
    document = await guide_service.get_document(query.m3u)

    headers = {}
    if not document.degraded:
        headers["Cache-Control"] = f"public, max-age={settings.guide_cache_max_age_sec}"
    else:
        logger.warning("Serving empty guide after build failure")

    return Response(content=document.content, media_type=XMLTV_MEDIA_TYPE, headers=headers)
