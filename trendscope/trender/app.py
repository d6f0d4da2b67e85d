"""Trender service FastAPI application."""

import asyncio
import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from trendscope.annotator.llm_provider import AnnotationError, AnnotationProvider, AnnotationProviderFactory
from trendscope.core.db import create_all, dispose_engine
from trendscope.core.logging import get_logger, setup_logging
from trendscope.core.settings import get_settings, settings
from trendscope.core.time import parse_iso_timestamp
from trendscope.ingestor.rss import GoogleNewsFeed
from trendscope.signals import RedditSocialLookup, SocialLookup, VideoLookup, YouTubeVideoLookup
from trendscope.trender.cache import SnapshotCache, build_snapshot_cache
from trendscope.trender.scheduler import run_scheduled_job, scheduler_loop

# Setup logging
setup_logging("trender")
logger = get_logger(__name__)

SERVICE_VERSION = "0.1.0"

app = FastAPI(title="Trendscope Trender", version=SERVICE_VERSION, description="Regional trending topics API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class TrendsResponse(BaseModel):
    """Response model for live and historical trends."""
    geo: str
    source: str
    timestamp: Optional[str] = None
    count: int
    trends: List[Dict[str, Any]]


class SummaryRequest(BaseModel):
    """Request model for a trending summary."""
    keyword: Optional[str] = None
    headlines: Optional[List[str]] = None
    geo: str = "US"


class SummaryResponse(BaseModel):
    summary: str


class ContextResponse(BaseModel):
    """Related news, videos and social posts for one keyword."""
    keyword: str
    news: List[Dict[str, Any]]
    videos: List[Dict[str, Any]]
    social: List[Dict[str, Any]]


@lru_cache()
def get_snapshot_cache() -> SnapshotCache:
    return build_snapshot_cache()


@lru_cache()
def get_annotator() -> AnnotationProvider:
    return AnnotationProviderFactory.create_provider()


@lru_cache()
def get_news_feed() -> GoogleNewsFeed:
    config = get_settings()
    return GoogleNewsFeed(timeout=config.collaborator_timeout_seconds, max_items=config.feed_max_items)


@lru_cache()
def get_video_lookup() -> VideoLookup:
    config = get_settings()
    return YouTubeVideoLookup(
        api_key=config.youtube_api_key,
        max_results=config.video_max_results,
        timeout=config.collaborator_timeout_seconds,
    )


@lru_cache()
def get_social_lookup() -> SocialLookup:
    config = get_settings()
    return RedditSocialLookup(
        enabled=config.social_enabled,
        max_results=config.social_max_results,
        timeout=config.collaborator_timeout_seconds,
    )


def check_manual_run_enabled():
    """Check if manual runs are enabled via environment flag."""
    if not get_settings().allow_manual_run:
        raise HTTPException(
            status_code=403,
            detail="Manual runs are disabled. Set ALLOW_MANUAL_RUN=true to enable."
        )
    return True


def _region(geo: Optional[str]) -> str:
    return (geo or get_settings().default_region).strip().upper()


@app.get("/healthz")
async def health_check():
    """Health check endpoint."""
    return {"ok": True, "service": "trender"}


@app.get("/")
async def root():
    """Root endpoint."""
    service_name = os.getenv("SERVICE_NAME", "trender")

    return {
        "service": service_name,
        "version": SERVICE_VERSION,
        "manual_run_enabled": get_settings().allow_manual_run,
        "endpoints": {
            "health": "/healthz",
            "trends": "/trends?geo=US",
            "history": "/history?geo=US&timestamp=ISO-8601",
            "context": "/context?keyword=...&geo=US",
            "summary": "/summary (POST)",
            "cron_run": "/cron/run (POST)"
        }
    }


@app.get("/trends", response_model=TrendsResponse)
async def get_trends(
    geo: str = Query(default="US", description="Region code"),
    cache: SnapshotCache = Depends(get_snapshot_cache)
):
    """
    Trending topics for a region.

    Served from the newest stored snapshot while it is fresh, otherwise
    computed live and stored. An unavailable feed yields an empty list.
    """
    region = _region(geo)
    try:
        result = await cache.get_trends(region)
    except Exception as e:
        logger.error(f"Failed to fetch trends for {region}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch trends")

    return TrendsResponse(**result.to_dict())


@app.get("/history", response_model=TrendsResponse)
async def get_history(
    geo: str = Query(default="US", description="Region code"),
    timestamp: Optional[str] = Query(default=None, description="ISO-8601 timestamp"),
    cache: SnapshotCache = Depends(get_snapshot_cache)
):
    """Trending topics of the stored run closest to ``timestamp``."""
    if not timestamp:
        raise HTTPException(status_code=400, detail="Timestamp is required")

    target = parse_iso_timestamp(timestamp)
    if target is None:
        raise HTTPException(status_code=400, detail=f"Invalid timestamp: {timestamp}")

    region = _region(geo)
    try:
        result = await cache.get_history(region, target)
    except Exception as e:
        logger.error(f"Failed to fetch history for {region}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal Server Error")

    return TrendsResponse(**result.to_dict())


@app.get("/context", response_model=ContextResponse)
async def get_context(
    keyword: Optional[str] = Query(default=None),
    geo: str = Query(default="US", description="Region code"),
    feed: GoogleNewsFeed = Depends(get_news_feed),
    video_lookup: VideoLookup = Depends(get_video_lookup),
    social_lookup: SocialLookup = Depends(get_social_lookup)
):
    """Related news, videos and social posts for one keyword."""
    if not keyword or not keyword.strip():
        raise HTTPException(status_code=400, detail="Keyword is required")

    keyword = keyword.strip()
    region = _region(geo)

    news, videos, social = await asyncio.gather(
        feed.search(keyword, region),
        video_lookup.search(keyword),
        social_lookup.search(keyword),
        return_exceptions=True
    )

    for name, value in (("news", news), ("videos", videos), ("social", social)):
        if isinstance(value, Exception):
            logger.warning(f"Context {name} lookup failed for '{keyword}' ({region}): {value}")

    def _items(value) -> List[Dict[str, Any]]:
        return [] if isinstance(value, Exception) else [item.to_dict() for item in value]

    return ContextResponse(keyword=keyword, news=_items(news), videos=_items(videos), social=_items(social))


@app.post("/summary", response_model=SummaryResponse)
async def get_summary(
    request: SummaryRequest,
    annotator: AnnotationProvider = Depends(get_annotator)
):
    """One-sentence explanation of why a keyword is trending."""
    if not request.keyword or not request.headlines:
        raise HTTPException(status_code=400, detail="Invalid input")

    if not annotator.is_configured:
        return SummaryResponse(summary="AI API key not configured. Set GEMINI_API_KEY to enable summaries.")

    try:
        summary = await annotator.summarize(request.keyword, request.headlines, _region(request.geo))
    except AnnotationError as e:
        logger.error(f"Summary generation failed for '{request.keyword}': {e}")
        raise HTTPException(status_code=500, detail="Failed to generate summary")

    return SummaryResponse(summary=summary)


@app.post("/cron/run")
async def run_cron(
    _: bool = Depends(check_manual_run_enabled),
    cache: SnapshotCache = Depends(get_snapshot_cache)
):
    """Refresh every tracked region now, irrespective of freshness."""
    logger.info("Starting trend refresh via API", extra={"endpoint": "/cron/run"})
    return await run_scheduled_job(cache)


@app.on_event("startup")
async def startup_event():
    """Startup event handler."""
    config = get_settings()
    await create_all()

    if config.scheduler_enabled:
        app.state.scheduler_task = asyncio.create_task(
            scheduler_loop(get_snapshot_cache(), config.scheduler_interval_hours * 3600)
        )

    logger.info(
        "Starting trender service",
        extra={
            "service": "trender",
            "version": SERVICE_VERSION,
            "scheduler_enabled": config.scheduler_enabled,
            "manual_runs_enabled": config.allow_manual_run
        }
    )


async def _close_cached(getter) -> None:
    """Close the instance behind an lru_cached dependency, if one was built."""
    if getter.cache_info().currsize:
        await getter().aclose()
        getter.cache_clear()


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown event handler."""
    task = getattr(app.state, "scheduler_task", None)
    if task:
        task.cancel()

    for getter in (get_snapshot_cache, get_annotator, get_news_feed, get_video_lookup, get_social_lookup):
        await _close_cached(getter)
    await dispose_engine()

    logger.info("Shutting down trender service")


if __name__ == "__main__":
    logger.info("Starting trender service via uvicorn")
    uvicorn.run(
        "trendscope.trender.app:app",
        host=settings.service_host,
        port=settings.service_port or 8002,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
