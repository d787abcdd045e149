"""
Classroom Dashboards - FastAPI Application
Assignment, activity and organization reads served through the shared cache
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from classroom.cache import CacheJanitor, CacheManager, get_cache_manager
from classroom.datastore import DataStoreError, DataStoreNotConfigured
from classroom.schemas import (
    CacheCleanupResult,
    CacheClearResult,
    CacheStats,
    HealthStatus,
    PreloadSummary,
    VersionInfo,
)
from classroom.view_models import DashboardData
from config.settings import settings

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger("classroom")

# Version tracking
APP_VERSION = "v0.3.0"
APP_NAME = "Classroom Dashboards"


@asynccontextmanager
async def lifespan(app: FastAPI):
    janitor = CacheJanitor(get_cache_manager())
    janitor.start()
    app.state.janitor = janitor
    try:
        yield
    finally:
        await janitor.stop()


app = FastAPI(
    title=APP_NAME,
    description="Cached reads for assignment, activity and organization dashboards",
    version=APP_VERSION,
    lifespan=lifespan,
)


def get_cache() -> CacheManager:
    return get_cache_manager()


def get_dashboard(cache: CacheManager = Depends(get_cache)) -> DashboardData:
    return DashboardData(cache)


@app.exception_handler(DataStoreError)
async def data_store_error_handler(request: Request, exc: DataStoreError):
    if isinstance(exc, DataStoreNotConfigured):
        status = 503
    elif exc.is_not_found:
        status = 404
    else:
        status = 502
    logger.warning(f"Data store error on {request.url.path}: {exc!r}")
    return JSONResponse(status_code=status, content={"error": exc.to_dict()})


@app.get("/health", response_model=HealthStatus)
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version", response_model=VersionInfo)
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}",
    }


@app.get("/cache/stats", response_model=CacheStats)
def cache_stats(cache: CacheManager = Depends(get_cache)):
    """Get cache statistics."""
    return cache.get_cache_stats()


@app.post("/cache/clear", response_model=CacheClearResult)
def cache_clear(
    pattern: Optional[str] = Query(default=None, description="Only clear keys containing this text"),
    cache: CacheManager = Depends(get_cache),
):
    """Invalidate cached reads, all of them or those matching a pattern."""
    return {"cleared": cache.clear_cache(pattern), "pattern": pattern}


@app.post("/cache/cleanup", response_model=CacheCleanupResult)
def cache_cleanup(cache: CacheManager = Depends(get_cache)):
    """Evict expired entries now instead of waiting for the janitor."""
    return {"removed": cache.cleanup_expired_cache()}


@app.get("/organizations")
async def organizations(
    forceRefresh: bool = Query(default=False, description="Bypass cache and fetch fresh data"),
    x_user_id: Optional[str] = Header(default=None),
    dashboard: DashboardData = Depends(get_dashboard),
):
    rows = await dashboard.list_organizations(principal_id=x_user_id, force_refresh=forceRefresh)
    return jsonable_encoder(rows)


@app.get("/assignments")
async def assignments(
    organization_id: Optional[str] = None,
    forceRefresh: bool = Query(default=False, description="Bypass cache and fetch fresh data"),
    x_user_id: Optional[str] = Header(default=None),
    dashboard: DashboardData = Depends(get_dashboard),
):
    rows = await dashboard.list_assignments(
        organization_id, principal_id=x_user_id, force_refresh=forceRefresh
    )
    return jsonable_encoder(rows)


@app.get("/assignments/{assignment_id}")
async def assignment_detail(
    assignment_id: str,
    x_user_id: Optional[str] = Header(default=None),
    dashboard: DashboardData = Depends(get_dashboard),
):
    assignment = await dashboard.get_assignment(assignment_id, principal_id=x_user_id)
    questions = await dashboard.list_questions(assignment_id, principal_id=x_user_id)
    return jsonable_encoder({"assignment": assignment, "questions": questions})


@app.get("/activity")
async def activity(
    since: Optional[str] = Query(default=None, description="ISO timestamp lower bound on started_at"),
    limit: int = Query(default=100, ge=1, le=1000),
    x_user_id: Optional[str] = Header(default=None),
    dashboard: DashboardData = Depends(get_dashboard),
):
    rows = await dashboard.recent_activity(principal_id=x_user_id, since=since, limit=limit)
    return jsonable_encoder(rows)


@app.post("/dashboard/preload", response_model=PreloadSummary)
async def dashboard_preload(
    organization_id: Optional[str] = None,
    x_user_id: Optional[str] = Header(default=None),
    dashboard: DashboardData = Depends(get_dashboard),
):
    """Warm the cache for a dashboard's first render. Never fails on individual reads."""
    return await dashboard.preload_dashboard(x_user_id, organization_id)
