"""
Pydantic schemas for API response models
"""
from typing import List, Optional

from pydantic import BaseModel


# ===== SERVICE SCHEMAS =====

class HealthStatus(BaseModel):
    status: str


class VersionInfo(BaseModel):
    name: str
    version: str
    full: str


# ===== CACHE SCHEMAS =====

class CacheStats(BaseModel):
    """Entry counts never evict anything; counters cover reads since start."""
    total_entries: int
    valid_entries: int
    expired_entries: int
    pending_requests: int
    hits: int
    misses: int
    fetch_errors: int
    hit_rate_percent: float


class CacheClearResult(BaseModel):
    cleared: int
    pattern: Optional[str] = None


class CacheCleanupResult(BaseModel):
    removed: int


class PreloadSummary(BaseModel):
    """Outcome of a preload; individual read failures are listed, not raised."""
    planned: int
    loaded: int
    errors: List[str] = []
