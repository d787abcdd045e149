"""Configuration management using pydantic-settings."""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Hosted database (PostgREST endpoint + anon key)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    request_timeout_seconds: float = 30.0

    # Cache settings
    cache_enabled: bool = True
    cache_short_ttl_seconds: int = 300      # lists that change often
    cache_long_ttl_seconds: int = 900       # single records by ID
    cache_activity_ttl_seconds: int = 120   # activity feeds on dashboards
    cache_janitor_interval_seconds: int = 300

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
