"""Application configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

from lit_pulse.constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_CACHE_DIR,
    DEFAULT_CACHE_KEY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MIN_REQUEST_INTERVAL,
    DEFAULT_TIMEOUT,
    LOOKBACK_DAYS,
    PUBMED_DETAIL_BATCH_SIZE,
    PUBMED_SEARCH_MAX_RESULTS,
    REFRESH_CHECK_MINUTES,
    STALENESS_HOURS,
    WEEKLY_PERIODS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LIT_PULSE_",
        extra="ignore",
        frozen=True,
    )

    # NCBI
    ncbi_api_key: str = ""
    ncbi_tool: str = "lit-pulse"
    ncbi_email: str = ""

    # Fetching
    request_timeout_seconds: PositiveFloat = DEFAULT_TIMEOUT
    max_attempts: PositiveInt = DEFAULT_MAX_ATTEMPTS
    backoff_base_seconds: float = DEFAULT_BACKOFF_BASE
    min_request_interval_seconds: float = DEFAULT_MIN_REQUEST_INTERVAL
    detail_batch_size: PositiveInt = PUBMED_DETAIL_BATCH_SIZE
    search_max_results: PositiveInt = PUBMED_SEARCH_MAX_RESULTS
    fetch_abstracts: bool = True
    enable_scholar: bool = True

    # Pipeline / refresh
    lookback_days: PositiveInt = LOOKBACK_DAYS
    staleness_hours: PositiveInt = STALENESS_HOURS
    refresh_check_minutes: PositiveInt = REFRESH_CHECK_MINUTES
    weekly_periods: PositiveInt = WEEKLY_PERIODS

    # Cache
    cache_dir: Path = DEFAULT_CACHE_DIR
    cache_key: str = DEFAULT_CACHE_KEY

    # Domain profile (JSON); the built-in radiology profile is used when unset
    profile_path: Path | None = None

    # App Settings
    debug: bool = False
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
