"""
Runtime settings for the backtesting service.

Deploy-time values are read from the environment (``BACKTESTER_`` prefix)
or a local ``.env`` file; fixed domain limits live in ``constants``.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_backtester.core.constants import (
    ALPHA_VANTAGE_BASE_URL,
    ALPHA_VANTAGE_RATE_LIMIT,
    DEFAULT_JOB_LIST_LIMIT,
    DEFAULT_POSITION_FRACTION,
    MAX_CONCURRENT_JOBS,
)


class Settings(BaseSettings):
    """Service settings."""

    model_config = SettingsConfigDict(
        env_prefix="BACKTESTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Scheduler
    max_concurrent_jobs: int = MAX_CONCURRENT_JOBS
    job_list_limit: int = DEFAULT_JOB_LIST_LIMIT

    # Alpha Vantage
    alpha_vantage_api_key: str = ""
    alpha_vantage_base_url: str = ALPHA_VANTAGE_BASE_URL
    alpha_vantage_rate_limit: int = ALPHA_VANTAGE_RATE_LIMIT
    request_timeout_seconds: float = 30.0

    # CSV provider, request paths resolve inside this directory
    csv_data_dir: Path = Path("data")

    # Paper portfolio
    position_fraction: float = DEFAULT_POSITION_FRACTION


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
