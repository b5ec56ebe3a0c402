"""Configuration management using Pydantic Settings.

This module provides type-safe configuration with automatic environment
variable loading and validation.

The configuration is organized into logical groups:
- DatabaseConfig: Match cache database connection
- LoggingConfig: Logging levels, files, and debugging options
- RateLimitConfig: Throughput control for target catalog calls
- MatchingConfig: Search limits and batch behaviour of the matchers
- CacheConfig: Retention of cached match outcomes
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Match cache database connection."""

    url: str = "sqlite+aiosqlite:///data/db/crosswalk.db"
    echo: bool = False


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("crosswalk.log")
    real_time_debug: bool = True


class RateLimitConfig(BaseModel):
    """Target catalog rate limiting and retry behaviour."""

    requests_per_second: float = Field(default=5.0, gt=0)
    burst_size: int = Field(default=2, ge=1)
    max_queue_size: int = Field(default=0, ge=0)  # 0 = unbounded
    retry_count: int = Field(default=2, ge=0)
    retry_base_delay: float = 0.5
    retry_max_delay: float = 10.0


class MatchingConfig(BaseModel):
    """Waterfall matcher configuration."""

    exact_search_limit: int = Field(default=10, ge=1)
    fuzzy_search_limit: int = Field(default=20, ge=1)
    suggestion_limit: int = Field(default=5, ge=0)
    concurrency: int = Field(default=1, ge=1)


class CacheConfig(BaseModel):
    """Match cache retention."""

    retention_days: int = Field(default=30, ge=0)


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Nested values are set with a double underscore, e.g.
    RATE_LIMIT__REQUESTS_PER_SECOND=6 or DATABASE__URL=sqlite+aiosqlite:///x.db.

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    matching: MatchingConfig = MatchingConfig()
    cache: CacheConfig = CacheConfig()


# Singleton instance for application use
settings = Settings()
