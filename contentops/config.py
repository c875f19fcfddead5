"""Application configuration using pydantic-settings."""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "ContentOps"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Redis (workflow state mirror)
    redis_url: str = "redis://localhost:6379/0"
    workflow_state_ttl_seconds: int = 86400  # 24 hours

    # Content generation job service
    content_api_base_url: str = "http://localhost:8100/api"
    content_api_key: str | None = None
    content_api_timeout: float = 30.0
    content_job_poll_interval_seconds: float = 5.0
    content_job_max_poll_attempts: int = 60
    content_job_timeout_seconds: float | None = None

    # Image generation service
    image_api_base_url: str = "http://localhost:8200/api"
    image_api_key: str | None = None
    image_api_timeout: float = 120.0
    featured_image_width: int = 1920
    featured_image_height: int = 1080
    thumbnail_image_size: int = 400
    content_image_count: int = 2

    # Site content repository (Webflow Data API v2)
    site_api_base_url: str = "https://api.webflow.com/v2"
    site_api_timeout: float = 30.0
    crawl_page_size: int = 100
    crawl_max_items_per_collection: int = 1000
    crawl_concurrency: int = 4

    # Interlinking
    interlinking_min_relevance: float = 0.3
    interlinking_deep_analysis: bool = False
    interlinking_deep_top_n: int = 10
    link_sources_path: str | None = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, value: object) -> object:
        """Accept JSON list or comma-separated values for CORS_ORIGINS."""
        if not isinstance(value, str):
            return value

        raw = value.strip()
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return [origin.strip() for origin in raw.split(",") if origin.strip()]

        if isinstance(parsed, str):
            parsed = [parsed]
        if not isinstance(parsed, list):
            raise ValueError("CORS_ORIGINS must be a JSON array or comma-separated string.")
        return [str(origin).strip() for origin in parsed if str(origin).strip()]

    @field_validator("content_job_max_poll_attempts", "crawl_page_size", "crawl_concurrency")
    @classmethod
    def _require_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()

    return settings


settings = get_settings()
