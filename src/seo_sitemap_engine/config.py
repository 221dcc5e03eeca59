"""Application settings loaded from environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    DATABASE_URL: str = "sqlite+aiosqlite:///./data/seo_sitemap_engine.db"
    HOST: str = "0.0.0.0"
    PORT: int = Field(default=8000, ge=1, le=65535)
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "text"
    LOG_FILE: Path | None = None
    LOG_FILE_MAX_BYTES: int = Field(default=10_485_760, ge=1)
    LOG_FILE_BACKUP_COUNT: int = Field(default=5, ge=1)
    SITE_BASE_URL: str = "https://resumeflex.com"
    CONTENT_API_BASE_URL: str = "http://localhost:3000"
    CONTENT_API_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    URL_CHECK_BATCH_SIZE: int = Field(default=10, ge=1)
    URL_CHECK_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    URL_CHECK_FOLLOW_REDIRECTS: bool = False
    OUTBOUND_HTTP_USER_AGENT: str = "SeoSitemapEngine/0.1"
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_JOBSTORE_URL: str = "sqlite:///./scheduler-jobs.sqlite"

    @field_validator("LOG_FILE", mode="before")
    @classmethod
    def parse_log_file(cls, value: object) -> object:
        if value in (None, ""):
            return None
        return value

    @field_validator("SITE_BASE_URL", "CONTENT_API_BASE_URL")
    @classmethod
    def validate_http_origin(cls, value: str) -> str:
        parsed_url = urlsplit(value.strip())
        if parsed_url.scheme not in {"http", "https"} or not parsed_url.netloc:
            raise ValueError(f"Expected an absolute http(s) URL, got {value!r}")
        return value.strip().rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
