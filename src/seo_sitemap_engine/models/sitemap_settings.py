"""Persisted sitemap generation settings."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column

from seo_sitemap_engine.models.base import Base

SITEMAP_SETTINGS_ROW_ID = 1


class SitemapSettingsRecord(Base):
    """Single-row table holding the active generation settings."""

    __tablename__ = "sitemap_settings"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, default=SITEMAP_SETTINGS_ROW_ID
    )
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


__all__ = ["SITEMAP_SETTINGS_ROW_ID", "SitemapSettingsRecord"]
