"""Stored sitemap ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from seo_sitemap_engine.models.base import Base


class StoredSitemap(Base):
    """Published sitemap document."""

    __tablename__ = "stored_sitemaps"
    __table_args__ = (Index("ix_stored_sitemaps_generated_at", "generated_at"),)

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    xml: Mapped[str] = mapped_column(Text, nullable=False)
    url_count: Mapped[int] = mapped_column(Integer, nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    urls: Mapped[list[StoredSitemapUrl]] = relationship(
        back_populates="sitemap",
        cascade="all, delete-orphan",
        order_by="StoredSitemapUrl.position",
    )


class StoredSitemapUrl(Base):
    """One entry of a published sitemap, kept in sitemap order."""

    __tablename__ = "stored_sitemap_urls"
    __table_args__ = (
        UniqueConstraint(
            "sitemap_id",
            "position",
            name="uq_stored_sitemap_urls_sitemap_id_position",
        ),
        Index("ix_stored_sitemap_urls_sitemap_id", "sitemap_id"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid4
    )
    sitemap_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("stored_sitemaps.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    loc: Mapped[str] = mapped_column(String(4096), nullable=False)
    lastmod: Mapped[str | None] = mapped_column(String(32))
    changefreq: Mapped[str | None] = mapped_column(String(16))
    priority: Mapped[float | None] = mapped_column(Float)
    extensions: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    sitemap: Mapped[StoredSitemap] = relationship(back_populates="urls")


__all__ = ["StoredSitemap", "StoredSitemapUrl"]
