"""Pydantic schemas for sitemap generation settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from seo_sitemap_engine.services.sitemap_entry import MAX_SITEMAP_URLS, ChangeFrequency

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = ("/boss/", "/api/", "/admin/")


class SitemapSettings(BaseModel):
    """Generation settings; a run works on one immutable snapshot."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    max_urls: int = Field(default=MAX_SITEMAP_URLS, ge=1, le=MAX_SITEMAP_URLS)
    include_images: bool = True
    include_videos: bool = True
    include_alternates: bool = True
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )
    default_priority: float = Field(default=0.5, ge=0.0, le=1.0)
    default_changefreq: ChangeFrequency = Field(
        default=ChangeFrequency.WEEKLY,
        alias="defaultChangeFreq",
    )
    cache_duration_minutes: int = Field(default=60, ge=1, alias="cacheDuration")
    auto_generate: bool = False

    def merged(self, update: SitemapSettingsUpdate | None) -> SitemapSettings:
        """Return a copy with the explicitly set fields of ``update`` applied."""

        if update is None:
            return self
        changes = {
            key: value
            for key, value in update.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not changes:
            return self
        return SitemapSettings.model_validate({**self.model_dump(), **changes})


class SitemapSettingsUpdate(BaseModel):
    """Partial settings payload; only fields that are sent are applied."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    max_urls: int | None = Field(default=None, ge=1, le=MAX_SITEMAP_URLS)
    include_images: bool | None = None
    include_videos: bool | None = None
    include_alternates: bool | None = None
    exclude_patterns: list[str] | None = None
    default_priority: float | None = Field(default=None, ge=0.0, le=1.0)
    default_changefreq: ChangeFrequency | None = Field(
        default=None,
        alias="defaultChangeFreq",
    )
    cache_duration_minutes: int | None = Field(
        default=None,
        ge=1,
        alias="cacheDuration",
    )
    auto_generate: bool | None = None


__all__ = ["DEFAULT_EXCLUDE_PATTERNS", "SitemapSettings", "SitemapSettingsUpdate"]
