"""Candidate page discovery for the portfolio sitemap."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
import logging
from pathlib import PurePosixPath
from typing import Final

from seo_sitemap_engine.schemas.sitemap_settings import SitemapSettings
from seo_sitemap_engine.services.content_lister import (
    ContentLister,
    ContentListingError,
    ContentMedia,
    ContentRecord,
)
from seo_sitemap_engine.services.sitemap_entry import (
    ChangeFrequency,
    SitemapAlternate,
    SitemapEntry,
    SitemapImage,
    SitemapVideo,
    is_absolute_http_url,
)

ALTERNATE_LANGUAGES: Final[tuple[tuple[str, str], ...]] = (("en", ""), ("fr", "/fr"))
VIDEO_DESCRIPTION_MAX_LENGTH: Final[int] = 200

_logger = logging.getLogger("seo_sitemap_engine.page_discovery")


@dataclass(slots=True, frozen=True)
class PageTemplate:
    """Fixed sitemap metadata for a static path or a dynamic category."""

    path: str
    priority: float | None = None
    changefreq: ChangeFrequency | None = None

    def resolve(self, settings: SitemapSettings) -> tuple[float, ChangeFrequency]:
        """Return priority and changefreq, falling back to the settings defaults."""

        priority = self.priority
        if priority is None:
            priority = settings.default_priority
        return priority, self.changefreq or settings.default_changefreq


STATIC_PAGES: Final[tuple[PageTemplate, ...]] = (
    PageTemplate("/", 1.0, ChangeFrequency.WEEKLY),
    PageTemplate("/experiences", 0.9, ChangeFrequency.WEEKLY),
    PageTemplate("/education", 0.8, ChangeFrequency.MONTHLY),
    PageTemplate("/skills", 0.8, ChangeFrequency.MONTHLY),
    PageTemplate("/certifications", 0.7, ChangeFrequency.MONTHLY),
)

DYNAMIC_CATEGORIES: Final[tuple[PageTemplate, ...]] = (
    PageTemplate("experiences", 0.6, ChangeFrequency.MONTHLY),
    PageTemplate("education", 0.5, ChangeFrequency.MONTHLY),
    PageTemplate("companies", 0.5, ChangeFrequency.MONTHLY),
    PageTemplate("highlights", 0.6, ChangeFrequency.WEEKLY),
)


class PageDiscoveryError(Exception):
    """Raised when discovery cannot start at all."""


@dataclass(slots=True, frozen=True)
class PageDiscoveryResult:
    """Discovered entries grouped by page type."""

    static_pages: list[SitemapEntry]
    dynamic_pages: list[SitemapEntry]
    media_pages: list[SitemapEntry] = field(default_factory=list)
    failed_categories: tuple[str, ...] = ()

    @property
    def total_count(self) -> int:
        return len(self.static_pages) + len(self.dynamic_pages) + len(self.media_pages)

    @property
    def entries(self) -> list[SitemapEntry]:
        return [*self.static_pages, *self.dynamic_pages, *self.media_pages]


def _record_lastmod(record: ContentRecord) -> str:
    raw_value = record.updated_at or record.created_at
    if raw_value is None:
        raise ValueError("record has neither updatedAt nor createdAt")

    normalized = raw_value.replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(normalized).date().isoformat()
    except ValueError:
        return date.fromisoformat(raw_value[:10]).isoformat()


def _absolute_url(base_url: str, url: str) -> str:
    if is_absolute_http_url(url):
        return url
    if not url.startswith("/"):
        url = f"/{url}"
    return f"{base_url}{url}"


def _thumbnail_url(media_url: str) -> str:
    media_path = PurePosixPath(media_url)
    if not media_path.suffix:
        return f"{media_url}_thumb.jpg"
    return f"{media_url[: -len(media_path.suffix)]}_thumb.jpg"


class PageDiscoveryService:
    """Build sitemap entries from static pages and listed content records."""

    def __init__(self, *, today: Callable[[], date] | None = None) -> None:
        self._today = today or (lambda: datetime.now(UTC).date())

    async def discover(
        self,
        base_url: str,
        content_lister: ContentLister,
        settings: SitemapSettings | None = None,
    ) -> PageDiscoveryResult:
        if not is_absolute_http_url(base_url):
            raise PageDiscoveryError(
                f"Base URL must be an absolute http(s) URL, got {base_url!r}"
            )

        active_settings = settings or SitemapSettings()
        normalized_base_url = base_url.rstrip("/")

        static_pages = self._static_entries(normalized_base_url, active_settings)
        dynamic_pages: list[SitemapEntry] = []
        failed_categories: list[str] = []

        for category in DYNAMIC_CATEGORIES:
            try:
                records = await content_lister.list_records(category.path)
            except Exception as exc:
                _logger.warning(
                    "Skipping category %s after listing failure: %s",
                    category.path,
                    exc,
                    exc_info=not isinstance(exc, ContentListingError),
                    extra={"category": category.path},
                )
                failed_categories.append(category.path)
                continue

            category_entries = self._category_entries(
                normalized_base_url,
                category,
                records,
                active_settings,
            )
            dynamic_pages.extend(category_entries)
            _logger.debug(
                "Discovered %d %s pages",
                len(category_entries),
                category.path,
                extra={"category": category.path, "url_count": len(category_entries)},
            )

        result = PageDiscoveryResult(
            static_pages=static_pages,
            dynamic_pages=dynamic_pages,
            media_pages=[],
            failed_categories=tuple(failed_categories),
        )
        _logger.info(
            {
                "event": "page_discovery_completed",
                "static_pages": len(result.static_pages),
                "dynamic_pages": len(result.dynamic_pages),
                "failed_categories": list(result.failed_categories),
            }
        )
        return result

    def _static_entries(
        self,
        base_url: str,
        settings: SitemapSettings,
    ) -> list[SitemapEntry]:
        lastmod = self._today().isoformat()
        entries: list[SitemapEntry] = []
        for page in STATIC_PAGES:
            priority, changefreq = page.resolve(settings)
            entries.append(
                SitemapEntry(
                    loc=f"{base_url}{page.path}",
                    lastmod=lastmod,
                    changefreq=changefreq,
                    priority=priority,
                    alternates=self._alternates(base_url, page.path, settings),
                )
            )
        return entries

    def _category_entries(
        self,
        base_url: str,
        category: PageTemplate,
        records: list[ContentRecord],
        settings: SitemapSettings,
    ) -> list[SitemapEntry]:
        priority, changefreq = category.resolve(settings)
        entries: list[SitemapEntry] = []
        for record in records:
            try:
                lastmod = _record_lastmod(record)
            except ValueError as exc:
                _logger.warning(
                    "Skipping %s record %r: %s",
                    category.path,
                    record.id,
                    exc,
                    extra={"category": category.path},
                )
                continue

            path = f"/{category.path}/{record.id}"
            entries.append(
                SitemapEntry(
                    loc=f"{base_url}{path}",
                    lastmod=lastmod,
                    changefreq=changefreq,
                    priority=priority,
                    images=self._images(base_url, record, settings),
                    videos=self._videos(base_url, record, settings),
                    alternates=self._alternates(base_url, path, settings),
                )
            )
        return entries

    @staticmethod
    def _alternates(
        base_url: str,
        path: str,
        settings: SitemapSettings,
    ) -> tuple[SitemapAlternate, ...]:
        if not settings.include_alternates:
            return ()
        return tuple(
            SitemapAlternate(hreflang=language, href=f"{base_url}{prefix}{path}")
            for language, prefix in ALTERNATE_LANGUAGES
        )

    @staticmethod
    def _media_of_type(record: ContentRecord, prefix: str) -> list[ContentMedia]:
        return [media for media in record.media if media.type.startswith(prefix)]

    def _images(
        self,
        base_url: str,
        record: ContentRecord,
        settings: SitemapSettings,
    ) -> tuple[SitemapImage, ...]:
        if not settings.include_images:
            return ()
        return tuple(
            SitemapImage(
                loc=_absolute_url(base_url, media.url),
                caption=record.title,
                title=record.title,
            )
            for media in self._media_of_type(record, "image/")
        )

    def _videos(
        self,
        base_url: str,
        record: ContentRecord,
        settings: SitemapSettings,
    ) -> tuple[SitemapVideo, ...]:
        if not settings.include_videos:
            return ()

        videos: list[SitemapVideo] = []
        for media in self._media_of_type(record, "video/"):
            description = None
            if record.description:
                description = record.description[:VIDEO_DESCRIPTION_MAX_LENGTH]
            videos.append(
                SitemapVideo(
                    loc=_absolute_url(base_url, media.url),
                    thumbnail_loc=_absolute_url(base_url, _thumbnail_url(media.url)),
                    title=record.title or record.id,
                    description=description,
                )
            )
        return tuple(videos)


__all__ = [
    "DYNAMIC_CATEGORIES",
    "PageDiscoveryError",
    "PageDiscoveryResult",
    "PageDiscoveryService",
    "PageTemplate",
    "STATIC_PAGES",
]
