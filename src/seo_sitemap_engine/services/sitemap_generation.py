"""Sitemap generation pipeline: discover, filter, sort, limit, render, validate."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
import logging

from seo_sitemap_engine.schemas.sitemap_settings import SitemapSettings
from seo_sitemap_engine.services.content_lister import ContentLister
from seo_sitemap_engine.services.entry_filter import filter_by_pattern
from seo_sitemap_engine.services.entry_sorter import (
    SortDirection,
    SortKey,
    sort_entries,
)
from seo_sitemap_engine.services.page_discovery import PageDiscoveryService
from seo_sitemap_engine.services.sitemap_entry import SitemapEntry
from seo_sitemap_engine.services.sitemap_serializer import render_sitemap
from seo_sitemap_engine.services.sitemap_store import (
    SitemapStore,
    StoredSitemap,
    publish_sitemap,
)
from seo_sitemap_engine.services.sitemap_validator import (
    ValidationResult,
    validate_sitemap,
)

_logger = logging.getLogger("seo_sitemap_engine.generation")


@dataclass(slots=True, frozen=True)
class SitemapGenerationStats:
    """Counters describing one generation run."""

    total_urls: int
    discovered: int
    excluded: int
    truncated: int
    duplicates: int
    with_images: int
    with_videos: int
    with_alternates: int
    failed_categories: tuple[str, ...]
    generated_at: datetime


@dataclass(slots=True, frozen=True)
class SitemapGenerationResult:
    """Entries, rendered document and validation outcome of one run."""

    entries: list[SitemapEntry]
    xml: str
    validation: ValidationResult
    stats: SitemapGenerationStats
    settings: SitemapSettings


def count_duplicate_locs(entries: Sequence[SitemapEntry]) -> int:
    """Number of entries whose ``loc`` already appeared earlier."""

    counts = Counter(entry.loc for entry in entries)
    return sum(count - 1 for count in counts.values())


class SitemapGenerationService:
    """Run the generation pipeline over one settings snapshot."""

    def __init__(self, *, discovery_service: PageDiscoveryService | None = None) -> None:
        self._discovery_service = discovery_service or PageDiscoveryService()

    async def generate(
        self,
        *,
        base_url: str,
        content_lister: ContentLister,
        settings: SitemapSettings,
    ) -> SitemapGenerationResult:
        discovery = await self._discovery_service.discover(
            base_url,
            content_lister,
            settings,
        )
        discovered = discovery.entries

        kept = filter_by_pattern(discovered, settings.exclude_patterns)
        ordered = sort_entries(kept, SortKey.PRIORITY, SortDirection.DESC)
        limited = ordered[: settings.max_urls]

        xml = render_sitemap(limited)
        validation = validate_sitemap(xml)

        stats = SitemapGenerationStats(
            total_urls=len(limited),
            discovered=len(discovered),
            excluded=len(discovered) - len(kept),
            truncated=len(ordered) - len(limited),
            duplicates=count_duplicate_locs(limited),
            with_images=sum(1 for entry in limited if entry.images),
            with_videos=sum(1 for entry in limited if entry.videos),
            with_alternates=sum(1 for entry in limited if entry.alternates),
            failed_categories=discovery.failed_categories,
            generated_at=datetime.now(UTC),
        )

        _logger.info(
            "Generated sitemap with %d URLs",
            stats.total_urls,
            extra={
                "url_count": stats.total_urls,
                "error_count": len(validation.errors),
                "warning_count": len(validation.warnings),
            },
        )
        if stats.truncated:
            _logger.warning(
                "Dropped %d entries beyond the %d URL limit",
                stats.truncated,
                settings.max_urls,
            )

        return SitemapGenerationResult(
            entries=limited,
            xml=xml,
            validation=validation,
            stats=stats,
            settings=settings,
        )

    async def generate_and_publish(
        self,
        *,
        base_url: str,
        content_lister: ContentLister,
        settings: SitemapSettings,
        store: SitemapStore,
    ) -> tuple[SitemapGenerationResult, StoredSitemap]:
        """Generate a sitemap and publish it; invalid output is refused."""

        result = await self.generate(
            base_url=base_url,
            content_lister=content_lister,
            settings=settings,
        )
        stored = await publish_sitemap(
            store,
            result.xml,
            result.entries,
            result.validation,
        )
        return result, stored


__all__ = [
    "SitemapGenerationResult",
    "SitemapGenerationService",
    "SitemapGenerationStats",
    "count_duplicate_locs",
]
