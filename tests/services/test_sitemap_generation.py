"""Tests for the sitemap generation pipeline."""

from __future__ import annotations

from datetime import date

import pytest

from seo_sitemap_engine.schemas.sitemap_settings import SitemapSettings
from seo_sitemap_engine.services.content_lister import (
    ContentListingError,
    ContentMedia,
    ContentRecord,
)
from seo_sitemap_engine.services.page_discovery import PageDiscoveryService
from seo_sitemap_engine.services.sitemap_entry import SitemapEntry
from seo_sitemap_engine.services.sitemap_generation import (
    SitemapGenerationService,
    count_duplicate_locs,
)
from seo_sitemap_engine.services.sitemap_store import StoredSitemap

BASE_URL = "https://ex.com"


class FakeContentLister:
    async def list_records(self, category: str) -> list[ContentRecord]:
        if category == "education":
            raise ContentListingError(category, "HTTP 502")
        if category == "experiences":
            return [
                ContentRecord(
                    id="exp-1",
                    updated_at="2024-01-10",
                    title="Platform lead",
                    media=(ContentMedia(url="/uploads/exp.png", type="image/png"),),
                )
            ]
        if category == "companies":
            return [ContentRecord(id="acme", updated_at="2024-01-09")]
        return []


class RecordingStore:
    def __init__(self) -> None:
        self.saved_xml: list[str] = []

    async def load(self) -> StoredSitemap | None:
        return None

    async def save(self, xml: str, entries: list[SitemapEntry]) -> StoredSitemap:
        self.saved_xml.append(xml)
        return StoredSitemap(xml=xml, entries=list(entries), generated_at=None)

    async def clear(self) -> None:
        self.saved_xml.clear()


def _service() -> SitemapGenerationService:
    return SitemapGenerationService(
        discovery_service=PageDiscoveryService(today=lambda: date(2024, 1, 15))
    )


@pytest.mark.asyncio
async def test_generate_filters_sorts_and_limits_entries() -> None:
    settings = SitemapSettings(max_urls=4, exclude_patterns=["/companies/"])

    result = await _service().generate(
        base_url=BASE_URL,
        content_lister=FakeContentLister(),
        settings=settings,
    )

    assert [entry.loc for entry in result.entries] == [
        "https://ex.com/",
        "https://ex.com/experiences",
        "https://ex.com/education",
        "https://ex.com/skills",
    ]
    stats = result.stats
    assert stats.total_urls == 4
    assert stats.discovered == 7
    assert stats.excluded == 1
    assert stats.truncated == 2
    assert stats.duplicates == 0
    assert stats.with_alternates == 4
    assert stats.failed_categories == ("education",)
    assert result.validation.is_valid is True
    assert result.validation.url_count == 4
    assert result.settings is settings


@pytest.mark.asyncio
async def test_generate_renders_media_extensions_from_content() -> None:
    result = await _service().generate(
        base_url=BASE_URL,
        content_lister=FakeContentLister(),
        settings=SitemapSettings(),
    )

    assert result.stats.total_urls == 7
    assert result.stats.with_images == 1
    assert result.stats.with_videos == 0
    assert "<image:loc>https://ex.com/uploads/exp.png</image:loc>" in result.xml
    assert result.entries[-1].loc == "https://ex.com/companies/acme"


@pytest.mark.asyncio
async def test_generate_and_publish_saves_the_rendered_document() -> None:
    store = RecordingStore()

    result, stored = await _service().generate_and_publish(
        base_url=BASE_URL,
        content_lister=FakeContentLister(),
        settings=SitemapSettings(),
        store=store,
    )

    assert store.saved_xml == [result.xml]
    assert stored.url_count == result.stats.total_urls


def test_count_duplicate_locs() -> None:
    entries = [
        SitemapEntry(loc="https://ex.com/a"),
        SitemapEntry(loc="https://ex.com/b"),
        SitemapEntry(loc="https://ex.com/a"),
        SitemapEntry(loc="https://ex.com/a"),
    ]

    assert count_duplicate_locs(entries) == 2
    assert count_duplicate_locs([]) == 0
