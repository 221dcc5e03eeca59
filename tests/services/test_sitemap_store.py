"""Tests for sitemap persistence and publishing."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
import json
from pathlib import Path

import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from seo_sitemap_engine.models import Base, StoredSitemapUrl
from seo_sitemap_engine.services.sitemap_entry import (
    ChangeFrequency,
    SitemapAlternate,
    SitemapEntry,
    SitemapImage,
    SitemapVideo,
)
from seo_sitemap_engine.services.sitemap_serializer import render_sitemap
from seo_sitemap_engine.services.sitemap_store import (
    DatabaseSitemapStore,
    HTTPSitemapStore,
    SitemapPublishRefusedError,
    SitemapStoreError,
    StoredSitemap,
    entry_from_wire,
    entry_to_wire,
    publish_sitemap,
    stored_entry,
)
from seo_sitemap_engine.services.sitemap_validator import validate_sitemap

ENTRIES = [
    SitemapEntry(
        loc="https://ex.com/",
        lastmod="2024-01-15",
        changefreq=ChangeFrequency.DAILY,
        priority=1.0,
    ),
    SitemapEntry(loc="https://ex.com/skills", lastmod="2024-01-10", priority=0.8),
]

RICH_ENTRY = SitemapEntry(
    loc="https://ex.com/highlights/hl-1",
    lastmod="2024-02-01",
    changefreq=ChangeFrequency.MONTHLY,
    priority=0.6,
    images=(SitemapImage(loc="https://cdn.ex.com/hl-1.jpg", caption="Lagoon"),),
    videos=(
        SitemapVideo(
            loc="https://cdn.ex.com/hl-1.mp4",
            thumbnail_loc="https://cdn.ex.com/hl-1-thumb.jpg",
            title="Lagoon tour",
            duration_seconds=95,
        ),
    ),
    alternates=(
        SitemapAlternate(hreflang="fr", href="https://ex.com/fr/highlights/hl-1"),
    ),
)


class RecordingStore:
    def __init__(self) -> None:
        self.saved: list[tuple[str, list[SitemapEntry]]] = []

    async def load(self) -> StoredSitemap | None:
        return None

    async def save(self, xml: str, entries: list[SitemapEntry]) -> StoredSitemap:
        self.saved.append((xml, list(entries)))
        return StoredSitemap(xml=xml, entries=list(entries), generated_at=None)

    async def clear(self) -> None:
        self.saved.clear()


@asynccontextmanager
async def _scoped_sessions(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.sqlite'}")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_publish_sitemap_saves_valid_documents() -> None:
    store = RecordingStore()
    xml = render_sitemap(ENTRIES)

    stored = await publish_sitemap(store, xml, ENTRIES, validate_sitemap(xml))

    assert store.saved == [(xml, ENTRIES)]
    assert stored.url_count == 2
    assert stored.file_size_bytes == len(xml.encode("utf-8"))


@pytest.mark.asyncio
async def test_publish_sitemap_refuses_documents_with_errors() -> None:
    store = RecordingStore()
    xml = "<urlset><url></url>"
    validation = validate_sitemap(xml)

    with pytest.raises(SitemapPublishRefusedError) as exc_info:
        await publish_sitemap(store, xml, [], validation)

    assert store.saved == []
    assert exc_info.value.validation is validation
    assert isinstance(exc_info.value, SitemapStoreError)


def test_stored_entry_fills_missing_fields() -> None:
    entry = stored_entry(
        loc="https://ex.com/a",
        lastmod="",
        changefreq="sometimes",
        priority="high",
        today=lambda: date(2024, 6, 1),
    )

    assert entry.lastmod == "2024-06-01"
    assert entry.changefreq is ChangeFrequency.WEEKLY
    assert entry.priority == 0.5


def test_entry_from_wire_requires_loc() -> None:
    with pytest.raises(SitemapStoreError, match="loc"):
        entry_from_wire({"lastmod": "2024-01-01"})


def test_entry_wire_form_keeps_extensions() -> None:
    payload = entry_to_wire(RICH_ENTRY)

    assert payload["images"][0]["caption"] == "Lagoon"
    assert payload["videos"][0]["thumbnailLoc"] == "https://cdn.ex.com/hl-1-thumb.jpg"
    assert entry_from_wire(payload) == RICH_ENTRY
    assert "images" not in entry_to_wire(ENTRIES[0])


def test_entry_from_wire_rejects_incomplete_extensions() -> None:
    with pytest.raises(SitemapStoreError, match="thumbnailLoc"):
        entry_from_wire(
            {
                "loc": "https://ex.com/a",
                "videos": [{"loc": "https://cdn.ex.com/a.mp4", "title": "A"}],
            }
        )


@pytest.mark.asyncio
async def test_database_store_replaces_previous_sitemap(tmp_path: Path) -> None:
    async with _scoped_sessions(tmp_path) as session_factory:
        async with session_factory() as session:
            store = DatabaseSitemapStore(session)
            assert await store.load() is None

            await store.save(render_sitemap(ENTRIES[:1]), ENTRIES[:1])
            await store.save(render_sitemap(ENTRIES), ENTRIES)
            await session.commit()

        async with session_factory() as session:
            loaded = await DatabaseSitemapStore(session).load()
            url_rows = (
                await session.execute(select(func.count()).select_from(StoredSitemapUrl))
            ).scalar_one()

    assert loaded is not None
    assert loaded.xml == render_sitemap(ENTRIES)
    assert [entry.loc for entry in loaded.entries] == [entry.loc for entry in ENTRIES]
    assert loaded.entries[0].changefreq is ChangeFrequency.DAILY
    assert loaded.entries[1].changefreq is ChangeFrequency.WEEKLY
    assert loaded.entries[1].priority == 0.8
    assert loaded.generated_at is not None
    assert url_rows == 2


@pytest.mark.asyncio
async def test_database_store_clear_removes_everything(tmp_path: Path) -> None:
    async with _scoped_sessions(tmp_path) as session_factory:
        async with session_factory() as session:
            store = DatabaseSitemapStore(session)
            await store.save(render_sitemap(ENTRIES), ENTRIES)
            await store.clear()
            await session.commit()

        async with session_factory() as session:
            assert await DatabaseSitemapStore(session).load() is None


@pytest.mark.asyncio
async def test_http_store_round_trips_through_remote_console() -> None:
    remote_state: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/seo/sitemap"
        if request.method == "POST":
            remote_state.update(json.loads(request.content))
            return httpx.Response(200, json={"success": True})
        if request.method == "DELETE":
            remote_state.clear()
            return httpx.Response(200, json={"success": True})
        if not remote_state:
            return httpx.Response(404)
        return httpx.Response(
            200,
            json={**remote_state, "generatedAt": "2024-01-15T10:00:00Z"},
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        store = HTTPSitemapStore("https://admin.ex.com/", http_client=client)
        assert await store.load() is None

        xml = render_sitemap(ENTRIES)
        await store.save(xml, ENTRIES)
        loaded = await store.load()

        await store.clear()
        assert await store.load() is None

    assert loaded is not None
    assert loaded.xml == xml
    assert [entry.loc for entry in loaded.entries] == [entry.loc for entry in ENTRIES]
    assert loaded.entries[1].changefreq is ChangeFrequency.WEEKLY
    assert loaded.generated_at is not None
    assert loaded.generated_at.year == 2024


@pytest.mark.asyncio
async def test_http_store_wraps_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        store = HTTPSitemapStore("https://admin.ex.com", http_client=client)
        with pytest.raises(SitemapStoreError, match="connection refused"):
            await store.load()
        with pytest.raises(SitemapStoreError, match="HTTP 500"):
            await store.save(render_sitemap(ENTRIES), ENTRIES)


@pytest.mark.asyncio
async def test_database_store_keeps_entry_extensions(tmp_path: Path) -> None:
    entries = [ENTRIES[0], RICH_ENTRY]

    async with _scoped_sessions(tmp_path) as session_factory:
        async with session_factory() as session:
            await DatabaseSitemapStore(session).save(render_sitemap(entries), entries)
            await session.commit()

        async with session_factory() as session:
            loaded = await DatabaseSitemapStore(session).load()

    assert loaded is not None
    assert loaded.entries == entries
    assert loaded.entries[0].images == ()
    assert "<image:loc>https://cdn.ex.com/hl-1.jpg</image:loc>" in render_sitemap(
        loaded.entries
    )
