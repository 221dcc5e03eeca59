"""Integration tests for sitemap administration and public routes."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
import os
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.sqlite")

from seo_sitemap_engine.api.public import router as public_router
from seo_sitemap_engine.api.sitemap import (
    get_content_lister,
    get_url_checker,
    router as sitemap_router,
)
from seo_sitemap_engine.config import get_settings
from seo_sitemap_engine.database import get_db_session
from seo_sitemap_engine.models import Base
from seo_sitemap_engine.services.content_lister import ContentRecord
from seo_sitemap_engine.services.sitemap_entry import SitemapEntry
from seo_sitemap_engine.services.sitemap_serializer import render_sitemap
from seo_sitemap_engine.services.url_checker import UrlReachabilityChecker


class FakeContentLister:
    async def list_records(self, category: str) -> list[ContentRecord]:
        if category == "experiences":
            return [ContentRecord(id="exp-1", updated_at="2024-01-10")]
        if category == "companies":
            return [ContentRecord(id="acme", updated_at="2024-01-09")]
        return []


def _head_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/missing":
        return httpx.Response(404)
    return httpx.Response(200)


def _url_checker() -> UrlReachabilityChecker:
    return UrlReachabilityChecker(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(_head_handler)),
        batch_size=2,
        user_agent="SitemapEngineTest/1.0",
    )


@dataclass
class SitemapApiTestContext:
    app: FastAPI
    engine: AsyncEngine


async def _build_context(tmp_path: Path) -> SitemapApiTestContext:
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'sitemap-api.sqlite'}"
    engine = create_async_engine(database_url)
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )

    @asynccontextmanager
    async def scoped_session() -> AsyncIterator[AsyncSession]:
        session = session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    app = FastAPI()
    app.include_router(sitemap_router)
    app.include_router(public_router)

    async def override_get_db_session() -> AsyncIterator[AsyncSession]:
        async with scoped_session() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_content_lister] = FakeContentLister
    app.dependency_overrides[get_url_checker] = _url_checker

    return SitemapApiTestContext(app=app, engine=engine)


@asynccontextmanager
async def _client(tmp_path: Path) -> AsyncIterator[AsyncClient]:
    context = await _build_context(tmp_path)
    try:
        transport = ASGITransport(app=context.app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        await context.engine.dispose()


def _site_url(path: str) -> str:
    return f"{get_settings().SITE_BASE_URL}{path}"


@pytest.mark.asyncio
async def test_stored_sitemap_is_not_found_before_publishing(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        stored_response = await client.get("/api/seo/sitemap")
        public_response = await client.get("/sitemap.xml")

    assert stored_response.status_code == 404
    assert public_response.status_code == 404


@pytest.mark.asyncio
async def test_generate_previews_without_publishing(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        response = await client.post(
            "/api/seo/sitemap/generate",
            json={"excludePatterns": ["/companies/"]},
        )
        stored_response = await client.get("/api/seo/sitemap")

    assert response.status_code == 200
    payload = response.json()
    assert payload["published"] is False
    assert payload["validation"]["isValid"] is True
    assert payload["stats"]["totalUrls"] == 6
    assert payload["stats"]["excluded"] == 1
    assert payload["stats"]["failedCategories"] == []
    assert payload["settings"]["excludePatterns"] == ["/companies/"]
    assert payload["entries"][0]["loc"] == _site_url("/")
    assert stored_response.status_code == 404


@pytest.mark.asyncio
async def test_generate_and_publish_serves_public_sitemap(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        generate_response = await client.post(
            "/api/seo/sitemap/generate",
            params={"publish": "true"},
        )
        stored_response = await client.get("/api/seo/sitemap")
        xml_response = await client.get("/api/seo/sitemap", params={"format": "xml"})
        public_response = await client.get("/sitemap.xml")

    assert generate_response.status_code == 200
    generated = generate_response.json()
    assert generated["published"] is True

    assert stored_response.status_code == 200
    stored = stored_response.json()
    assert stored["urlCount"] == 7
    assert stored["xml"] == generated["xml"]
    assert stored["fileSizeBytes"] == len(generated["xml"].encode("utf-8"))
    assert stored["generatedAt"] is not None

    assert xml_response.headers["content-type"].startswith("application/xml")
    assert xml_response.text == generated["xml"]

    assert public_response.status_code == 200
    assert public_response.text == generated["xml"]
    assert public_response.headers["cache-control"] == "public, max-age=3600"


@pytest.mark.asyncio
async def test_save_refuses_invalid_sitemap(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        response = await client.post(
            "/api/seo/sitemap",
            json={"xml": "<urlset><url>", "urls": []},
        )
        stored_response = await client.get("/api/seo/sitemap")

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert "Refusing to publish" in detail["message"]
    assert detail["validation"]["isValid"] is False
    assert detail["validation"]["errors"][0]["code"] == "malformed_xml"
    assert stored_response.status_code == 404


@pytest.mark.asyncio
async def test_save_then_clear_sitemap(tmp_path: Path) -> None:
    entries = [SitemapEntry(loc="https://ex.com/a", lastmod="2024-01-01")]
    xml = render_sitemap(entries)

    async with _client(tmp_path) as client:
        save_response = await client.post(
            "/api/seo/sitemap",
            json={"xml": xml, "urls": [{"loc": "https://ex.com/a"}]},
        )
        clear_response = await client.delete("/api/seo/sitemap")
        stored_response = await client.get("/api/seo/sitemap")

    assert save_response.status_code == 200
    saved = save_response.json()
    assert saved["urlCount"] == 1
    assert saved["urls"][0]["loc"] == "https://ex.com/a"
    assert clear_response.status_code == 200
    assert clear_response.json() == {"message": "Sitemap cleared successfully"}
    assert stored_response.status_code == 404


@pytest.mark.asyncio
async def test_validate_reports_issues_without_storing(tmp_path: Path) -> None:
    xml = render_sitemap([SitemapEntry(loc="https://ex.com/a", priority=0.5)]).replace(
        "<priority>0.5</priority>", "<priority>2.0</priority>"
    )

    async with _client(tmp_path) as client:
        response = await client.post("/api/seo/sitemap/validate", json={"xml": xml})

    assert response.status_code == 200
    payload = response.json()
    assert payload["isValid"] is False
    assert payload["urlCount"] == 1
    assert [error["code"] for error in payload["errors"]] == ["invalid_priority"]
    assert payload["errors"][0]["index"] == 1


@pytest.mark.asyncio
async def test_check_urls_checks_payload_entries(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        response = await client.post(
            "/api/seo/sitemap/check-urls",
            json={
                "urls": [
                    {"loc": "https://ex.com/a"},
                    {"loc": "https://ex.com/missing"},
                    {"loc": "https://ex.com/b"},
                ]
            },
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 3
    assert payload["processed"] == 3
    assert payload["batches"] == 2
    assert payload["cancelled"] is False
    assert payload["accessibleCount"] == 2
    missing = payload["statuses"]["https://ex.com/missing"]
    assert missing["statusCode"] == 404
    assert missing["accessible"] is False


@pytest.mark.asyncio
async def test_check_urls_defaults_to_stored_sitemap(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        missing_response = await client.post("/api/seo/sitemap/check-urls")
        await client.post("/api/seo/sitemap/generate", params={"publish": "true"})
        response = await client.post("/api/seo/sitemap/check-urls")

    assert missing_response.status_code == 404
    assert response.status_code == 200
    assert response.json()["total"] == 7


@pytest.mark.asyncio
async def test_download_sitemap_and_index(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        await client.post("/api/seo/sitemap/generate", params={"publish": "true"})
        sitemap_response = await client.get("/api/seo/sitemap/download")
        index_response = await client.get(
            "/api/seo/sitemap/download",
            params={"variant": "index"},
        )

    assert sitemap_response.status_code == 200
    assert (
        sitemap_response.headers["content-disposition"]
        == 'attachment; filename="sitemap.xml"'
    )
    assert index_response.status_code == 200
    disposition = index_response.headers["content-disposition"]
    assert 'filename="sitemap-index-' in disposition
    assert "<sitemapindex" in index_response.text
    assert f"<loc>{_site_url('/sitemap.xml')}</loc>" in index_response.text


@pytest.mark.asyncio
async def test_public_sitemap_is_chunked_by_max_urls_setting(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        await client.post("/api/seo/sitemap/generate", params={"publish": "true"})
        settings_response = await client.put(
            "/api/seo/sitemap/settings",
            json={"maxUrls": 3},
        )
        index_response = await client.get("/sitemap.xml")
        first_chunk = await client.get("/sitemap-1.xml")
        last_chunk = await client.get("/sitemap-3.xml")
        missing_chunk = await client.get("/sitemap-4.xml")

    assert settings_response.status_code == 200
    assert settings_response.json()["maxUrls"] == 3
    assert "<sitemapindex" in index_response.text
    assert f"<loc>{_site_url('/sitemap-3.xml')}</loc>" in index_response.text
    assert first_chunk.status_code == 200
    assert first_chunk.text.count("<url>") == 3
    assert last_chunk.text.count("<url>") == 1
    assert missing_chunk.status_code == 404


@pytest.mark.asyncio
async def test_settings_update_and_reset(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        initial_response = await client.get("/api/seo/sitemap/settings")
        update_response = await client.put(
            "/api/seo/sitemap/settings",
            json={"defaultChangeFreq": "daily", "cacheDuration": 30},
        )
        invalid_response = await client.put(
            "/api/seo/sitemap/settings",
            json={"defaultPriority": 3},
        )
        reset_response = await client.post("/api/seo/sitemap/settings/reset")

    assert initial_response.json()["excludePatterns"] == ["/boss/", "/api/", "/admin/"]
    updated = update_response.json()
    assert updated["defaultChangeFreq"] == "daily"
    assert updated["cacheDuration"] == 30
    assert updated["maxUrls"] == 50_000
    assert invalid_response.status_code == 422
    assert reset_response.json() == initial_response.json()


@pytest.mark.asyncio
async def test_pages_preview_groups_entries_by_type(tmp_path: Path) -> None:
    async with _client(tmp_path) as client:
        response = await client.get("/api/seo/sitemap/pages")

    assert response.status_code == 200
    payload = response.json()
    assert payload["stats"] == {"static": 5, "dynamic": 2, "media": 0, "total": 7}
    assert payload["totalCount"] == 7
    assert [page["loc"] for page in payload["dynamicPages"]] == [
        _site_url("/experiences/exp-1"),
        _site_url("/companies/acme"),
    ]


@pytest.mark.asyncio
async def test_chunked_public_sitemap_keeps_image_extensions(tmp_path: Path) -> None:
    urls = [
        {"loc": "https://ex.com/a", "lastmod": "2024-01-01"},
        {
            "loc": "https://ex.com/b",
            "lastmod": "2024-01-02",
            "images": [{"loc": "https://cdn.ex.com/b.jpg", "title": "B"}],
            "alternates": [{"hreflang": "de", "href": "https://ex.com/de/b"}],
        },
    ]
    entries = [
        SitemapEntry(loc="https://ex.com/a", lastmod="2024-01-01"),
        SitemapEntry(loc="https://ex.com/b", lastmod="2024-01-02"),
    ]

    async with _client(tmp_path) as client:
        save_response = await client.post(
            "/api/seo/sitemap",
            json={"xml": render_sitemap(entries), "urls": urls},
        )
        await client.put("/api/seo/sitemap/settings", json={"maxUrls": 1})
        second_chunk = await client.get("/sitemap-2.xml")

    assert save_response.status_code == 200
    assert second_chunk.status_code == 200
    assert "<image:loc>https://cdn.ex.com/b.jpg</image:loc>" in second_chunk.text
    assert 'hreflang="de"' in second_chunk.text
