"""Public sitemap routes served to crawlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from seo_sitemap_engine.config import get_settings
from seo_sitemap_engine.database import get_db_session
from seo_sitemap_engine.services.settings_service import SitemapSettingsService
from seo_sitemap_engine.services.sitemap_serializer import (
    SitemapBundle,
    build_sitemap_bundle,
    chunk_file_name,
)
from seo_sitemap_engine.services.sitemap_store import DatabaseSitemapStore, StoredSitemap

router = APIRouter(tags=["public"])

XML_MEDIA_TYPE = "application/xml"
PUBLIC_CACHE_CONTROL = "public, max-age=3600"


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")


async def _load_bundle(session: AsyncSession) -> tuple[StoredSitemap, SitemapBundle]:
    stored = await DatabaseSitemapStore(session).load()
    if stored is None:
        raise _not_found()

    sitemap_settings = await SitemapSettingsService(session).load()
    bundle = build_sitemap_bundle(
        stored.entries,
        base_url=get_settings().SITE_BASE_URL,
        max_urls_per_file=sitemap_settings.max_urls,
    )
    return stored, bundle


def _xml_response(xml: str) -> Response:
    return Response(
        content=xml,
        media_type=XML_MEDIA_TYPE,
        headers={"Cache-Control": PUBLIC_CACHE_CONTROL},
    )


@router.get("/sitemap.xml", include_in_schema=False)
async def serve_sitemap(session: AsyncSession = Depends(get_db_session)) -> Response:
    stored, bundle = await _load_bundle(session)
    if bundle.index_xml is None:
        return _xml_response(stored.xml)
    return _xml_response(bundle.index_xml)


@router.get("/sitemap-{chunk_number}.xml", include_in_schema=False)
async def serve_sitemap_chunk(
    chunk_number: int,
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    _, bundle = await _load_bundle(session)
    document = bundle.documents.get(chunk_file_name(chunk_number))
    if not bundle.is_chunked or document is None:
        raise _not_found()
    return _xml_response(document)


__all__ = ["router"]
