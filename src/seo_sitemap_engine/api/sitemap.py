"""Sitemap administration API routes."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal, NoReturn

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from seo_sitemap_engine.config import get_settings
from seo_sitemap_engine.database import get_db_session
from seo_sitemap_engine.schemas import (
    CheckUrlsRequest,
    CheckUrlsResponse,
    DiscoveredPagesResponse,
    GenerateSitemapResponse,
    GenerationStatsPayload,
    MessageResponse,
    PageTypeStats,
    SaveSitemapRequest,
    SitemapEntryPayload,
    SitemapSettings,
    SitemapSettingsUpdate,
    StoredSitemapResponse,
    ValidateSitemapRequest,
    ValidationResultPayload,
)
from seo_sitemap_engine.services.auto_generation import get_auto_generation_service
from seo_sitemap_engine.services.content_lister import ContentLister, HTTPContentLister
from seo_sitemap_engine.services.page_discovery import (
    PageDiscoveryError,
    PageDiscoveryService,
)
from seo_sitemap_engine.services.settings_service import SitemapSettingsService
from seo_sitemap_engine.services.sitemap_generation import (
    SitemapGenerationResult,
    SitemapGenerationService,
)
from seo_sitemap_engine.services.sitemap_serializer import (
    SitemapIndexRef,
    build_sitemap_bundle,
    render_sitemap_index,
)
from seo_sitemap_engine.services.sitemap_store import (
    DatabaseSitemapStore,
    SitemapPublishRefusedError,
    SitemapStoreError,
    StoredSitemap,
    publish_sitemap,
)
from seo_sitemap_engine.services.sitemap_validator import validate_sitemap
from seo_sitemap_engine.services.url_checker import (
    UrlCheckCoordinator,
    UrlReachabilityChecker,
)

router = APIRouter(prefix="/api/seo/sitemap", tags=["sitemap"])

XML_MEDIA_TYPE = "application/xml"


def get_content_lister() -> ContentLister:
    return HTTPContentLister.from_settings()


def get_url_checker() -> UrlReachabilityChecker:
    return UrlReachabilityChecker.from_settings()


def get_url_check_coordinator(request: Request) -> UrlCheckCoordinator:
    coordinator = getattr(request.app.state, "url_check_coordinator", None)
    if isinstance(coordinator, UrlCheckCoordinator):
        return coordinator

    coordinator = UrlCheckCoordinator()
    request.app.state.url_check_coordinator = coordinator
    return coordinator


def _raise_store_error(error: SitemapStoreError) -> NoReturn:
    if isinstance(error, SitemapPublishRefusedError):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": str(error),
                "validation": ValidationResultPayload.from_result(
                    error.validation
                ).model_dump(by_alias=True, mode="json"),
            },
        ) from error

    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=str(error),
    ) from error


async def _require_stored_sitemap(session: AsyncSession) -> StoredSitemap:
    stored = await DatabaseSitemapStore(session).load()
    if stored is not None:
        return stored

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="No sitemap has been published yet",
    )


def _stored_response(stored: StoredSitemap) -> StoredSitemapResponse:
    return StoredSitemapResponse(
        xml=stored.xml,
        urls=[SitemapEntryPayload.from_entry(entry) for entry in stored.entries],
        generated_at=stored.generated_at,
        url_count=stored.url_count,
        file_size_bytes=stored.file_size_bytes,
    )


def _generation_response(
    result: SitemapGenerationResult,
    *,
    published: bool,
) -> GenerateSitemapResponse:
    stats = result.stats
    return GenerateSitemapResponse(
        entries=[SitemapEntryPayload.from_entry(entry) for entry in result.entries],
        xml=result.xml,
        validation=ValidationResultPayload.from_result(result.validation),
        stats=GenerationStatsPayload(
            total_urls=stats.total_urls,
            discovered=stats.discovered,
            excluded=stats.excluded,
            truncated=stats.truncated,
            duplicates=stats.duplicates,
            with_images=stats.with_images,
            with_videos=stats.with_videos,
            with_alternates=stats.with_alternates,
            failed_categories=list(stats.failed_categories),
            generated_at=stats.generated_at,
        ),
        settings=result.settings,
        published=published,
    )


def _xml_attachment(xml: str, file_name: str) -> Response:
    return Response(
        content=xml,
        media_type=XML_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


def _sync_auto_generation(sitemap_settings: SitemapSettings) -> None:
    service = get_auto_generation_service()
    if service is None:
        return
    service.sync(sitemap_settings)


@router.get("", response_model=StoredSitemapResponse, status_code=status.HTTP_200_OK)
async def get_stored_sitemap(
    response_format: Literal["json", "xml"] = Query(default="json", alias="format"),
    session: AsyncSession = Depends(get_db_session),
) -> StoredSitemapResponse | Response:
    stored = await _require_stored_sitemap(session)
    if response_format == "xml":
        return Response(content=stored.xml, media_type=XML_MEDIA_TYPE)
    return _stored_response(stored)


@router.post("", response_model=StoredSitemapResponse, status_code=status.HTTP_200_OK)
async def save_sitemap(
    payload: SaveSitemapRequest,
    session: AsyncSession = Depends(get_db_session),
) -> StoredSitemapResponse:
    validation = validate_sitemap(payload.xml)
    try:
        stored = await publish_sitemap(
            DatabaseSitemapStore(session),
            payload.xml,
            [url.to_entry() for url in payload.urls],
            validation,
        )
    except SitemapStoreError as error:
        _raise_store_error(error)

    return _stored_response(stored)


@router.delete("", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def clear_sitemap(
    session: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await DatabaseSitemapStore(session).clear()
    return MessageResponse(message="Sitemap cleared successfully")


@router.post(
    "/generate",
    response_model=GenerateSitemapResponse,
    status_code=status.HTTP_200_OK,
)
async def generate_sitemap(
    overrides: SitemapSettingsUpdate | None = Body(default=None),
    publish: bool = Query(default=False),
    session: AsyncSession = Depends(get_db_session),
    content_lister: ContentLister = Depends(get_content_lister),
) -> GenerateSitemapResponse:
    stored_settings = await SitemapSettingsService(session).load()
    sitemap_settings = stored_settings.merged(overrides)

    try:
        result = await SitemapGenerationService().generate(
            base_url=get_settings().SITE_BASE_URL,
            content_lister=content_lister,
            settings=sitemap_settings,
        )
    except PageDiscoveryError as error:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(error),
        ) from error

    if not publish:
        return _generation_response(result, published=False)

    try:
        await publish_sitemap(
            DatabaseSitemapStore(session),
            result.xml,
            result.entries,
            result.validation,
        )
    except SitemapStoreError as error:
        _raise_store_error(error)

    return _generation_response(result, published=True)


@router.post(
    "/validate",
    response_model=ValidationResultPayload,
    status_code=status.HTTP_200_OK,
)
async def validate_sitemap_document(
    payload: ValidateSitemapRequest,
) -> ValidationResultPayload:
    return ValidationResultPayload.from_result(validate_sitemap(payload.xml))


@router.post(
    "/check-urls",
    response_model=CheckUrlsResponse,
    status_code=status.HTTP_200_OK,
)
async def check_sitemap_urls(
    payload: CheckUrlsRequest | None = Body(default=None),
    session: AsyncSession = Depends(get_db_session),
    checker: UrlReachabilityChecker = Depends(get_url_checker),
    coordinator: UrlCheckCoordinator = Depends(get_url_check_coordinator),
) -> CheckUrlsResponse:
    if payload is not None and payload.urls is not None:
        entries = [url.to_entry() for url in payload.urls]
    else:
        entries = (await _require_stored_sitemap(session)).entries

    cancel_event = coordinator.begin()
    try:
        report = await checker.check_all(entries, cancel_event=cancel_event)
    finally:
        coordinator.finish(cancel_event)

    return CheckUrlsResponse.from_report(report)


@router.get("/download", status_code=status.HTTP_200_OK)
async def download_sitemap(
    variant: Literal["sitemap", "index"] = Query(default="sitemap"),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    stored = await _require_stored_sitemap(session)
    if variant == "sitemap":
        return _xml_attachment(stored.xml, "sitemap.xml")

    sitemap_settings = await SitemapSettingsService(session).load()
    base_url = get_settings().SITE_BASE_URL
    bundle = build_sitemap_bundle(
        stored.entries,
        base_url=base_url,
        max_urls_per_file=sitemap_settings.max_urls,
    )
    index_xml = bundle.index_xml
    if index_xml is None:
        generated_on = None
        if stored.generated_at is not None:
            generated_on = stored.generated_at.date().isoformat()
        index_xml = render_sitemap_index(
            [SitemapIndexRef(loc=f"{base_url}/sitemap.xml", lastmod=generated_on)]
        )

    timestamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    return _xml_attachment(index_xml, f"sitemap-index-{timestamp}.xml")


@router.get(
    "/pages",
    response_model=DiscoveredPagesResponse,
    status_code=status.HTTP_200_OK,
)
async def preview_pages(
    session: AsyncSession = Depends(get_db_session),
    content_lister: ContentLister = Depends(get_content_lister),
) -> DiscoveredPagesResponse:
    sitemap_settings = await SitemapSettingsService(session).load()
    try:
        discovery = await PageDiscoveryService().discover(
            get_settings().SITE_BASE_URL,
            content_lister,
            sitemap_settings,
        )
    except PageDiscoveryError as error:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(error),
        ) from error

    return DiscoveredPagesResponse(
        static_pages=[
            SitemapEntryPayload.from_entry(entry) for entry in discovery.static_pages
        ],
        dynamic_pages=[
            SitemapEntryPayload.from_entry(entry) for entry in discovery.dynamic_pages
        ],
        media_pages=[
            SitemapEntryPayload.from_entry(entry) for entry in discovery.media_pages
        ],
        total_count=discovery.total_count,
        failed_categories=list(discovery.failed_categories),
        stats=PageTypeStats(
            static=len(discovery.static_pages),
            dynamic=len(discovery.dynamic_pages),
            media=len(discovery.media_pages),
            total=discovery.total_count,
        ),
    )


@router.get("/settings", response_model=SitemapSettings, status_code=status.HTTP_200_OK)
async def get_sitemap_settings(
    session: AsyncSession = Depends(get_db_session),
) -> SitemapSettings:
    return await SitemapSettingsService(session).load()


@router.put("/settings", response_model=SitemapSettings, status_code=status.HTTP_200_OK)
async def update_sitemap_settings(
    payload: SitemapSettingsUpdate,
    session: AsyncSession = Depends(get_db_session),
) -> SitemapSettings:
    sitemap_settings = await SitemapSettingsService(session).update(payload)
    _sync_auto_generation(sitemap_settings)
    return sitemap_settings


@router.post(
    "/settings/reset",
    response_model=SitemapSettings,
    status_code=status.HTTP_200_OK,
)
async def reset_sitemap_settings(
    session: AsyncSession = Depends(get_db_session),
) -> SitemapSettings:
    sitemap_settings = await SitemapSettingsService(session).reset()
    _sync_auto_generation(sitemap_settings)
    return sitemap_settings


__all__ = [
    "get_content_lister",
    "get_url_check_coordinator",
    "get_url_checker",
    "router",
]
