"""Application entry point for the SEO sitemap engine."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
import uvicorn

from seo_sitemap_engine import __version__
from seo_sitemap_engine.api.public import router as public_router
from seo_sitemap_engine.api.sitemap import router as sitemap_router
from seo_sitemap_engine.config import get_settings
from seo_sitemap_engine.database import (
    check_stored_sitemap_consistency,
    close_database,
    initialize_database,
)
from seo_sitemap_engine.services.auto_generation import (
    SitemapAutoGenerationService,
    set_auto_generation_service,
)
from seo_sitemap_engine.services.scheduler import SchedulerService
from seo_sitemap_engine.services.url_checker import UrlCheckCoordinator
from seo_sitemap_engine.utils.logging import (
    add_request_logging_middleware,
    setup_logging,
)

__all__ = ["app", "create_app", "main"]

_lifecycle_logger = logging.getLogger("seo_sitemap_engine.lifecycle")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()

    scheduler_service = SchedulerService.from_settings(settings)
    auto_generation_service = SitemapAutoGenerationService(
        scheduler=scheduler_service,
        settings=settings,
    )
    set_auto_generation_service(auto_generation_service)
    app.state.scheduler_service = scheduler_service
    app.state.auto_generation_service = auto_generation_service

    await initialize_database()
    await check_stored_sitemap_consistency()
    await scheduler_service.start()
    auto_generate_scheduled = await auto_generation_service.sync_from_database()
    _lifecycle_logger.info(
        "application_started",
        extra={
            "scheduler_enabled": scheduler_service.enabled,
            "auto_generate_scheduled": auto_generate_scheduled,
            "database_url": settings.DATABASE_URL,
            "scheduler_jobstore_url": settings.SCHEDULER_JOBSTORE_URL,
        },
    )

    try:
        yield
    finally:
        await scheduler_service.shutdown()
        set_auto_generation_service(None)
        await close_database()
        _lifecycle_logger.info("application_stopped")


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="SEO Sitemap Engine",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.url_check_coordinator = UrlCheckCoordinator()
    add_request_logging_middleware(app)
    app.include_router(sitemap_router)
    app.include_router(public_router)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "seo_sitemap_engine.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=False,
    )
