"""Scheduled sitemap regeneration driven by the auto-generate setting."""

from __future__ import annotations

import asyncio
import logging
from typing import Final

from seo_sitemap_engine.config import Settings
from seo_sitemap_engine.database import session_scope
from seo_sitemap_engine.schemas.sitemap_settings import SitemapSettings
from seo_sitemap_engine.services.content_lister import ContentLister, HTTPContentLister
from seo_sitemap_engine.services.scheduler import SchedulerService
from seo_sitemap_engine.services.settings_service import SitemapSettingsService
from seo_sitemap_engine.services.sitemap_generation import SitemapGenerationService
from seo_sitemap_engine.services.sitemap_store import (
    DatabaseSitemapStore,
    SitemapPublishRefusedError,
)

AUTO_GENERATE_JOB_ID: Final[str] = "sitemap_auto_generate"

_job_logger = logging.getLogger("seo_sitemap_engine.scheduler.jobs")

_auto_generation_service: SitemapAutoGenerationService | None = None


class SitemapAutoGenerationService:
    """Keep the regeneration job in step with the stored settings."""

    def __init__(
        self,
        *,
        scheduler: SchedulerService,
        settings: Settings,
        content_lister: ContentLister | None = None,
        generation_service: SitemapGenerationService | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._settings = settings
        self._content_lister = content_lister or HTTPContentLister.from_settings()
        self._generation_service = generation_service or SitemapGenerationService()
        self._run_lock = asyncio.Lock()

    def sync(self, sitemap_settings: SitemapSettings) -> bool:
        """Register or remove the job; return whether it is now scheduled."""

        if not self._scheduler.enabled:
            return False

        if not sitemap_settings.auto_generate:
            self._scheduler.remove_job(AUTO_GENERATE_JOB_ID)
            return False

        self._scheduler.add_interval_job(
            job_id=AUTO_GENERATE_JOB_ID,
            func=run_scheduled_sitemap_generation,
            seconds=sitemap_settings.cache_duration_minutes * 60,
            name="Scheduled sitemap generation",
        )
        return True

    async def sync_from_database(self) -> bool:
        async with session_scope() as session:
            sitemap_settings = await SitemapSettingsService(session).load()
        return self.sync(sitemap_settings)

    async def run(self) -> None:
        if self._run_lock.locked():
            _job_logger.info(
                "scheduler_job_overlap_skipped",
                extra={"job_id": AUTO_GENERATE_JOB_ID},
            )
            return

        async with self._run_lock:
            async with session_scope() as session:
                sitemap_settings = await SitemapSettingsService(session).load()
                try:
                    result, _ = await self._generation_service.generate_and_publish(
                        base_url=self._settings.SITE_BASE_URL,
                        content_lister=self._content_lister,
                        settings=sitemap_settings,
                        store=DatabaseSitemapStore(session),
                    )
                except SitemapPublishRefusedError as exc:
                    _job_logger.error(
                        "scheduled_sitemap_refused",
                        extra={
                            "job_id": AUTO_GENERATE_JOB_ID,
                            "error_count": len(exc.validation.errors),
                        },
                    )
                    return

            _job_logger.info(
                "scheduled_sitemap_published",
                extra={
                    "job_id": AUTO_GENERATE_JOB_ID,
                    "url_count": result.stats.total_urls,
                },
            )


def set_auto_generation_service(service: SitemapAutoGenerationService | None) -> None:
    global _auto_generation_service
    _auto_generation_service = service


def get_auto_generation_service() -> SitemapAutoGenerationService | None:
    return _auto_generation_service


def _require_auto_generation_service() -> SitemapAutoGenerationService:
    if _auto_generation_service is None:
        raise RuntimeError("Sitemap auto-generation service is not initialized")

    return _auto_generation_service


async def run_scheduled_sitemap_generation() -> None:
    await _require_auto_generation_service().run()


__all__ = [
    "AUTO_GENERATE_JOB_ID",
    "SitemapAutoGenerationService",
    "get_auto_generation_service",
    "run_scheduled_sitemap_generation",
    "set_auto_generation_service",
]
