"""Load and persist sitemap generation settings."""

from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from seo_sitemap_engine.models import SITEMAP_SETTINGS_ROW_ID, SitemapSettingsRecord
from seo_sitemap_engine.schemas.sitemap_settings import (
    SitemapSettings,
    SitemapSettingsUpdate,
)

_logger = logging.getLogger("seo_sitemap_engine.settings")


class SitemapSettingsService:
    """Single-row settings storage inside the caller's session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load(self) -> SitemapSettings:
        record = await self._session.get(SitemapSettingsRecord, SITEMAP_SETTINGS_ROW_ID)
        if record is None:
            return SitemapSettings()

        try:
            return SitemapSettings.model_validate(record.payload)
        except ValidationError:
            _logger.warning(
                "Stored sitemap settings are invalid; using defaults", exc_info=True
            )
            return SitemapSettings()

    async def save(self, settings: SitemapSettings) -> SitemapSettings:
        payload = settings.model_dump(mode="json")
        record = await self._session.get(SitemapSettingsRecord, SITEMAP_SETTINGS_ROW_ID)
        if record is None:
            self._session.add(
                SitemapSettingsRecord(id=SITEMAP_SETTINGS_ROW_ID, payload=payload)
            )
        else:
            record.payload = payload
        await self._session.flush()

        _logger.info({"event": "sitemap_settings_saved", **payload})
        return settings

    async def update(self, update: SitemapSettingsUpdate) -> SitemapSettings:
        current = await self.load()
        return await self.save(current.merged(update))

    async def reset(self) -> SitemapSettings:
        return await self.save(SitemapSettings())


__all__ = ["SitemapSettingsService"]
