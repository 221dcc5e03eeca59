"""ORM model exports."""

from seo_sitemap_engine import __version__
from seo_sitemap_engine.models.base import Base
from seo_sitemap_engine.models.sitemap_settings import (
    SITEMAP_SETTINGS_ROW_ID,
    SitemapSettingsRecord,
)
from seo_sitemap_engine.models.stored_sitemap import StoredSitemap, StoredSitemapUrl

__all__ = [
    "__version__",
    "Base",
    "SITEMAP_SETTINGS_ROW_ID",
    "SitemapSettingsRecord",
    "StoredSitemap",
    "StoredSitemapUrl",
]
