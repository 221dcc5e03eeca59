"""Schema exports for API serialization."""

from seo_sitemap_engine import __version__
from seo_sitemap_engine.schemas.sitemap import (
    CheckUrlsRequest,
    CheckUrlsResponse,
    DiscoveredPagesResponse,
    GenerateSitemapResponse,
    GenerationStatsPayload,
    MessageResponse,
    PageTypeStats,
    SaveSitemapRequest,
    SitemapEntryPayload,
    StoredSitemapResponse,
    UrlStatusPayload,
    ValidateSitemapRequest,
    ValidationResultPayload,
)
from seo_sitemap_engine.schemas.sitemap_settings import (
    SitemapSettings,
    SitemapSettingsUpdate,
)

__all__ = [
    "__version__",
    "CheckUrlsRequest",
    "CheckUrlsResponse",
    "DiscoveredPagesResponse",
    "GenerateSitemapResponse",
    "GenerationStatsPayload",
    "MessageResponse",
    "PageTypeStats",
    "SaveSitemapRequest",
    "SitemapEntryPayload",
    "SitemapSettings",
    "SitemapSettingsUpdate",
    "StoredSitemapResponse",
    "UrlStatusPayload",
    "ValidateSitemapRequest",
    "ValidationResultPayload",
]
