"""Sitemap engine building blocks: entries, filtering, rendering and checks."""

from seo_sitemap_engine import __version__
from seo_sitemap_engine.services.content_lister import (
    ContentLister,
    ContentListingError,
    ContentMedia,
    ContentRecord,
    HTTPContentLister,
)
from seo_sitemap_engine.services.entry_filter import filter_by_pattern
from seo_sitemap_engine.services.entry_sorter import (
    SortDirection,
    SortKey,
    sort_entries,
)
from seo_sitemap_engine.services.sitemap_entry import (
    ChangeFrequency,
    SitemapAlternate,
    SitemapEntry,
    SitemapImage,
    SitemapVideo,
)
from seo_sitemap_engine.services.sitemap_serializer import (
    SitemapBundle,
    SitemapIndexRef,
    build_sitemap_bundle,
    render_sitemap,
    render_sitemap_index,
)
from seo_sitemap_engine.services.sitemap_validator import (
    ValidationIssue,
    ValidationIssueKind,
    ValidationResult,
    ValidationSeverity,
    validate_sitemap,
)
from seo_sitemap_engine.services.url_checker import (
    UrlCheckCoordinator,
    UrlCheckProgress,
    UrlCheckReport,
    UrlReachabilityChecker,
    UrlStatus,
)

__all__ = [
    "__version__",
    "ChangeFrequency",
    "ContentLister",
    "ContentListingError",
    "ContentMedia",
    "ContentRecord",
    "HTTPContentLister",
    "SitemapAlternate",
    "SitemapBundle",
    "SitemapEntry",
    "SitemapImage",
    "SitemapIndexRef",
    "SitemapVideo",
    "SortDirection",
    "SortKey",
    "UrlCheckCoordinator",
    "UrlCheckProgress",
    "UrlCheckReport",
    "UrlReachabilityChecker",
    "UrlStatus",
    "ValidationIssue",
    "ValidationIssueKind",
    "ValidationResult",
    "ValidationSeverity",
    "build_sitemap_bundle",
    "filter_by_pattern",
    "render_sitemap",
    "render_sitemap_index",
    "sort_entries",
    "validate_sitemap",
]
