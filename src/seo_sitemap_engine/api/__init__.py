"""API package exports."""

from seo_sitemap_engine import __version__
from seo_sitemap_engine.api.public import router as public_router
from seo_sitemap_engine.api.sitemap import router as sitemap_router

__all__ = ["__version__", "public_router", "sitemap_router"]
