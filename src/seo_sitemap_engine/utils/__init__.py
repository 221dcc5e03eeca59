"""Utilities for shared application concerns."""

from seo_sitemap_engine import __version__
from seo_sitemap_engine.utils.logging import (
    add_request_logging_middleware,
    setup_logging,
)

__all__ = ["__version__", "add_request_logging_middleware", "setup_logging"]
