"""Sitemap entry value types shared by the generation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Final
from urllib.parse import urlsplit

SITEMAP_NAMESPACE: Final[str] = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NAMESPACE: Final[str] = "http://www.google.com/schemas/sitemap-image/1.1"
VIDEO_NAMESPACE: Final[str] = "http://www.google.com/schemas/sitemap-video/1.1"
XHTML_NAMESPACE: Final[str] = "http://www.w3.org/1999/xhtml"

MAX_SITEMAP_URLS: Final[int] = 50_000


class ChangeFrequency(str, Enum):
    """Crawler hint for how often a URL's content changes."""

    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"

    @property
    def rank(self) -> int:
        return _CHANGE_FREQUENCY_RANKS[self]


_CHANGE_FREQUENCY_RANKS: Final[dict[ChangeFrequency, int]] = {
    frequency: rank for rank, frequency in enumerate(ChangeFrequency)
}

CHANGE_FREQUENCY_VALUES: Final[frozenset[str]] = frozenset(
    frequency.value for frequency in ChangeFrequency
)


def is_absolute_http_url(value: str) -> bool:
    """Return True when ``value`` is an absolute http(s) URL with a host."""

    if not value or any(character.isspace() for character in value):
        return False

    try:
        parsed_url = urlsplit(value)
        parsed_url.port  # raises ValueError for malformed ports
    except ValueError:
        return False

    return parsed_url.scheme in {"http", "https"} and bool(parsed_url.hostname)


@dataclass(slots=True, frozen=True)
class SitemapImage:
    """Google image-sitemap extension attached to an entry."""

    loc: str
    caption: str | None = None
    title: str | None = None


@dataclass(slots=True, frozen=True)
class SitemapVideo:
    """Google video-sitemap extension attached to an entry."""

    loc: str
    thumbnail_loc: str
    title: str
    description: str | None = None
    duration_seconds: int | None = None


@dataclass(slots=True, frozen=True)
class SitemapAlternate:
    """Language variant of an entry, rendered as an hreflang link."""

    hreflang: str
    href: str


@dataclass(slots=True, frozen=True)
class SitemapEntry:
    """One crawlable URL with optional sitemap metadata."""

    loc: str
    lastmod: str | None = None
    changefreq: ChangeFrequency | None = None
    priority: float | None = None
    images: tuple[SitemapImage, ...] = field(default_factory=tuple)
    videos: tuple[SitemapVideo, ...] = field(default_factory=tuple)
    alternates: tuple[SitemapAlternate, ...] = field(default_factory=tuple)


__all__ = [
    "CHANGE_FREQUENCY_VALUES",
    "ChangeFrequency",
    "IMAGE_NAMESPACE",
    "MAX_SITEMAP_URLS",
    "SITEMAP_NAMESPACE",
    "SitemapAlternate",
    "SitemapEntry",
    "SitemapImage",
    "SitemapVideo",
    "VIDEO_NAMESPACE",
    "XHTML_NAMESPACE",
    "is_absolute_http_url",
]
