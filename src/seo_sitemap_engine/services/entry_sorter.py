"""Stable ordering of sitemap entries by a chosen key."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date
from enum import Enum
from typing import Any

from seo_sitemap_engine.services.sitemap_entry import ChangeFrequency, SitemapEntry

_UNRANKED_CHANGE_FREQUENCY = len(ChangeFrequency)


class SortKey(str, Enum):
    """Supported sitemap entry sort keys."""

    PRIORITY = "priority"
    LASTMOD = "lastmod"
    URL = "url"
    CHANGEFREQ = "changefreq"


class SortDirection(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


def _parse_lastmod(lastmod: str | None) -> date:
    if not lastmod:
        return date.min

    try:
        return date.fromisoformat(lastmod[:10])
    except ValueError:
        return date.min


def _priority_key(entry: SitemapEntry) -> float:
    return entry.priority if entry.priority is not None else 0.0


def _lastmod_key(entry: SitemapEntry) -> date:
    return _parse_lastmod(entry.lastmod)


def _url_key(entry: SitemapEntry) -> str:
    return entry.loc


def _changefreq_key(entry: SitemapEntry) -> int:
    if entry.changefreq is None:
        return _UNRANKED_CHANGE_FREQUENCY
    return entry.changefreq.rank


_SORT_KEY_FUNCTIONS: dict[SortKey, Callable[[SitemapEntry], Any]] = {
    SortKey.PRIORITY: _priority_key,
    SortKey.LASTMOD: _lastmod_key,
    SortKey.URL: _url_key,
    SortKey.CHANGEFREQ: _changefreq_key,
}


def sort_entries(
    entries: Sequence[SitemapEntry],
    key: SortKey | str = SortKey.PRIORITY,
    direction: SortDirection | str = SortDirection.DESC,
) -> list[SitemapEntry]:
    """Return entries ordered by ``key``; ties keep their input order."""

    sort_key = SortKey(key)
    sort_direction = SortDirection(direction)

    return sorted(
        entries,
        key=_SORT_KEY_FUNCTIONS[sort_key],
        reverse=sort_direction is SortDirection.DESC,
    )


__all__ = ["SortDirection", "SortKey", "sort_entries"]
