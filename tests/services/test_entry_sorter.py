"""Tests for stable sitemap entry ordering."""

from __future__ import annotations

import pytest

from seo_sitemap_engine.services.entry_sorter import (
    SortDirection,
    SortKey,
    sort_entries,
)
from seo_sitemap_engine.services.sitemap_entry import ChangeFrequency, SitemapEntry


def _locs(entries: list[SitemapEntry]) -> list[str]:
    return [entry.loc for entry in entries]


def test_sort_entries_defaults_to_priority_descending() -> None:
    entries = [
        SitemapEntry(loc="https://example.com/low", priority=0.2),
        SitemapEntry(loc="https://example.com/high", priority=1.0),
        SitemapEntry(loc="https://example.com/none"),
        SitemapEntry(loc="https://example.com/mid", priority=0.5),
    ]

    ordered = sort_entries(entries)

    assert _locs(ordered) == [
        "https://example.com/high",
        "https://example.com/mid",
        "https://example.com/low",
        "https://example.com/none",
    ]


@pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
def test_sort_entries_keeps_input_order_for_ties(direction: SortDirection) -> None:
    entries = [
        SitemapEntry(loc="https://example.com/first", priority=0.5),
        SitemapEntry(loc="https://example.com/second", priority=0.5),
        SitemapEntry(loc="https://example.com/third", priority=0.5),
    ]

    ordered = sort_entries(entries, SortKey.PRIORITY, direction)

    assert _locs(ordered) == _locs(entries)


def test_sort_entries_by_lastmod_puts_missing_dates_first_ascending() -> None:
    entries = [
        SitemapEntry(loc="https://example.com/new", lastmod="2024-05-01"),
        SitemapEntry(loc="https://example.com/unknown"),
        SitemapEntry(loc="https://example.com/old", lastmod="2023-01-15"),
        SitemapEntry(loc="https://example.com/garbled", lastmod="not-a-date"),
    ]

    ordered = sort_entries(entries, "lastmod", "asc")

    assert _locs(ordered) == [
        "https://example.com/unknown",
        "https://example.com/garbled",
        "https://example.com/old",
        "https://example.com/new",
    ]


def test_sort_entries_by_url_is_lexicographic() -> None:
    entries = [
        SitemapEntry(loc="https://example.com/skills"),
        SitemapEntry(loc="https://example.com/education"),
        SitemapEntry(loc="https://example.com/"),
    ]

    ordered = sort_entries(entries, SortKey.URL, SortDirection.ASC)

    assert _locs(ordered) == [
        "https://example.com/",
        "https://example.com/education",
        "https://example.com/skills",
    ]


def test_sort_entries_by_changefreq_uses_frequency_rank() -> None:
    entries = [
        SitemapEntry(loc="https://example.com/m", changefreq=ChangeFrequency.MONTHLY),
        SitemapEntry(loc="https://example.com/missing"),
        SitemapEntry(loc="https://example.com/a", changefreq=ChangeFrequency.ALWAYS),
        SitemapEntry(loc="https://example.com/n", changefreq=ChangeFrequency.NEVER),
        SitemapEntry(loc="https://example.com/d", changefreq=ChangeFrequency.DAILY),
    ]

    ordered = sort_entries(entries, SortKey.CHANGEFREQ, SortDirection.ASC)

    assert _locs(ordered) == [
        "https://example.com/a",
        "https://example.com/d",
        "https://example.com/m",
        "https://example.com/n",
        "https://example.com/missing",
    ]


def test_sort_entries_rejects_unknown_key() -> None:
    with pytest.raises(ValueError):
        sort_entries([], "title")
