"""Tests for exclusion-pattern filtering of sitemap entries."""

from __future__ import annotations

import logging

import pytest

from seo_sitemap_engine.services.entry_filter import filter_by_pattern
from seo_sitemap_engine.services.sitemap_entry import SitemapEntry


def _entries(*locs: str) -> list[SitemapEntry]:
    return [SitemapEntry(loc=loc) for loc in locs]


def test_filter_by_pattern_drops_entries_matching_any_pattern() -> None:
    entries = _entries(
        "https://example.com/",
        "https://example.com/admin/users",
        "https://example.com/api/health",
        "https://example.com/skills",
    )

    kept = filter_by_pattern(entries, ["/admin/", "/api/"])

    assert [entry.loc for entry in kept] == [
        "https://example.com/",
        "https://example.com/skills",
    ]


def test_filter_by_pattern_supports_regular_expressions() -> None:
    entries = _entries(
        "https://example.com/experiences/1",
        "https://example.com/experiences/draft-2",
        "https://example.com/education/3",
    )

    kept = filter_by_pattern(entries, [r"/experiences/\d+$"])

    assert [entry.loc for entry in kept] == [
        "https://example.com/experiences/draft-2",
        "https://example.com/education/3",
    ]


def test_filter_by_pattern_uses_invalid_regex_as_literal_substring() -> None:
    entries = _entries(
        "https://example.com/search?q=[",
        "https://example.com/skills",
    )

    kept = filter_by_pattern(entries, ["["])

    assert [entry.loc for entry in kept] == ["https://example.com/skills"]


def test_filter_by_pattern_with_no_patterns_keeps_input_order() -> None:
    entries = _entries("https://example.com/b", "https://example.com/a")

    kept = filter_by_pattern(entries, [])

    assert kept == entries
    assert kept is not entries


def test_filter_by_pattern_logs_excluded_count(caplog: pytest.LogCaptureFixture) -> None:
    entries = _entries("https://example.com/boss/panel", "https://example.com/")

    with caplog.at_level(logging.INFO, logger="seo_sitemap_engine.entry_filter"):
        filter_by_pattern(entries, ["/boss/"])

    assert "Excluded 1 of 2 sitemap entries" in caplog.text
