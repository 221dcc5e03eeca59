"""Exclusion-pattern filtering for sitemap entries."""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging
import re

from seo_sitemap_engine.services.sitemap_entry import SitemapEntry

logger = logging.getLogger("seo_sitemap_engine.entry_filter")

LocMatcher = Callable[[str], bool]


def _compile_matcher(pattern: str) -> LocMatcher:
    try:
        compiled_pattern = re.compile(pattern)
    except re.error as exc:
        logger.debug(
            "Exclusion pattern %r is not a valid regular expression (%s); "
            "matching it as a literal substring",
            pattern,
            exc,
        )
        return lambda loc: pattern in loc

    return lambda loc: compiled_pattern.search(loc) is not None


def filter_by_pattern(
    entries: Sequence[SitemapEntry],
    patterns: Sequence[str],
) -> list[SitemapEntry]:
    """Drop entries whose ``loc`` matches any exclusion pattern.

    Each pattern is tried as a regular expression first. Patterns that do
    not compile fall back to literal substring matching instead of raising.
    """

    if not patterns:
        return list(entries)

    matchers = [_compile_matcher(pattern) for pattern in patterns]
    kept_entries = [
        entry
        for entry in entries
        if not any(matcher(entry.loc) for matcher in matchers)
    ]

    excluded_count = len(entries) - len(kept_entries)
    if excluded_count:
        logger.info(
            "Excluded %d of %d sitemap entries by pattern",
            excluded_count,
            len(entries),
        )

    return kept_entries


__all__ = ["filter_by_pattern"]
