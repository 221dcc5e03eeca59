"""Render sitemap entries to the sitemaps.org XML wire format."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

from seo_sitemap_engine.services.sitemap_entry import (
    IMAGE_NAMESPACE,
    MAX_SITEMAP_URLS,
    SITEMAP_NAMESPACE,
    VIDEO_NAMESPACE,
    XHTML_NAMESPACE,
    ChangeFrequency,
    SitemapEntry,
    SitemapImage,
    SitemapVideo,
)

XML_DECLARATION: Final[str] = '<?xml version="1.0" encoding="UTF-8"?>'
_PRIORITY_QUANTUM: Final[Decimal] = Decimal("0.1")
_XML_ESCAPES: Final[dict[int, str]] = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        "'": "&apos;",
        '"': "&quot;",
    }
)
_URLSET_OPEN_TAG: Final[str] = (
    f'<urlset xmlns="{SITEMAP_NAMESPACE}"\n'
    f'        xmlns:image="{IMAGE_NAMESPACE}"\n'
    f'        xmlns:video="{VIDEO_NAMESPACE}"\n'
    f'        xmlns:xhtml="{XHTML_NAMESPACE}">'
)


@dataclass(slots=True, frozen=True)
class SitemapIndexRef:
    """Reference to one sitemap file inside a sitemap index."""

    loc: str
    lastmod: str | None = None


@dataclass(slots=True, frozen=True)
class SitemapBundle:
    """A sitemap split into files that each respect the URL ceiling.

    ``documents`` maps file names to XML in publication order. ``index_xml``
    is set only when the entries needed more than one file.
    """

    documents: dict[str, str]
    index_xml: str | None

    @property
    def is_chunked(self) -> bool:
        return self.index_xml is not None


def escape_xml(value: str) -> str:
    """Escape the five XML special characters."""

    return value.translate(_XML_ESCAPES)


def format_priority(priority: float) -> str:
    """Format a priority with one decimal digit, rounding half up."""

    return str(Decimal(str(priority)).quantize(_PRIORITY_QUANTUM, ROUND_HALF_UP))


def _changefreq_text(changefreq: ChangeFrequency | str) -> str:
    if isinstance(changefreq, ChangeFrequency):
        return changefreq.value
    return str(changefreq)


def _render_image(image: SitemapImage) -> list[str]:
    lines = ["    <image:image>", f"      <image:loc>{escape_xml(image.loc)}</image:loc>"]
    if image.caption:
        lines.append(f"      <image:caption>{escape_xml(image.caption)}</image:caption>")
    if image.title:
        lines.append(f"      <image:title>{escape_xml(image.title)}</image:title>")
    lines.append("    </image:image>")
    return lines


def _render_video(video: SitemapVideo) -> list[str]:
    lines = [
        "    <video:video>",
        "      <video:thumbnail_loc>"
        f"{escape_xml(video.thumbnail_loc)}</video:thumbnail_loc>",
        f"      <video:title>{escape_xml(video.title)}</video:title>",
    ]
    if video.description:
        lines.append(
            f"      <video:description>{escape_xml(video.description)}</video:description>"
        )
    lines.append(f"      <video:content_loc>{escape_xml(video.loc)}</video:content_loc>")
    if video.duration_seconds is not None:
        lines.append(f"      <video:duration>{int(video.duration_seconds)}</video:duration>")
    lines.append("    </video:video>")
    return lines


def _render_entry(entry: SitemapEntry) -> list[str]:
    lines = ["  <url>", f"    <loc>{escape_xml(entry.loc)}</loc>"]

    if entry.lastmod:
        lines.append(f"    <lastmod>{escape_xml(entry.lastmod)}</lastmod>")

    if entry.changefreq:
        lines.append(
            f"    <changefreq>{escape_xml(_changefreq_text(entry.changefreq))}</changefreq>"
        )

    if entry.priority is not None:
        lines.append(f"    <priority>{format_priority(entry.priority)}</priority>")

    for image in entry.images:
        lines.extend(_render_image(image))

    for video in entry.videos:
        lines.extend(_render_video(video))

    for alternate in entry.alternates:
        lines.append(
            '    <xhtml:link rel="alternate" '
            f'hreflang="{escape_xml(alternate.hreflang)}" '
            f'href="{escape_xml(alternate.href)}"/>'
        )

    lines.append("  </url>")
    return lines


def render_sitemap(entries: Sequence[SitemapEntry]) -> str:
    """Render entries to a ``<urlset>`` document.

    The output depends only on the entries and their order, so repeated
    calls on equal input return byte-identical XML.
    """

    lines = [XML_DECLARATION, _URLSET_OPEN_TAG]
    for entry in entries:
        lines.extend(_render_entry(entry))
    lines.append("</urlset>")
    return "\n".join(lines)


def render_sitemap_index(refs: Sequence[SitemapIndexRef]) -> str:
    """Render a ``<sitemapindex>`` document referencing sitemap files."""

    lines = [XML_DECLARATION, f'<sitemapindex xmlns="{SITEMAP_NAMESPACE}">']
    for ref in refs:
        lines.append("  <sitemap>")
        lines.append(f"    <loc>{escape_xml(ref.loc)}</loc>")
        if ref.lastmod:
            lines.append(f"    <lastmod>{escape_xml(ref.lastmod)}</lastmod>")
        lines.append("  </sitemap>")
    lines.append("</sitemapindex>")
    return "\n".join(lines)


def chunk_file_name(chunk_number: int) -> str:
    return f"sitemap-{chunk_number}.xml"


def _latest_lastmod(entries: Sequence[SitemapEntry]) -> str | None:
    lastmods = [entry.lastmod for entry in entries if entry.lastmod]
    if not lastmods:
        return None
    return max(lastmods)


def build_sitemap_bundle(
    entries: Sequence[SitemapEntry],
    *,
    base_url: str,
    max_urls_per_file: int = MAX_SITEMAP_URLS,
) -> SitemapBundle:
    """Render entries as one sitemap, or as numbered chunks plus an index."""

    if max_urls_per_file <= 0 or max_urls_per_file > MAX_SITEMAP_URLS:
        raise ValueError(
            f"max_urls_per_file must be between 1 and {MAX_SITEMAP_URLS}"
        )

    if len(entries) <= max_urls_per_file:
        return SitemapBundle(
            documents={"sitemap.xml": render_sitemap(entries)},
            index_xml=None,
        )

    normalized_base_url = base_url.rstrip("/")
    documents: dict[str, str] = {}
    refs: list[SitemapIndexRef] = []
    for offset in range(0, len(entries), max_urls_per_file):
        chunk = entries[offset : offset + max_urls_per_file]
        file_name = chunk_file_name(offset // max_urls_per_file + 1)
        documents[file_name] = render_sitemap(chunk)
        refs.append(
            SitemapIndexRef(
                loc=f"{normalized_base_url}/{file_name}",
                lastmod=_latest_lastmod(chunk),
            )
        )

    return SitemapBundle(documents=documents, index_xml=render_sitemap_index(refs))


__all__ = [
    "SitemapBundle",
    "SitemapIndexRef",
    "XML_DECLARATION",
    "build_sitemap_bundle",
    "chunk_file_name",
    "escape_xml",
    "format_priority",
    "render_sitemap",
    "render_sitemap_index",
]
