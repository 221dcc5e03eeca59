"""Pydantic schemas for sitemap API payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from seo_sitemap_engine.schemas.sitemap_settings import SitemapSettings
from seo_sitemap_engine.services.sitemap_entry import (
    ChangeFrequency,
    SitemapAlternate,
    SitemapEntry,
    SitemapImage,
    SitemapVideo,
)
from seo_sitemap_engine.services.sitemap_validator import (
    ValidationIssue,
    ValidationIssueKind,
    ValidationResult,
    ValidationSeverity,
)
from seo_sitemap_engine.services.url_checker import UrlCheckReport, UrlStatus


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SitemapImagePayload(CamelModel):
    loc: str = Field(min_length=1)
    caption: str | None = None
    title: str | None = None


class SitemapVideoPayload(CamelModel):
    loc: str = Field(min_length=1)
    thumbnail_loc: str = Field(min_length=1)
    title: str
    description: str | None = None
    duration_seconds: int | None = Field(default=None, ge=0)


class SitemapAlternatePayload(CamelModel):
    hreflang: str = Field(min_length=1)
    href: str = Field(min_length=1)


class SitemapEntryPayload(CamelModel):
    """Wire form of a sitemap entry."""

    loc: str = Field(min_length=1)
    lastmod: str | None = None
    changefreq: ChangeFrequency | None = None
    priority: float | None = None
    images: list[SitemapImagePayload] = Field(default_factory=list)
    videos: list[SitemapVideoPayload] = Field(default_factory=list)
    alternates: list[SitemapAlternatePayload] = Field(default_factory=list)

    def to_entry(self) -> SitemapEntry:
        return SitemapEntry(
            loc=self.loc,
            lastmod=self.lastmod or None,
            changefreq=self.changefreq,
            priority=self.priority,
            images=tuple(
                SitemapImage(loc=image.loc, caption=image.caption, title=image.title)
                for image in self.images
            ),
            videos=tuple(
                SitemapVideo(
                    loc=video.loc,
                    thumbnail_loc=video.thumbnail_loc,
                    title=video.title,
                    description=video.description,
                    duration_seconds=video.duration_seconds,
                )
                for video in self.videos
            ),
            alternates=tuple(
                SitemapAlternate(hreflang=alternate.hreflang, href=alternate.href)
                for alternate in self.alternates
            ),
        )

    @classmethod
    def from_entry(cls, entry: SitemapEntry) -> SitemapEntryPayload:
        return cls(
            loc=entry.loc,
            lastmod=entry.lastmod,
            changefreq=entry.changefreq,
            priority=entry.priority,
            images=[
                SitemapImagePayload(
                    loc=image.loc, caption=image.caption, title=image.title
                )
                for image in entry.images
            ],
            videos=[
                SitemapVideoPayload(
                    loc=video.loc,
                    thumbnail_loc=video.thumbnail_loc,
                    title=video.title,
                    description=video.description,
                    duration_seconds=video.duration_seconds,
                )
                for video in entry.videos
            ],
            alternates=[
                SitemapAlternatePayload(hreflang=alternate.hreflang, href=alternate.href)
                for alternate in entry.alternates
            ],
        )


class ValidationIssuePayload(CamelModel):
    kind: ValidationIssueKind
    severity: ValidationSeverity
    code: str
    message: str
    index: int | None = None
    line: int | None = None

    @classmethod
    def from_issue(cls, issue: ValidationIssue) -> ValidationIssuePayload:
        return cls(
            kind=issue.kind,
            severity=issue.severity,
            code=issue.code,
            message=issue.message,
            index=issue.index,
            line=issue.line,
        )


class ValidationResultPayload(CamelModel):
    """Serialized validation outcome."""

    is_valid: bool
    errors: list[ValidationIssuePayload]
    warnings: list[ValidationIssuePayload]
    url_count: int
    file_size_bytes: int

    @classmethod
    def from_result(cls, result: ValidationResult) -> ValidationResultPayload:
        return cls(
            is_valid=result.is_valid,
            errors=[ValidationIssuePayload.from_issue(issue) for issue in result.errors],
            warnings=[
                ValidationIssuePayload.from_issue(issue) for issue in result.warnings
            ],
            url_count=result.url_count,
            file_size_bytes=result.file_size_bytes,
        )


class ValidateSitemapRequest(CamelModel):
    xml: str


class SaveSitemapRequest(CamelModel):
    """Payload used to publish a sitemap document with its entries."""

    xml: str = Field(min_length=1)
    urls: list[SitemapEntryPayload] = Field(default_factory=list)


class StoredSitemapResponse(CamelModel):
    xml: str
    urls: list[SitemapEntryPayload]
    generated_at: datetime | None
    url_count: int
    file_size_bytes: int


class GenerationStatsPayload(CamelModel):
    total_urls: int
    discovered: int
    excluded: int
    truncated: int
    duplicates: int
    with_images: int
    with_videos: int
    with_alternates: int
    failed_categories: list[str]
    generated_at: datetime


class GenerateSitemapResponse(CamelModel):
    """Outcome of one generation run."""

    entries: list[SitemapEntryPayload]
    xml: str
    validation: ValidationResultPayload
    stats: GenerationStatsPayload
    settings: SitemapSettings
    published: bool = False


class CheckUrlsRequest(CamelModel):
    """Entries to check; the stored sitemap's entries are used when omitted."""

    urls: list[SitemapEntryPayload] | None = None


class UrlStatusPayload(CamelModel):
    status_code: int
    status_text: str
    accessible: bool
    response_time_ms: int

    @classmethod
    def from_status(cls, status: UrlStatus) -> UrlStatusPayload:
        return cls(
            status_code=status.status_code,
            status_text=status.status_text,
            accessible=status.accessible,
            response_time_ms=status.response_time_ms,
        )


class CheckUrlsResponse(CamelModel):
    statuses: dict[str, UrlStatusPayload]
    total: int
    processed: int
    batches: int
    cancelled: bool
    accessible_count: int
    failed_count: int

    @classmethod
    def from_report(cls, report: UrlCheckReport) -> CheckUrlsResponse:
        return cls(
            statuses={
                loc: UrlStatusPayload.from_status(status)
                for loc, status in report.statuses.items()
            },
            total=report.total,
            processed=report.processed,
            batches=report.batches,
            cancelled=report.cancelled,
            accessible_count=report.accessible_count,
            failed_count=report.failed_count,
        )


class PageTypeStats(CamelModel):
    static: int
    dynamic: int
    media: int
    total: int


class DiscoveredPagesResponse(CamelModel):
    """Discovery preview grouped by page type."""

    static_pages: list[SitemapEntryPayload]
    dynamic_pages: list[SitemapEntryPayload]
    media_pages: list[SitemapEntryPayload]
    total_count: int
    failed_categories: list[str]
    stats: PageTypeStats


class MessageResponse(CamelModel):
    message: str


__all__ = [
    "CamelModel",
    "CheckUrlsRequest",
    "CheckUrlsResponse",
    "DiscoveredPagesResponse",
    "GenerateSitemapResponse",
    "GenerationStatsPayload",
    "MessageResponse",
    "PageTypeStats",
    "SaveSitemapRequest",
    "SitemapAlternatePayload",
    "SitemapEntryPayload",
    "SitemapImagePayload",
    "SitemapVideoPayload",
    "StoredSitemapResponse",
    "UrlStatusPayload",
    "ValidateSitemapRequest",
    "ValidationIssuePayload",
    "ValidationResultPayload",
]
