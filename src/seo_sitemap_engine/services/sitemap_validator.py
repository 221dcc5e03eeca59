"""Structural, field-level and size validation of sitemap XML documents."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import logging
import math
from typing import Final

from lxml import etree  # type: ignore[import-untyped]

from seo_sitemap_engine.services.sitemap_entry import (
    CHANGE_FREQUENCY_VALUES,
    MAX_SITEMAP_URLS,
    SITEMAP_NAMESPACE,
    is_absolute_http_url,
)

URL_COUNT_WARNING_THRESHOLD: Final[int] = 40_000
MAX_SITEMAP_BYTES: Final[int] = 50 * 1024 * 1024
SIZE_WARNING_THRESHOLD_BYTES: Final[int] = 40 * 1024 * 1024
MAX_RECOMMENDED_URL_LENGTH: Final[int] = 2048

logger = logging.getLogger("seo_sitemap_engine.sitemap_validator")


class ValidationIssueKind(str, Enum):
    """Closed set of sitemap validation issue kinds."""

    SYNTAX = "syntax"
    STRUCTURE = "structure"
    URL_FORMAT = "url"
    SIZE_LIMIT = "size"
    PERFORMANCE = "performance"
    BEST_PRACTICE = "best-practice"


class ValidationSeverity(str, Enum):
    """Errors invalidate a sitemap; warnings never do."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(slots=True, frozen=True)
class ValidationIssue:
    """One validation finding, located by ``<url>`` position when relevant."""

    kind: ValidationIssueKind
    severity: ValidationSeverity
    code: str
    message: str
    index: int | None = None
    line: int | None = None


@dataclass(slots=True, frozen=True)
class ValidationResult:
    """Outcome of validating one serialized sitemap document."""

    errors: tuple[ValidationIssue, ...]
    warnings: tuple[ValidationIssue, ...]
    url_count: int
    file_size_bytes: int

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def errors_of_kind(self, kind: ValidationIssueKind) -> list[ValidationIssue]:
        return [issue for issue in self.errors if issue.kind is kind]

    def warnings_of_kind(self, kind: ValidationIssueKind) -> list[ValidationIssue]:
        return [issue for issue in self.warnings if issue.kind is kind]


@dataclass(slots=True, frozen=True)
class _UrlElementView:
    index: int
    line: int | None
    loc: str | None
    priority_text: str | None
    changefreq_text: str | None


@dataclass(slots=True)
class _IssueCollector:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def add(self, issue: ValidationIssue | None) -> None:
        if issue is None:
            return
        if issue.severity is ValidationSeverity.ERROR:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def result(self, *, url_count: int, file_size_bytes: int) -> ValidationResult:
        return ValidationResult(
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            url_count=url_count,
            file_size_bytes=file_size_bytes,
        )


def _error(
    kind: ValidationIssueKind,
    code: str,
    message: str,
    *,
    index: int | None = None,
    line: int | None = None,
) -> ValidationIssue:
    return ValidationIssue(
        kind=kind,
        severity=ValidationSeverity.ERROR,
        code=code,
        message=message,
        index=index,
        line=line,
    )


def _warning(
    kind: ValidationIssueKind,
    code: str,
    message: str,
    *,
    index: int | None = None,
    line: int | None = None,
) -> ValidationIssue:
    return ValidationIssue(
        kind=kind,
        severity=ValidationSeverity.WARNING,
        code=code,
        message=message,
        index=index,
        line=line,
    )


def _check_loc_present(view: _UrlElementView) -> ValidationIssue | None:
    if view.loc:
        return None
    return _error(
        ValidationIssueKind.STRUCTURE,
        "missing_loc",
        f"URL entry {view.index} is missing <loc> element",
        index=view.index,
        line=view.line,
    )


def _check_loc_format(view: _UrlElementView) -> ValidationIssue | None:
    if not view.loc or is_absolute_http_url(view.loc):
        return None
    return _error(
        ValidationIssueKind.URL_FORMAT,
        "invalid_loc",
        f"Invalid URL format at entry {view.index}: {view.loc}",
        index=view.index,
        line=view.line,
    )


def _check_loc_length(view: _UrlElementView) -> ValidationIssue | None:
    if not view.loc or len(view.loc) <= MAX_RECOMMENDED_URL_LENGTH:
        return None
    return _warning(
        ValidationIssueKind.BEST_PRACTICE,
        "long_loc",
        f"URL at entry {view.index} is very long ({len(view.loc)} characters)",
        index=view.index,
        line=view.line,
    )


def _check_priority(view: _UrlElementView) -> ValidationIssue | None:
    if view.priority_text is None:
        return None

    try:
        priority = float(view.priority_text)
    except ValueError:
        priority = math.nan

    if math.isfinite(priority) and 0.0 <= priority <= 1.0:
        return None

    return _error(
        ValidationIssueKind.STRUCTURE,
        "invalid_priority",
        f"Invalid priority value at entry {view.index}: {view.priority_text}",
        index=view.index,
        line=view.line,
    )


def _check_changefreq(view: _UrlElementView) -> ValidationIssue | None:
    if view.changefreq_text is None or view.changefreq_text in CHANGE_FREQUENCY_VALUES:
        return None
    return _error(
        ValidationIssueKind.STRUCTURE,
        "invalid_changefreq",
        f"Invalid changefreq value at entry {view.index}: {view.changefreq_text}",
        index=view.index,
        line=view.line,
    )


URL_RULES: Final[tuple[Callable[[_UrlElementView], ValidationIssue | None], ...]] = (
    _check_loc_present,
    _check_loc_format,
    _check_loc_length,
    _check_priority,
    _check_changefreq,
)


def _check_url_count(url_count: int) -> ValidationIssue | None:
    if url_count > MAX_SITEMAP_URLS:
        return _error(
            ValidationIssueKind.SIZE_LIMIT,
            "too_many_urls",
            f"Sitemap exceeds {MAX_SITEMAP_URLS:,} URL limit ({url_count:,} URLs)",
        )
    if url_count > URL_COUNT_WARNING_THRESHOLD:
        return _warning(
            ValidationIssueKind.PERFORMANCE,
            "many_urls",
            f"Sitemap is getting large ({url_count:,} URLs) - "
            "consider splitting into multiple sitemaps",
        )
    return None


def _format_megabytes(size_bytes: int) -> str:
    return f"{size_bytes / 1024 / 1024:.1f}MB"


def _check_file_size(file_size_bytes: int) -> ValidationIssue | None:
    if file_size_bytes > MAX_SITEMAP_BYTES:
        return _error(
            ValidationIssueKind.SIZE_LIMIT,
            "file_too_large",
            "Sitemap exceeds 50MB size limit "
            f"({_format_megabytes(file_size_bytes)})",
        )
    if file_size_bytes > SIZE_WARNING_THRESHOLD_BYTES:
        return _warning(
            ValidationIssueKind.PERFORMANCE,
            "large_file",
            f"Sitemap is getting large ({_format_megabytes(file_size_bytes)})",
        )
    return None


def _local_name(element: etree._Element) -> str:
    return str(etree.QName(element).localname)


def _is_sitemap_element(element: etree._Element, local_name: str) -> bool:
    # Local name only; namespace problems are reported once on the root.
    if not isinstance(element.tag, str):
        return False
    return _local_name(element) == local_name


def _child_text(parent: etree._Element, local_name: str) -> str | None:
    for child in parent:
        if not _is_sitemap_element(child, local_name):
            continue
        if child.text is None:
            return ""
        return str(child.text).strip()
    return None


def _build_url_view(element: etree._Element, index: int) -> _UrlElementView:
    return _UrlElementView(
        index=index,
        line=element.sourceline,
        loc=_child_text(element, "loc") or None,
        priority_text=_child_text(element, "priority"),
        changefreq_text=_child_text(element, "changefreq"),
    )


def _to_xml_bytes(xml_content: str | bytes) -> bytes:
    if isinstance(xml_content, bytes):
        return xml_content
    return xml_content.encode("utf-8")


def validate_sitemap(xml_content: str | bytes) -> ValidationResult:
    """Validate a ``<urlset>`` sitemap document.

    Content problems are reported in the returned result; this function does
    not raise for malformed or oversized input.
    """

    xml_bytes = _to_xml_bytes(xml_content)
    file_size_bytes = len(xml_bytes)
    collector = _IssueCollector()

    if not xml_bytes.strip():
        collector.add(
            _error(
                ValidationIssueKind.SYNTAX,
                "empty_document",
                "Invalid XML structure - the document is empty",
            )
        )
        return collector.result(url_count=0, file_size_bytes=file_size_bytes)

    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        recover=False,
        huge_tree=True,
    )
    try:
        root = etree.fromstring(xml_bytes, parser=parser)
    except etree.XMLSyntaxError as exc:
        collector.add(
            _error(
                ValidationIssueKind.SYNTAX,
                "malformed_xml",
                f"Invalid XML structure - please check syntax: {exc}",
                line=exc.lineno,
            )
        )
        return collector.result(url_count=0, file_size_bytes=file_size_bytes)

    if _local_name(root) != "urlset":
        collector.add(
            _error(
                ValidationIssueKind.STRUCTURE,
                "missing_urlset",
                "Missing required <urlset> root element "
                f"(found <{_local_name(root)}>)",
                line=root.sourceline,
            )
        )
        return collector.result(url_count=0, file_size_bytes=file_size_bytes)

    if etree.QName(root).namespace != SITEMAP_NAMESPACE:
        collector.add(
            _warning(
                ValidationIssueKind.BEST_PRACTICE,
                "missing_namespace",
                "Missing or incorrect sitemap namespace",
                line=root.sourceline,
            )
        )

    url_count = 0
    for element in root:
        if not _is_sitemap_element(element, "url"):
            continue

        url_count += 1
        view = _build_url_view(element, url_count)
        if view.loc is None:
            collector.add(_check_loc_present(view))
            continue

        for rule in URL_RULES:
            collector.add(rule(view))

    collector.add(_check_url_count(url_count))
    collector.add(_check_file_size(file_size_bytes))

    result = collector.result(url_count=url_count, file_size_bytes=file_size_bytes)
    logger.debug(
        "Validated sitemap with %d URLs: %d errors, %d warnings",
        url_count,
        len(result.errors),
        len(result.warnings),
    )
    return result


__all__ = [
    "MAX_RECOMMENDED_URL_LENGTH",
    "MAX_SITEMAP_BYTES",
    "SIZE_WARNING_THRESHOLD_BYTES",
    "URL_COUNT_WARNING_THRESHOLD",
    "URL_RULES",
    "ValidationIssue",
    "ValidationIssueKind",
    "ValidationResult",
    "ValidationSeverity",
    "validate_sitemap",
]
