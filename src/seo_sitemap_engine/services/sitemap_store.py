"""Persistence of the published sitemap, locally or on a remote console."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, date, datetime
import logging
from typing import Any, Final, Protocol

import httpx
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from seo_sitemap_engine.config import get_settings
from seo_sitemap_engine.models import StoredSitemap as StoredSitemapRow
from seo_sitemap_engine.models import StoredSitemapUrl
from seo_sitemap_engine.services.sitemap_entry import (
    ChangeFrequency,
    SitemapAlternate,
    SitemapEntry,
    SitemapImage,
    SitemapVideo,
)
from seo_sitemap_engine.services.sitemap_serializer import render_sitemap
from seo_sitemap_engine.services.sitemap_validator import ValidationResult

DEFAULT_STORED_CHANGEFREQ: Final[ChangeFrequency] = ChangeFrequency.WEEKLY
DEFAULT_STORED_PRIORITY: Final[float] = 0.5
SITEMAP_API_PATH: Final[str] = "/api/seo/sitemap"

_logger = logging.getLogger("seo_sitemap_engine.sitemap_store")


@dataclass(slots=True, frozen=True)
class StoredSitemap:
    """The currently published sitemap document and its entries."""

    xml: str
    entries: list[SitemapEntry]
    generated_at: datetime | None

    @property
    def url_count(self) -> int:
        return len(self.entries)

    @property
    def file_size_bytes(self) -> int:
        return len(self.xml.encode("utf-8"))


class SitemapStoreError(Exception):
    """Base exception for sitemap persistence failures."""


class SitemapPublishRefusedError(SitemapStoreError):
    """Raised when a sitemap with validation errors is offered for publishing."""

    def __init__(self, validation: ValidationResult) -> None:
        self.validation = validation
        super().__init__(
            "Refusing to publish a sitemap with "
            f"{len(validation.errors)} validation error(s)"
        )


class SitemapStore(Protocol):
    """Persistence collaborator for the published sitemap."""

    async def load(self) -> StoredSitemap | None: ...

    async def save(
        self,
        xml: str,
        entries: Sequence[SitemapEntry],
    ) -> StoredSitemap: ...

    async def clear(self) -> None: ...


def _today() -> date:
    return datetime.now(UTC).date()


def _parse_changefreq(value: object) -> ChangeFrequency:
    if value is None or value == "":
        return DEFAULT_STORED_CHANGEFREQ
    try:
        return ChangeFrequency(str(value).strip())
    except ValueError:
        _logger.warning("Replacing unknown stored changefreq %r with weekly", value)
        return DEFAULT_STORED_CHANGEFREQ


def _parse_priority(value: object) -> float:
    if value is None or value == "":
        return DEFAULT_STORED_PRIORITY
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        _logger.warning("Replacing non-numeric stored priority %r with 0.5", value)
        return DEFAULT_STORED_PRIORITY


def stored_entry(
    *,
    loc: str,
    lastmod: object = None,
    changefreq: object = None,
    priority: object = None,
    extensions: Mapping[str, Any] | None = None,
    today: Callable[[], date] = _today,
) -> SitemapEntry:
    """Build an entry from stored fields, filling the missing ones.

    Missing ``lastmod`` becomes today, ``changefreq`` becomes weekly and
    ``priority`` becomes 0.5. ``extensions`` holds the image, video and
    alternate lists in the form written by ``extensions_to_wire``.
    """

    lastmod_text = str(lastmod).strip() if lastmod else ""
    extensions = extensions or {}
    return SitemapEntry(
        loc=loc,
        lastmod=lastmod_text or today().isoformat(),
        changefreq=_parse_changefreq(changefreq),
        priority=_parse_priority(priority),
        images=tuple(
            SitemapImage(
                loc=item["loc"],
                caption=item.get("caption"),
                title=item.get("title"),
            )
            for item in _wire_items(extensions, "images")
        ),
        videos=tuple(
            SitemapVideo(
                loc=item["loc"],
                thumbnail_loc=item["thumbnailLoc"],
                title=item["title"],
                description=item.get("description"),
                duration_seconds=item.get("durationSeconds"),
            )
            for item in _wire_items(extensions, "videos")
        ),
        alternates=tuple(
            SitemapAlternate(hreflang=item["hreflang"], href=item["href"])
            for item in _wire_items(extensions, "alternates")
        ),
    )


def _wire_items(extensions: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    items = extensions.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def extensions_to_wire(entry: SitemapEntry) -> dict[str, Any] | None:
    """Return the image, video and alternate lists of ``entry``, or None."""

    if not (entry.images or entry.videos or entry.alternates):
        return None
    return {
        "images": [
            {"loc": image.loc, "caption": image.caption, "title": image.title}
            for image in entry.images
        ],
        "videos": [
            {
                "loc": video.loc,
                "thumbnailLoc": video.thumbnail_loc,
                "title": video.title,
                "description": video.description,
                "durationSeconds": video.duration_seconds,
            }
            for video in entry.videos
        ],
        "alternates": [
            {"hreflang": alternate.hreflang, "href": alternate.href}
            for alternate in entry.alternates
        ],
    }


def entry_to_wire(entry: SitemapEntry) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "loc": entry.loc,
        "lastmod": entry.lastmod,
        "changefreq": entry.changefreq.value if entry.changefreq else None,
        "priority": entry.priority,
    }
    payload.update(extensions_to_wire(entry) or {})
    return payload


def entry_from_wire(payload: Mapping[str, Any]) -> SitemapEntry:
    loc = payload.get("loc")
    if not isinstance(loc, str) or not loc.strip():
        raise SitemapStoreError("Stored sitemap entry is missing 'loc'")
    try:
        return stored_entry(
            loc=loc.strip(),
            lastmod=payload.get("lastmod"),
            changefreq=payload.get("changefreq"),
            priority=payload.get("priority"),
            extensions=payload,
        )
    except KeyError as exc:
        raise SitemapStoreError(
            f"Stored sitemap entry {loc!r} has an extension missing {exc}"
        ) from exc


def _parse_generated_at(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class DatabaseSitemapStore:
    """Keep the published sitemap in the application database.

    The store works inside the caller's session; committing is left to the
    surrounding ``session_scope``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load(self) -> StoredSitemap | None:
        row = (
            await self._session.execute(
                select(StoredSitemapRow)
                .options(selectinload(StoredSitemapRow.urls))
                .order_by(StoredSitemapRow.generated_at.desc())
                .limit(1)
            )
        ).scalar_one_or_none()
        if row is None:
            return None

        return StoredSitemap(
            xml=row.xml,
            entries=[
                stored_entry(
                    loc=url.loc,
                    lastmod=url.lastmod,
                    changefreq=url.changefreq,
                    priority=url.priority,
                    extensions=url.extensions,
                )
                for url in row.urls
            ],
            generated_at=row.generated_at,
        )

    async def save(
        self,
        xml: str,
        entries: Sequence[SitemapEntry],
    ) -> StoredSitemap:
        await self.clear()

        generated_at = datetime.now(UTC)
        row = StoredSitemapRow(
            xml=xml,
            url_count=len(entries),
            file_size_bytes=len(xml.encode("utf-8")),
            generated_at=generated_at,
            urls=[
                StoredSitemapUrl(
                    position=position,
                    loc=entry.loc,
                    lastmod=entry.lastmod,
                    changefreq=entry.changefreq.value if entry.changefreq else None,
                    priority=entry.priority,
                    extensions=extensions_to_wire(entry),
                )
                for position, entry in enumerate(entries)
            ],
        )
        self._session.add(row)
        await self._session.flush()

        _logger.info(
            "Stored sitemap with %d URLs",
            len(entries),
            extra={"url_count": len(entries)},
        )
        return StoredSitemap(xml=xml, entries=list(entries), generated_at=generated_at)

    async def clear(self) -> None:
        await self._session.execute(delete(StoredSitemapUrl))
        await self._session.execute(delete(StoredSitemapRow))
        await self._session.flush()


class HTTPSitemapStore:
    """Keep the published sitemap on a remote admin console over HTTP."""

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}{SITEMAP_API_PATH}"
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds
        self._user_agent = get_settings().OUTBOUND_HTTP_USER_AGENT

    async def load(self) -> StoredSitemap | None:
        response = await self._request("GET")
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        self._raise_for_status(response)

        try:
            payload = response.json()
        except ValueError as exc:
            raise SitemapStoreError("Sitemap response is not valid JSON") from exc

        raw_urls = payload.get("urls") if isinstance(payload, Mapping) else None
        if not isinstance(raw_urls, list):
            raise SitemapStoreError("Sitemap response is missing a 'urls' array")

        entries = [entry_from_wire(item) for item in raw_urls if isinstance(item, Mapping)]
        xml = payload.get("xml")
        if not isinstance(xml, str) or not xml:
            xml = render_sitemap(entries)

        return StoredSitemap(
            xml=xml,
            entries=entries,
            generated_at=_parse_generated_at(payload.get("generatedAt")),
        )

    async def save(
        self,
        xml: str,
        entries: Sequence[SitemapEntry],
    ) -> StoredSitemap:
        response = await self._request(
            "POST",
            json={"xml": xml, "urls": [entry_to_wire(entry) for entry in entries]},
        )
        self._raise_for_status(response)
        _logger.info(
            "Published sitemap with %d URLs to %s",
            len(entries),
            self._endpoint,
            extra={"url_count": len(entries)},
        )
        return StoredSitemap(
            xml=xml,
            entries=list(entries),
            generated_at=datetime.now(UTC),
        )

    async def clear(self) -> None:
        response = await self._request("DELETE")
        self._raise_for_status(response)

    async def _request(self, method: str, **kwargs: Any) -> httpx.Response:
        async with self._http_client_context() as http_client:
            try:
                return await http_client.request(
                    method,
                    self._endpoint,
                    headers={"User-Agent": self._user_agent},
                    **kwargs,
                )
            except httpx.HTTPError as exc:
                raise SitemapStoreError(
                    f"{method} {self._endpoint} failed: {exc}"
                ) from exc

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        raise SitemapStoreError(
            f"{response.request.method} {self._endpoint} returned "
            f"HTTP {response.status_code}"
        )

    @asynccontextmanager
    async def _http_client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout_seconds)
        ) as http_client:
            yield http_client


async def publish_sitemap(
    store: SitemapStore,
    xml: str,
    entries: Sequence[SitemapEntry],
    validation: ValidationResult,
) -> StoredSitemap:
    """Save a sitemap only when its validation result has no errors."""

    if not validation.is_valid:
        _logger.warning(
            "Refused to publish invalid sitemap",
            extra={
                "error_count": len(validation.errors),
                "warning_count": len(validation.warnings),
            },
        )
        raise SitemapPublishRefusedError(validation)

    return await store.save(xml, entries)


__all__ = [
    "DEFAULT_STORED_CHANGEFREQ",
    "DEFAULT_STORED_PRIORITY",
    "DatabaseSitemapStore",
    "HTTPSitemapStore",
    "SITEMAP_API_PATH",
    "SitemapPublishRefusedError",
    "SitemapStore",
    "SitemapStoreError",
    "StoredSitemap",
    "entry_from_wire",
    "entry_to_wire",
    "extensions_to_wire",
    "publish_sitemap",
    "stored_entry",
]
