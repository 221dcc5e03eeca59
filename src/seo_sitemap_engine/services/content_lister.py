"""Content-listing client for the portfolio site's public JSON API."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
import logging
from typing import Any, Final, Protocol

import httpx

from seo_sitemap_engine.config import get_settings

DEFAULT_TIMEOUT_SECONDS: Final[float] = 10.0

_logger = logging.getLogger("seo_sitemap_engine.content_lister")


@dataclass(slots=True, frozen=True)
class ContentMedia:
    """Media attachment of a content record."""

    url: str
    type: str


@dataclass(slots=True, frozen=True)
class ContentRecord:
    """One listed content item; dates are raw ISO-8601 strings."""

    id: str
    created_at: str | None = None
    updated_at: str | None = None
    title: str | None = None
    description: str | None = None
    media: tuple[ContentMedia, ...] = field(default_factory=tuple)


class ContentListingError(Exception):
    """Raised when a content category cannot be listed."""

    def __init__(self, category: str, message: str) -> None:
        self.category = category
        super().__init__(f"Failed to list {category!r}: {message}")


class ContentLister(Protocol):
    """Anything that can list the records of a content category."""

    async def list_records(self, category: str) -> list[ContentRecord]: ...


def _optional_text(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_media(raw_media: object) -> tuple[ContentMedia, ...]:
    if not isinstance(raw_media, list):
        return ()

    media: list[ContentMedia] = []
    for item in raw_media:
        if not isinstance(item, Mapping):
            continue
        url = _optional_text(item, "url")
        media_type = _optional_text(item, "type")
        if url is None or media_type is None:
            continue
        media.append(ContentMedia(url=url, type=media_type))
    return tuple(media)


def parse_content_record(payload: Mapping[str, Any]) -> ContentRecord:
    """Build a record from one JSON object of a listing response."""

    record_id = _optional_text(payload, "id")
    if record_id is None:
        raise ValueError("Content record is missing an id")

    return ContentRecord(
        id=record_id,
        created_at=_optional_text(payload, "createdAt"),
        updated_at=_optional_text(payload, "updatedAt"),
        title=_optional_text(payload, "title"),
        description=_optional_text(payload, "description"),
        media=_parse_media(payload.get("media")),
    )


class HTTPContentLister:
    """List content through ``GET <base_url>/api/<category>``."""

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds
        self._user_agent = user_agent or get_settings().OUTBOUND_HTTP_USER_AGENT

    @classmethod
    def from_settings(cls) -> HTTPContentLister:
        settings = get_settings()
        return cls(
            settings.CONTENT_API_BASE_URL,
            timeout_seconds=settings.CONTENT_API_TIMEOUT_SECONDS,
            user_agent=settings.OUTBOUND_HTTP_USER_AGENT,
        )

    async def list_records(self, category: str) -> list[ContentRecord]:
        url = f"{self._base_url}/api/{category}"
        async with self._http_client_context() as http_client:
            try:
                response = await http_client.get(
                    url,
                    headers={
                        "Accept": "application/json",
                        "User-Agent": self._user_agent,
                    },
                )
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise ContentListingError(category, str(exc)) from exc

        if not response.is_success:
            raise ContentListingError(category, f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ContentListingError(category, "response is not valid JSON") from exc

        if not isinstance(payload, list):
            raise ContentListingError(category, "expected a JSON array")

        records: list[ContentRecord] = []
        for item in payload:
            if not isinstance(item, Mapping):
                _logger.warning(
                    "Skipping non-object %s record in listing response", category
                )
                continue
            try:
                records.append(parse_content_record(item))
            except ValueError as exc:
                _logger.warning("Skipping %s record: %s", category, exc)

        _logger.debug("Listed %d %s records from %s", len(records), category, url)
        return records

    @asynccontextmanager
    async def _http_client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout_seconds),
            follow_redirects=True,
        ) as http_client:
            yield http_client


__all__ = [
    "ContentLister",
    "ContentListingError",
    "ContentMedia",
    "ContentRecord",
    "HTTPContentLister",
    "parse_content_record",
]
