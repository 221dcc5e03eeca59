"""Batched, bounded-concurrency reachability probing for sitemap URLs."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager, suppress
from dataclasses import dataclass
import logging
from time import perf_counter
from typing import Final

import httpx

from seo_sitemap_engine.config import get_settings
from seo_sitemap_engine.services.sitemap_entry import SitemapEntry

DEFAULT_BATCH_SIZE: Final[int] = 10
DEFAULT_CHECK_TIMEOUT_SECONDS: Final[float] = 5.0

ProgressCallback = Callable[["UrlCheckProgress"], Awaitable[None] | None]

_logger = logging.getLogger("seo_sitemap_engine.url_checker")


@dataclass(slots=True, frozen=True)
class UrlStatus:
    """Outcome of one reachability check; ``status_code`` 0 means no response."""

    status_code: int
    status_text: str
    accessible: bool
    response_time_ms: int


@dataclass(slots=True, frozen=True)
class UrlCheckProgress:
    """Progress emitted after each settled batch."""

    processed: int
    total: int
    batch_index: int
    batch_count: int


@dataclass(slots=True, frozen=True)
class UrlCheckReport:
    """Status map for one ``check_all`` call, owned by the caller."""

    statuses: dict[str, UrlStatus]
    total: int
    processed: int
    batches: int
    cancelled: bool

    @property
    def accessible_count(self) -> int:
        return sum(1 for status in self.statuses.values() if status.accessible)

    @property
    def failed_count(self) -> int:
        return len(self.statuses) - self.accessible_count


def is_accessible_status(status_code: int) -> bool:
    return 200 <= status_code <= 299


def _elapsed_ms(started_at: float) -> int:
    return int(round((perf_counter() - started_at) * 1000))


def _unique_locs(entries: Sequence[SitemapEntry]) -> list[str]:
    return list(dict.fromkeys(entry.loc for entry in entries))


def _chunk_locs(locs: Sequence[str], chunk_size: int) -> list[list[str]]:
    return [
        list(locs[index : index + chunk_size])
        for index in range(0, len(locs), chunk_size)
    ]


class UrlCheckCoordinator:
    """Hand out cancel events so that starting a check cancels the previous one."""

    def __init__(self) -> None:
        self._current: asyncio.Event | None = None

    @property
    def active(self) -> bool:
        return self._current is not None

    def begin(self) -> asyncio.Event:
        if self._current is not None:
            self._current.set()
            _logger.info("Cancelling superseded URL check")

        cancel_event = asyncio.Event()
        self._current = cancel_event
        return cancel_event

    def finish(self, cancel_event: asyncio.Event) -> None:
        if self._current is cancel_event:
            self._current = None


class UrlReachabilityChecker:
    """Check URLs with HEAD requests, one fully settled batch at a time."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout_seconds: float = DEFAULT_CHECK_TIMEOUT_SECONDS,
        follow_redirects: bool = False,
        user_agent: str | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be greater than zero")

        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")

        self._http_client = http_client
        self._batch_size = batch_size
        self._timeout_seconds = timeout_seconds
        self._follow_redirects = follow_redirects
        self._user_agent = user_agent or get_settings().OUTBOUND_HTTP_USER_AGENT

    @classmethod
    def from_settings(cls) -> UrlReachabilityChecker:
        settings = get_settings()
        return cls(
            batch_size=settings.URL_CHECK_BATCH_SIZE,
            timeout_seconds=settings.URL_CHECK_TIMEOUT_SECONDS,
            follow_redirects=settings.URL_CHECK_FOLLOW_REDIRECTS,
            user_agent=settings.OUTBOUND_HTTP_USER_AGENT,
        )

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def check_all(
        self,
        entries: Sequence[SitemapEntry],
        *,
        progress_callback: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> UrlCheckReport:
        """Check every distinct entry URL and return a fresh status map.

        Batches run in entry order and each batch settles completely before
        the next starts. Setting ``cancel_event`` cancels in-flight requests of
        the current batch and stops before the next one; the report then
        holds the statuses gathered so far.
        """

        locs = _unique_locs(entries)
        batches = _chunk_locs(locs, self._batch_size)
        statuses: dict[str, UrlStatus] = {}
        cancelled = False

        async with self._http_client_context() as http_client:
            for batch_index, batch in enumerate(batches, start=1):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break

                batch_statuses, batch_cancelled = await self._run_batch(
                    http_client=http_client,
                    locs=batch,
                    cancel_event=cancel_event,
                )
                statuses.update(batch_statuses)

                if batch_cancelled:
                    cancelled = True
                    break

                await self._emit_progress(
                    callback=progress_callback,
                    progress=UrlCheckProgress(
                        processed=len(statuses),
                        total=len(locs),
                        batch_index=batch_index,
                        batch_count=len(batches),
                    ),
                )

        if cancelled:
            _logger.info(
                {
                    "event": "url_check_cancelled",
                    "processed": len(statuses),
                    "total": len(locs),
                }
            )

        return UrlCheckReport(
            statuses=statuses,
            total=len(locs),
            processed=len(statuses),
            batches=len(batches),
            cancelled=cancelled,
        )

    async def check_url(self, url: str) -> UrlStatus:
        """Check a single URL."""

        async with self._http_client_context() as http_client:
            return await self._head(http_client=http_client, url=url)

    @asynccontextmanager
    async def _http_client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout_seconds),
            follow_redirects=self._follow_redirects,
        ) as http_client:
            yield http_client

    async def _run_batch(
        self,
        *,
        http_client: httpx.AsyncClient,
        locs: Sequence[str],
        cancel_event: asyncio.Event | None,
    ) -> tuple[dict[str, UrlStatus], bool]:
        requests = {
            loc: asyncio.create_task(self._head(http_client=http_client, url=loc))
            for loc in locs
        }

        if cancel_event is None:
            await asyncio.gather(*requests.values())
            return {loc: request.result() for loc, request in requests.items()}, False

        cancel_waiter = asyncio.create_task(cancel_event.wait())
        batch_done = asyncio.gather(*requests.values())
        try:
            await asyncio.wait(
                {batch_done, cancel_waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            batch_done.cancel()
            raise
        finally:
            cancel_waiter.cancel()

        if batch_done.done():
            return {loc: request.result() for loc, request in requests.items()}, False

        batch_done.cancel()
        with suppress(asyncio.CancelledError):
            await batch_done

        settled = {
            loc: request.result()
            for loc, request in requests.items()
            if request.done() and not request.cancelled()
        }
        return settled, True

    async def _head(self, *, http_client: httpx.AsyncClient, url: str) -> UrlStatus:
        started_at = perf_counter()
        try:
            response = await asyncio.wait_for(
                http_client.head(
                    url,
                    headers={"User-Agent": self._user_agent},
                    follow_redirects=self._follow_redirects,
                ),
                timeout=self._timeout_seconds,
            )
        except (TimeoutError, httpx.TimeoutException):
            return self._failure(
                url=url,
                started_at=started_at,
                status_text=f"Timed out after {self._timeout_seconds:g}s",
            )
        except Exception as exc:
            return self._failure(
                url=url,
                started_at=started_at,
                status_text=str(exc) or exc.__class__.__name__,
            )

        return UrlStatus(
            status_code=response.status_code,
            status_text=response.reason_phrase,
            accessible=is_accessible_status(response.status_code),
            response_time_ms=_elapsed_ms(started_at),
        )

    @staticmethod
    def _failure(*, url: str, started_at: float, status_text: str) -> UrlStatus:
        _logger.debug("URL check failed for %r: %s", url, status_text)
        return UrlStatus(
            status_code=0,
            status_text=status_text,
            accessible=False,
            response_time_ms=_elapsed_ms(started_at),
        )

    @staticmethod
    async def _emit_progress(
        *,
        callback: ProgressCallback | None,
        progress: UrlCheckProgress,
    ) -> None:
        if callback is None:
            return

        try:
            maybe_awaitable = callback(progress)
            if maybe_awaitable is None:
                return
            await maybe_awaitable
        except Exception:
            _logger.warning("URL check progress callback failed", exc_info=True)


__all__ = [
    "DEFAULT_BATCH_SIZE",
    "DEFAULT_CHECK_TIMEOUT_SECONDS",
    "UrlCheckCoordinator",
    "UrlCheckProgress",
    "UrlCheckReport",
    "UrlReachabilityChecker",
    "UrlStatus",
    "is_accessible_status",
]
