"""Generate the sitemap from the configured content API and write or publish it."""

from __future__ import annotations

import argparse
import asyncio
from datetime import UTC, datetime
from pathlib import Path
import sys

from seo_sitemap_engine.config import get_settings
from seo_sitemap_engine.schemas.sitemap_settings import SitemapSettings
from seo_sitemap_engine.services.content_lister import HTTPContentLister
from seo_sitemap_engine.services.sitemap_generation import SitemapGenerationService
from seo_sitemap_engine.services.sitemap_store import (
    HTTPSitemapStore,
    SitemapPublishRefusedError,
    publish_sitemap,
)
from seo_sitemap_engine.services.url_checker import (
    UrlCheckProgress,
    UrlReachabilityChecker,
)
from seo_sitemap_engine.utils.logging import setup_logging


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("sitemap.xml"),
        help="File the generated sitemap is written to",
    )
    parser.add_argument(
        "--publish-to",
        metavar="CONSOLE_URL",
        help="Publish the sitemap to the admin console at this base URL",
    )
    parser.add_argument(
        "--check-urls",
        action="store_true",
        help="Check every generated URL after generation",
    )
    return parser.parse_args(argv)


def _print_progress(progress: UrlCheckProgress) -> None:
    print(
        f"Checked batch {progress.batch_index}/{progress.batch_count} "
        f"({progress.processed}/{progress.total} URLs)"
    )


async def _run(arguments: argparse.Namespace) -> int:
    settings = get_settings()
    started_at = datetime.now(UTC)

    result = await SitemapGenerationService().generate(
        base_url=settings.SITE_BASE_URL,
        content_lister=HTTPContentLister.from_settings(),
        settings=SitemapSettings(),
    )
    for issue in (*result.validation.errors, *result.validation.warnings):
        print(f"[{issue.severity.value}] {issue.kind.value}: {issue.message}")

    arguments.output.write_text(result.xml, encoding="utf-8")

    if arguments.publish_to:
        try:
            await publish_sitemap(
                HTTPSitemapStore(arguments.publish_to),
                result.xml,
                result.entries,
                result.validation,
            )
        except SitemapPublishRefusedError as exc:
            print(f"Publish refused: {exc}", file=sys.stderr)
            return 1

    if arguments.check_urls:
        report = await UrlReachabilityChecker.from_settings().check_all(
            result.entries,
            progress_callback=_print_progress,
        )
        for loc, status in report.statuses.items():
            if not status.accessible:
                print(f"Unreachable: {loc} ({status.status_code} {status.status_text})")

    duration_ms = round((datetime.now(UTC) - started_at).total_seconds() * 1000, 2)
    print(
        (
            "Sitemap generation completed "
            f"(output={arguments.output!s}, urls={result.stats.total_urls}, "
            f"errors={len(result.validation.errors)}, "
            f"warnings={len(result.validation.warnings)}, "
            f"duration_ms={duration_ms})"
        )
    )
    return 0 if result.validation.is_valid else 1


def main(argv: list[str] | None = None) -> int:
    setup_logging(get_settings())
    return asyncio.run(_run(_parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
