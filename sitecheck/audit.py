"""Link audit: check every link on every page and build the report."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

import httpx

from .checker import REQUEST_ERRORS, ResourceChecker, build_http_client, describe_error, fetch
from .config import DEFAULT_CONCURRENCY, SERVER_START_TIMEOUT, LinkCheckSettings
from .errors import SetupError
from .extract import extract_links
from .records import AuditReport, CheckResult, LinkRecord, PageRecord
from .server import ensure_site_server
from .site import DEFAULT_PAGE_TIMEOUT, SiteCrawler, is_html_response
from .sources import load_urls_file, urls_from_sitemap
from .urls import normalize_url

LOGGER = logging.getLogger(__name__)


def _failed_page(url: str, status: int, error: str) -> PageRecord:
    """A page that could not be loaded, reported as a broken link to itself."""
    return PageRecord(
        url=url,
        links=[
            LinkRecord(
                link_url=url,
                is_external=False,
                result=CheckResult(url=url, ok=False, status=status, error=error),
            )
        ],
    )


async def audit_page(
    page_url: str,
    *,
    base_url: str,
    checker: ResourceChecker,
    client: httpx.AsyncClient,
    page_timeout: float = DEFAULT_PAGE_TIMEOUT,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> PageRecord:
    """Fetch one page, extract its links and resolve each distinct target."""
    try:
        response = await fetch(client, page_url, timeout=page_timeout)
    except REQUEST_ERRORS as exc:
        message = describe_error(exc, page_timeout)
        LOGGER.error("Failed to fetch %s: %s", page_url, message)
        return _failed_page(page_url, 0, message)

    if response.status_code >= 400:
        LOGGER.error("Page %s returned HTTP %d", page_url, response.status_code)
        return _failed_page(
            page_url, response.status_code, f"HTTP {response.status_code}"
        )

    if not is_html_response(response):
        LOGGER.debug("No links extracted from non-HTML page %s", page_url)
        return PageRecord(url=page_url)

    links = extract_links(response.text, page_url, base_url)

    external_by_url: Dict[str, bool] = {}
    for link in links:
        external_by_url.setdefault(link.link_url, link.is_external)

    unique_urls = list(external_by_url)
    results = await checker.check_many(
        unique_urls, is_external=external_by_url, concurrency=concurrency
    )
    results_by_url = dict(zip(unique_urls, results))
    for link in links:
        link.result = results_by_url[link.link_url]

    LOGGER.debug(
        "Checked %s: %d links, %d distinct targets", page_url, len(links), len(unique_urls)
    )
    return PageRecord(url=page_url, links=links)


async def audit_links_async(
    page_urls: Sequence[str],
    *,
    base_url: str,
    checker: Optional[ResourceChecker] = None,
    client: Optional[httpx.AsyncClient] = None,
    check_external: bool = True,
    timeout: Optional[float] = None,
    page_timeout: float = DEFAULT_PAGE_TIMEOUT,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> AuditReport:
    """
    Audit the links found on *page_urls*.

    Args:
        page_urls: Pages to audit, in report order.
        base_url: Scope prefix that decides internal vs external links.
        checker: Optional ResourceChecker; one is created for the run if not
            given (using *check_external* and *timeout*).
        client: Optional shared httpx client for page fetches.
        concurrency: Maximum link checks in flight per page.

    Returns:
        AuditReport with per-page results and the skipped-external count.
    """
    own_client = client is None
    http = client or build_http_client(page_timeout)
    if checker is None:
        checker_kwargs = {"check_external": check_external, "client": http}
        if timeout is not None:
            checker_kwargs["timeout"] = timeout
        checker = ResourceChecker(**checker_kwargs)

    report = AuditReport()
    try:
        for page_url in page_urls:
            page = await audit_page(
                page_url,
                base_url=base_url,
                checker=checker,
                client=http,
                page_timeout=page_timeout,
                concurrency=concurrency,
            )
            report.pages.append(page)
            report.skipped_external += sum(1 for link in page.links if link.skipped)
    finally:
        if own_client:
            await http.aclose()

    LOGGER.info(
        "Audited %d pages: %d broken links, %d external skipped",
        len(report.pages),
        len(report.broken),
        report.skipped_external,
    )
    return report


async def resolve_pages(
    settings: LinkCheckSettings, client: httpx.AsyncClient
) -> List[str]:
    """Pick the page set: URL file first, then the built sitemap, then a crawl."""
    if settings.urls_file:
        LOGGER.info("Loading URLs from %s for link check", settings.urls_file)
        pages = load_urls_file(settings.urls_file, settings.base_url)
        if pages:
            return pages

    pages = urls_from_sitemap(
        settings.build_dir,
        settings.base_url,
        path_prefixes=settings.sitemap_prefixes,
    )
    if pages:
        LOGGER.info("Using %d pages from the built sitemap", len(pages))
        return pages

    LOGGER.info("Crawling site for link check at %s", settings.base_url)
    crawler = SiteCrawler(
        settings.base_url,
        client=client,
        timeout=settings.page_timeout,
        max_pages=settings.max_pages,
    )
    return await crawler.run()


async def audit_site_async(settings: LinkCheckSettings) -> AuditReport:
    """Run the full link check described by *settings*.

    Raises:
        SetupError: If the site cannot be reached or no pages are found.
    """
    try:
        base_url = normalize_url(settings.base_url)
    except ValueError as exc:
        raise SetupError(str(exc), base_url=settings.base_url) from exc

    if not settings.check_external:
        LOGGER.info(
            "External links will be skipped (set CHECK_EXTERNAL_LINKS=1 to include)."
        )

    server = None
    async with build_http_client(settings.page_timeout) as client:
        try:
            if settings.serve:
                server = await ensure_site_server(
                    client,
                    base_url,
                    build_dir=settings.build_dir,
                    default_port=settings.site_port,
                    start_timeout=SERVER_START_TIMEOUT,
                )

            pages = await resolve_pages(settings, client)
            if not pages:
                raise SetupError(f"No pages found to audit at {base_url}", base_url=base_url)
            LOGGER.info("Found %d pages", len(pages))
            for page in pages:
                LOGGER.debug("  - %s", page)

            checker = ResourceChecker(
                check_external=settings.check_external,
                timeout=settings.timeout,
                client=client,
            )
            return await audit_links_async(
                pages,
                base_url=base_url,
                checker=checker,
                client=client,
                page_timeout=settings.page_timeout,
                concurrency=settings.concurrency,
            )
        finally:
            if server is not None:
                server.stop()


def audit_site(settings: LinkCheckSettings) -> AuditReport:
    """Synchronous wrapper for audit_site_async."""
    return asyncio.run(audit_site_async(settings))
