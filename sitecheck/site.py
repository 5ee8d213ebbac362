"""Site crawler for breadth-first page discovery."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Deque, List, Optional, Set

import httpx

from .checker import REQUEST_ERRORS, build_http_client, describe_error, fetch
from .extract import internal_targets
from .urls import normalize_url

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_TIMEOUT = 30.0

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def is_html_response(response: httpx.Response) -> bool:
    content_type = (response.headers.get("content-type") or "").lower()
    return any(kind in content_type for kind in HTML_CONTENT_TYPES)


class SiteCrawler:
    """Breadth-first crawl of every page reachable under a base URL.

    The frontier lives on the instance: ``to_visit`` holds discovered pages
    in discovery order and ``visited`` holds pages already fetched. A URL is
    never queued twice and never revisited.
    """

    def __init__(
        self,
        start_url: str,
        *,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_PAGE_TIMEOUT,
        max_pages: Optional[int] = None,
    ) -> None:
        self.start_url = normalize_url(start_url)
        self.base_url = normalize_url(base_url or start_url)
        self.timeout = timeout
        self.max_pages = max_pages
        self._client = client
        self._queue: Deque[str] = deque([self.start_url])
        self._queued: Set[str] = {self.start_url}
        self.visited: Set[str] = set()
        self.errors: List[dict] = []

    @property
    def to_visit(self) -> List[str]:
        return list(self._queue)

    def _enqueue(self, url: str) -> None:
        if url in self.visited or url in self._queued:
            return
        self._queue.append(url)
        self._queued.add(url)

    async def run(self) -> List[str]:
        """Crawl until the frontier is empty and return visited URLs sorted."""
        if self._client is not None:
            await self._crawl(self._client)
        else:
            async with build_http_client(self.timeout) as client:
                await self._crawl(client)
        return sorted(self.visited)

    async def _crawl(self, client: httpx.AsyncClient) -> None:
        while self._queue:
            if self.max_pages is not None and len(self.visited) >= self.max_pages:
                LOGGER.info("Reached page limit of %d", self.max_pages)
                break

            url = self._queue.popleft()
            self._queued.discard(url)
            self.visited.add(url)

            try:
                response = await fetch(client, url, timeout=self.timeout)
            except REQUEST_ERRORS as exc:
                message = describe_error(exc, self.timeout)
                LOGGER.warning("Failed to fetch %s: %s", url, message)
                self.errors.append({"url": url, "error": message, "stage": "crawl"})
                continue

            if not is_html_response(response):
                LOGGER.debug("Skipping non-HTML page %s", url)
                continue

            for target in internal_targets(response.text, url, self.base_url):
                self._enqueue(target)

            LOGGER.debug(
                "Crawled %s (%d visited, %d queued)",
                url,
                len(self.visited),
                len(self._queue),
            )


async def crawl_site_async(
    url: str,
    *,
    base_url: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_PAGE_TIMEOUT,
    max_pages: Optional[int] = None,
) -> List[str]:
    """
    Crawl a site starting from a seed URL and return the pages found.

    Args:
        url: The seed URL to start crawling from.
        base_url: Scope prefix for internal pages (defaults to *url*).
        client: Optional shared httpx client.
        timeout: Per-page fetch timeout in seconds.
        max_pages: Optional cap on the number of pages visited.

    Returns:
        Sorted list of normalized page URLs that were visited.
    """
    crawler = SiteCrawler(
        url,
        base_url=base_url,
        client=client,
        timeout=timeout,
        max_pages=max_pages,
    )
    return await crawler.run()


def crawl_site(
    url: str,
    *,
    base_url: Optional[str] = None,
    timeout: float = DEFAULT_PAGE_TIMEOUT,
    max_pages: Optional[int] = None,
) -> List[str]:
    """Synchronous wrapper for crawl_site_async."""
    return asyncio.run(
        crawl_site_async(url, base_url=base_url, timeout=timeout, max_pages=max_pages)
    )
