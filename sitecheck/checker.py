"""Liveness checks for link targets with a run-scoped result cache."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

import httpx

from .records import CheckResult
from .urls import normalize_url

LOGGER = logging.getLogger(__name__)

DEFAULT_CHECK_TIMEOUT = 12.0
DEFAULT_USER_AGENT = "sitecheck-link-check/1.0"

# Errors that mean "no response was produced" for a single request.
REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError)


def build_http_client(timeout: float = DEFAULT_CHECK_TIMEOUT) -> httpx.AsyncClient:
    """Create the shared httpx client used for page fetches and link checks."""
    return httpx.AsyncClient(
        follow_redirects=True,
        headers={"User-Agent": DEFAULT_USER_AGENT},
        timeout=timeout,
    )


def describe_error(exc: BaseException, timeout: float) -> str:
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return f"Timed out after {timeout:g}s"
    return str(exc) or exc.__class__.__name__


async def fetch(
    client: httpx.AsyncClient, url: str, method: str = "GET", *, timeout: float
) -> httpx.Response:
    """Issue one request bounded by an overall *timeout* in seconds."""
    return await asyncio.wait_for(
        client.request(method, url, follow_redirects=True), timeout=timeout
    )


class ResourceChecker:
    """Probe link targets, at most once per normalized URL.

    Results are memoized for the lifetime of the checker, so one instance
    corresponds to one audit run. Concurrent callers asking for the same URL
    share a single in-flight probe.

    Example:

        async with ResourceChecker(check_external=False) as checker:
            result = await checker.check("https://example.com/docs")
    """

    def __init__(
        self,
        *,
        check_external: bool = True,
        timeout: float = DEFAULT_CHECK_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.check_external = check_external
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._results: Dict[str, CheckResult] = {}
        self._pending: Dict[str, "asyncio.Task[CheckResult]"] = {}
        self.probe_count = 0

    async def __aenter__(self) -> "ResourceChecker":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_http_client(self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def cached(self, url: str) -> Optional[CheckResult]:
        """Return the cached result for *url*, if it was already checked."""
        return self._results.get(normalize_url(url))

    def clear(self) -> None:
        """Forget every cached result (start of a new run)."""
        self._results.clear()

    def __len__(self) -> int:
        return len(self._results)

    async def check(self, url: str, is_external: bool = False) -> CheckResult:
        """Return the liveness of *url*; never raises for network errors."""
        key = normalize_url(url)
        cached = self._results.get(key)
        if cached is not None:
            return cached

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._probe_and_store(key, is_external))
            self._pending[key] = task
            task.add_done_callback(lambda _: self._pending.pop(key, None))

        return await asyncio.shield(task)

    async def check_many(
        self,
        urls: Sequence[str],
        *,
        is_external: Optional[Dict[str, bool]] = None,
        concurrency: int = 1,
    ) -> List[CheckResult]:
        """Check *urls* with at most *concurrency* probes in flight.

        Results are returned in the same order as *urls*.
        """
        flags = is_external or {}
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _bounded(url: str) -> CheckResult:
            async with semaphore:
                return await self.check(url, flags.get(url, False))

        return list(await asyncio.gather(*(_bounded(url) for url in urls)))

    async def _probe_and_store(self, url: str, is_external: bool) -> CheckResult:
        result = await self._probe(url, is_external)
        self._results[url] = result
        return result

    async def _probe(self, url: str, is_external: bool) -> CheckResult:
        if is_external and not self.check_external:
            LOGGER.debug("Skipping external link %s", url)
            return CheckResult(url=url, ok=True, skipped=True, status=0)

        self.probe_count += 1
        response: Optional[httpx.Response] = None
        error: Optional[BaseException] = None

        try:
            response = await fetch(self.client, url, "HEAD", timeout=self.timeout)
        except REQUEST_ERRORS as exc:
            error = exc

        # Some servers reject HEAD outright.
        if response is None or response.status_code >= 400:
            try:
                response = await fetch(self.client, url, "GET", timeout=self.timeout)
            except REQUEST_ERRORS as exc:
                error = exc

        if response is None:
            message = describe_error(error, self.timeout) if error else "Request failed"
            LOGGER.debug("Link check failed for %s: %s", url, message)
            return CheckResult(url=url, ok=False, status=0, error=message)

        LOGGER.debug("Link check %s -> %d", url, response.status_code)
        return CheckResult(
            url=url,
            ok=response.is_success,
            status=response.status_code,
            final_url=str(response.url),
        )
