"""Make sure the site under audit is being served before checking it."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from time import monotonic
from typing import Optional

import httpx

from .checker import REQUEST_ERRORS, fetch
from .errors import SetupError
from .urls import site_port

LOGGER = logging.getLogger(__name__)

HEALTH_TIMEOUT = 5.0
POLL_INTERVAL = 0.25


class _BuildDirHandler(SimpleHTTPRequestHandler):
    """Static handler that also serves ``/page`` from ``page.html``."""

    def translate_path(self, path: str) -> str:
        translated = super().translate_path(path)
        if not os.path.exists(translated):
            candidate = translated.rstrip(os.sep) + ".html"
            if os.path.isfile(candidate):
                return candidate
        return translated

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        LOGGER.debug("static server: " + format, *args)


class StaticSiteServer:
    """Serve a build directory from a background thread."""

    def __init__(self, directory: str | Path, port: int, host: str = "127.0.0.1"):
        self.directory = Path(directory)
        self.host = host
        self.port = port
        self._server: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self) -> "StaticSiteServer":
        handler = partial(_BuildDirHandler, directory=str(self.directory))
        self._server = ThreadingHTTPServer((self.host, self.port), handler)
        self.port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        LOGGER.info("Serving %s on http://%s:%d", self.directory, self.host, self.port)
        return self

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server.server_close()
        self._server = None
        self._thread = None


async def is_reachable(client: httpx.AsyncClient, url: str) -> bool:
    try:
        response = await fetch(client, url, "HEAD", timeout=HEALTH_TIMEOUT)
    except REQUEST_ERRORS:
        return False
    return response.is_success


async def wait_for_server(
    client: httpx.AsyncClient, url: str, *, timeout: float
) -> None:
    """Poll *url* until it answers successfully or *timeout* seconds pass."""
    deadline = monotonic() + timeout
    while monotonic() < deadline:
        if await is_reachable(client, url):
            return
        await asyncio.sleep(POLL_INTERVAL)
    raise SetupError(f"Timed out waiting for {url} after {timeout:g}s", base_url=url)


async def ensure_site_server(
    client: httpx.AsyncClient,
    base_url: str,
    *,
    build_dir: str | Path,
    default_port: int,
    start_timeout: float,
) -> Optional[StaticSiteServer]:
    """Return None if *base_url* is already up, else a started static server.

    Raises:
        SetupError: If the site is down and cannot be served from *build_dir*.
    """
    if await is_reachable(client, base_url):
        return None

    build_path = Path(build_dir)
    if not build_path.is_dir():
        raise SetupError(
            f"Site at {base_url} is unreachable and no build directory "
            f"exists at {build_path}",
            base_url=base_url,
        )

    port = site_port(base_url, default_port)
    try:
        server = StaticSiteServer(build_path, port).start()
    except OSError as exc:
        raise SetupError(
            f"Unable to start static server on port {port}: {exc}",
            base_url=base_url,
        ) from exc

    try:
        await wait_for_server(client, base_url, timeout=start_timeout)
    except SetupError:
        server.stop()
        raise
    LOGGER.info("Started static server for link check at %s", base_url)
    return server
