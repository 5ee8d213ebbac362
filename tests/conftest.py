"""Shared fixtures and strict test-accounting guardrails."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest


def make_response(
    method: str,
    url: str,
    status: int = 200,
    *,
    html: Optional[str] = None,
    content_type: Optional[str] = None,
    final_url: Optional[str] = None,
) -> httpx.Response:
    request = httpx.Request(method, final_url or url)
    headers = {"content-type": content_type} if content_type else None
    if html is not None:
        return httpx.Response(status, headers=headers, html=html, request=request)
    return httpx.Response(status, headers=headers, request=request)


class FakeHttpClient:
    """Stand-in for httpx.AsyncClient with per-URL canned responses.

    Unknown URLs answer 404. Every request is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.closed = False

    def route(
        self,
        url: str,
        status: int = 200,
        *,
        html: Optional[str] = None,
        content_type: Optional[str] = None,
        final_url: Optional[str] = None,
        head_status: Optional[int] = None,
        error: Optional[Exception] = None,
        head_error: Optional[Exception] = None,
    ) -> "FakeHttpClient":
        self.routes[url] = {
            "status": status,
            "html": html,
            "content_type": content_type,
            "final_url": final_url,
            "head_status": head_status,
            "error": error,
            "head_error": head_error,
        }
        return self

    def page(self, url: str, body: str, status: int = 200) -> "FakeHttpClient":
        return self.route(url, status, html=f"<html><body>{body}</body></html>")

    def calls_for(self, url: str) -> List[str]:
        return [method for method, called in self.calls if called == url]

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        url = str(url)
        self.calls.append((method, url))
        spec = self.routes.get(url)
        if spec is None:
            return make_response(method, url, 404)

        error = spec["error"]
        if method == "HEAD" and spec["head_error"] is not None:
            error = spec["head_error"]
        if error is not None:
            raise error

        status = spec["status"]
        if method == "HEAD" and spec["head_status"] is not None:
            status = spec["head_status"]
        return make_response(
            method,
            url,
            status,
            html=spec["html"],
            content_type=spec["content_type"],
            final_url=spec["final_url"],
        )

    async def aclose(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeHttpClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def connect_error(url: str, message: str = "Connection refused") -> httpx.ConnectError:
    return httpx.ConnectError(message, request=httpx.Request("GET", url))


@pytest.fixture
def fake_client() -> FakeHttpClient:
    return FakeHttpClient()


@pytest.fixture
def connect_error_for():
    return connect_error


# ---------------------------------------------------------------------------
# Test accounting guard
# ---------------------------------------------------------------------------


@dataclass
class _TestAccounting:
    deselected: int = 0
    skipped: int = 0
    xfailed: int = 0
    xpassed: int = 0


_ACCOUNTING = _TestAccounting()


def pytest_deselected(items):  # pragma: no cover - pytest hook
    _ACCOUNTING.deselected += len(items)


def pytest_runtest_logreport(report):  # pragma: no cover - pytest hook
    if report.when not in {"setup", "call"}:
        return

    if getattr(report, "wasxfail", False):
        if report.outcome == "skipped":
            _ACCOUNTING.xfailed += 1
        elif report.outcome == "passed":
            _ACCOUNTING.xpassed += 1
        return

    if report.outcome == "skipped":
        _ACCOUNTING.skipped += 1


def pytest_sessionfinish(session, exitstatus):  # pragma: no cover - pytest hook
    violations = [
        f"{name}={count}"
        for name, count in (
            ("deselected", _ACCOUNTING.deselected),
            ("skipped", _ACCOUNTING.skipped),
            ("xfailed", _ACCOUNTING.xfailed),
            ("xpassed", _ACCOUNTING.xpassed),
        )
        if count
    ]
    if not violations:
        return

    reporter = session.config.pluginmanager.get_plugin("terminalreporter")
    if reporter:
        reporter.write_sep(
            "=",
            "Strict guard failed: test accounting violations detected "
            f"({', '.join(violations)})",
        )
        reporter.write_line(
            "Hard guard requires zero skipped/deselected/xfail/xpass tests."
        )

    session.exitstatus = 1
