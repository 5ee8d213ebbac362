"""Site crawler and link-integrity checker for static-site quality gates.

This module provides a small API for auditing the links of a site. It
supports:

- Breadth-first crawling of every page under a base URL
- Checking each distinct link once (HEAD, falling back to GET)
- Skipping external links on demand
- Aggregating results into a broken-link report with a pass/fail verdict

Example usage:

    from sitecheck import audit_links_async, crawl_site_async

    pages = await crawl_site_async("http://localhost:4321")
    report = await audit_links_async(pages, base_url="http://localhost:4321")
    for issue in report.broken:
        print(issue.page_url, "->", issue.link_url, issue.status)

    # Full pipeline with environment defaults
    from sitecheck import audit_site, load_settings
    report = audit_site(load_settings())
    raise SystemExit(report.exit_code)
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from .audit import audit_links_async, audit_site, audit_site_async
from .checker import ResourceChecker
from .config import DEFAULT_CONCURRENCY, LinkCheckSettings, load_settings
from .errors import SetupError, SiteCheckError
from .extract import build_selector, extract_links
from .records import AuditReport, BrokenLink, CheckResult, LinkRecord, PageRecord
from .site import SiteCrawler, crawl_site, crawl_site_async
from .urls import is_internal, normalize_url

__all__ = [
    # Records
    "AuditReport",
    "BrokenLink",
    "CheckResult",
    "LinkRecord",
    "PageRecord",
    # URLs
    "normalize_url",
    "is_internal",
    # Crawl
    "SiteCrawler",
    "crawl_site",
    "crawl_site_async",
    # Checks
    "ResourceChecker",
    "extract_links",
    "build_selector",
    # Audit
    "audit_links",
    "audit_links_async",
    "audit_site",
    "audit_site_async",
    # Config and errors
    "LinkCheckSettings",
    "load_settings",
    "SiteCheckError",
    "SetupError",
    # MCP Server
    "mcp",
]


def get_mcp_server():
    """Get the MCP server instance (lazy import to avoid dependency if not needed)."""
    from .mcp_server import mcp

    return mcp


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def audit_links(
    page_urls: Sequence[str],
    *,
    base_url: str,
    check_external: bool = True,
    timeout: Optional[float] = None,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> AuditReport:
    """Synchronous wrapper for audit_links_async."""
    return asyncio.run(
        audit_links_async(
            page_urls,
            base_url=base_url,
            check_external=check_external,
            timeout=timeout,
            concurrency=concurrency,
        )
    )
