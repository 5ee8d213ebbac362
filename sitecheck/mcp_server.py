"""MCP Server for the site link check.

Provides tools for:
- Checking every link on a site (or on an explicit page list)
- Crawling a site to list its internal pages

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for desktop MCP clients)
    python -m sitecheck.mcp_server

    # HTTP (for remote access)
    python -m sitecheck.mcp_server --transport http --port 8000

Environment Variables:
    BASE_URL: Default site to audit (default: http://localhost:4321)
    LINK_CHECK_TIMEOUT: Per-link check timeout in seconds (default: 12)
"""

from __future__ import annotations

import argparse
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .records import AuditReport
from .report import format_summary_markdown

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

# Create the MCP server
mcp = FastMCP(
    name="Site Link Check",
    instructions="""
    A link-integrity server for static sites that provides:

    1. check_links: Crawl a site (or audit an explicit page list) and report
       broken links, internal and external.
    2. crawl_site: List every internal page reachable from a start URL.

    Output formats for check_links:
    - markdown: Summary with one bullet per broken link (default)
    - json: Full snapshot with pages, broken links and skipped count
    """,
)


class OutputFormat(str, Enum):
    """Output format for link check results."""

    markdown = "markdown"
    json = "json"


def _format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _format_output(report: AuditReport, output_format: OutputFormat) -> str:
    if output_format == OutputFormat.json:
        result = {
            "checked_at": _format_timestamp(),
            "passed": report.passed,
            **report.to_dict(),
        }
        return json.dumps(result, indent=2, ensure_ascii=False)
    return f"_Checked: {_format_timestamp()}_\n\n" + format_summary_markdown(report)


@mcp.tool
async def check_links(
    base_url: str,
    urls: Optional[List[str]] = None,
    check_external: bool = True,
    output_format: str = "markdown",
    max_pages: Optional[int] = None,
):
    """
    Check every link on a site and report the broken ones.

    Args:
        base_url: Site root; links starting with it count as internal
        urls: Optional explicit page list (relative or absolute). When omitted
            the site is crawled from base_url.
        check_external: Probe links outside base_url (default: true)
        output_format: "markdown" (default) or "json"
        max_pages: Optional cap on crawled pages

    Returns:
        The link report in the requested format.

    Examples:
        check_links(base_url="https://docs.example.com")
        check_links(base_url="https://example.com", urls=["/en", "/fr"], check_external=False)
    """
    from . import audit_links_async, crawl_site_async
    from .sources import resolve_url_list

    try:
        fmt = OutputFormat(output_format.lower())
    except ValueError:
        fmt = OutputFormat.markdown

    if urls:
        pages = resolve_url_list(urls, base_url)
    else:
        LOGGER.info("Crawling %s for link check", base_url)
        try:
            pages = await crawl_site_async(base_url, max_pages=max_pages)
        except ValueError as exc:
            LOGGER.warning("Cannot crawl %s: %s", base_url, exc)
            return json.dumps({"error": str(exc), "base_url": base_url})

    if not pages:
        return json.dumps({"error": "No pages to audit", "base_url": base_url})

    report = await audit_links_async(
        pages, base_url=base_url, check_external=check_external
    )
    LOGGER.info(
        "Link check complete: %d pages, %d broken",
        len(report.pages),
        len(report.broken),
    )
    return _format_output(report, fmt)


@mcp.tool
async def crawl_site(url: str, max_pages: Optional[int] = None):
    """
    Crawl a site breadth-first and list its internal pages.

    Args:
        url: Start URL; only pages under it are followed
        max_pages: Optional cap on the number of pages visited

    Returns:
        JSON with the sorted list of pages found.
    """
    from . import crawl_site_async

    try:
        pages = await crawl_site_async(url, max_pages=max_pages)
    except ValueError as exc:
        LOGGER.warning("Cannot crawl %s: %s", url, exc)
        return json.dumps({"error": str(exc), "start_url": url})
    return json.dumps(
        {"crawled_at": _format_timestamp(), "start_url": url, "pages": pages},
        indent=2,
        ensure_ascii=False,
    )


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the site link check MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # STDIO transport (default)
    python -m sitecheck.mcp_server

    # HTTP transport (for remote access)
    python -m sitecheck.mcp_server --transport http --port 8000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
