"""Command-line interface for the link check."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .cli_config import load_config

load_config()

from .audit import audit_site_async
from .config import LinkCheckSettings, load_settings
from .errors import SetupError
from .report import format_console_summary, prepare_report_dir, write_reports


def _setup_logging(verbose: bool, quiet: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="link-check",
        description="Crawl a site and report broken links.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Crawl the local dev server (BASE_URL, default http://localhost:4321)
  link-check

  # Check a deployed site, internal links only
  link-check --base https://example.com --skip-external

  # Check an explicit page list
  link-check --urls-file pages.json -o reports/links

Environment:
  BASE_URL, CHECK_EXTERNAL_LINKS (0 disables), LINK_REPORT_DIR, LINKS_QUIET,
  SITE_PORT, SITE_BUILD_DIR, LINK_SITEMAP_PREFIXES, LINK_CHECK_TIMEOUT,
  LINK_CHECK_CONCURRENCY
""",
    )

    parser.add_argument(
        "-b",
        "--base",
        type=str,
        default=None,
        help="Base URL of the site to audit (default: $BASE_URL)",
    )
    parser.add_argument(
        "-o",
        "--report-dir",
        type=Path,
        default=None,
        help="Directory for links.json, SUMMARY.md and report.html",
    )
    parser.add_argument(
        "-u",
        "--urls-file",
        type=Path,
        default=None,
        help="JSON array of page URLs to audit instead of crawling",
    )
    parser.add_argument(
        "--skip-external",
        action="store_true",
        help="Do not probe links outside the base URL",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print broken links; HTML report lists broken links only",
    )
    parser.add_argument(
        "--build-dir",
        type=Path,
        default=None,
        help="Built site directory used for the sitemap and the fallback server",
    )
    parser.add_argument(
        "--sitemap-prefix",
        action="append",
        dest="sitemap_prefixes",
        default=None,
        help="Only audit sitemap paths with this prefix (repeatable, e.g. /en)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Link checks in flight per page (default: 3)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-link check timeout in seconds (default: 12)",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Stop crawling after this many pages",
    )
    parser.add_argument(
        "--no-serve",
        action="store_true",
        help="Never start a static server for the build directory",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> LinkCheckSettings:
    settings = load_settings()
    return settings.with_overrides(
        base_url=args.base,
        report_dir=args.report_dir,
        urls_file=args.urls_file,
        check_external=False if args.skip_external else None,
        quiet=True if args.quiet else None,
        build_dir=args.build_dir,
        sitemap_prefixes=args.sitemap_prefixes,
        concurrency=args.concurrency,
        timeout=args.timeout,
        max_pages=args.max_pages,
        serve=False if args.no_serve else None,
    )


async def _run_link_check_async(settings: LinkCheckSettings) -> int:
    """Main async entry point for the link check."""
    report_dir = prepare_report_dir(settings.report_dir)

    try:
        report = await audit_site_async(settings)
    except SetupError as exc:
        logging.error("Unable to audit %s: %s", exc.base_url or settings.base_url, exc)
        return 1

    paths = write_reports(report, report_dir, broken_only=settings.quiet)

    print(format_console_summary(report))
    if settings.quiet:
        if not report.passed:
            print(f"Details saved to {paths.summary}")
    else:
        print(f"Link check summary (md): {paths.summary}")
        print(f"Link check report (html): {paths.html}")
        print(f"Link data (json): {paths.json}")

    if not report.passed:
        logging.error("Link check failed: %d broken links found.", len(report.broken))
    return report.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the link-check command."""
    args = _parse_args(argv)
    settings = _settings_from_args(args)
    _setup_logging(args.verbose, settings.quiet)

    try:
        return asyncio.run(_run_link_check_async(settings))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 130
    except Exception as exc:
        logging.error("Error: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return 1


if __name__ == "__main__":
    sys.exit(main())
