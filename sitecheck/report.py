"""Report writers for link-check results."""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from html import escape
from pathlib import Path
from typing import List

from .records import AuditReport, LinkRecord, PageRecord

LOGGER = logging.getLogger(__name__)

_HTML_STYLE = """
    body { font-family: Arial, sans-serif; margin: 20px; background: #0b1021; color: #e8ecf5; }
    h1 { margin-bottom: 0; }
    .summary { margin: 0 0 20px; color: #9fb3ff; }
    .page { background: #11172d; border: 1px solid #1f2a45; border-radius: 8px; padding: 16px; margin-bottom: 18px; }
    .page h2 { margin: 0 0 6px; font-size: 18px; }
    .counts { font-size: 13px; margin-bottom: 10px; }
    .links { list-style: none; padding: 0; margin: 0; }
    .links li { border-top: 1px solid #1f2a45; padding: 10px 0; }
    .links li:first-child { border-top: none; }
    .links li.ok .url { color: #9ef5a1; }
    .links li.error .url { color: #ff8a8a; }
    .links li.skipped .url { color: #ffd27f; }
    .meta, .selector { font-size: 12px; color: #b8c4ff; margin-top: 4px; }
    .err { color: #ff8a8a; font-size: 13px; margin-top: 4px; }
"""


@dataclass
class ReportPaths:
    """Files written for one run."""

    json: Path
    summary: Path
    html: Path


def prepare_report_dir(report_dir: str | Path) -> Path:
    """Empty *report_dir* (creating it if needed) so stale reports never linger."""
    path = Path(report_dir)
    if path.resolve() == Path.cwd().resolve():
        raise ValueError(f"Refusing to clean the working directory: {path}")
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def format_summary_markdown(report: AuditReport) -> str:
    """Human-readable Markdown summary (``SUMMARY.md``)."""
    broken = report.broken
    lines = ["# Link check report", ""]
    lines.append(f"Pages crawled: {len(report.pages)}")
    lines.append(f"Broken links: {len(broken)}")
    if report.skipped_external > 0:
        lines.append(
            "External links skipped (set CHECK_EXTERNAL_LINKS=1 to include): "
            f"{report.skipped_external}"
        )
    lines.append("")

    if not broken:
        lines.append("No broken links found.")
    else:
        for issue in broken:
            status = issue.status or "failed"
            scope = ", external" if issue.is_external else ""
            lines.append(
                f"- {issue.page_url} → {issue.link_url} (status: {status}{scope})"
            )
            if issue.selector:
                lines.append(f"  - Selector: `{issue.selector}`")
            if issue.text:
                lines.append(f"  - Text: {issue.text}")
            if issue.error:
                lines.append(f"  - Error: {issue.error}")

    return "\n".join(lines) + "\n"


def _link_status_text(link: LinkRecord) -> str:
    if link.skipped:
        return "skipped"
    status = link.result.status if link.result else 0
    if status:
        return f"{status} · external" if link.is_external else str(status)
    return "external" if link.is_external else "unknown"


def _link_item(link: LinkRecord) -> str:
    if not link.ok:
        css_class = "error"
    elif link.skipped:
        css_class = "skipped"
    else:
        css_class = "ok"

    parts = [
        f'<li class="{css_class}">',
        f'<div class="url">{escape(link.link_url)}</div>',
        f'<div class="meta">{escape(_link_status_text(link))}</div>',
    ]
    if link.selector:
        parts.append(f'<div class="selector">{escape(link.selector)}</div>')
    if link.text:
        parts.append(f'<div class="selector">{escape(link.text)}</div>')
    if link.result is not None and link.result.error:
        parts.append(f'<div class="err">Error: {escape(link.result.error)}</div>')
    parts.append("</li>")
    return "".join(parts)


def _page_section(page: PageRecord, links: List[LinkRecord]) -> str:
    broken_count = len(page.broken_links)
    rows = "".join(_link_item(link) for link in links) or (
        '<li class="ok">No links found</li>'
    )
    counts_class = "error" if broken_count else "ok"
    return (
        '<section class="page">'
        f"<h2>{escape(page.url)}</h2>"
        f'<div class="counts"><span class="{counts_class}">{broken_count} broken</span></div>'
        f'<ul class="links">{rows}</ul>'
        "</section>"
    )


def format_html_report(report: AuditReport, *, broken_only: bool = False) -> str:
    """Self-contained HTML report, optionally limited to broken links."""
    sections = []
    for page in report.pages:
        links = page.broken_links if broken_only else page.links
        if broken_only and not links:
            continue
        sections.append(_page_section(page, links))

    summary = f"{len(sections)} pages · {len(report.broken)} broken links"
    if report.skipped_external:
        summary += f" · {report.skipped_external} external skipped"
    body = "\n".join(sections) or '<p class="summary">No broken links.</p>'

    return (
        "<!doctype html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        "<title>Link check report</title>\n"
        f"<style>{_HTML_STYLE}</style>\n</head>\n<body>\n"
        "<h1>Link check report</h1>\n"
        f'<p class="summary">{escape(summary)}</p>\n'
        f"{body}\n</body>\n</html>\n"
    )


def write_reports(
    report: AuditReport, report_dir: str | Path, *, broken_only: bool = False
) -> ReportPaths:
    """Write ``links.json``, ``SUMMARY.md`` and ``report.html``."""
    out_dir = Path(report_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = ReportPaths(
        json=out_dir / "links.json",
        summary=out_dir / "SUMMARY.md",
        html=out_dir / "report.html",
    )
    paths.json.write_text(
        json.dumps(report.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
    )
    paths.summary.write_text(format_summary_markdown(report), encoding="utf-8")
    paths.html.write_text(
        format_html_report(report, broken_only=broken_only), encoding="utf-8"
    )
    LOGGER.info("Wrote link check reports to %s", out_dir)
    return paths


def format_console_summary(report: AuditReport) -> str:
    """Short verdict printed at the end of a run."""
    broken = report.broken
    if not broken:
        return "Link check passed: no broken links found."

    lines = [f"Broken links ({len(broken)}):"]
    for issue in broken:
        status = f"status {issue.status}" if issue.status else issue.error or "failed"
        lines.append(f"- {issue.page_url} → {issue.link_url} ({status}, {issue.scope})")
    return "\n".join(lines)
