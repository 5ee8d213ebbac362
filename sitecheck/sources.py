"""Page-set sources: explicit URL lists, built sitemaps, or a crawl."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from .urls import normalize_url

LOGGER = logging.getLogger(__name__)

SITEMAP_CANDIDATES = ("sitemap-0.xml", "sitemap.xml")


def load_urls_file(path: str | Path, base_url: str) -> List[str]:
    """Read a JSON array of URLs, resolving relative entries against *base_url*.

    Unreadable files, non-array payloads and unusable entries produce an
    empty list or are dropped.
    """
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        LOGGER.warning("Could not read URL list %s: %s", path, exc)
        return []

    if not isinstance(payload, list):
        LOGGER.warning("URL list %s is not a JSON array; ignoring it", path)
        return []

    return resolve_url_list(payload, base_url)


def resolve_url_list(entries: Sequence[object], base_url: str) -> List[str]:
    """Resolve and normalize page URLs, dropping anything unusable."""
    urls: List[str] = []
    for entry in entries:
        if not isinstance(entry, str):
            continue
        try:
            urls.append(normalize_url(urljoin(base_url, entry)))
        except ValueError:
            LOGGER.debug("Dropping unusable URL list entry %r", entry)
    return urls


def find_sitemap(build_dir: str | Path) -> Optional[Path]:
    for name in SITEMAP_CANDIDATES:
        candidate = Path(build_dir) / name
        if candidate.is_file():
            return candidate
    return None


def built_page_exists(build_dir: str | Path, pathname: str) -> bool:
    """True when *pathname* maps to ``<dir>/index.html`` or ``<path>.html``."""
    clean = pathname.strip("/")
    root = Path(build_dir)
    if not clean:
        return (root / "index.html").is_file()
    return (root / clean / "index.html").is_file() or (
        root / f"{clean}.html"
    ).is_file()


def urls_from_sitemap(
    build_dir: str | Path,
    base_url: str,
    *,
    path_prefixes: Sequence[str] = (),
) -> List[str]:
    """Pages listed in the built sitemap, re-rooted onto *base_url*.

    Entries are kept only if their path starts with one of *path_prefixes*
    (all paths when empty) and a built HTML file exists for them.
    """
    sitemap = find_sitemap(build_dir)
    if sitemap is None:
        return []

    try:
        soup = BeautifulSoup(sitemap.read_text(encoding="utf-8"), "html.parser")
    except OSError as exc:
        LOGGER.warning("Could not read sitemap %s: %s", sitemap, exc)
        return []

    urls = set()
    for loc in soup.find_all("loc"):
        text = loc.get_text().strip()
        if not text:
            continue
        try:
            pathname = urlsplit(text).path or "/"
        except ValueError:
            continue
        if path_prefixes and not pathname.startswith(tuple(path_prefixes)):
            continue
        if not built_page_exists(build_dir, pathname):
            continue
        try:
            urls.add(normalize_url(urljoin(base_url, pathname)))
        except ValueError:
            continue

    LOGGER.debug("Sitemap %s yielded %d pages", sitemap, len(urls))
    return sorted(urls)
