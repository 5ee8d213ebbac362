"""URL normalization and scope helpers shared by the crawler and checker."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

# href prefixes that never point at a navigable resource
SKIPPED_HREF_PREFIXES = ("mailto:", "tel:", "javascript:", "#")

NAVIGABLE_SCHEMES = frozenset({"http", "https"})


def normalize_url(url: str) -> str:
    """Canonicalize *url* for use as a dedup/cache key.

    The fragment is dropped and trailing slashes are collapsed unless the
    path is the root. Scheme, host, port and query are left alone.

    Raises:
        ValueError: If *url* is not an absolute URL or cannot be parsed.
    """
    parts = urlsplit(str(url))
    _ = parts.port  # raises ValueError for a malformed port
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Not an absolute URL: {url!r}")

    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/")
    if not path:
        path = "/"

    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, ""))


def is_internal(url: str, base_url: str) -> bool:
    """Return True when *url* lives under *base_url* (plain string prefix)."""
    return normalize_url(url).startswith(normalize_url(base_url))


def resolve_href(href: Optional[str], page_url: str) -> Optional[str]:
    """Resolve an anchor href found on *page_url* to a normalized URL.

    Returns None for empty, non-navigable or unparsable hrefs.
    """
    if not href:
        return None
    href = href.strip()
    if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
        return None

    try:
        absolute = urljoin(page_url, href)
        if urlsplit(absolute).scheme not in NAVIGABLE_SCHEMES:
            return None
        return normalize_url(absolute)
    except ValueError:
        return None


def site_port(base_url: str, default: int) -> int:
    """Port the site at *base_url* listens on, or *default* if none is given."""
    try:
        return urlsplit(base_url).port or default
    except ValueError:
        return default
