"""Helpers for pulling links out of fetched HTML."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional, Tuple, Union

from bs4 import BeautifulSoup

from .records import LinkRecord
from .urls import is_internal, resolve_href

MAX_TEXT_LENGTH = 120

HtmlInput = Union[str, bytes, BeautifulSoup]


def parse_html(html: HtmlInput) -> BeautifulSoup:
    """Parse raw HTML into a queryable document (no-op for parsed input)."""
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "html.parser")


def iter_hrefs(html: HtmlInput, page_url: str) -> Iterable[Tuple[Any, str]]:
    """Yield ``(element, normalized_url)`` for every navigable anchor."""
    soup = parse_html(html)
    for element in soup.select("a[href]"):
        target = resolve_href(element.get("href"), page_url)
        if target is None:
            continue
        yield element, target


def internal_targets(html: HtmlInput, page_url: str, base_url: str) -> List[str]:
    """Normalized URLs linked from the page that fall under *base_url*."""
    return [
        target
        for _, target in iter_hrefs(html, page_url)
        if is_internal(target, base_url)
    ]


def extract_links(html: HtmlInput, page_url: str, base_url: str) -> List[LinkRecord]:
    """Build unresolved LinkRecords for every anchor on the page."""
    links: List[LinkRecord] = []
    for element, target in iter_hrefs(html, page_url):
        links.append(
            LinkRecord(
                link_url=target,
                is_external=not is_internal(target, base_url),
                selector=build_selector(element),
                text=element_text(element),
            )
        )
    return links


def element_text(element: Any) -> Optional[str]:
    text = (element.get_text() or "").strip()[:MAX_TEXT_LENGTH]
    return text or None


def _is_element(node: Any) -> bool:
    name = getattr(node, "name", None)
    # Document roots are named like "[document]".
    return isinstance(name, str) and bool(name) and not name.startswith("[")


def _first_class(attrs: dict) -> Optional[str]:
    classes = attrs.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    classes = [c for c in classes if c]
    return classes[0] if classes else None


def build_selector(node: Any) -> str:
    """Return a CSS-selector-like locator for *node*.

    Only ``name``, ``attrs``, ``parent`` and ``contents`` are used, so any
    tree with that shape works (BeautifulSoup tags included). The chain
    stops at the first ancestor carrying an id.
    """
    parts: List[str] = []
    current = node
    while _is_element(current):
        name = current.name.lower()
        attrs = getattr(current, "attrs", None) or {}
        element_id = attrs.get("id")
        if element_id:
            parts.insert(0, f"{name}#{element_id}")
            break

        piece = name
        first_class = _first_class(attrs)
        if first_class:
            piece += f".{first_class}"

        parent = getattr(current, "parent", None)
        siblings = [
            child
            for child in (getattr(parent, "contents", None) or [])
            if _is_element(child) and child.name == current.name
        ]
        if len(siblings) > 1:
            for index, sibling in enumerate(siblings, start=1):
                if sibling is current:
                    piece += f":nth-of-type({index})"
                    break

        parts.insert(0, piece)
        current = parent

    return " > ".join(parts) if parts else "unknown"
