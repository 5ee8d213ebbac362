"""Data structures produced by a link audit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class CheckResult:
    """Outcome of probing one target URL.

    One instance exists per distinct normalized URL per run and is shared
    read-only by every link that points at it.
    """

    url: str
    ok: bool
    status: int = 0  # 0 when no response was received
    final_url: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False

    @property
    def broken(self) -> bool:
        return not self.ok and not self.skipped

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "url": self.url,
            "ok": self.ok,
            "status": self.status,
        }
        if self.final_url is not None:
            data["finalUrl"] = self.final_url
        if self.error is not None:
            data["error"] = self.error
        if self.skipped:
            data["skipped"] = True
        return data


@dataclass(slots=True)
class LinkRecord:
    """One anchor reference found in a page's markup."""

    link_url: str
    is_external: bool
    selector: Optional[str] = None
    text: Optional[str] = None
    result: Optional[CheckResult] = None

    @property
    def ok(self) -> bool:
        return self.result is not None and self.result.ok

    @property
    def skipped(self) -> bool:
        return self.result is not None and self.result.skipped

    @property
    def broken(self) -> bool:
        return self.result is not None and self.result.broken

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "linkUrl": self.link_url,
            "isExternal": self.is_external,
        }
        if self.selector:
            data["selector"] = self.selector
        if self.text:
            data["text"] = self.text
        if self.result is not None:
            data.update(self.result.to_dict())
        return data


@dataclass(slots=True)
class PageRecord:
    """One audited page and the links found on it."""

    url: str
    links: List[LinkRecord] = field(default_factory=list)

    @property
    def broken_links(self) -> List[LinkRecord]:
        return [link for link in self.links if link.broken]

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "links": [link.to_dict() for link in self.links]}


@dataclass(slots=True)
class BrokenLink:
    """Flat report entry for a link whose check failed."""

    page_url: str
    link_url: str
    status: int
    is_external: bool
    error: Optional[str] = None
    selector: Optional[str] = None
    text: Optional[str] = None

    @property
    def scope(self) -> str:
        return "external" if self.is_external else "internal"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "pageUrl": self.page_url,
            "linkUrl": self.link_url,
            "status": self.status,
            "isExternal": self.is_external,
        }
        for key, value in (
            ("error", self.error),
            ("selector", self.selector),
            ("text", self.text),
        ):
            if value is not None:
                data[key] = value
        return data


@dataclass
class AuditReport:
    """Top-level result of a link audit run."""

    pages: List[PageRecord] = field(default_factory=list)
    skipped_external: int = 0

    @property
    def broken(self) -> List[BrokenLink]:
        return [
            BrokenLink(
                page_url=page.url,
                link_url=link.link_url,
                status=link.result.status if link.result else 0,
                is_external=link.is_external,
                error=link.result.error if link.result else None,
                selector=link.selector,
                text=link.text,
            )
            for page in self.pages
            for link in page.broken_links
        ]

    @property
    def passed(self) -> bool:
        return not self.broken

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def to_dict(self) -> Dict[str, Any]:
        """JSON snapshot written to ``links.json``."""
        return {
            "pages": [page.to_dict() for page in self.pages],
            "broken": [entry.to_dict() for entry in self.broken],
            "skippedExternal": self.skipped_external,
        }
