"""Exceptions raised by the link check pipeline."""

from __future__ import annotations


class SiteCheckError(Exception):
    """Base class for link check failures."""

    def __init__(self, message: str, base_url: str = ""):
        self.base_url = base_url
        super().__init__(message)


class SetupError(SiteCheckError):
    """Raised when no audit input can be produced (site unreachable, no pages)."""
