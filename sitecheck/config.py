"""Runtime settings for the link check, resolved from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Optional

from .checker import DEFAULT_CHECK_TIMEOUT
from .site import DEFAULT_PAGE_TIMEOUT

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:4321"
DEFAULT_SITE_PORT = 4321
DEFAULT_REPORT_DIR = Path("reports") / "links"
DEFAULT_BUILD_DIR = Path("build")
DEFAULT_CONCURRENCY = 3
SERVER_START_TIMEOUT = 20.0


@dataclass
class LinkCheckSettings:
    """Everything one link-check run needs to know."""

    base_url: str = DEFAULT_BASE_URL
    report_dir: Path = DEFAULT_REPORT_DIR
    urls_file: Optional[Path] = None
    check_external: bool = True
    quiet: bool = False
    build_dir: Path = DEFAULT_BUILD_DIR
    sitemap_prefixes: List[str] = field(default_factory=list)
    site_port: int = DEFAULT_SITE_PORT
    timeout: float = DEFAULT_CHECK_TIMEOUT
    page_timeout: float = DEFAULT_PAGE_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY
    max_pages: Optional[int] = None
    serve: bool = True

    def with_overrides(self, **overrides: Any) -> "LinkCheckSettings":
        """Copy with every non-None override applied."""
        return replace(
            self, **{key: value for key, value in overrides.items() if value is not None}
        )


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _env_number(name: str, default: Any, cast: type) -> Any:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError:
        LOGGER.warning("Ignoring invalid %s=%r; using %s", name, value, default)
        return default


def _env_list(name: str) -> List[str]:
    value = os.getenv(name) or ""
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings() -> LinkCheckSettings:
    """Build settings from environment variables.

    Variables are read at call time so late ``.env`` loading and test
    monkeypatching both work.
    """
    report_dir = os.getenv("LINK_REPORT_DIR")
    build_dir = os.getenv("SITE_BUILD_DIR")
    return LinkCheckSettings(
        base_url=os.getenv("BASE_URL") or DEFAULT_BASE_URL,
        report_dir=Path(report_dir) if report_dir else DEFAULT_REPORT_DIR,
        check_external=_env_flag("CHECK_EXTERNAL_LINKS", True),
        quiet=os.getenv("LINKS_QUIET") == "1",
        build_dir=Path(build_dir) if build_dir else DEFAULT_BUILD_DIR,
        sitemap_prefixes=_env_list("LINK_SITEMAP_PREFIXES"),
        site_port=_env_number("SITE_PORT", DEFAULT_SITE_PORT, int),
        timeout=_env_number("LINK_CHECK_TIMEOUT", DEFAULT_CHECK_TIMEOUT, float),
        concurrency=_env_number("LINK_CHECK_CONCURRENCY", DEFAULT_CONCURRENCY, int),
    )
