"""Locate and load the ``.env`` file that feeds the link-check settings."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "sitecheck"
CONFIG_ENV_FILE = CONFIG_DIR / ".env"
EXAMPLE_ENV_FILE = Path(__file__).resolve().parent.parent / ".env.example"


def load_config(
    *,
    config_dir: Path = CONFIG_DIR,
    config_env_file: Path = CONFIG_ENV_FILE,
    cwd: Optional[Path] = None,
    example_file: Path = EXAMPLE_ENV_FILE,
    load_env: Callable[[Path], bool] = load_dotenv,
    copy_file: Callable[[Path, Path], object] = shutil.copy,
) -> Optional[Path]:
    """Load the first ``.env`` found and return its path.

    A project-local ``.env`` wins over the per-user one. When neither exists
    the per-user file is seeded from *example_file*. Returns None when
    nothing was loaded; the process environment is then used as is.
    """
    for env_file in ((cwd or Path.cwd()) / ".env", config_env_file):
        if env_file.is_file():
            load_env(env_file)
            LOGGER.debug("Loaded link check settings from %s", env_file)
            return env_file

    if not example_file.is_file():
        return None

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        copy_file(example_file, config_env_file)
    except OSError as exc:
        LOGGER.warning("Could not create %s from %s: %s", config_env_file, example_file, exc)
        return None

    LOGGER.info(
        "Created %s from %s; set BASE_URL there to point at your site.",
        config_env_file,
        example_file.name,
    )
    load_env(config_env_file)
    return config_env_file
