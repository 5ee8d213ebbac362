"""Tests for sitecheck.config and sitecheck.cli_config modules."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from sitecheck import cli_config
from sitecheck.cli_config import EXAMPLE_ENV_FILE, load_config
from sitecheck.config import (
    DEFAULT_BASE_URL,
    DEFAULT_CONCURRENCY,
    DEFAULT_REPORT_DIR,
    LinkCheckSettings,
    load_settings,
)

ENV_VARS = (
    "BASE_URL",
    "CHECK_EXTERNAL_LINKS",
    "LINK_REPORT_DIR",
    "LINKS_QUIET",
    "SITE_PORT",
    "SITE_BUILD_DIR",
    "LINK_SITEMAP_PREFIXES",
    "LINK_CHECK_TIMEOUT",
    "LINK_CHECK_CONCURRENCY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadSettings:
    def test_defaults(self, clean_env):
        settings = load_settings()
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.report_dir == DEFAULT_REPORT_DIR
        assert settings.check_external is True
        assert settings.quiet is False
        assert settings.sitemap_prefixes == []
        assert settings.concurrency == DEFAULT_CONCURRENCY
        assert settings.serve is True

    def test_from_environment(self, clean_env):
        clean_env.setenv("BASE_URL", "https://example.com")
        clean_env.setenv("LINK_REPORT_DIR", "out/links")
        clean_env.setenv("LINKS_QUIET", "1")
        clean_env.setenv("SITE_PORT", "8080")
        clean_env.setenv("SITE_BUILD_DIR", "dist")
        clean_env.setenv("LINK_SITEMAP_PREFIXES", "/en, /fr,")
        clean_env.setenv("LINK_CHECK_TIMEOUT", "2.5")
        clean_env.setenv("LINK_CHECK_CONCURRENCY", "8")

        settings = load_settings()

        assert settings.base_url == "https://example.com"
        assert settings.report_dir == Path("out/links")
        assert settings.quiet is True
        assert settings.site_port == 8080
        assert settings.build_dir == Path("dist")
        assert settings.sitemap_prefixes == ["/en", "/fr"]
        assert settings.timeout == 2.5
        assert settings.concurrency == 8

    @pytest.mark.parametrize("value", ["0", "false", "No", "OFF"])
    def test_external_disabled(self, clean_env, value):
        clean_env.setenv("CHECK_EXTERNAL_LINKS", value)
        assert load_settings().check_external is False

    @pytest.mark.parametrize("value", ["1", "true", "yes", ""])
    def test_external_enabled(self, clean_env, value):
        clean_env.setenv("CHECK_EXTERNAL_LINKS", value)
        assert load_settings().check_external is True

    def test_quiet_needs_exact_one(self, clean_env):
        clean_env.setenv("LINKS_QUIET", "true")
        assert load_settings().quiet is False

    def test_invalid_number_falls_back(self, clean_env):
        clean_env.setenv("LINK_CHECK_CONCURRENCY", "lots")
        assert load_settings().concurrency == DEFAULT_CONCURRENCY


class TestWithOverrides:
    def test_none_values_ignored(self):
        settings = LinkCheckSettings(base_url="http://a/")
        updated = settings.with_overrides(base_url=None, quiet=True, max_pages=5)

        assert updated.base_url == "http://a/"
        assert updated.quiet is True
        assert updated.max_pages == 5
        assert settings.quiet is False


class TestLoadConfig:
    def test_local_env_preferred(self, tmp_path: Path):
        (tmp_path / ".env").write_text("BASE_URL=http://x/\n")
        (tmp_path / "cfg").mkdir()
        (tmp_path / "cfg" / ".env").write_text("BASE_URL=http://y/\n")
        load_env = MagicMock()

        loaded = load_config(
            config_dir=tmp_path / "cfg",
            config_env_file=tmp_path / "cfg" / ".env",
            cwd=tmp_path,
            load_env=load_env,
        )

        assert loaded == tmp_path / ".env"
        load_env.assert_called_once_with(tmp_path / ".env")

    def test_user_config_fallback(self, tmp_path: Path):
        cfg = tmp_path / "cfg"
        cfg.mkdir()
        (cfg / ".env").write_text("BASE_URL=http://y/\n")
        load_env = MagicMock()

        loaded = load_config(
            config_dir=cfg,
            config_env_file=cfg / ".env",
            cwd=tmp_path / "work",
            load_env=load_env,
        )

        assert loaded == cfg / ".env"
        load_env.assert_called_once_with(cfg / ".env")

    def test_example_seeds_user_config(self, tmp_path: Path):
        example = tmp_path / ".env.example"
        example.write_text("BASE_URL=http://localhost:4321\n")
        cfg = tmp_path / "cfg"
        load_env = MagicMock()

        loaded = load_config(
            config_dir=cfg,
            config_env_file=cfg / ".env",
            cwd=tmp_path / "work",
            example_file=example,
            load_env=load_env,
        )

        assert loaded == cfg / ".env"
        assert (cfg / ".env").read_text() == "BASE_URL=http://localhost:4321\n"
        load_env.assert_called_once_with(cfg / ".env")

    def test_nothing_to_load(self, tmp_path: Path):
        load_env = MagicMock()
        copy_file = MagicMock()

        loaded = load_config(
            config_dir=tmp_path / "cfg",
            config_env_file=tmp_path / "cfg" / ".env",
            cwd=tmp_path / "work",
            example_file=tmp_path / "missing.example",
            load_env=load_env,
            copy_file=copy_file,
        )

        assert loaded is None
        copy_file.assert_not_called()
        load_env.assert_not_called()

    def test_copy_failure_logged_not_raised(self, tmp_path: Path, caplog):
        example = tmp_path / ".env.example"
        example.write_text("BASE_URL=http://localhost:4321\n")
        load_env = MagicMock()

        with caplog.at_level(logging.WARNING, logger="sitecheck.cli_config"):
            loaded = load_config(
                config_dir=tmp_path / "cfg",
                config_env_file=tmp_path / "cfg" / ".env",
                cwd=tmp_path / "work",
                example_file=example,
                load_env=load_env,
                copy_file=MagicMock(side_effect=OSError("read-only")),
            )

        assert loaded is None
        load_env.assert_not_called()
        assert "read-only" in caplog.text

    def test_bundled_example_location(self):
        assert EXAMPLE_ENV_FILE.name == ".env.example"
        assert EXAMPLE_ENV_FILE.parent == Path(cli_config.__file__).resolve().parent.parent
