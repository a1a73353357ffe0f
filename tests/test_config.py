"""Tests for xcresult_explorer.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from xcresult_explorer import config as config_module
from xcresult_explorer.config import (
    DEFAULT_LEGACY_TIMEOUT,
    DEFAULT_LOG_TIMEOUT,
    DEFAULT_QUERY_TIMEOUT,
    DEFAULT_XCRUN_PATH,
    Config,
    get_config,
    load_config,
    parse_env_file,
    set_config,
)

XCR_VARS = (
    "XCR_XCRUN_PATH",
    "XCR_QUERY_TIMEOUT",
    "XCR_LEGACY_TIMEOUT",
    "XCR_LOG_TIMEOUT",
    "XCR_HINTS_FILE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate tests from the developer's environment and .env files."""
    for name in XCR_VARS:
        monkeypatch.delenv(name, raising=False)
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)


class TestParseEnvFile:
    """Tests for .env parsing."""

    def test_parse_formats(self, tmp_path: Path) -> None:
        env = tmp_path / "custom.env"
        env.write_text(
            "# comment\n"
            "\n"
            "XCR_QUERY_TIMEOUT=45\n"
            'export XCR_XCRUN_PATH="/opt/xcrun"\n'
            "XCR_HINTS_FILE='hints.yaml'\n"
            "not a pair\n",
            encoding="utf-8",
        )

        assert parse_env_file(env) == {
            "XCR_QUERY_TIMEOUT": "45",
            "XCR_XCRUN_PATH": "/opt/xcrun",
            "XCR_HINTS_FILE": "hints.yaml",
        }

    def test_missing_file(self, tmp_path: Path) -> None:
        assert parse_env_file(tmp_path / "absent.env") == {}


class TestLoadConfig:
    """Tests for configuration precedence."""

    def test_defaults(self) -> None:
        config = load_config()

        assert config.xcrun_path == DEFAULT_XCRUN_PATH
        assert config.query_timeout_seconds == DEFAULT_QUERY_TIMEOUT
        assert config.legacy_timeout_seconds == DEFAULT_LEGACY_TIMEOUT
        assert config.log_timeout_seconds == DEFAULT_LOG_TIMEOUT
        assert config.hints_file is None
        assert config.env_file_path is None

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XCR_LOG_TIMEOUT", "120")
        monkeypatch.setenv("XCR_HINTS_FILE", "/etc/hints.yaml")

        config = load_config()

        assert config.log_timeout_seconds == 120
        assert config.hints_file == Path("/etc/hints.yaml")

    def test_env_file_overrides_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("XCR_QUERY_TIMEOUT", "10")
        env = tmp_path / ".env"
        env.write_text("XCR_QUERY_TIMEOUT=20\n", encoding="utf-8")

        config = load_config()

        assert config.query_timeout_seconds == 20
        assert config.env_file_path is not None
        assert config.env_file_path.resolve() == env.resolve()

    def test_cli_overrides_env_file(self, tmp_path: Path) -> None:
        env = tmp_path / "ci.env"
        env.write_text("XCR_HINTS_FILE=from-env.yaml\nXCR_QUERY_TIMEOUT=20\n", encoding="utf-8")

        config = load_config(
            env_file=env,
            cli_overrides={"hints_file": "from-cli.yaml", "query_timeout_seconds": 5, "xcrun_path": None},
        )

        assert config.hints_file == Path("from-cli.yaml")
        assert config.query_timeout_seconds == 5
        assert config.xcrun_path == DEFAULT_XCRUN_PATH

    @pytest.mark.parametrize("value", ["abc", "0", "-5", "1.5"])
    def test_invalid_timeout(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("XCR_LEGACY_TIMEOUT", value)
        with pytest.raises(ValueError, match="XCR_LEGACY_TIMEOUT"):
            load_config()

    def test_to_dict(self) -> None:
        config = Config(hints_file=Path("h.yaml"))
        data = config.to_dict()

        assert data["hints_file"] == "h.yaml"
        assert "env_file_path" not in data
        assert data["query_timeout_seconds"] == DEFAULT_QUERY_TIMEOUT


class TestGlobalConfig:
    """Tests for the process-wide configuration."""

    def test_set_and_get(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config_module, "_config", None)
        custom = Config(xcrun_path="/custom/xcrun")

        set_config(custom)

        assert get_config() is custom

    def test_lazy_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config_module, "_config", None)
        assert get_config().xcrun_path == DEFAULT_XCRUN_PATH
