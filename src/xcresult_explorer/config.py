"""XCResult Explorer configuration management.

Handles:
- xcrun location and per-query timeouts for xcresulttool
- Optional suite hints file for the failure diagnostics engine
- .env file loading with precedence: CLI > .env > env vars
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_XCRUN_PATH = "/usr/bin/xcrun"
DEFAULT_QUERY_TIMEOUT = 30
DEFAULT_LEGACY_TIMEOUT = 15
DEFAULT_LOG_TIMEOUT = 60


@dataclass
class Config:
    """XCResult Explorer runtime configuration."""

    xcrun_path: str = DEFAULT_XCRUN_PATH
    # Interactive queries (summary, tests, activities, console log)
    query_timeout_seconds: int = DEFAULT_QUERY_TIMEOUT
    # Legacy object graph lookups
    legacy_timeout_seconds: int = DEFAULT_LEGACY_TIMEOUT
    # Bulk action log extraction
    log_timeout_seconds: int = DEFAULT_LOG_TIMEOUT
    hints_file: Path | None = None
    env_file_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "xcrun_path": self.xcrun_path,
            "query_timeout_seconds": self.query_timeout_seconds,
            "legacy_timeout_seconds": self.legacy_timeout_seconds,
            "log_timeout_seconds": self.log_timeout_seconds,
        }
        if self.hints_file:
            result["hints_file"] = str(self.hints_file)
        if self.env_file_path:
            result["env_file_path"] = str(self.env_file_path)
        return result


def parse_env_file(env_file: Path) -> dict[str, str]:
    """Parse a .env file into a dictionary.

    Supports:
    - KEY=value
    - KEY="quoted value"
    - KEY='single quoted'
    - export KEY=value
    - # comments
    - Empty lines
    """
    result: dict[str, str] = {}

    if not env_file.exists():
        return result

    for line in env_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()

        if not line or line.startswith("#"):
            continue

        if line.startswith("export "):
            line = line[7:]

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()

        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]

        result[key] = value

    return result


def _find_env_file(start: Path | None = None) -> Path | None:
    """Find .env file by walking up directory tree.

    Stops at git root, home directory, or filesystem root.
    Returns None if not found.
    """
    current = (start or Path.cwd()).resolve()

    try:
        home = Path.home()
    except RuntimeError:
        home = None

    for _ in range(20):
        env_file = current / ".env"
        if env_file.exists():
            return env_file

        if home and current == home:
            break
        if current == current.parent:
            break

        # Stop at git root (but check .env first)
        if (current / ".git").exists():
            break

        current = current.parent

    return None


def _parse_seconds(env_vars: dict[str, str], key: str, default: int) -> int:
    raw = env_vars.get(key, "")
    if not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer number of seconds, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def load_config(
    env_file: str | Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> Config:
    """Load configuration with precedence: CLI > .env > env vars.

    Args:
        env_file: Path to .env file to load (auto-discovered when omitted)
        cli_overrides: Values given on the command line; None entries are ignored

    Returns:
        Loaded Config instance

    Raises:
        ValueError: If a timeout value is not a positive integer
    """
    cli_overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    env_vars = dict(os.environ)

    env_file_path: Path | None
    if env_file:
        env_file_path = Path(env_file)
    else:
        env_file_path = _find_env_file()
    if env_file_path and env_file_path.exists():
        env_vars.update(parse_env_file(env_file_path))

    hints_raw = cli_overrides.get("hints_file") or env_vars.get("XCR_HINTS_FILE", "")
    hints_file = Path(hints_raw) if hints_raw else None

    return Config(
        xcrun_path=cli_overrides.get("xcrun_path") or env_vars.get("XCR_XCRUN_PATH") or DEFAULT_XCRUN_PATH,
        query_timeout_seconds=cli_overrides.get(
            "query_timeout_seconds",
            _parse_seconds(env_vars, "XCR_QUERY_TIMEOUT", DEFAULT_QUERY_TIMEOUT),
        ),
        legacy_timeout_seconds=_parse_seconds(env_vars, "XCR_LEGACY_TIMEOUT", DEFAULT_LEGACY_TIMEOUT),
        log_timeout_seconds=_parse_seconds(env_vars, "XCR_LOG_TIMEOUT", DEFAULT_LOG_TIMEOUT),
        hints_file=hints_file,
        env_file_path=env_file_path if env_file_path and env_file_path.exists() else None,
    )


# Global config instance (set by CLI)
_config: Config | None = None


def get_config() -> Config:
    """Get the current configuration, loading defaults on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration."""
    global _config
    _config = config
