"""Run ``xcrun xcresulttool`` queries against one result bundle.

Every query is a blocking subprocess call with a wall-clock timeout. When the
timeout expires the child is killed and :class:`ExternalToolTimeout` is raised;
callers decide whether that is fatal.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional

from xcresult_explorer.config import Config, get_config
from xcresult_explorer.errors import (
    ExternalToolFailed,
    ExternalToolMissing,
    ExternalToolTimeout,
)

logger = logging.getLogger(__name__)


class XCResultTool:
    """Query interface for a single ``.xcresult`` bundle."""

    def __init__(self, path: str | Path, config: Optional[Config] = None):
        self.path = Path(path)
        self.config = config or get_config()

    def _command(self, *args: str) -> list[str]:
        return [self.config.xcrun_path, "xcresulttool", *args]

    def _run(self, args: list[str], timeout: float) -> str:
        """Run one xcresulttool command and return its stdout.

        Raises:
            ExternalToolTimeout: The command exceeded ``timeout`` seconds
            ExternalToolMissing: ``xcrun`` could not be executed
            ExternalToolFailed: The command exited with a non-zero status
        """
        command = self._command(*args)
        logger.debug("running %s (timeout=%ss)", " ".join(command), timeout)
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalToolTimeout(timeout, command) from e
        except FileNotFoundError as e:
            raise ExternalToolMissing(self.config.xcrun_path) from e

        if result.returncode != 0:
            raise ExternalToolFailed(result.returncode, command, result.stderr or "")

        logger.debug("%s returned %d chars", " ".join(args[:3]), len(result.stdout))
        return result.stdout

    # ------------------------------------------------------------------
    # Primary documents
    # ------------------------------------------------------------------

    def get_summary(self) -> str:
        return self._run(
            ["get", "test-results", "summary", "--path", str(self.path), "--format", "json"],
            self.config.query_timeout_seconds,
        )

    def get_tests(self) -> str:
        return self._run(
            ["get", "test-results", "tests", "--path", str(self.path), "--format", "json"],
            self.config.query_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Auxiliary documents (verbose mode)
    # ------------------------------------------------------------------

    def get_activities(self, test_id: str) -> str:
        """Compact activity feed for one test."""
        return self._run(
            [
                "get", "test-results", "activities",
                "--test-id", test_id,
                "--path", str(self.path),
                "--compact",
            ],
            self.config.query_timeout_seconds,
        )

    def export_attachments(self, test_id: str, output_dir: str | Path) -> Path:
        """Export one test's attachments; returns the directory written to."""
        output_dir = Path(output_dir)
        self._run(
            [
                "export", "attachments",
                "--path", str(self.path),
                "--test-id", test_id,
                "--output-path", str(output_dir),
            ],
            self.config.query_timeout_seconds,
        )
        return output_dir

    def get_console_log(self) -> str:
        return self._run(
            ["get", "log", "--path", str(self.path), "--type", "console"],
            self.config.query_timeout_seconds,
        )

    def get_action_log(self) -> str:
        return self._run(
            ["get", "log", "--path", str(self.path), "--type", "action", "--compact"],
            self.config.log_timeout_seconds,
        )

    def get_legacy_object(self, object_id: Optional[str] = None) -> str:
        """Fetch an object from the legacy object graph (the root when no id)."""
        args = ["get", "object", "--legacy", "--path", str(self.path)]
        if object_id:
            args += ["--id", object_id]
        args += ["--format", "json"]
        return self._run(args, self.config.legacy_timeout_seconds)
