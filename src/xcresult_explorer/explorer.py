"""One exploration session over a single ``.xcresult`` bundle.

The summary and tests documents are loaded once and are required: a failure
to fetch or decode either is fatal. Everything fetched for the verbose view is
optional and isolated per source.
"""
from __future__ import annotations

import logging
import sys
import tempfile
from pathlib import Path
from typing import Callable, Optional, Sequence

from xcresult_explorer.diagnostics import DiagnosticsEngine
from xcresult_explorer.errors import ExternalToolTimeout, XCResultError
from xcresult_explorer.report import console
from xcresult_explorer.results import TestNode, TestResults, TestResultsSummary
from xcresult_explorer.results.loader import parse_summary, parse_tests
from xcresult_explorer.results.resolver import resolve
from xcresult_explorer.timeline import dialects
from xcresult_explorer.timeline.attachments import read_export_dir
from xcresult_explorer.timeline.reconstruct import (
    TimelineSection,
    format_runs,
    render_sections,
)
from xcresult_explorer.tool import XCResultTool

logger = logging.getLogger(__name__)

ACTIVITY_SECTION = "Test Activity Log"
ATTACHMENTS_SECTION = "Test Attachments"
CONSOLE_SECTION = "Console Log"

NO_CONSOLE_LOG_MARKER = "No console log available"

Fetcher = Callable[[], list[str]]


def _has_content(lines: Sequence[str]) -> bool:
    return any(line.strip() for line in lines)


class XCResultExplorer:
    """Load, resolve, diagnose and render the tests in one result bundle."""

    def __init__(
        self,
        path: str | Path,
        tool: Optional[XCResultTool] = None,
        engine: Optional[DiagnosticsEngine] = None,
    ):
        self.path = Path(path)
        self.tool = tool or XCResultTool(self.path)
        self.engine = engine or DiagnosticsEngine()
        self._summary: Optional[TestResultsSummary] = None
        self._results: Optional[TestResults] = None

    # ------------------------------------------------------------------
    # Primary documents
    # ------------------------------------------------------------------

    @property
    def summary(self) -> TestResultsSummary:
        if self._summary is None:
            self._summary = parse_summary(self.tool.get_summary())
        return self._summary

    @property
    def results(self) -> TestResults:
        if self._results is None:
            self._results = parse_tests(self.tool.get_tests())
        return self._results

    def load(self) -> None:
        """Fetch and decode both primary documents."""
        _ = self.summary
        _ = self.results

    def find_test(self, key: str) -> Optional[TestNode]:
        return resolve(key, self.results.test_nodes)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def list_tests(self) -> str:
        self.load()
        return "\n".join([
            console.render_test_list(str(self.path), self.summary, self.results),
            console.render_usage(),
        ])

    def show_test_details(self, key: str, verbose: bool = False) -> str:
        """Details view for ``key``; a miss is reported in the text, not raised."""
        self.load()
        node = self.find_test(key)
        if node is None:
            return console.render_not_found(key)

        blocks = [console.render_test_details(node, self.summary, self.engine)]
        if verbose:
            blocks.append(console.render_verbose_children(node))
            blocks.append(console.render_console_output(self.gather_console_output(node)))
        return "\n".join(blocks)

    # ------------------------------------------------------------------
    # Verbose log sources
    # ------------------------------------------------------------------

    def gather_console_output(self, node: TestNode) -> str:
        return render_sections(self.collect_sections(node))

    def collect_sections(self, node: TestNode) -> list[TimelineSection]:
        """Fetch every log source for ``node`` in display order.

        A failing source never prevents the remaining ones from running.
        """
        sections: list[TimelineSection] = []
        test_id = node.node_identifier
        if test_id:
            sections.append(self._section(
                ACTIVITY_SECTION,
                "test activities",
                [
                    lambda: self._compact_activity_lines(test_id),
                    lambda: self._action_log_lines(test_id),
                    lambda: self._legacy_activity_lines(test_id),
                ],
            ))
            sections.append(self._section(
                ATTACHMENTS_SECTION,
                "test attachments",
                [lambda: self._attachment_lines(test_id)],
            ))
        sections.append(self._section(
            CONSOLE_SECTION,
            "console log",
            [self._console_lines],
            report_errors=False,
        ))
        return sections

    def _section(
        self,
        title: str,
        label: str,
        fetchers: Sequence[Fetcher],
        report_errors: bool = True,
    ) -> TimelineSection:
        """Try each fetcher in turn; the first one with content wins."""
        timed_out = False
        for fetch in fetchers:
            try:
                lines = fetch()
            except ExternalToolTimeout as e:
                logger.debug("%s: %s", label, e)
                timed_out = True
                continue
            except XCResultError as e:
                if report_errors:
                    print(f"Error getting {label}: {e}", file=sys.stderr)
                else:
                    logger.debug("%s unavailable: %s", label, e)
                continue
            if _has_content(lines):
                return TimelineSection(title, lines)
        return TimelineSection(title, timed_out=timed_out)

    def _compact_activity_lines(self, test_id: str) -> list[str]:
        return format_runs(dialects.parse_compact_activities(self.tool.get_activities(test_id)))

    def _action_log_lines(self, test_id: str) -> list[str]:
        return format_runs(dialects.parse_action_log(self.tool.get_action_log(), test_id))

    def _legacy_activity_lines(self, test_id: str) -> list[str]:
        root = dialects.loads_legacy(self.tool.get_legacy_object())
        tests_ref = dialects.find_legacy_tests_ref(root)
        if tests_ref is None:
            return []
        tests_json = dialects.loads_legacy(self.tool.get_legacy_object(tests_ref))
        summary_id = dialects.find_legacy_summary_id(tests_json, test_id)
        if summary_id is None:
            return []
        run = dialects.parse_legacy_summary(
            dialects.loads_legacy(self.tool.get_legacy_object(summary_id))
        )
        return format_runs([run]) if run is not None else []

    def _attachment_lines(self, test_id: str) -> list[str]:
        with tempfile.TemporaryDirectory(prefix="xcresult_attachments_") as tmp:
            export_dir = self.tool.export_attachments(test_id, tmp)
            return read_export_dir(export_dir)

    def _console_lines(self) -> list[str]:
        text = self.tool.get_console_log()
        if NO_CONSOLE_LOG_MARKER in text:
            return []
        return text.splitlines()
