"""Tests for the exploration session and verbose log gathering."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from xcresult_explorer.errors import (
    ExternalToolFailed,
    ExternalToolTimeout,
    MalformedDocument,
)
from xcresult_explorer.explorer import XCResultExplorer
from xcresult_explorer.timeline.reconstruct import NO_LOGS_PLACEHOLDER, TIMED_OUT_PLACEHOLDER
from xcresult_explorer.tool import XCResultTool

MANIFEST = [
    {
        "testIdentifier": "APIModelTests/testDecodeUser()",
        "attachments": [
            {
                "exportedFileName": "screenshot_1.png",
                "suggestedHumanReadableName": "Screenshot at failure",
                "isAssociatedWithFailure": True,
            }
        ],
    }
]


def _export_with_manifest(test_id: str, output_dir: Any) -> Path:
    out = Path(output_dir)
    (out / "manifest.json").write_text(json.dumps(MANIFEST), encoding="utf-8")
    return out


@pytest.fixture
def tool(summary_json: str, tests_json: str, activities_json: str) -> MagicMock:
    """A tool whose every query succeeds."""
    mock = MagicMock(spec=XCResultTool)
    mock.get_summary.return_value = summary_json
    mock.get_tests.return_value = tests_json
    mock.get_activities.return_value = activities_json
    mock.export_attachments.side_effect = _export_with_manifest
    mock.get_console_log.return_value = "2024-01-15 10:00:01 SampleApp[4242] Loaded 3 users\n"
    return mock


@pytest.fixture
def explorer(tool: MagicMock) -> XCResultExplorer:
    return XCResultExplorer("Run.xcresult", tool=tool)


# ============================================================================
# Primary documents
# ============================================================================


class TestLoading:
    """Tests for loading the summary and tests documents."""

    def test_documents_fetched_once(self, explorer: XCResultExplorer, tool: MagicMock) -> None:
        explorer.list_tests()
        explorer.show_test_details("1")

        assert tool.get_summary.call_count == 1
        assert tool.get_tests.call_count == 1

    def test_malformed_summary_is_fatal(self, explorer: XCResultExplorer, tool: MagicMock) -> None:
        tool.get_summary.return_value = "{broken"
        with pytest.raises(MalformedDocument):
            explorer.list_tests()

    def test_tool_failure_is_fatal(self, explorer: XCResultExplorer, tool: MagicMock) -> None:
        tool.get_tests.side_effect = ExternalToolFailed(1)
        with pytest.raises(ExternalToolFailed):
            explorer.list_tests()


# ============================================================================
# Views
# ============================================================================


class TestViews:
    """Tests for list and details output."""

    def test_list_tests(self, explorer: XCResultExplorer) -> None:
        text = explorer.list_tests()

        assert "[3] ❌ testDecodeUser() (0.04s)" in text
        assert "💡 Usage:" in text

    def test_details_by_index_and_identifier_agree(self, explorer: XCResultExplorer) -> None:
        assert explorer.show_test_details("3") == explorer.show_test_details("APIModelTests/testDecodeUser()")

    def test_not_found(self, explorer: XCResultExplorer, tool: MagicMock) -> None:
        text = explorer.show_test_details("99")

        assert text.startswith("❌ Test '99' not found")
        tool.get_activities.assert_not_called()

    def test_verbose_details(self, explorer: XCResultExplorer) -> None:
        text = explorer.show_test_details("3", verbose=True)

        assert "🔬 Extreme Details:" in text
        assert "📟 Console Output:" in text
        assert "--- Test Activity Log ---" in text
        assert "t =    +5.00s ❌ Decode user payload" in text
        assert "--- Test Attachments ---\n📎 Screenshot at failure" in text
        assert "--- Console Log ---" in text
        assert text.index("Test Activity Log") < text.index("Test Attachments") < text.index("Console Log")

    def test_views_do_not_print(self, explorer: XCResultExplorer, capsys: pytest.CaptureFixture[str]) -> None:
        explorer.list_tests()
        explorer.show_test_details("3", verbose=True)

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""


# ============================================================================
# Verbose sources
# ============================================================================


class TestCollectSections:
    """Tests for per-source isolation of the verbose logs."""

    def _node(self, explorer: XCResultExplorer) -> Any:
        node = explorer.find_test("APIModelTests/testDecodeUser()")
        assert node is not None
        return node

    def test_all_sources(self, explorer: XCResultExplorer) -> None:
        sections = explorer.collect_sections(self._node(explorer))

        assert [s.title for s in sections] == ["Test Activity Log", "Test Attachments", "Console Log"]
        assert all(not s.is_empty for s in sections)

    def test_compact_timeout_falls_back_to_action_log(
        self, explorer: XCResultExplorer, tool: MagicMock, action_log_json: str
    ) -> None:
        tool.get_activities.side_effect = ExternalToolTimeout(30)
        tool.get_action_log.return_value = action_log_json

        activity = explorer.collect_sections(self._node(explorer))[0]

        assert not activity.timed_out
        assert activity.lines[0] == "t =    +0.50s    Set Up"
        tool.get_legacy_object.assert_not_called()

    def test_falls_back_to_legacy_graph(
        self, explorer: XCResultExplorer, tool: MagicMock, fixtures_dir: Path
    ) -> None:
        legacy = {
            None: (fixtures_dir / "legacy_root.json").read_text(encoding="utf-8"),
            "0~tests-ref": (fixtures_dir / "legacy_tests.json").read_text(encoding="utf-8"),
            "0~summary-decode-user": (fixtures_dir / "legacy_summary.json").read_text(encoding="utf-8"),
        }
        tool.get_activities.return_value = '{"testRuns": []}'
        tool.get_action_log.return_value = "{}"
        tool.get_legacy_object.side_effect = lambda object_id=None: legacy[object_id]

        activity = explorer.collect_sections(self._node(explorer))[0]

        assert activity.lines[1] == "t =    +3.50s ❌ Decode user payload"

    def test_every_activity_source_timing_out(self, explorer: XCResultExplorer, tool: MagicMock) -> None:
        tool.get_activities.side_effect = ExternalToolTimeout(30)
        tool.get_action_log.side_effect = ExternalToolTimeout(60)
        tool.get_legacy_object.side_effect = ExternalToolTimeout(15)

        activity = explorer.collect_sections(self._node(explorer))[0]

        assert activity.timed_out
        assert activity.render().endswith(TIMED_OUT_PLACEHOLDER)

    def test_failure_reported_and_others_continue(
        self,
        explorer: XCResultExplorer,
        tool: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        tool.export_attachments.side_effect = ExternalToolFailed(70, stderr="export failed")

        sections = explorer.collect_sections(self._node(explorer))

        assert sections[1].is_empty
        assert not sections[2].is_empty
        assert "Error getting test attachments: xcresulttool exited with status 70" in capsys.readouterr().err

    def test_console_timeout_placeholder(self, explorer: XCResultExplorer, tool: MagicMock) -> None:
        tool.get_console_log.side_effect = ExternalToolTimeout(30)

        text = explorer.gather_console_output(self._node(explorer))

        assert text.endswith(f"--- Console Log ---\n{TIMED_OUT_PLACEHOLDER}")

    def test_console_unavailable_is_silent(
        self, explorer: XCResultExplorer, tool: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        tool.get_console_log.return_value = "No console log available for this result bundle"

        text = explorer.gather_console_output(self._node(explorer))

        assert "--- Console Log ---" not in text
        assert capsys.readouterr().err == ""

    def test_node_without_identifier(self, explorer: XCResultExplorer, tool: MagicMock) -> None:
        tool.get_console_log.side_effect = ExternalToolFailed(1)
        suite = explorer.results.test_nodes[0]

        assert explorer.gather_console_output(suite) == NO_LOGS_PLACEHOLDER
        tool.get_activities.assert_not_called()
        tool.export_attachments.assert_not_called()
