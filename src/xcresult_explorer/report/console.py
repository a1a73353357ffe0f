"""Console report rendering.

Each ``render_*`` function returns the full text block; printing is left to
the caller.
"""
from __future__ import annotations

from typing import Optional, Sequence

from xcresult_explorer.diagnostics import DiagnosticsEngine
from xcresult_explorer.finder import XCResultFileInfo, describe
from xcresult_explorer.results import (
    FAILURE_MESSAGE,
    ResultStatus,
    TestNode,
    TestResults,
    TestResultsSummary,
    classify_result,
)
from xcresult_explorer.results.aggregate import count_tests, format_pass_rate
from xcresult_explorer.results.resolver import enumerate_test_cases, walk

RULE_WIDE = "=" * 80
RULE_NARROW = "-" * 80
RULE_SHORT = "-" * 40

CLI_NAME = "xcresult-explorer"

_STATUS_ICONS = {
    ResultStatus.PASSED: "✅",
    ResultStatus.FAILED: "❌",
    ResultStatus.SKIPPED: "⏭️",
    ResultStatus.UNKNOWN: "❓",
}


def status_icon(result: str) -> str:
    return _STATUS_ICONS[classify_result(result)]


def format_duration(seconds: float) -> str:
    """Whole-second duration as "Xm Ys", or "Ys" under a minute; the sign is kept."""
    total = int(seconds)
    sign = "-" if total < 0 else ""
    minutes, remaining = divmod(abs(total), 60)
    if minutes > 0:
        return f"{sign}{minutes}m {remaining}s"
    return f"{sign}{remaining}s"


def render_summary(summary: TestResultsSummary) -> str:
    overall = "❌" if summary.result == "Failed" else "✅"
    lines = [
        "📊 Test Summary",
        f"Result: {overall} {summary.result}",
        (
            f"Total: {summary.total_test_count} | Passed: {summary.passed_tests} ✅ | "
            f"Failed: {summary.failed_tests} ❌ | Skipped: {summary.skipped_tests} ⏭️"
        ),
        f"Pass Rate: {summary.pass_rate:.1f}%",
        f"Duration: {format_duration(summary.duration_seconds)}",
    ]
    return "\n".join(lines)


def render_tree(nodes: Sequence[TestNode]) -> str:
    """Indented listing of suites and numbered test cases.

    Test case numbers follow the same traversal the resolver uses, so any
    printed number can be passed back as ``--test-id``.
    """
    numbers = {id(case): i for i, case in enumerate_test_cases(nodes)}
    lines: list[str] = []
    for node, depth in walk(nodes):
        prefix = "  " * depth
        if node.is_test_case:
            duration = f" ({node.duration})" if node.duration is not None else ""
            lines.append(f"{prefix}[{numbers[id(node)]}] {status_icon(node.result)} {node.name}{duration}")
            lines.append(f"{prefix}    ID: {node.node_identifier or 'unknown'}")
        elif node.is_group:
            counts = count_tests(node)
            rate = ""
            if counts.total > 0:
                rate = (
                    f" - {format_pass_rate(counts)}% pass rate "
                    f"({counts.passed}/{counts.total})"
                )
            lines.append(f"{prefix}📁 {node.name}{rate}")
    return "\n".join(lines)


def render_test_list(path: str, summary: TestResultsSummary, results: TestResults) -> str:
    return "\n".join([
        f"🔍 XCResult Explorer - {path}",
        RULE_WIDE,
        render_summary(summary),
        "",
        "📋 All Tests:",
        RULE_NARROW,
        render_tree(results.test_nodes),
    ])


def render_usage() -> str:
    return "\n".join([
        "",
        "💡 Usage:",
        f"  Find XCResults:    {CLI_NAME} <project_path> --project",
        f"  View test details: {CLI_NAME} <path> --test-id <ID or index>",
        f"  View with logs:    {CLI_NAME} <path> --test-id <ID or index> --console",
        "  Examples:",
        f"    {CLI_NAME} . --project",
        f"    {CLI_NAME} result.xcresult --test-id 5",
        f'    {CLI_NAME} result.xcresult --test-id "TestSuite/testMethod()"',
        "",
    ])


def render_not_found(key: str) -> str:
    return (
        f"❌ Test '{key}' not found\n\n"
        "Run without --test-id to see all available test IDs and index numbers"
    )


def render_failure_analysis(
    node: TestNode,
    summary: TestResultsSummary,
    engine: DiagnosticsEngine,
) -> list[str]:
    """Failure block for a failed node, empty when the summary has no entry."""
    failure = summary.failure_for(node.node_identifier)
    if failure is None:
        return []

    analysis = engine.analyze(failure.failure_text)
    lines = [
        "❌ Failure Details:",
        f"Target: {failure.target_name}",
        "",
        "🔍 Analysis:",
        analysis.analysis,
        "",
    ]
    if failure.failure_text not in analysis.analysis and analysis.analysis not in failure.failure_text:
        lines += ["📝 Raw Error:", failure.failure_text, ""]
    if analysis.suggestions:
        lines.append("💡 Suggested Fixes:")
        lines += [f"• {suggestion}" for suggestion in analysis.suggestions]
        lines.append("")
    return lines


def render_failure_children(node: TestNode) -> list[str]:
    """Location/message pairs from a test's failure and activity sub-nodes."""
    if not node.children:
        return []

    lines = ["📍 Detailed Failure Information:"]
    for child in node.children:
        if child.node_type == FAILURE_MESSAGE:
            location, sep, message = child.name.partition(": ")
            if sep:
                lines.append(f"Location: {location}")
                lines.append(f"Message: {message}")
            else:
                lines.append(f"Details: {child.name}")
            lines.append("")
        elif "Activity" in child.node_type:
            lines.append(f"Activity: {child.name}")
            if child.status is ResultStatus.FAILED:
                lines.append(f"Status: ❌ {child.result}")
            lines.append("")
    return lines


def render_test_details(
    node: TestNode,
    summary: TestResultsSummary,
    engine: Optional[DiagnosticsEngine] = None,
) -> str:
    engine = engine or DiagnosticsEngine()
    lines = [
        "🔍 Test Details",
        RULE_WIDE,
        f"Name: {node.name}",
        f"ID: {node.node_identifier or 'unknown'}",
        f"Type: {node.node_type}",
        f"Result: {status_icon(node.result)} {node.result}",
    ]
    if node.duration is not None:
        lines.append(f"Duration: {node.duration}")
    lines.append("")

    if node.failed:
        lines += render_failure_analysis(node, summary, engine)
        lines += render_failure_children(node)
    return "\n".join(lines)


def render_verbose_children(node: TestNode) -> str:
    lines = ["🔬 Extreme Details:", RULE_SHORT]
    for child in node.children:
        lines.append(f"Type: {child.node_type}")
        lines.append(f"Name: {child.name}")
        lines.append(f"Result: {child.result}")
        if child.duration is not None:
            lines.append(f"Duration: {child.duration}")
        lines.append("")
    return "\n".join(lines)


def render_console_output(text: str) -> str:
    return f"📟 Console Output:\n{text}\n"


def render_find_results(
    root: str,
    files: Sequence[XCResultFileInfo],
    now: Optional[float] = None,
) -> str:
    lines = [f"🔍 Finding XCResult files in: {root}", RULE_WIDE]
    if not files:
        lines.append("❌ No XCResult files found in the specified directory")
        return "\n".join(lines)

    plural = "" if len(files) == 1 else "s"
    lines.append(f"📋 Found {len(files)} XCResult file{plural}:")
    lines.append(RULE_NARROW)
    for i, info in enumerate(files, start=1):
        shown = describe(info, now=now)
        lines += [
            f"[{i}] 📦 {shown['name']}",
            f"    Path: {shown['path']}",
            f"    Modified: {shown['modified']} ({shown['age']})",
            f"    Size: {shown['size']}",
            "",
        ]
    lines += [
        "",
        "💡 Usage:",
        f"  Explore a specific file: {CLI_NAME} <path_from_above>",
        f"  View test details: {CLI_NAME} <path_from_above> --test-id <ID>",
    ]
    return "\n".join(lines)
