"""Pass/fail/total roll-ups over the test tree."""
from __future__ import annotations

from dataclasses import dataclass

from xcresult_explorer.results import ResultStatus, TestNode


@dataclass(frozen=True)
class TestCounts:
    """Aggregated test case counts for a subtree."""

    __test__ = False

    passed: int = 0
    failed: int = 0
    total: int = 0

    def __add__(self, other: TestCounts) -> TestCounts:
        return TestCounts(
            passed=self.passed + other.passed,
            failed=self.failed + other.failed,
            total=self.total + other.total,
        )


def count_tests(node: TestNode) -> TestCounts:
    """Count passed, failed and total test cases under ``node``.

    A "Test Case" counts once and its own children (failure messages,
    activities) are never descended into. Skipped and unrecognized results
    count toward the total only.
    """
    passed = failed = total = 0
    stack = [node]
    while stack:
        current = stack.pop()
        if current.is_test_case:
            total += 1
            status = current.status
            if status == ResultStatus.PASSED:
                passed += 1
            elif status == ResultStatus.FAILED:
                failed += 1
            continue
        stack.extend(current.children)
    return TestCounts(passed=passed, failed=failed, total=total)


def pass_rate(counts: TestCounts) -> float:
    """Pass rate as a percentage (0 when there are no test cases)."""
    if counts.total <= 0:
        return 0.0
    return counts.passed / counts.total * 100


def format_pass_rate(counts: TestCounts) -> str:
    """Pass rate rendered to one decimal place, e.g. ``"66.7"``."""
    return f"{pass_rate(counts):.1f}"
