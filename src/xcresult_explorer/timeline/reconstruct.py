"""Rebuild a readable, relative-time activity timeline.

Output lines look like::

    t =    +0.00s    Start Test at 2024-01-15 10:00:00.000
    t =    +0.52s    Set Up
      t =    +1.10s    Tap "Login" Button
      t =    +5.00s ❌ Assertion Failure: LoginTests.swift:42
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from xcresult_explorer.timeline import ActivityRecord, ActivityRun

START_TEST_MARKER = "Start Test at"
INDENT = "  "
FAILURE_MARKER = "❌ "
NO_FAILURE_MARKER = "   "
TIMED_OUT_PLACEHOLDER = "Log retrieval timed out"
NO_LOGS_PLACEHOLDER = "No detailed logs available"

OFFSET_FIELD_WIDTH = 8
_TIME_PREFIX = "t = "
_TIME_SUFFIX = "s "

_DETECT = object()


def find_baseline(records: Sequence[ActivityRecord]) -> Optional[float]:
    """Start time of the first top-level "Start Test at" activity, if any."""
    for record in records:
        if START_TEST_MARKER in record.title:
            return record.start_time
    return None


def format_offset(
    start_time: Optional[float],
    baseline: Optional[float],
    field_width: int = OFFSET_FIELD_WIDTH,
) -> str:
    """Fixed-width ``t = +N.NNs`` column, or blanks of the same width."""
    if start_time is None or baseline is None:
        return " " * (len(_TIME_PREFIX) + field_width + len(_TIME_SUFFIX))
    return f"{_TIME_PREFIX}{start_time - baseline:+{field_width}.2f}{_TIME_SUFFIX}"


def offset_field_width(records: Sequence[ActivityRecord], baseline: Optional[float]) -> int:
    """Width that fits every offset in the block, never below the default."""
    width = OFFSET_FIELD_WIDTH
    if baseline is None:
        return width
    stack = list(records)
    while stack:
        record = stack.pop()
        if record.start_time is not None:
            width = max(width, len(f"{record.start_time - baseline:+.2f}"))
        stack.extend(record.child_activities)
    return width


def format_activity_line(
    record: ActivityRecord,
    baseline: Optional[float],
    depth: int,
    field_width: int = OFFSET_FIELD_WIDTH,
) -> str:
    marker = FAILURE_MARKER if record.is_associated_with_failure else NO_FAILURE_MARKER
    offset = format_offset(record.start_time, baseline, field_width)
    return f"{INDENT * depth}{offset}{marker}{record.title}"


def format_activity_lines(
    records: Sequence[ActivityRecord],
    baseline: object = _DETECT,
) -> list[str]:
    """One line per activity, pre-order, children indented one level deeper.

    When ``baseline`` is not given it is detected with :func:`find_baseline`;
    pass None explicitly to render every line without offsets. The time column
    widens for the whole block when an offset does not fit the default width.
    """
    base: Optional[float]
    if baseline is _DETECT:
        base = find_baseline(records)
    else:
        base = baseline  # type: ignore[assignment]
    field_width = offset_field_width(records, base)

    lines: list[str] = []
    stack: list[tuple[ActivityRecord, int]] = [(r, 0) for r in reversed(records)]
    while stack:
        record, depth = stack.pop()
        lines.append(format_activity_line(record, base, depth, field_width))
        for child in reversed(record.child_activities):
            stack.append((child, depth + 1))
    return lines


def format_runs(runs: Sequence[ActivityRun]) -> list[str]:
    """Format several runs back to back.

    A run's explicit baseline wins; otherwise it is detected from its own
    top-level activities.
    """
    lines: list[str] = []
    for run in runs:
        if run.baseline is not None:
            lines.extend(format_activity_lines(run.activities, run.baseline))
        else:
            lines.extend(format_activity_lines(run.activities))
    return lines


@dataclass
class TimelineSection:
    """One labeled block of the verbose log output."""

    title: str
    lines: list[str] = field(default_factory=list)
    timed_out: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.timed_out and not any(line.strip() for line in self.lines)

    def render(self) -> str:
        body = [TIMED_OUT_PLACEHOLDER] if self.timed_out else self.lines
        return "\n".join([f"--- {self.title} ---", *body])


def render_sections(sections: Sequence[TimelineSection]) -> str:
    """Concatenate non-empty sections in the order given."""
    blocks = [section.render() for section in sections if not section.is_empty]
    if not blocks:
        return NO_LOGS_PLACEHOLDER
    return "\n\n".join(blocks)
