"""Activity timeline model.

Every upstream activity dialect is decoded into :class:`ActivityRecord`
before any formatting happens, so the reconstructor only ever sees this one
shape.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ActivityRecord:
    """A recorded step within one test's execution."""

    title: str
    start_time: Optional[float] = None
    is_associated_with_failure: Optional[bool] = None
    child_activities: tuple[ActivityRecord, ...] = ()


@dataclass(frozen=True)
class ActivityRun:
    """Top-level activities of one test run.

    ``baseline`` is the test start time when the source states it explicitly;
    when None, the reconstructor looks for a "Start Test at" activity.
    """

    activities: tuple[ActivityRecord, ...] = ()
    baseline: Optional[float] = None
