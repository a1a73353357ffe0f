"""Decode the different activity log shapes xcresulttool can produce.

Three dialects describe the same concept with different field names:

- compact activity feed (``get test-results activities --compact``)::

    {"testRuns": [{"activities": [
        {"title": "...", "startTime": 1700000000.1,
         "isAssociatedWithFailure": false, "childActivities": [...]}]}]}

- action log (``get log --type action --compact``): sections carrying
  ``testDetails.testName``, a numeric ``startTime`` and nested ``subsections``.

- legacy object graph (``get object --legacy``): every value is wrapped as
  ``{"_value": ...}`` or ``{"_values": [...]}`` and objects are typed via
  ``{"_type": {"_name": ...}}``.

Each decoder returns :class:`ActivityRun` values and never raises on bad
input; an unreadable document simply yields nothing.
"""
from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from xcresult_explorer.timeline import ActivityRecord, ActivityRun

# (title, start_time, is_associated_with_failure, raw children)
_RawActivity = tuple[str, Optional[float], Optional[bool], list[Any]]

_OFFSET_NO_COLON_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def _number(value: Any) -> Optional[float]:
    """Numeric timestamp from a JSON number or numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def parse_iso_timestamp(ts: Any) -> Optional[float]:
    """Parse an ISO-8601 timestamp into epoch seconds."""
    if not isinstance(ts, str) or not ts:
        return None
    ts = ts.strip()
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    ts = _OFFSET_NO_COLON_RE.sub(r"\1:\2", ts)
    try:
        return datetime.fromisoformat(ts).timestamp()
    except (ValueError, TypeError):
        return None


def _build_records(
    raw_items: list[Any],
    read: Callable[[Any], Optional[_RawActivity]],
) -> tuple[ActivityRecord, ...]:
    """Build nested records bottom-up without recursion.

    ``read`` returns None for items that are not activities; those are
    dropped together with their subtrees.
    """
    built: dict[int, ActivityRecord] = {}
    decoded: dict[int, _RawActivity] = {}
    stack: list[tuple[Any, bool]] = [(item, False) for item in reversed(raw_items)]
    while stack:
        raw, children_done = stack.pop()
        if not children_done:
            fields = read(raw)
            if fields is None:
                continue
            decoded[id(raw)] = fields
            stack.append((raw, True))
            for child in reversed(fields[3]):
                stack.append((child, False))
            continue
        title, start, failure, raw_children = decoded.pop(id(raw))
        built[id(raw)] = ActivityRecord(
            title=title,
            start_time=start,
            is_associated_with_failure=failure,
            child_activities=tuple(
                built.pop(id(c)) for c in raw_children if id(c) in built
            ),
        )
    return tuple(built.pop(id(item)) for item in raw_items if id(item) in built)


def _iter_objects(root: Any) -> Iterator[dict[str, Any]]:
    """Yield every JSON object in a document, pre-order, in document order."""
    stack: list[Any] = [root]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            yield current
            stack.extend(reversed(list(current.values())))
        elif isinstance(current, list):
            stack.extend(reversed(current))


def _test_name_needle(test_identifier: str) -> str:
    return test_identifier.split("/")[-1] or test_identifier


# ---------------------------------------------------------------------------
# Compact activity feed
# ---------------------------------------------------------------------------


def _read_compact(raw: Any) -> Optional[_RawActivity]:
    if not isinstance(raw, dict) or not isinstance(raw.get("title"), str):
        return None
    failure = raw.get("isAssociatedWithFailure")
    children = raw.get("childActivities")
    return (
        raw["title"],
        _number(raw.get("startTime")),
        failure if isinstance(failure, bool) else None,
        children if isinstance(children, list) else [],
    )


def parse_compact_activities(text: str) -> list[ActivityRun]:
    """Decode the compact per-test activity feed, one run per test run."""
    data = _loads(text)
    if not isinstance(data, dict) or not isinstance(data.get("testRuns"), list):
        return []

    runs: list[ActivityRun] = []
    for test_run in data["testRuns"]:
        if not isinstance(test_run, dict):
            continue
        activities = test_run.get("activities")
        if not isinstance(activities, list):
            continue
        runs.append(ActivityRun(activities=_build_records(activities, _read_compact)))
    return runs


# ---------------------------------------------------------------------------
# Action log
# ---------------------------------------------------------------------------


def _read_subsection(raw: Any) -> Optional[_RawActivity]:
    if not isinstance(raw, dict) or not isinstance(raw.get("title"), str):
        return None
    children = raw.get("subsections")
    return (
        raw["title"],
        _number(raw.get("startTime")),
        None,
        children if isinstance(children, list) else [],
    )


def parse_action_log(text: str, test_identifier: str) -> list[ActivityRun]:
    """Extract the step log of one test from the action log.

    A section belongs to the test when its ``testDetails.testName`` contains
    the last path component of ``test_identifier``. The section's own start
    time is the baseline for its subsections.
    """
    data = _loads(text)
    if data is None:
        return []

    needle = _test_name_needle(test_identifier)
    runs: list[ActivityRun] = []
    stack: list[Any] = [data]
    while stack:
        current = stack.pop()
        if isinstance(current, list):
            stack.extend(reversed(current))
            continue
        if not isinstance(current, dict):
            continue
        details = current.get("testDetails")
        if (
            isinstance(details, dict)
            and isinstance(details.get("testName"), str)
            and needle in details["testName"]
        ):
            subsections = current.get("subsections")
            runs.append(ActivityRun(
                activities=_build_records(
                    subsections if isinstance(subsections, list) else [],
                    _read_subsection,
                ),
                baseline=_number(current.get("startTime")),
            ))
            continue
        stack.extend(reversed(list(current.values())))
    return runs


# ---------------------------------------------------------------------------
# Legacy object graph
# ---------------------------------------------------------------------------


def _value(obj: Any, *path: str) -> Any:
    """Follow ``path`` through nested objects, then unwrap ``_value``."""
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    if isinstance(obj, dict):
        return obj.get("_value")
    return None


def _values(obj: Any, key: str) -> list[Any]:
    wrapped = obj.get(key) if isinstance(obj, dict) else None
    if isinstance(wrapped, dict) and isinstance(wrapped.get("_values"), list):
        return wrapped["_values"]
    return []


def _type_name(obj: dict[str, Any]) -> Optional[str]:
    type_info = obj.get("_type")
    if isinstance(type_info, dict):
        return type_info.get("_name")
    return None


def find_legacy_tests_ref(root: Any) -> Optional[str]:
    """Object id of the tests object referenced by the first action."""
    actions = _values(root, "actions")
    if not actions:
        return None
    tests_id = _value(actions[0], "actionResult", "testsRef", "id")
    return tests_id if isinstance(tests_id, str) else None


def find_legacy_summary_id(tests_json: Any, test_identifier: str) -> Optional[str]:
    """Summary object id for the test whose name matches ``test_identifier``."""
    needle = _test_name_needle(test_identifier)
    for obj in _iter_objects(tests_json):
        if _type_name(obj) != "ActionTestMetadata":
            continue
        name = _value(obj, "name")
        if not isinstance(name, str) or needle not in name:
            continue
        summary_id = _value(obj, "summaryRef", "id")
        if isinstance(summary_id, str):
            return summary_id
    return None


def _read_legacy_activity(raw: Any) -> Optional[_RawActivity]:
    if not isinstance(raw, dict):
        return None
    title = _value(raw, "title")
    return (
        title if isinstance(title, str) else "Unknown Activity",
        parse_iso_timestamp(_value(raw, "start")),
        True if _values(raw, "failureSummaryIDs") else None,
        _values(raw, "subactivities"),
    )


def parse_legacy_summary(summary_json: Any) -> Optional[ActivityRun]:
    """Decode an ``ActionTestSummary`` object into a run.

    The summary's own ``start`` is the baseline.
    """
    if not isinstance(summary_json, dict):
        return None
    activities = _values(summary_json, "activitySummaries")
    return ActivityRun(
        activities=_build_records(activities, _read_legacy_activity),
        baseline=parse_iso_timestamp(_value(summary_json, "start")),
    )


def loads_legacy(text: str) -> Any:
    """Decode a legacy object document; None if it is not valid JSON."""
    return _loads(text)
