"""Decode xcresulttool JSON output into result documents."""
from __future__ import annotations

import json
import re
from typing import Any

from xcresult_explorer.errors import MalformedDocument
from xcresult_explorer.results import TestResults, TestResultsSummary

# xcresulttool occasionally emits doubles with far more precision than a
# double can carry; round them before handing the text to the decoder.
# String literals are matched first so their contents are left alone.
_OVERPRECISE_FLOAT_RE = re.compile(r'"(?:\\.|[^"\\])*"|(-?\d+\.\d{10,})')


def clean_json_floats(text: str) -> str:
    """Round numeric literals with ten or more fractional digits to six.

    Digits inside JSON strings (failure messages, identifiers) are kept verbatim.
    """

    def _round(match: re.Match[str]) -> str:
        if match.group(1) is None:
            return match.group(0)
        try:
            return f"{float(match.group(1)):.6f}"
        except ValueError:
            return match.group(1)

    return _OVERPRECISE_FLOAT_RE.sub(_round, text)


def _decode(text: str, document: str) -> dict[str, Any]:
    try:
        data = json.loads(clean_json_floats(text))
    except json.JSONDecodeError as e:
        raise MalformedDocument(document, f"invalid JSON ({e})") from e
    if not isinstance(data, dict):
        raise MalformedDocument(document, f"expected a JSON object, got {type(data).__name__}")
    return data


def parse_summary(text: str) -> TestResultsSummary:
    """Parse the output of ``xcresulttool get test-results summary``.

    Raises:
        MalformedDocument: If the text is not valid JSON or lacks required fields
    """
    data = _decode(text, "summary")
    try:
        return TestResultsSummary.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedDocument("summary", str(e).strip("'\"")) from e


def parse_tests(text: str) -> TestResults:
    """Parse the output of ``xcresulttool get test-results tests``.

    Raises:
        MalformedDocument: If the text is not valid JSON or lacks required fields
    """
    data = _decode(text, "tests")
    try:
        return TestResults.from_dict(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedDocument("tests", str(e).strip("'\"")) from e
