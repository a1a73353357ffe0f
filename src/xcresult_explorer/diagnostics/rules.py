"""Failure classification rules.

Each rule looks at the raw failure text of a test and can:
- claim a diagnostic category with a one-line analysis (``describe``)
- contribute remediation suggestions (``suggest``)

Rules never raise when an expected value cannot be extracted from the text;
they fall back to generic wording instead.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

KEY_NOT_FOUND_MARKER = "DecodingError.keyNotFound"
DATA_CORRUPTED_MARKER = "DecodingError.dataCorrupted"
TYPE_MISMATCH_MARKER = "DecodingError.typeMismatch"

_ENUM_PREFIX = "Cannot initialize "
_ENUM_INFIX = " from invalid String value "

_MISSING_KEY_RE = re.compile(r'stringValue: "([^"]+)"')
_INVALID_ENUM_RE = re.compile(
    re.escape(_ENUM_PREFIX) + r"(.+?)" + re.escape(_ENUM_INFIX) + r'([^,"]*)'
)


def extract_missing_key(text: str) -> Optional[str]:
    """Return the coding key named in a keyNotFound error."""
    m = _MISSING_KEY_RE.search(text)
    return m.group(1) if m else None


def extract_invalid_enum(text: str) -> Optional[tuple[str, str]]:
    """Return ``(type_name, raw_value)`` from an invalid enum error.

    The raw value runs up to the next comma or double quote.
    """
    m = _INVALID_ENUM_RE.search(text)
    if not m:
        return None
    type_name = m.group(1).strip()
    raw_value = m.group(2).strip()
    if not type_name or not raw_value:
        return None
    return type_name, raw_value


def _has_enum_phrase(text: str) -> bool:
    return "Cannot initialize" in text and "from invalid String value" in text


class FailureRule:
    """Base class for failure rules.

    Rules with ``category = None`` only contribute suggestions and are
    skipped when picking the analysis for a failure.
    """

    category: Optional[str] = None

    def matches(self, text: str) -> bool:
        raise NotImplementedError

    def describe(self, text: str) -> Optional[str]:
        return None

    def suggest(self, text: str) -> list[str]:
        return []


class MissingKeyRule(FailureRule):
    """A required JSON key was missing while decoding."""

    category = "missing_key"

    def matches(self, text: str) -> bool:
        return KEY_NOT_FOUND_MARKER in text

    def describe(self, text: str) -> Optional[str]:
        key = extract_missing_key(text)
        if key:
            return f"JSON Decoding Error: Missing required key '{key}' in API response"
        return "JSON Decoding Error: A required key is missing from the API response"

    def suggest(self, text: str) -> list[str]:
        key = extract_missing_key(text)
        if key:
            suggestions = [
                f"Make the '{key}' property optional in your data model",
                f"Add a default value for the '{key}' property in your JSON response",
                f"Check if the API endpoint is missing the '{key}' field in its response",
            ]
        else:
            suggestions = [
                "Make the missing property optional in your data model",
                "Add a default value for the missing property in your JSON response",
            ]
        suggestions.append("Verify your API mock data includes all required fields")
        suggestions.append("Check if the API response structure has changed")
        return suggestions


class InvalidEnumValueRule(FailureRule):
    """A string could not be decoded into any case of an enum."""

    category = "invalid_enum_value"

    def matches(self, text: str) -> bool:
        return DATA_CORRUPTED_MARKER in text and _has_enum_phrase(text)

    def describe(self, text: str) -> Optional[str]:
        extracted = extract_invalid_enum(text)
        if extracted:
            type_name, raw_value = extracted
            return f"Data Corruption: Invalid enum value '{raw_value}' for type '{type_name}'"
        return "Data Corruption: Invalid enum value for unknown type"

    def suggest(self, text: str) -> list[str]:
        extracted = extract_invalid_enum(text)
        if extracted:
            type_name, raw_value = extracted
            return [
                f"Add '{raw_value}' as a new case to your {type_name} enum",
                f"Implement a fallback/default case for unknown {type_name} values",
                f"Check why the API is returning '{raw_value}' instead of expected {type_name} values",
            ]
        return [
            "Add the new enum case to your data model",
            "Implement a fallback/default case for unknown values",
            "Check if the API is returning unexpected string values",
        ]


class CorruptedDataRule(FailureRule):
    """Data was corrupted in some way other than an unknown enum value."""

    category = "data_corrupted"

    def matches(self, text: str) -> bool:
        return DATA_CORRUPTED_MARKER in text and not _has_enum_phrase(text)

    def describe(self, text: str) -> Optional[str]:
        return "JSON Decoding Error: Data format is corrupted or invalid"

    def suggest(self, text: str) -> list[str]:
        return [
            "Validate the JSON structure matches your model",
            "Check for missing or extra fields in the response",
        ]


class TypeMismatchRule(FailureRule):
    category = "type_mismatch"

    def matches(self, text: str) -> bool:
        return TYPE_MISMATCH_MARKER in text

    def describe(self, text: str) -> Optional[str]:
        return "JSON Decoding Error: Expected data type doesn't match the actual type in response"


@dataclass
class SuiteHintRule(FailureRule):
    """Extra review suggestions for failures coming from a named test suite.

    ``{suite}`` in a suggestion is replaced with the suite name.
    """

    suite: str
    suggestions: list[str] = field(default_factory=list)

    def matches(self, text: str) -> bool:
        return bool(self.suite) and self.suite in text

    def suggest(self, text: str) -> list[str]:
        return [s.replace("{suite}", self.suite) for s in self.suggestions]


def default_rules() -> list[FailureRule]:
    """The built-in decoding rules, in evaluation order."""
    return [
        MissingKeyRule(),
        InvalidEnumValueRule(),
        CorruptedDataRule(),
        TypeMismatchRule(),
    ]
