"""Tests for the failure diagnostics engine and suite hints."""

from __future__ import annotations

from pathlib import Path

import pytest

from xcresult_explorer.diagnostics import (
    UNCLASSIFIED,
    DiagnosticsEngine,
    SuiteHintRule,
    classify,
    suggest,
)
from xcresult_explorer.diagnostics.hints import (
    load_suite_hints,
    validate_hints,
)
from xcresult_explorer.diagnostics.rules import (
    extract_invalid_enum,
    extract_missing_key,
)
from xcresult_explorer.errors import HintsConfigError

MISSING_KEY_TEXT = (
    'APIModelTests.swift:42: failed: caught error: "keyNotFound(CodingKeys(stringValue: "userId", '
    'intValue: nil), Swift.DecodingError.Context(codingPath: [], debugDescription: '
    '"No value associated with key", underlyingError: nil))" DecodingError.keyNotFound'
)

INVALID_ENUM_TEXT = (
    'failed: caught error: "DecodingError.dataCorrupted(Swift.DecodingError.Context('
    'codingPath: [CodingKeys(stringValue: "source", intValue: nil)], debugDescription: '
    '"Cannot initialize EntrySource from invalid String value rule, expected one of type EntrySource"'
)

CORRUPTED_TEXT = (
    'DecodingError.dataCorrupted(Swift.DecodingError.Context(codingPath: [], '
    'debugDescription: "The given data was not valid JSON."))'
)

TYPE_MISMATCH_TEXT = (
    'DecodingError.typeMismatch(Swift.Int, Swift.DecodingError.Context(codingPath: '
    '[CodingKeys(stringValue: "count", intValue: nil)], debugDescription: "Expected to decode Int"))'
)


# ============================================================================
# Extraction
# ============================================================================


class TestExtraction:
    """Tests for value extraction from failure text."""

    def test_missing_key(self) -> None:
        assert extract_missing_key(MISSING_KEY_TEXT) == "userId"
        assert extract_missing_key("DecodingError.keyNotFound") is None

    def test_invalid_enum(self) -> None:
        assert extract_invalid_enum(INVALID_ENUM_TEXT) == ("EntrySource", "rule")

    def test_invalid_enum_value_stops_at_quote(self) -> None:
        text = 'Cannot initialize Mode from invalid String value fast"'
        assert extract_invalid_enum(text) == ("Mode", "fast")

    def test_invalid_enum_miss(self) -> None:
        assert extract_invalid_enum("Cannot initialize from invalid String value ,") is None


# ============================================================================
# Classification
# ============================================================================


class TestClassify:
    """Tests for the rule cascade's analysis."""

    def test_missing_key(self) -> None:
        result = classify(MISSING_KEY_TEXT)

        assert result.category == "missing_key"
        assert "userId" in result.analysis
        assert result.analysis == "JSON Decoding Error: Missing required key 'userId' in API response"

    def test_missing_key_without_extraction(self) -> None:
        result = classify("Swift.DecodingError.keyNotFound with no key details")
        assert result.analysis == "JSON Decoding Error: A required key is missing from the API response"

    def test_invalid_enum_value(self) -> None:
        result = classify(INVALID_ENUM_TEXT)

        assert result.category == "invalid_enum_value"
        assert result.analysis == "Data Corruption: Invalid enum value 'rule' for type 'EntrySource'"

    def test_invalid_enum_extraction_miss(self) -> None:
        text = "DecodingError.dataCorrupted: Cannot initialize from invalid String value"
        result = classify(text)

        assert result.category == "invalid_enum_value"
        assert result.analysis == "Data Corruption: Invalid enum value for unknown type"

    def test_generic_corruption(self) -> None:
        result = classify(CORRUPTED_TEXT)

        assert result.category == "data_corrupted"
        assert result.analysis == "JSON Decoding Error: Data format is corrupted or invalid"

    def test_type_mismatch(self) -> None:
        result = classify(TYPE_MISMATCH_TEXT)

        assert result.category == "type_mismatch"
        assert suggest(TYPE_MISMATCH_TEXT) == []

    def test_unclassified(self) -> None:
        result = classify("XCTAssertEqual failed: (\"1\") is not equal to (\"2\")")

        assert result.category == UNCLASSIFIED
        assert result.analysis == 'Test failed with error: XCTAssertEqual failed: ("1") is not equal to ("2")'

    def test_enum_phrase_without_marker_is_unclassified(self) -> None:
        text = "Cannot initialize EntrySource from invalid String value rule, expected one of type EntrySource"
        assert classify(text).category == UNCLASSIFIED

    @pytest.mark.parametrize(
        "text",
        [MISSING_KEY_TEXT, INVALID_ENUM_TEXT, CORRUPTED_TEXT, TYPE_MISMATCH_TEXT, "plain"],
    )
    def test_idempotent(self, text: str) -> None:
        engine = DiagnosticsEngine()
        assert engine.analyze(text) == engine.analyze(text)


# ============================================================================
# Suggestions
# ============================================================================


class TestSuggest:
    """Tests for suggestion accumulation."""

    def test_missing_key_suggestions(self) -> None:
        suggestions = suggest(MISSING_KEY_TEXT)

        assert len(suggestions) == 5
        assert any("userId" in s for s in suggestions)
        assert suggestions[-1] == "Check if the API response structure has changed"

    def test_missing_key_generic_suggestions(self) -> None:
        suggestions = suggest("DecodingError.keyNotFound")

        assert len(suggestions) == 4
        assert suggestions[0] == "Make the missing property optional in your data model"

    def test_invalid_enum_suggestions(self) -> None:
        suggestions = suggest(INVALID_ENUM_TEXT)

        assert suggestions == [
            "Add 'rule' as a new case to your EntrySource enum",
            "Implement a fallback/default case for unknown EntrySource values",
            "Check why the API is returning 'rule' instead of expected EntrySource values",
        ]

    def test_generic_corruption_suggestions(self) -> None:
        assert suggest(CORRUPTED_TEXT) == [
            "Validate the JSON structure matches your model",
            "Check for missing or extra fields in the response",
        ]

    def test_unmatched_text_has_no_suggestions(self) -> None:
        assert suggest("something else entirely") == []

    def test_analyze_combines(self) -> None:
        analysis = DiagnosticsEngine().analyze(MISSING_KEY_TEXT)

        assert analysis.classified
        assert analysis.category == "missing_key"
        assert len(analysis.suggestions) == 5


# ============================================================================
# Suite hints
# ============================================================================


class TestSuiteHintRule:
    """Tests for config-driven suite suggestions."""

    def test_suggestions_appended_after_builtin_rules(self) -> None:
        rule = SuiteHintRule(suite="APIModelTests", suggestions=["Review {suite}.swift"])
        engine = DiagnosticsEngine().with_rules([rule])

        suggestions = engine.suggest(MISSING_KEY_TEXT)

        assert len(suggestions) == 6
        assert suggestions[-1] == "Review APIModelTests.swift"

    def test_hint_rule_never_classifies(self) -> None:
        rule = SuiteHintRule(suite="LoginTests", suggestions=["Check credentials"])
        engine = DiagnosticsEngine().with_rules([rule])

        result = engine.analyze("LoginTests.swift:10: XCTAssertTrue failed")

        assert result.category == UNCLASSIFIED
        assert result.suggestions == ["Check credentials"]

    def test_with_rules_leaves_base_engine_untouched(self) -> None:
        engine = DiagnosticsEngine()
        extended = engine.with_rules([SuiteHintRule(suite="X", suggestions=["y"])])

        assert len(extended.rules) == len(engine.rules) + 1


class TestLoadSuiteHints:
    """Tests for loading suite hints YAML."""

    def test_load_valid(self, hints_yaml_path: Path) -> None:
        rules = load_suite_hints(hints_yaml_path)

        assert len(rules) == 1
        assert rules[0].suite == "APIModelTests"
        assert rules[0].suggest("APIModelTests")[1] == (
            "Check APIModelTests.swift around the failing line number for context"
        )

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_suite_hints(path) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(HintsConfigError, match="not found"):
            load_suite_hints(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("suites: [unclosed\n", encoding="utf-8")
        with pytest.raises(HintsConfigError, match="Invalid YAML"):
            load_suite_hints(path)

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(HintsConfigError, match="mapping"):
            load_suite_hints(path)

    def test_schema_violation(self, tmp_path: Path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text("suites:\n  - name: ''\n    suggestions: []\n", encoding="utf-8")
        with pytest.raises(HintsConfigError, match="validation failed"):
            load_suite_hints(path)

    def test_validate_hints_reports_unknown_keys(self) -> None:
        errors = validate_hints({"suites": [], "extra": True})
        assert errors

    def test_validate_hints_accepts_valid(self) -> None:
        assert validate_hints({"suites": [{"name": "A", "suggestions": ["b"]}]}) == []

    def test_example_file_is_valid(self) -> None:
        example = Path(__file__).parent.parent / "config" / "suite-hints.example.yaml"
        rules = load_suite_hints(example)
        assert [r.suite for r in rules] == ["NetworkingTests", "PersistenceTests"]
