"""Load suite-specific suggestion rules from a YAML file.

Example::

    suites:
      - name: NetworkingTests
        suggestions:
          - "Check if your endpoints return the expected response structure"
          - "Review {suite}.swift for the specific test expectations"
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from xcresult_explorer.diagnostics.rules import SuiteHintRule
from xcresult_explorer.errors import HintsConfigError

SCHEMA_NAME = "suite-hints.schema.json"


def _get_schema_dir() -> Path:
    return Path(__file__).parent.parent / "schemas"


def load_schema() -> dict[str, Any]:
    """Load the suite hints JSON schema shipped with the package."""
    schema_path = _get_schema_dir() / SCHEMA_NAME
    return json.loads(schema_path.read_text(encoding="utf-8"))


def validate_hints(data: Any) -> list[str]:
    """Validate decoded hints data. Returns list of errors (empty if valid)."""
    validator = Draft202012Validator(load_schema())
    return [f"{error.json_path}: {error.message}" for error in validator.iter_errors(data)]


def rules_from_dict(data: dict[str, Any]) -> list[SuiteHintRule]:
    return [
        SuiteHintRule(suite=entry["name"], suggestions=list(entry["suggestions"]))
        for entry in data.get("suites", [])
    ]


def load_suite_hints(path: Path) -> list[SuiteHintRule]:
    """Load and validate a suite hints YAML file.

    Raises:
        HintsConfigError: If the file is missing, is not valid YAML, or does
            not match the suite hints schema
    """
    if not path.exists():
        raise HintsConfigError(f"Suite hints file not found: {path}")

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise HintsConfigError(f"Cannot read suite hints file {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise HintsConfigError(f"Invalid YAML in suite hints file {path}:\n{e}") from e

    if data is None:
        return []

    if not isinstance(data, dict):
        raise HintsConfigError(
            f"Suite hints file must contain a YAML mapping, got {type(data).__name__}: {path}"
        )

    errors = validate_hints(data)
    if errors:
        error_details = "\n".join(f"  - {e}" for e in errors[:5])
        raise HintsConfigError(f"Suite hints validation failed for {path}:\n{error_details}")

    return rules_from_dict(data)
