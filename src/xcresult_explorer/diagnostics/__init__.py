"""Rule-based failure classification and remediation suggestions."""
from __future__ import annotations

from xcresult_explorer.diagnostics.engine import (
    UNCLASSIFIED,
    DiagnosticsEngine,
    FailureAnalysis,
    FailureClassification,
    classify,
    suggest,
)
from xcresult_explorer.diagnostics.rules import FailureRule, SuiteHintRule

__all__ = [
    "UNCLASSIFIED",
    "DiagnosticsEngine",
    "FailureAnalysis",
    "FailureClassification",
    "FailureRule",
    "SuiteHintRule",
    "classify",
    "suggest",
]
