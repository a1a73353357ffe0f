"""Evaluate failure rules against a test's failure text."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from xcresult_explorer.diagnostics.rules import FailureRule, default_rules

UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class FailureClassification:
    """The category and one-line analysis chosen for a failure."""

    category: str
    analysis: str


@dataclass(frozen=True)
class FailureAnalysis:
    """Classification plus every applicable suggestion."""

    category: str
    analysis: str
    suggestions: list[str] = field(default_factory=list)

    @property
    def classified(self) -> bool:
        return self.category != UNCLASSIFIED


class DiagnosticsEngine:
    """Ordered rule cascade.

    The first matching rule that has a category supplies the analysis.
    Suggestions from every matching rule are concatenated in rule order.
    """

    def __init__(self, rules: Optional[Sequence[FailureRule]] = None):
        self._rules: list[FailureRule] = list(rules) if rules is not None else default_rules()

    @property
    def rules(self) -> tuple[FailureRule, ...]:
        return tuple(self._rules)

    def with_rules(self, extra: Sequence[FailureRule]) -> DiagnosticsEngine:
        """Return a new engine with ``extra`` appended after the current rules."""
        return DiagnosticsEngine([*self._rules, *extra])

    def classify(self, text: str) -> FailureClassification:
        for rule in self._rules:
            if rule.category is None or not rule.matches(text):
                continue
            analysis = rule.describe(text)
            if analysis:
                return FailureClassification(category=rule.category, analysis=analysis)
        return FailureClassification(
            category=UNCLASSIFIED,
            analysis=f"Test failed with error: {text}",
        )

    def suggest(self, text: str) -> list[str]:
        suggestions: list[str] = []
        for rule in self._rules:
            if rule.matches(text):
                suggestions.extend(rule.suggest(text))
        return suggestions

    def analyze(self, text: str) -> FailureAnalysis:
        classification = self.classify(text)
        return FailureAnalysis(
            category=classification.category,
            analysis=classification.analysis,
            suggestions=self.suggest(text),
        )


def classify(text: str) -> FailureClassification:
    """Classify ``text`` with the built-in rules."""
    return DiagnosticsEngine().classify(text)


def suggest(text: str) -> list[str]:
    """Suggestions for ``text`` from the built-in rules."""
    return DiagnosticsEngine().suggest(text)
