"""Policy data models — scoring weights, gate thresholds, and profiles."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from qualitygate.scanner.models import Category, ScanConfig, Severity
from qualitygate.scanner.rules import DEFAULT_RULES, Rule


class GateDecision(enum.Enum):
    """Binary admission outcome."""

    PASS = "pass"
    FAIL = "fail"


def _default_weights() -> dict[Category, int]:
    return {
        Category.STYLE: 20,
        Category.SECURITY: 40,
        Category.COMPLEXITY: 20,
        Category.COVERAGE: 20,
    }


def _default_severity_weights() -> dict[Severity, float]:
    return {
        Severity.INFO: 1.0,
        Severity.WARNING: 3.0,
        Severity.CRITICAL: 10.0,
    }


@dataclass(frozen=True)
class ScoringPolicy:
    """Category weights (summing to 100) and per-severity penalties."""

    weights: dict[Category, int] = field(default_factory=_default_weights)
    severity_weights: dict[Severity, float] = field(
        default_factory=_default_severity_weights
    )

    def weight(self, category: Category) -> int:
        return self.weights.get(category, 0)

    def penalty(self, severity: Severity) -> float:
        return self.severity_weights.get(severity, 0.0)


@dataclass(frozen=True)
class GatePolicy:
    """Pass/fail thresholds."""

    min_overall_score: float = 80.0
    max_critical_findings: int = 0


@dataclass(frozen=True)
class Profile:
    """A complete run configuration: what to scan, how to score, when to fail."""

    name: str = "default"
    scan: ScanConfig = field(default_factory=ScanConfig)
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)
    gate: GatePolicy = field(default_factory=GatePolicy)
    rules: tuple[Rule, ...] = tuple(DEFAULT_RULES)
    disabled: frozenset[str] = frozenset()
    description: str = ""
    inherit: tuple[str, ...] = ()
