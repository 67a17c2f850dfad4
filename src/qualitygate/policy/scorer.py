"""Scorer — pure conversion of findings into weighted category scores."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from qualitygate.policy.models import ScoringPolicy
from qualitygate.scanner.models import Category, Finding, ScanReport


@dataclass(frozen=True)
class CategoryScore:
    """Points earned in one category out of its weight."""

    category: Category
    points: float
    max_points: float

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "points": self.points,
            "max_points": self.max_points,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CategoryScore:
        return cls(
            category=Category(data["category"]),
            points=float(data["points"]),
            max_points=float(data["max_points"]),
        )


def category_penalties(
    findings: Iterable[Finding], policy: ScoringPolicy
) -> dict[Category, float]:
    """Sum of severity weights per category."""
    penalties: dict[Category, float] = defaultdict(float)
    for finding in findings:
        penalties[finding.category] += policy.penalty(finding.severity)
    return penalties


def score(
    report: ScanReport, policy: ScoringPolicy | None = None
) -> tuple[tuple[CategoryScore, ...], float]:
    """Score a report. Returns category scores (in category order) and overall.

    points = max_points * (1 - min(1, penalty / max_points)); a category with
    no findings keeps its full weight and a zero-weight category scores 0 of 0.
    """
    policy = policy or ScoringPolicy()
    penalties = category_penalties(report.findings, policy)

    scores: list[CategoryScore] = []
    for category in Category:
        max_points = float(policy.weight(category))
        if max_points <= 0:
            points = 0.0
        else:
            ratio = min(1.0, penalties.get(category, 0.0) / max_points)
            points = max_points * (1.0 - ratio)
        scores.append(
            CategoryScore(category=category, points=points, max_points=max_points)
        )

    return tuple(scores), overall_score(scores)


def overall_score(scores: Iterable[CategoryScore]) -> float:
    """Weighted sum of category points; weights sum to 100."""
    return sum(s.points for s in scores)
