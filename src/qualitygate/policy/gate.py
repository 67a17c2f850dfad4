"""Gate — turns scores and findings into a pass/fail decision with reasons."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from qualitygate.policy.models import GateDecision, GatePolicy
from qualitygate.policy.scorer import CategoryScore, overall_score
from qualitygate.scanner.models import Finding, Severity


@dataclass(frozen=True)
class GateResult:
    """Decision plus every rule that was violated, in evaluation order."""

    decision: GateDecision
    reasons: tuple[str, ...] = ()


def decide(
    scores: Iterable[CategoryScore],
    findings: Sequence[Finding],
    policy: GatePolicy | None = None,
) -> GateResult:
    """Evaluate every gate rule and collect all violations.

    Fails when the overall score is below min_overall_score or when critical
    findings exceed max_critical_findings. Critical findings veto regardless
    of the score.
    """
    policy = policy or GatePolicy()
    reasons: list[str] = []

    overall = overall_score(scores)
    if overall < policy.min_overall_score:
        reasons.append(
            f"Overall score {overall:.1f} is below the minimum of "
            f"{policy.min_overall_score:g}"
        )

    critical = [f for f in findings if f.severity == Severity.CRITICAL]
    if len(critical) > policy.max_critical_findings:
        checks = sorted({f.check_id for f in critical})
        reasons.append(
            f"{len(critical)} critical finding(s) exceed the maximum of "
            f"{policy.max_critical_findings} ({', '.join(checks)})"
        )

    decision = GateDecision.FAIL if reasons else GateDecision.PASS
    return GateResult(decision=decision, reasons=tuple(reasons))
