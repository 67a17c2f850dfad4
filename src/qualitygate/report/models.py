"""Quality report — the terminal, immutable artifact of a run."""

from __future__ import annotations

from dataclasses import dataclass

from qualitygate.policy.models import GateDecision
from qualitygate.policy.scorer import CategoryScore
from qualitygate.scanner.models import ScanReport

REPORT_VERSION = 1


@dataclass(frozen=True)
class QualityReport:
    """Findings, scores and the gate decision for one run."""

    run_id: str
    scan_report: ScanReport
    scores: tuple[CategoryScore, ...]
    overall_score: float
    gate_decision: GateDecision
    reasons: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return self.gate_decision == GateDecision.PASS

    def to_dict(self) -> dict:
        return {
            "version": REPORT_VERSION,
            "run_id": self.run_id,
            "scan_report": self.scan_report.to_dict(),
            "scores": [s.to_dict() for s in self.scores],
            "overall_score": self.overall_score,
            "gate_decision": self.gate_decision.value,
            "reasons": list(self.reasons),
        }

    @classmethod
    def from_dict(cls, data: dict) -> QualityReport:
        return cls(
            run_id=data["run_id"],
            scan_report=ScanReport.from_dict(data["scan_report"]),
            scores=tuple(CategoryScore.from_dict(s) for s in data["scores"]),
            overall_score=float(data["overall_score"]),
            gate_decision=GateDecision(data["gate_decision"]),
            reasons=tuple(data.get("reasons", [])),
        )
