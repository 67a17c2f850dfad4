"""Quality pipeline — scan, aggregate, score, gate, assemble the report."""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Sequence

from qualitygate.context import RunContext
from qualitygate.policy.gate import decide
from qualitygate.policy.models import Profile
from qualitygate.policy.scorer import score
from qualitygate.report.models import QualityReport
from qualitygate.scanner.aggregator import aggregate
from qualitygate.scanner.checks import Scanner, default_scanners
from qualitygate.scanner.engine import ScanEngine
from qualitygate.scanner.models import ScanReport

logger = logging.getLogger(__name__)


class QualityPipeline:
    """Runs one profile against one target. Holds no state between runs."""

    def __init__(
        self,
        profile: Profile | None = None,
        scanners: Sequence[Scanner] | None = None,
    ) -> None:
        self._profile = profile or Profile()
        if scanners is None:
            scanners = default_scanners(self._profile.rules)
        self._engine = ScanEngine(scanners=scanners, config=self._profile.scan)

    @property
    def profile(self) -> Profile:
        return self._profile

    def cancel(self) -> None:
        """Abandon in-flight scanners; the run still reaches gate and report."""
        self._engine.cancel()

    def run(self, context: RunContext) -> QualityReport:
        """Execute the full pipeline for context.target.

        Raises ScanFault only when every scanner crashed.
        """
        target = context.target.resolve()
        logger.info(
            "Run %s: scanning %s with profile '%s'",
            context.run_id,
            target,
            self._profile.name,
        )

        targets = self._engine.collect_targets(target, ignore=[context.report_path])
        results = self._engine.run(targets)
        scan_report = aggregate(
            results,
            target=str(target),
            started_at=context.started_at,
            finished_at=time.time(),
        )
        scan_report = self._drop_disabled(scan_report)

        scores, overall = score(scan_report, self._profile.scoring)
        gate = decide(scores, scan_report.findings, self._profile.gate)
        logger.info(
            "Run %s: %d finding(s), score %.1f, gate %s",
            context.run_id,
            len(scan_report.findings),
            overall,
            gate.decision.value,
        )

        return QualityReport(
            run_id=context.run_id,
            scan_report=scan_report,
            scores=scores,
            overall_score=overall,
            gate_decision=gate.decision,
            reasons=gate.reasons,
        )

    def _drop_disabled(self, report: ScanReport) -> ScanReport:
        disabled = self._profile.disabled
        if not disabled:
            return report
        kept = tuple(f for f in report.findings if f.check_id not in disabled)
        return dataclasses.replace(report, findings=kept)
