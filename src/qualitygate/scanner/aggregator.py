"""Aggregator — merges scanner outputs into one ScanReport."""

from __future__ import annotations

from collections.abc import Sequence

from qualitygate.errors import ConfigError
from qualitygate.scanner.checks import REGISTRATION_ORDER
from qualitygate.scanner.models import ScannerResult, ScanReport


def aggregate(
    results: Sequence[ScannerResult],
    target: str,
    started_at: float,
    finished_at: float,
    order: Sequence[str] = REGISTRATION_ORDER,
) -> ScanReport:
    """Merge per-scanner findings in fixed registration order.

    Scanners missing from ``order`` follow the registered ones in the order
    they were given. Each scanner's own finding order is preserved.
    """
    if not results:
        raise ConfigError("No scanners registered")

    rank = {name: i for i, name in enumerate(order)}
    ranked = sorted(
        enumerate(results),
        key=lambda pair: (rank.get(pair[1].scanner_name, len(rank)), pair[0]),
    )

    findings = []
    for _, result in ranked:
        findings.extend(result.findings)

    return ScanReport(
        target=target,
        findings=tuple(findings),
        started_at=started_at,
        finished_at=finished_at,
    )
