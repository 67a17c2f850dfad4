"""Render a QualityReport as JSON or as plain-text tables."""

from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from pathlib import Path

from rich import box
from rich.console import Console, RenderableType
from rich.table import Table
from rich.text import Text

from qualitygate.errors import ConfigError
from qualitygate.policy.models import GateDecision
from qualitygate.report.models import QualityReport
from qualitygate.scanner.models import Severity

FORMATS = ("text", "json")

# Fixed width keeps text output identical across terminals
TEXT_WIDTH = 120

SEVERITY_COLORS = {
    Severity.INFO: "blue",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "red",
}

_SEVERITY_ORDER = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
}


def render(report: QualityReport, fmt: str = "text") -> str:
    """Serialize a report. Same report and format give byte-identical output."""
    if fmt == "json":
        return json.dumps(report.to_dict(), indent=2, sort_keys=True) + "\n"
    if fmt == "text":
        return _render_text(report)
    raise ConfigError(f"Unknown report format: {fmt}")


def load_report(text: str) -> QualityReport:
    """Parse a JSON-rendered report back into a QualityReport."""
    try:
        return QualityReport.from_dict(json.loads(text))
    except (ValueError, KeyError, TypeError) as e:
        raise ConfigError(f"Not a qualitygate JSON report: {e}") from e


def _render_text(report: QualityReport) -> str:
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=TEXT_WIDTH,
        color_system=None,
        force_terminal=False,
        highlight=False,
        emoji=False,
        soft_wrap=False,
    )
    for renderable in build_renderables(report, color=False):
        console.print(renderable)
    return buffer.getvalue()


def build_renderables(
    report: QualityReport, color: bool = True
) -> list[RenderableType]:
    """Report sections as rich renderables, shared by files and the terminal."""
    scan = report.scan_report
    parts: list[RenderableType] = []

    title_style = "bold" if color else ""
    parts.append(Text(f"Quality report {report.run_id}", style=title_style))
    parts.append(Text(f"Target:   {scan.target}"))
    parts.append(Text(f"Started:  {_iso(scan.started_at)}"))
    parts.append(Text(f"Finished: {_iso(scan.finished_at)}"))
    parts.append(Text(""))

    scores = Table(title="Scores", box=box.ASCII)
    scores.add_column("Category")
    scores.add_column("Points", justify="right")
    scores.add_column("Max", justify="right")
    for s in report.scores:
        scores.add_row(s.category.value, f"{s.points:.1f}", f"{s.max_points:.0f}")
    scores.add_row(
        Text("overall", style="bold" if color else ""),
        f"{report.overall_score:.1f}",
        "100",
    )
    parts.append(scores)

    if scan.findings:
        findings = Table(title=f"Findings ({len(scan.findings)})", box=box.ASCII)
        findings.add_column("Severity", width=8)
        findings.add_column("File")
        findings.add_column("Line", justify="right")
        findings.add_column("Check")
        findings.add_column("Message", max_width=60)
        ordered = sorted(
            scan.findings,
            key=lambda f: (_SEVERITY_ORDER[f.severity], *f.sort_key),
        )
        for f in ordered:
            style = SEVERITY_COLORS[f.severity] if color else ""
            findings.add_row(
                Text(f.severity.value, style=style),
                Text(_shorten_path(f.file_path, scan.target)),
                str(f.line),
                Text(f.check_id),
                Text(f.message),
            )
        parts.append(findings)
    else:
        parts.append(Text("No findings.", style="green" if color else ""))

    parts.append(Text(""))
    passed = report.gate_decision == GateDecision.PASS
    verdict = "PASS" if passed else "FAIL"
    verdict_style = ("bold green" if passed else "bold red") if color else ""
    parts.append(Text(f"Gate: {verdict}", style=verdict_style))
    for reason in report.reasons:
        parts.append(Text(f"  - {reason}"))

    return parts


def _iso(timestamp: float) -> str:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="seconds")


def _shorten_path(file_path: str, base_dir: str) -> str:
    """Shorten file path relative to scan directory."""
    path, base = Path(file_path), Path(base_dir)
    if path != base and path.is_relative_to(base):
        return str(path.relative_to(base))
    return file_path
