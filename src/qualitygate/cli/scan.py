"""CLI command: qualitygate scan <target> — run the quality gate."""

from __future__ import annotations

import dataclasses
import signal
import sys
from pathlib import Path

import click
from rich.markup import escape

from qualitygate.cli.common import console, fail, resolve_profile
from qualitygate.context import RunContext
from qualitygate.errors import ReportIOFault, ScanFault
from qualitygate.pipeline import QualityPipeline
from qualitygate.policy.models import Profile
from qualitygate.report.renderer import FORMATS, build_renderables, render
from qualitygate.report.writer import persist


@click.command()
@click.argument("target", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(FORMATS),
    default="text",
    show_default=True,
    help="Report artifact format.",
)
@click.option(
    "--min-score",
    type=click.FloatRange(0, 100),
    help="Minimum overall score required to pass.",
)
@click.option(
    "--max-critical",
    type=click.IntRange(min=0),
    help="Maximum number of critical findings allowed.",
)
@click.option(
    "--out",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Report destination (default: ./quality-report.<ext>).",
)
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Glob patterns to exclude from scan.",
)
@click.option("--workers", type=click.IntRange(min=1), help="Scanner worker processes.")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    help="Per-file scanner timeout in seconds.",
)
@click.pass_context
def scan(
    ctx: click.Context,
    target: Path,
    fmt: str,
    min_score: float | None,
    max_critical: int | None,
    out: Path | None,
    exclude: tuple[str, ...],
    workers: int | None,
    timeout: float | None,
) -> None:
    """Scan TARGET, score it, and exit non-zero if the gate fails."""
    profile = _apply_overrides(
        resolve_profile(ctx),
        min_score=min_score,
        max_critical=max_critical,
        exclude=exclude,
        workers=workers,
        timeout=timeout,
    )

    context = RunContext(target=target, output_format=fmt, destination=out)
    console.print(
        f"[bold]qualitygate[/bold] scanning [cyan]{escape(str(target))}[/cyan] "
        f"with profile [cyan]{escape(profile.name)}[/cyan]\n"
    )

    pipeline = QualityPipeline(profile)

    def _signal_handler(signum: int, frame: object) -> None:
        console.print("\n[dim]Cancelling...[/dim]")
        pipeline.cancel()

    previous = {
        sig: signal.signal(sig, _signal_handler)
        for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        report = pipeline.run(context)
    except ScanFault as e:
        console.print("[red]Internal scanner fault: every scanner crashed[/red]")
        for finding in e.findings:
            console.print(f"  - {escape(finding.file_path)}: {escape(finding.message)}")
        sys.exit(e.exit_code)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    for renderable in build_renderables(report):
        console.print(renderable)

    artifact = render(report, fmt)
    try:
        path = persist(artifact, context.report_path)
    except ReportIOFault as e:
        # Fall back to stdout so the decision and reasons are never lost
        click.echo(artifact, nl=False)
        fail(e)

    console.print(f"\nReport written to [cyan]{escape(str(path))}[/cyan]")

    if not report.passed:
        sys.exit(1)


def _apply_overrides(
    profile: Profile,
    min_score: float | None,
    max_critical: int | None,
    exclude: tuple[str, ...],
    workers: int | None,
    timeout: float | None,
) -> Profile:
    """CLI flags win over configuration file values."""
    gate_changes: dict = {}
    if min_score is not None:
        gate_changes["min_overall_score"] = min_score
    if max_critical is not None:
        gate_changes["max_critical_findings"] = max_critical

    scan_changes: dict = {}
    if exclude:
        scan_changes["exclude"] = profile.scan.exclude + tuple(exclude)
    if workers is not None:
        scan_changes["workers"] = workers
    if timeout is not None:
        scan_changes["timeout"] = timeout

    return dataclasses.replace(
        profile,
        gate=dataclasses.replace(profile.gate, **gate_changes),
        scan=dataclasses.replace(profile.scan, **scan_changes),
    )
