"""CLI command: qualitygate rules — list the effective check table."""

from __future__ import annotations

import click
from rich.table import Table
from rich.text import Text

from qualitygate.cli.common import console, resolve_profile
from qualitygate.report.renderer import SEVERITY_COLORS
from qualitygate.scanner.models import Category, Severity
from qualitygate.scanner.rules import BUILTIN_CHECKS


@click.command()
@click.pass_context
def rules(ctx: click.Context) -> None:
    """List every check with its category and severity."""
    profile = resolve_profile(ctx)

    rows: list[tuple[str, Category, Severity, str]] = [
        (r.check_id, r.category, r.severity, r.message) for r in profile.rules
    ]
    rows.extend(
        (check_id, info.category, info.severity, info.description)
        for check_id, info in BUILTIN_CHECKS.items()
        if check_id not in profile.disabled
    )
    order = {c: i for i, c in enumerate(Category)}
    rows.sort(key=lambda row: (order[row[1]], row[0]))

    table = Table(title=f"Checks ({profile.name})", show_lines=False)
    table.add_column("Check", style="cyan")
    table.add_column("Category")
    table.add_column("Severity", width=10)
    table.add_column("Description")

    for check_id, category, severity, description in rows:
        color = SEVERITY_COLORS.get(severity, "white")
        table.add_row(
            check_id,
            category.value,
            Text(severity.value, style=color),
            Text(description),
        )

    console.print(table)
