"""Helpers shared by CLI commands."""

from __future__ import annotations

import sys

import click
from rich.console import Console
from rich.markup import escape

from qualitygate.config import QualityGateConfig
from qualitygate.errors import ConfigError
from qualitygate.policy.models import Profile

console = Console(stderr=True)


def resolve_profile(ctx: click.Context) -> Profile:
    """Load the active profile, exiting with status 2 on a configuration error."""
    try:
        config = QualityGateConfig.load(ctx.obj.get("config_ref"))
        config.verbose = ctx.obj.get("verbose", False)
        return config.profile()
    except ConfigError as e:
        fail(e)


def fail(error: Exception, exit_code: int | None = None) -> None:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    sys.exit(exit_code if exit_code is not None else getattr(error, "exit_code", 3))
