"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from qualitygate import __version__


@click.group()
@click.version_option(version=__version__, prog_name="qualitygate")
@click.option(
    "--config",
    "-c",
    "config_ref",
    metavar="PATH|preset:NAME",
    help="Rule-weight configuration file (default: $QUALITYGATE_CONFIG).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, config_ref: str | None, verbose: bool) -> None:
    """qualitygate — scan, score and gate a repository's code quality."""
    ctx.ensure_object(dict)
    ctx.obj["config_ref"] = config_ref
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _register_commands() -> None:
    from qualitygate.cli.rules import rules  # noqa: F811
    from qualitygate.cli.scan import scan  # noqa: F811

    main.add_command(scan)
    main.add_command(rules)


_register_commands()
