"""
APT Updates Check — CLI entrypoint.

Usage:
    apt-updates --help
    apt-updates check --type security
    apt-updates all
    apt-updates metric apt.updates.count security include-phased
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from aptupdates import __version__
from aptupdates.core.observability.logging_config import (
    FILE_ENV,
    FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)

if TYPE_CHECKING:
    from aptupdates.core.use_cases.check import UpdateChecker

# Exit codes
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_CHECK_FAILED = 2
EXIT_OUTPUT_FAILED = 3


def _write(text: str) -> None:
    """Print the result for the agent; a broken stdout is exit 3."""
    try:
        click.echo(text)
    except OSError as e:
        click.secho(f"Error: cannot write output: {e}", fg="red", err=True)
        sys.exit(EXIT_OUTPUT_FAILED)


def _emit(data: object, compact: bool) -> None:
    try:
        text = json.dumps(data) if compact else json.dumps(data, indent=2)
    except (TypeError, ValueError) as e:
        click.secho(f"Error: cannot encode result as JSON: {e}", fg="red", err=True)
        sys.exit(EXIT_OUTPUT_FAILED)
    _write(text)


@click.group()
@click.version_option(version=__version__, prog_name="apt-updates")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to a YAML config file (default: $APT_UPDATES_CONFIG).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """APT Updates Check — pending, phased and security updates as JSON."""
    from aptupdates.core.config.loader import load_runtime_config
    from aptupdates.core.errors import ConfigError

    ctx.ensure_object(dict)

    try:
        config = load_runtime_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(EXIT_USAGE)

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug or config.debug_logging, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(FILE_ENV),
        log_file_level=os.environ.get(FILE_LEVEL_ENV),
    )

    ctx.obj["config"] = config


def _checker(ctx: click.Context) -> UpdateChecker:
    """Build the engine from the loaded config (tests may inject a runner)."""
    from aptupdates.core.use_cases.check import UpdateChecker

    return UpdateChecker(config=ctx.obj["config"], runner=ctx.obj.get("runner"))


@cli.command()
@click.option(
    "--type",
    "-t",
    "update_type",
    type=click.Choice(["all", "security", "recommended", "optional"]),
    default="all",
    show_default=True,
    help="Update category to report.",
)
@click.option("--include-phased", is_flag=True, help="Count phased updates too.")
@click.option("--compact", is_flag=True, help="Print JSON on a single line.")
@click.pass_context
def check(ctx: click.Context, update_type: str, include_phased: bool, compact: bool) -> None:
    """Check for pending updates of one category."""
    from aptupdates.core.errors import ExecutionFailure
    from aptupdates.core.models.update import UpdateType

    checker = _checker(ctx)
    try:
        result = checker.check(UpdateType(update_type), include_phased=include_phased)
    except ExecutionFailure as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_CHECK_FAILED)

    _emit(result.to_dict(), compact)


@cli.command("all")
@click.option("--compact", is_flag=True, help="Print JSON on a single line.")
@click.pass_context
def all_updates(ctx: click.Context, compact: bool) -> None:
    """Report every category, with phased updates counted separately."""
    from aptupdates.core.errors import ExecutionFailure

    checker = _checker(ctx)
    try:
        snapshot = checker.check_all()
    except ExecutionFailure as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_CHECK_FAILED)

    _emit(snapshot.to_dict(), compact)


@cli.command()
@click.argument("key")
@click.argument("params", nargs=-1)
@click.pass_context
def metric(ctx: click.Context, key: str, params: tuple[str, ...]) -> None:
    """Answer one agent metric request, e.g. apt.updates.count security.

    Prints the raw handler value: a number for count metrics, JSON text
    for the others.
    """
    from aptupdates.core.errors import ExecutionFailure, UnsupportedMetric
    from aptupdates.core.handlers import build_metrics, export

    metrics = build_metrics(_checker(ctx))
    try:
        value = export(metrics, key, params)
    except UnsupportedMetric as e:
        known = ", ".join(sorted(metrics))
        click.secho(f"Error: {e} (known: {known})", fg="red", err=True)
        sys.exit(EXIT_USAGE)
    except ExecutionFailure as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_CHECK_FAILED)

    _write(str(value))


if __name__ == "__main__":
    cli()
