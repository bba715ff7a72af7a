"""
flakesweep — CLI entrypoint.

Usage:
    python -m flakesweep.main --help
    python -m flakesweep.main list
    python -m flakesweep.main update --target github:NixOS/nixpkgs/nixos-24.11 --allow-write
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

import click

from flakesweep import __version__
from flakesweep.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)

logger = logging.getLogger(__name__)

# Tools each command shells out to
LIST_TOOLS = ("nix",)
UPDATE_TOOLS = ("nix", "nix-editor", "git", "direnv")


class DurationParamType(click.ParamType):
    """Humantime-style duration (``1month``, ``2 weeks``, ``36h``)."""

    name = "duration"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> timedelta:
        if isinstance(value, timedelta):
            return value
        from flakesweep.core.config.duration import parse_duration

        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationParamType()


@click.group()
@click.version_option(version=__version__, prog_name="flakesweep")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a settings file (default: ~/.config/flakesweep/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """flakesweep — bump a flake input across every flake you have built."""
    ctx.ensure_object(dict)

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )

    from flakesweep.core.config.loader import ConfigError, load_settings

    try:
        ctx.obj["settings"] = load_settings(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _scan_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by list and update. ``None`` means "use the settings file"."""
    options = [
        click.option(
            "--target",
            "-t",
            default=None,
            help="Flake reference to compare against; '<flake>#<input>' picks "
            "an input of another flake. [default: nixpkgs]",
        ),
        click.option(
            "--input",
            "-i",
            "input_id",
            default=None,
            help="Input id checked in each flake. [default: nixpkgs]",
        ),
        click.option(
            "--freshness",
            type=DURATION,
            default=None,
            help="How recent a lock must be for a matching ref to count. [default: 1month]",
        ),
        click.option(
            "--gcroots-dir",
            type=click.Path(file_okay=False, path_type=Path),
            default=None,
            help="Directory of gcroot symlinks. [default: /nix/var/nix/gcroots/auto]",
        ),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def _settings(ctx: click.Context, **overrides: Any):
    """Settings from the file, overridden by any flag that was given."""
    settings = ctx.obj["settings"]
    given = {k: v for k, v in overrides.items() if v is not None}
    return settings.model_copy(update=given)


def _registry(ctx: click.Context):
    registry = ctx.obj.get("registry")
    if registry is None:
        from flakesweep.adapters import default_registry

        registry = ctx.obj["registry"] = default_registry()
    return registry


def _warn_missing(registry, tools: tuple[str, ...]) -> None:
    missing = registry.missing_tools(tools)
    if missing:
        click.secho(f"⚠️  Not found on PATH: {', '.join(missing)}", fg="yellow", err=True)


@cli.command("list")
@_scan_options
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_flakes(
    ctx: click.Context,
    target: str | None,
    input_id: str | None,
    freshness: timedelta | None,
    gcroots_dir: Path | None,
    as_json: bool,
) -> None:
    """Show every built flake and whether its input matches the target."""
    from flakesweep.core.use_cases.scan import analyze_workspace, scan
    from flakesweep.ui.cli.render import echo_lock_state, echo_target, echo_workspace_header

    settings = _settings(
        ctx, target=target, input=input_id, freshness=freshness, gcroots_dir=gcroots_dir
    )
    registry = _registry(ctx)
    _warn_missing(registry, LIST_TOOLS)
    result = scan(registry, settings.target, settings.input, settings.gcroots_dir)

    if as_json:
        data = result.to_dict()
        if result.target is not None:
            data["reports"] = [
                analyze_workspace(ws, result.target, settings.freshness).to_dict()
                for ws in result.workspaces
            ]
        click.echo(json.dumps(data, indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    assert result.target is not None
    echo_target(result.target, result.registry_rev)

    outdated = 0
    for workspace in result.workspaces:
        click.echo()
        report = analyze_workspace(workspace, result.target, settings.freshness)
        echo_workspace_header(workspace)
        if report.error:
            click.secho(f"   ❌ {report.error}", fg="red")
            continue
        assert report.node is not None and report.match is not None
        echo_lock_state(report.node, report.match)
        if not report.match.overall:
            outdated += 1

    click.echo()
    click.secho(
        f"{len(result.workspaces)} flake(s), {outdated} not matching the target",
        fg="yellow" if outdated else "green",
        bold=True,
    )


@cli.command()
@_scan_options
@click.option(
    "--allow-write/--dry-run",
    default=None,
    help="Write files and run commands. [default: dry run]",
)
@click.option(
    "--diff-context",
    type=click.IntRange(min=0),
    default=None,
    help="Lines of context around each change in the diff. [default: 3]",
)
@click.pass_context
def update(
    ctx: click.Context,
    target: str | None,
    input_id: str | None,
    freshness: timedelta | None,
    gcroots_dir: Path | None,
    allow_write: bool | None,
    diff_context: int | None,
) -> None:
    """Walk through every built flake and bring its input up to the target."""
    from flakesweep.core.errors import FlakeSweepError
    from flakesweep.core.use_cases.scan import scan
    from flakesweep.ui.cli.render import echo_target
    from flakesweep.ui.cli.update import UpdateOptions, UpdateSession

    settings = _settings(
        ctx,
        target=target,
        input=input_id,
        freshness=freshness,
        gcroots_dir=gcroots_dir,
        allow_write=allow_write,
        diff_context=diff_context,
    )

    if not settings.allow_write:
        click.secho(
            "Note: This is a dry run. To modify files and run commands, run again with ",
            fg="yellow",
            bold=True,
            nl=False,
        )
        click.secho("--allow-write", fg="cyan", bold=True)

    registry = _registry(ctx)
    _warn_missing(registry, UPDATE_TOOLS)
    result = scan(registry, settings.target, settings.input, settings.gcroots_dir)
    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    assert result.target is not None
    echo_target(result.target, result.registry_rev)

    if not result.workspaces:
        click.secho("No flakes with a lock file found behind the gcroots.", fg="yellow")
        return

    session = UpdateSession(
        registry,
        result.target,
        UpdateOptions(
            allow_write=settings.allow_write,
            diff_context=settings.diff_context,
            freshness=settings.freshness,
        ),
    )

    count = len(result.workspaces)
    for index, workspace in enumerate(result.workspaces):
        try:
            session.run(workspace, index, count)
        except (FlakeSweepError, OSError) as e:
            logger.debug("Workspace %s failed", workspace.directory, exc_info=True)
            click.secho(f"❌ Failed to process {workspace.directory}: {e}", fg="red", err=True)

    click.echo()


if __name__ == "__main__":
    cli()
