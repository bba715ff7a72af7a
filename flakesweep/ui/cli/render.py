"""
Terminal rendering shared by ``list`` and ``update``.

Agreement with the target is green, disagreement red. ``ref`` and
``rev`` share one colour slot (see ``MatchResult.render_states``).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import click

from flakesweep.core.models.lockfile import LockfileNode
from flakesweep.core.models.target import MatchTarget
from flakesweep.core.models.workspace import Workspace
from flakesweep.core.services.diffing import DiffLine, LineKind
from flakesweep.core.services.matching import MatchResult, RenderState, last_modified_at

_STATE_STYLE: dict[RenderState, dict[str, Any]] = {
    RenderState.AGREE: {"fg": "green"},
    RenderState.DISAGREE: {"fg": "red"},
    RenderState.HIDDEN: {},
}

_DIFF_STYLE: dict[LineKind, dict[str, Any]] = {
    LineKind.REMOVED: {"fg": "red"},
    LineKind.ADDED: {"fg": "green"},
    LineKind.UNCHANGED: {},
}


def format_age(moment: datetime, now: datetime | None = None) -> str:
    """Coarse age like ``3 days ago``."""
    seconds = int(((now or datetime.now(UTC)) - moment).total_seconds())
    if seconds < 0:
        return "in the future"
    for unit, size in (("year", 31_557_600), ("month", 2_630_016), ("day", 86_400), ("hour", 3_600)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "just now"


def echo_target(target: MatchTarget, registry_rev: str | None = None) -> None:
    click.secho("Target: ", fg="bright_black", nl=False)
    click.secho(target.url_like(), fg="cyan", bold=True)
    rev = target.locked().rev
    if rev:
        click.secho("   rev: ", fg="bright_black", nl=False)
        click.secho(rev, fg="green")
    if registry_rev:
        click.secho("   Registry pin: ", fg="bright_black", nl=False)
        click.echo(registry_rev)


def echo_workspace_header(workspace: Workspace) -> None:
    flags = []
    if workspace.has_build_result:
        flags.append("result")
    if workspace.has_direnv_markers:
        flags.append("direnv")
    click.secho(f"{workspace.directory}", fg="bright_black", bold=True, nl=False)
    click.echo(f"  [{', '.join(flags)}]" if flags else "")


def echo_lock_state(node: LockfileNode, match: MatchResult) -> None:
    """Print the locked input with per-field agreement colours."""
    states = match.render_states()

    ref = node.original.git_ref()
    if ref is not None:
        _echo_field("ref", ref, states["ref"])

    _echo_field("rev", node.locked.rev or "(none)", states["rev"])

    url = node.locked.url_excluding_git()
    if url is not None:
        _echo_field("url", url, states["url"])

    modified = last_modified_at(node.locked)
    if modified is not None:
        click.secho("   modified: ", fg="bright_black", nl=False)
        click.secho(
            f"{modified:%Y-%m-%d %H:%M} ({format_age(modified)})",
            fg="green" if match.ref_fresh_ok else "yellow",
        )

    if match.overall:
        click.secho("   ✓ matches the target", fg="green")
    else:
        click.secho("   ✗ does not match the target", fg="red")


def _echo_field(label: str, value: str, state: RenderState) -> None:
    click.secho(f"   {label}: ", fg="bright_black", nl=False)
    click.secho(value, **_STATE_STYLE[state])


def echo_diff(lines: list[DiffLine]) -> None:
    for line in lines:
        click.secho(line.render(), **_DIFF_STYLE[line.kind])
