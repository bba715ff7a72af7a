"""
Interactive update session — one prompt loop per workspace.

    display ─► prompt ─► command ─┬─► REPEAT_WORKFLOW ─► display
                 ▲                ├─► REPEAT_PROMPT ───► prompt
                 └────────────────┘
                                  └─► ADVANCE (next workspace)

Display re-reads flake.lock and flake.nix every time, because the
previous command (lock, edit, shell, ...) may have changed either.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

import click

from flakesweep.adapters.registry import AdapterRegistry
from flakesweep.core.errors import MissingDataError
from flakesweep.core.models.lockfile import read_lockfile
from flakesweep.core.models.target import MatchTarget
from flakesweep.core.models.workspace import DECLARATION_NAME, LOCKFILE_NAME, Workspace
from flakesweep.core.services.declaration import has_commented_definition, propose_declaration
from flakesweep.core.services.diffing import windowed_diff
from flakesweep.core.services.matching import MatchResult, match_node
from flakesweep.core.services.prompt import Flow, PromptCommand
from flakesweep.ui.cli.render import echo_diff, echo_lock_state, echo_workspace_header

logger = logging.getLogger(__name__)

COMMIT_MESSAGE = "chore: bump flake input {input_id}"
DRY_RUN_NOTICE = "Dry run, not modifying files"


@dataclass(frozen=True)
class UpdateOptions:
    allow_write: bool = False
    diff_context: int = 3
    freshness: timedelta = timedelta(days=30)


@dataclass
class Proposal:
    """What the display step computed for the current loop iteration."""

    current: str
    proposed: str
    match: MatchResult

    @property
    def changes_exist(self) -> bool:
        return self.proposed != self.current


def _cmd(command: PromptCommand) -> str:
    return click.style(command.value, fg="cyan")


def _hint(*parts: str) -> None:
    click.echo(" ".join(parts), err=True)


def _read_line(prompt: str) -> str:
    return click.prompt(prompt, default="", show_default=False, prompt_suffix="", err=True).strip()


def _confirm(prompt: str) -> bool:
    return _read_line(click.style(prompt, fg="blue")) == "y"


class UpdateSession:
    """Drives the prompt loop for workspaces against one target."""

    def __init__(self, registry: AdapterRegistry, target: MatchTarget, options: UpdateOptions):
        self.registry = registry
        self.target = target
        self.options = options

    # ── Loop ────────────────────────────────────────────────────

    def run(self, workspace: Workspace, index: int = 0, count: int = 1) -> None:
        """Process one workspace until the operator advances.

        Raises:
            MissingDataError: The workspace has no flake.nix or no such input.
            FormatError: flake.lock or flake.nix cannot be understood.
            OSError: A file could not be read, written or deleted.
        """
        if not workspace.flake_nix_path.is_file():
            raise MissingDataError(f"{DECLARATION_NAME} does not exist in {workspace.directory}")

        flow = Flow.REPEAT_WORKFLOW
        proposal: Proposal | None = None
        while True:
            if flow is Flow.REPEAT_WORKFLOW or proposal is None:
                proposal = self.display(workspace)
            command = self.await_command(workspace, proposal, index, count)
            flow = self.dispatch(command, workspace, proposal)
            if flow is Flow.ADVANCE:
                return

    def display(self, workspace: Workspace) -> Proposal:
        """Re-read files, print lock state, diff and hints."""
        click.echo()
        node = read_lockfile(workspace.lockfile_path).extract_input(workspace.dependency_id)
        match = match_node(node, self.target, self.options.freshness)

        echo_workspace_header(workspace)
        echo_lock_state(node, match)

        current = workspace.flake_nix_path.read_text(encoding="utf-8")
        proposed = propose_declaration(
            self.registry,
            workspace.flake_nix_path,
            workspace.dependency_id,
            self.target.url_like(),
        )
        proposal = Proposal(current=current, proposed=proposed, match=match)

        echo_diff(windowed_diff(current, proposed, self.options.diff_context))

        warn = {"fg": "yellow"}
        if has_commented_definition(current, workspace.dependency_id):
            _hint(
                click.style("Found a comment defining the input. Use", **warn),
                _cmd(PromptCommand.EDIT),
                click.style("to remove it before applying the diff.", **warn),
            )
        if not proposal.changes_exist and not match.overall:
            _hint(
                click.style(
                    f"The `{DECLARATION_NAME}` is up to date but the locked version "
                    "doesn't match the target. Try",
                    **warn,
                ),
                _cmd(PromptCommand.LOCK),
                click.style("or", **warn),
                _cmd(PromptCommand.REFRESH_DIRENV),
                click.style("to update the lockfile.", **warn),
            )
        if match.overall:
            _hint(
                click.style(
                    "The locked version matches the target but the gcroots may not "
                    "be up to date. You can try",
                    **warn,
                ),
                _cmd(PromptCommand.DELETE_GCROOTS),
                click.style("or", **warn),
                _cmd(PromptCommand.REFRESH_DIRENV),
                click.style("to clean up the gcroots.", **warn),
            )

        return proposal

    def await_command(
        self,
        workspace: Workspace,
        proposal: Proposal,
        index: int,
        count: int,
    ) -> PromptCommand:
        """Read one line and map it to a command; unknown input means help."""
        offered = [c.value for c in PromptCommand if self._offered(c, workspace, proposal)]
        prompt = click.style(f"({index + 1}/{count}) [{','.join(offered)}] ", fg="blue")

        token = _read_line(prompt)
        command = PromptCommand.parse(token)
        if command is None:
            if token:
                click.secho(f"Unknown command: {token}", fg="red", err=True)
            return PromptCommand.HELP
        return command

    @staticmethod
    def _offered(command: PromptCommand, workspace: Workspace, proposal: Proposal) -> bool:
        if command is PromptCommand.APPLY:
            return proposal.changes_exist
        if command is PromptCommand.COMMIT:
            return workspace.in_git_repo()
        return True

    # ── Dispatch ────────────────────────────────────────────────

    def dispatch(self, command: PromptCommand, workspace: Workspace, proposal: Proposal) -> Flow:
        """Run one command and say where the loop goes next."""
        if command.writes and not self.options.allow_write:
            click.secho(DRY_RUN_NOTICE, fg="yellow", err=True)
            return Flow.REPEAT_PROMPT

        logger.debug("Command %s in %s", command.name, workspace.directory)

        if command is PromptCommand.APPLY:
            return self._apply(workspace, proposal)
        elif command is PromptCommand.NEXT:
            click.secho("Going to the next flake", fg="green", err=True)
            return Flow.ADVANCE
        elif command is PromptCommand.EDIT:
            return self._interactive(workspace, "editor", file=workspace.flake_nix_path)
        elif command is PromptCommand.SHELL:
            return self._interactive(workspace, "shell")
        elif command is PromptCommand.UPDATE_INPUT:
            return self._relock(
                workspace,
                "update",
                "Failed to update the input. Try another method.",
                input=workspace.dependency_id,
            )
        elif command is PromptCommand.LOCK:
            return self._relock(
                workspace,
                "lock",
                f"Failed to recreate the lock file. Try manually editing {DECLARATION_NAME}.",
            )
        elif command is PromptCommand.DELETE_GCROOTS:
            return self._delete_gcroots(workspace)
        elif command is PromptCommand.REFRESH_DIRENV:
            self.refresh_direnv(workspace)
            return Flow.REPEAT_WORKFLOW
        elif command is PromptCommand.COMMIT:
            self.commit(workspace)
            return Flow.REPEAT_WORKFLOW
        else:
            self._print_help()
            return Flow.REPEAT_PROMPT

    def _apply(self, workspace: Workspace, proposal: Proposal) -> Flow:
        workspace.flake_nix_path.write_text(proposal.proposed, encoding="utf-8")
        proposal.current = proposal.proposed
        logger.info("Wrote %s", workspace.flake_nix_path)
        _hint(
            click.style("You should execute one of the following:", fg="yellow"),
            _cmd(PromptCommand.LOCK),
            _cmd(PromptCommand.REFRESH_DIRENV),
        )
        return Flow.REPEAT_PROMPT

    def _interactive(self, workspace: Workspace, operation: str, **params: object) -> Flow:
        receipt = self.registry.run("terminal", operation, workspace.directory, **params)
        if not receipt.ok:
            click.secho(receipt.error or f"{operation} failed", fg="red", err=True)
        _hint(
            click.style("You have been returned to the prompt. Select", fg="green"),
            _cmd(PromptCommand.LOCK),
            click.style("or similar if you have applied edits manually.", fg="green"),
        )
        return Flow.REPEAT_WORKFLOW

    def _relock(self, workspace: Workspace, operation: str, failure: str, **params: object) -> Flow:
        receipt = self.registry.run("nix", operation, workspace.directory, **params)
        if not receipt.ok:
            click.secho(failure, fg="red", err=True)
            return Flow.REPEAT_PROMPT

        if workspace.has_direnv_markers:
            self.refresh_direnv(workspace)
        if workspace.in_git_repo():
            self.commit(workspace)
        return Flow.REPEAT_WORKFLOW

    def _delete_gcroots(self, workspace: Workspace) -> Flow:
        click.echo("Deleting garbage collector roots.", err=True)
        for marker in workspace.gc_markers:
            # Removal failures propagate and end this workspace
            marker.unlink(missing_ok=True)
            logger.info("Deleted gcroot %s", marker)
        return Flow.REPEAT_WORKFLOW

    def _print_help(self) -> None:
        for command in PromptCommand:
            click.echo(
                f"{click.style(f'{command.value:<6}', fg='cyan')} "
                f"{click.style('-', fg='bright_black')} {command.description}",
                err=True,
            )

    # ── Confirm-then-act sub-prompts ────────────────────────────

    def refresh_direnv(self, workspace: Workspace) -> None:
        if not _confirm("Refresh direnv? [y,N] "):
            return
        if not self.options.allow_write:
            click.secho(DRY_RUN_NOTICE, fg="yellow", err=True)
            return
        if not self.registry.run("direnv", "reload", workspace.directory).ok:
            click.secho("Failed to reload direnv.", fg="red", err=True)

    def commit(self, workspace: Workspace) -> None:
        directory = workspace.directory
        is_empty = not self.registry.run("git", "has-commits", directory).ok
        stage_is_dirty = not self.registry.run("git", "stage-clean", directory).ok

        question = " ".join(
            [
                click.style("Commit", fg="blue"),
                click.style(DECLARATION_NAME, fg="cyan", bold=True),
                click.style("and", fg="blue"),
                click.style(LOCKFILE_NAME, fg="cyan", bold=True),
                click.style("into Git?", fg="blue"),
            ]
        )
        if is_empty:
            question += " " + click.style("(No commits yet)", fg="yellow")
        if stage_is_dirty:
            question += " " + click.style("(Stage is dirty)", fg="yellow")
        click.echo(question, err=True)

        message = COMMIT_MESSAGE.format(input_id=workspace.dependency_id)
        prompt = " ".join(
            [
                click.style("Commit message:", fg="blue"),
                click.style(message, fg="cyan", bold=True),
                click.style("[y,N] ", fg="blue"),
            ]
        )
        if _read_line(prompt) != "y":
            return
        if not self.options.allow_write:
            click.secho(DRY_RUN_NOTICE, fg="yellow", err=True)
            return

        if not self.registry.run("git", "add", directory, files=[DECLARATION_NAME, LOCKFILE_NAME]).ok:
            click.secho("Failed to stage files.", fg="red", err=True)
            return
        if not self.registry.run("git", "commit", directory, message=message).ok:
            click.secho("Failed to commit.", fg="red", err=True)
