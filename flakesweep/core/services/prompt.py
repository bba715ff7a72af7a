"""
Prompt commands for the interactive update session.

The set of commands is closed: ``PromptCommand.parse`` is the only way a
line of operator input becomes a command, and ``Flow`` is the only thing
a command handler tells the session loop.
"""

from __future__ import annotations

from enum import Enum, StrEnum


class Flow(Enum):
    """What the session does after a command."""

    REPEAT_PROMPT = "repeat-prompt"       # ask again, no redisplay
    REPEAT_WORKFLOW = "repeat-workflow"   # re-read files, redisplay, ask again
    ADVANCE = "advance"                   # done with this workspace


class PromptCommand(StrEnum):
    APPLY = "a"
    NEXT = "n"
    EDIT = "e"
    SHELL = "sh"
    UPDATE_INPUT = "up"
    DELETE_GCROOTS = "dg"
    LOCK = "lock"
    REFRESH_DIRENV = "direnv"
    COMMIT = "commit"
    HELP = "?"

    @classmethod
    def parse(cls, token: str) -> PromptCommand | None:
        """Map a trimmed input token to a command, or None if unknown."""
        try:
            return cls(token.strip())
        except ValueError:
            return None

    @property
    def writes(self) -> bool:
        """Whether the command is refused in a dry run."""
        return self in _WRITING

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_WRITING = frozenset(
    {
        PromptCommand.APPLY,
        PromptCommand.UPDATE_INPUT,
        PromptCommand.DELETE_GCROOTS,
        PromptCommand.LOCK,
    }
)

_DESCRIPTIONS = {
    PromptCommand.APPLY: "Applies the change",
    PromptCommand.NEXT: "Proceeds to the next flake",
    PromptCommand.EDIT: "Edits `flake.nix` using `$EDITOR`",
    PromptCommand.SHELL: "Launches `$SHELL` in the flake's directory",
    PromptCommand.UPDATE_INPUT: "Runs `nix flake update <input id>`",
    PromptCommand.DELETE_GCROOTS: "Deletes garbage collector roots like build results and direnv",
    PromptCommand.LOCK: "Runs `nix flake lock`",
    PromptCommand.REFRESH_DIRENV: "Refreshes direnv",
    PromptCommand.COMMIT: "Makes a Git commit with `flake.nix` and `flake.lock`",
    PromptCommand.HELP: "Prints help",
}
