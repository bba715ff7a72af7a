"""
Adapter base — one subclass per external program flakesweep runs.

nix, nix-editor, git, direnv and the operator's $EDITOR / $SHELL each get
an adapter. Services never spawn a process themselves; they hand an
Action to the registry and read back a Receipt, so tests can register a
MockAdapter under the same name instead.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from flakesweep.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An action bound to the flake directory it runs in."""

    action: Action
    working_dir: Path = Path(".")
    params: dict[str, Any] = Field(default_factory=dict)


class Adapter(ABC):
    """A wrapped command-line tool.

    Subclasses declare ``operations`` (operation name to the params it
    requires) and turn a validated context into a process call. A failed
    call is reported through the Receipt, not raised.
    """

    operations: dict[str, tuple[str, ...]] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, e.g. ``"nix-editor"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the program can be found on PATH."""

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check ``context`` against ``operations``; returns ``(ok, reason)``."""
        operation = context.action.operation
        required = self.operations.get(operation)
        if required is None:
            known = ", ".join(sorted(self.operations))
            return False, f"Unknown operation '{operation}'. Valid: {known}"

        absent = [p for p in required if p not in context.params]
        if absent:
            return False, f"Missing required param(s) for {operation}: {', '.join(absent)}"
        return True, ""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the operation described by ``context``."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
