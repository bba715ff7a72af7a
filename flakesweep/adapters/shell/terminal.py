"""
Terminal adapter — hand the terminal to the operator's editor or shell.

Operations:
    editor   $EDITOR <file>
    shell    $SHELL, with PROMPTEXTRA extended so prompts can show
             that the operator is inside a flakesweep shell
"""

from __future__ import annotations

import os
import shlex

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.adapters.shell.command import run_command
from flakesweep.core.models.action import Receipt

PROMPTEXTRA_ADDITION = "flakesweep shell "


class TerminalAdapter(Adapter):
    """Interactive children that own the terminal until they exit."""

    operations = {"editor": ("file",), "shell": ()}

    @property
    def name(self) -> str:
        return "terminal"

    def is_available(self) -> bool:
        return bool(os.environ.get("EDITOR") or os.environ.get("SHELL"))

    def execute(self, context: ExecutionContext) -> Receipt:
        op = context.action.operation
        env: dict[str, str] | None = None

        if op == "editor":
            editor = os.environ.get("EDITOR")
            if not editor:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error="EDITOR environment variable missing",
                )
            # EDITOR may carry flags ("code --wait")
            argv = [*shlex.split(editor), str(context.params["file"])]
        elif op == "shell":
            shell = os.environ.get("SHELL")
            if not shell:
                return Receipt.failure(
                    adapter=self.name,
                    action_id=context.action.id,
                    error="SHELL environment variable missing",
                )
            argv = [shell]
            existing = os.environ.get("PROMPTEXTRA")
            env = {"PROMPTEXTRA": f"{existing} {PROMPTEXTRA_ADDITION}" if existing else PROMPTEXTRA_ADDITION}
        else:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Unknown operation: {op}",
            )

        return run_command(
            self.name,
            context.action.id,
            argv,
            context.working_dir,
            env=env,
            guard_sigint=False,
        )
