"""
direnv adapter — rebuild a workspace's cached dev shell.

``direnv exec . true`` evaluates the ``.envrc`` and, with nix-direnv,
rebuilds the shell and refreshes its gcroots under ``.direnv/``.
"""

from __future__ import annotations

import shutil

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.adapters.shell.command import run_command
from flakesweep.core.models.action import Receipt


class DirenvAdapter(Adapter):
    operations = {"reload": ()}

    @property
    def name(self) -> str:
        return "direnv"

    def is_available(self) -> bool:
        return shutil.which("direnv") is not None

    def execute(self, context: ExecutionContext) -> Receipt:
        # nix-direnv falls back to the previous environment and still exits 0
        # when evaluation fails, so success here is not proof of a rebuild.
        return run_command(
            self.name,
            context.action.id,
            ["direnv", "exec", ".", "true"],
            context.working_dir,
        )
