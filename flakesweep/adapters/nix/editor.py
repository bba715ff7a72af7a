"""
nix-editor adapter — structural edits of ``flake.nix``.

``nix-editor <file> <attribute> -v <value>`` prints the whole file with
the attribute set to ``value``, keeping every other byte of formatting.
We never let it write in place; the caller decides whether to write.
"""

from __future__ import annotations

import shutil

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.adapters.shell.command import run_command
from flakesweep.core.models.action import Receipt


class NixEditorAdapter(Adapter):
    """Set one attribute of a Nix file and return the new text."""

    operations = {"set": ("file", "attribute", "value")}

    @property
    def name(self) -> str:
        return "nix-editor"

    def is_available(self) -> bool:
        return shutil.which("nix-editor") is not None

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.params
        return run_command(
            self.name,
            context.action.id,
            ["nix-editor", str(params["file"]), params["attribute"], "-v", params["value"]],
            context.working_dir,
            capture=True,
        )
