"""
Nix flake adapter — ``nix flake`` and ``nix eval`` operations.

Operations:
    metadata             nix flake metadata --json <ref>     (stdout captured)
    flake-ref-to-string  nix eval --raw builtins.flakeRefToString  (stdout captured)
    update               nix flake update <input>
    lock                 nix flake lock
"""

from __future__ import annotations

import json
import logging
import shutil

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.adapters.nix import nix_string
from flakesweep.adapters.shell.command import run_command
from flakesweep.core.models.action import Receipt

logger = logging.getLogger(__name__)


class NixAdapter(Adapter):
    """The ``nix`` CLI, flake subcommands only."""

    operations = {
        "metadata": ("ref",),
        "flake-ref-to-string": ("attrs",),
        "update": ("input",),
        "lock": (),
    }

    @property
    def name(self) -> str:
        return "nix"

    def is_available(self) -> bool:
        return shutil.which("nix") is not None

    def execute(self, context: ExecutionContext) -> Receipt:
        op = context.action.operation
        params = context.params

        if op == "metadata":
            argv = ["nix", "flake", "metadata", "--json", params["ref"]]
            capture = True
        elif op == "flake-ref-to-string":
            attrs = json.dumps(params["attrs"], sort_keys=True)
            expr = f"builtins.flakeRefToString (builtins.fromJSON {nix_string(attrs)})"
            argv = ["nix", "eval", "--raw", "--expr", expr]
            capture = True
        elif op == "update":
            argv = ["nix", "flake", "update", params["input"]]
            capture = False
        elif op == "lock":
            argv = ["nix", "flake", "lock"]
            capture = False
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
            capture=capture,
        )
