"""
Git adapter — the handful of git calls the commit prompt needs.

Operations:
    has-commits    git log -0                              (fails on an unborn branch)
    stage-clean    git diff --quiet --cached --exit-code   (fails if something is staged)
    add            git add <files...>
    commit         git commit -m <message>
"""

from __future__ import annotations

import logging
import shutil

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.adapters.shell.command import run_command
from flakesweep.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git version control operations."""

    operations = {
        "has-commits": (),
        "stage-clean": (),
        "add": ("files",),
        "commit": ("message",),
    }

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        valid, error = super().validate(context)
        if not valid:
            return valid, error

        if context.action.operation == "commit" and not context.params["message"]:
            return False, "Commit message must not be empty"
        if context.action.operation == "add" and not context.params["files"]:
            return False, "Nothing to stage"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        op = context.action.operation
        params = context.params

        if op == "has-commits":
            args = ["log", "-0"]
        elif op == "stage-clean":
            args = ["diff", "--quiet", "--cached", "--exit-code"]
        elif op == "add":
            args = ["add", "--", *[str(f) for f in params["files"]]]
        elif op == "commit":
            args = ["commit", "-m", params["message"]]
        else:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Unknown operation: {op}",
            )

        return run_command(self.name, context.action.id, ["git", *args], context.working_dir)
