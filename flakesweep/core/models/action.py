"""
Action and Receipt models — the contract with external tools.

The UI asks for an operation by sending an Action to the adapter
registry; the adapter answers with a Receipt. Adapters never raise:
a non-zero exit, a missing binary or a missing environment variable
all come back as a failed Receipt.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class Action(BaseModel):
    """A requested operation for one adapter."""

    adapter: str                    # which adapter handles this (nix, git, ...)
    operation: str                  # adapter-specific verb (lock, commit, ...)
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def id(self) -> str:
        return f"{self.adapter}:{self.operation}"


class Receipt(BaseModel):
    """Outcome of running an Action."""

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"
    duration_ms: int = 0

    output: str = ""                # captured stdout, if the operation captures it
    error: str | None = None
    returncode: int | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(adapter=adapter, action_id=action_id, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        """Create a failure receipt."""
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)
