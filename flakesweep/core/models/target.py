"""
Match targets — the state workspaces are compared against.

A target comes either from a flake's own root (``nix flake metadata`` of
the target reference) or from one input inside another flake's lock file.
Both expose the same accessors so callers never branch on the variant.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from flakesweep.core.models.lockfile import LockedState, LockfileNode, OriginalReference


class RootTarget(BaseModel):
    """Target taken from the described flake itself."""

    model_config = ConfigDict(frozen=True)

    locked_state: LockedState
    resolved: OriginalReference
    resolved_url: str

    def locked(self) -> LockedState:
        return self.locked_state

    def original(self) -> OriginalReference:
        return self.resolved

    def url_like(self) -> str:
        return self.resolved_url


class NestedInputTarget(BaseModel):
    """Target taken from an input of another flake (``<flake>#<input>``)."""

    model_config = ConfigDict(frozen=True)

    node: LockfileNode
    canonical_url: str

    def locked(self) -> LockedState:
        return self.node.locked

    def original(self) -> OriginalReference:
        return self.node.original

    def url_like(self) -> str:
        return self.canonical_url


MatchTarget = RootTarget | NestedInputTarget
