"""Adapters — tool bindings for external integrations.

Public re-exports for convenient access.
"""

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.adapters.mock import MockAdapter
from flakesweep.adapters.registry import AdapterRegistry


def default_registry() -> AdapterRegistry:
    """Registry wired to the real tools."""
    from flakesweep.adapters.nix.editor import NixEditorAdapter
    from flakesweep.adapters.nix.flake import NixAdapter
    from flakesweep.adapters.shell.direnv import DirenvAdapter
    from flakesweep.adapters.shell.terminal import TerminalAdapter
    from flakesweep.adapters.vcs.git import GitAdapter

    return AdapterRegistry(
        [NixAdapter(), NixEditorAdapter(), GitAdapter(), DirenvAdapter(), TerminalAdapter()]
    )


__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
