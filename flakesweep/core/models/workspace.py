"""
Workspace model — one flake directory found behind garbage collector roots.

Workspaces are keyed by directory. Discovery creates them and folds every
further gcroot for the same directory into the existing record; after
discovery they are read-only.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

LOCKFILE_NAME = "flake.lock"
DECLARATION_NAME = "flake.nix"


class Workspace(BaseModel):
    """A locally built flake that pins the managed input."""

    dependency_id: str                  # input id being managed (e.g. "nixpkgs")
    directory: Path
    gc_markers: list[Path] = Field(default_factory=list)
    has_build_result: bool = False      # ./result or ./result-* symlink
    has_direnv_markers: bool = False    # .direnv/ gcroots
    lockfile_path: Path

    @property
    def flake_nix_path(self) -> Path:
        return self.directory / DECLARATION_NAME

    def in_git_repo(self) -> bool:
        """Whether the directory lives inside a git checkout."""
        return any((p / ".git").is_dir() for p in (self.directory, *self.directory.parents))

    def add_marker(self, marker: Path, *, build_result: bool = False, direnv: bool = False) -> None:
        """Record another gcroot owned by this workspace."""
        self.gc_markers.append(marker)
        self.has_build_result = self.has_build_result or build_result
        self.has_direnv_markers = self.has_direnv_markers or direnv
