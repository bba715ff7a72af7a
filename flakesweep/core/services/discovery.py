"""
Workspace discovery — find flakes through the auto gcroots directory.

Every ``nix build`` result link and every nix-direnv cache registers an
indirect root in ``/nix/var/nix/gcroots/auto``: a symlink pointing back
at the link inside the project. Following those tells us which flakes
are actually in use on this machine.

    gcroots/auto/abc -> /home/me/proj/result               build result
    gcroots/auto/def -> /home/me/proj/.direnv/flake-profile-x  direnv cache

Both map to the workspace ``/home/me/proj`` — provided it has a
``flake.lock``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flakesweep.core.models.workspace import LOCKFILE_NAME, Workspace

logger = logging.getLogger(__name__)

DEFAULT_GCROOTS_DIR = Path("/nix/var/nix/gcroots/auto")

DIRENV_DIR_NAME = ".direnv"
BUILD_RESULT_NAME = "result"


def classify_marker(target: Path) -> tuple[Path, bool] | None:
    """Map a gcroot target to ``(workspace directory, is_direnv)``.

    Returns None for gcroots that belong to neither shape.
    """
    for ancestor in (target, *target.parents):
        if ancestor.name == DIRENV_DIR_NAME:
            return ancestor.parent, True

    name = target.name
    if name == BUILD_RESULT_NAME or name.startswith(f"{BUILD_RESULT_NAME}-"):
        return target.parent, False

    return None


def discover_workspaces(marker_dir: Path, input_id: str) -> dict[Path, Workspace]:
    """Group the gcroots in ``marker_dir`` into one Workspace per flake directory.

    Args:
        marker_dir: Directory of gcroot symlinks (normally gcroots/auto).
        input_id: Input the workspaces will be checked for.

    Returns:
        Workspaces keyed by their canonical directory, in gcroot name order.

    Raises:
        OSError: If ``marker_dir`` itself cannot be listed.
    """
    workspaces: dict[Path, Workspace] = {}

    for entry in sorted(marker_dir.iterdir()):
        try:
            _add_marker(workspaces, entry, input_id)
        except OSError as e:
            logger.warning("Failed to process gcroot %s: %s", entry, e)

    logger.info("Found %d workspace(s) in %s", len(workspaces), marker_dir)
    return workspaces


def _add_marker(workspaces: dict[Path, Workspace], entry: Path, input_id: str) -> None:
    target = entry.readlink()
    if not target.is_absolute():
        target = entry.parent / target

    if not target.exists():
        logger.debug("Skipping stale gcroot %s -> %s", entry, target)
        return

    classified = classify_marker(target)
    if classified is None:
        logger.debug("Skipping unrelated gcroot %s -> %s", entry, target)
        return

    directory, is_direnv = classified
    directory = directory.resolve()

    workspace = workspaces.get(directory)
    if workspace is None:
        lockfile = directory / LOCKFILE_NAME
        if not lockfile.is_file():
            logger.debug("Skipping %s: no %s", directory, LOCKFILE_NAME)
            return
        workspace = Workspace(dependency_id=input_id, directory=directory, lockfile_path=lockfile)
        workspaces[directory] = workspace

    workspace.add_marker(target, build_result=not is_direnv, direnv=is_direnv)
