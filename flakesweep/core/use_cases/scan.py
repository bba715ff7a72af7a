"""
Scan use case — resolve the target and find the workspaces to check.

Shared by ``list`` and ``update``. Setup failures (target resolution,
unreadable gcroots directory) are reported in ``ScanResult.error``;
per-workspace analysis failures are reported per workspace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from flakesweep.adapters.registry import AdapterRegistry
from flakesweep.core.errors import FlakeSweepError
from flakesweep.core.models.lockfile import LockfileNode, read_lockfile
from flakesweep.core.models.target import MatchTarget
from flakesweep.core.models.workspace import Workspace
from flakesweep.core.services.discovery import discover_workspaces
from flakesweep.core.services.matching import MatchResult, last_modified_at, match_node
from flakesweep.core.services.registry import registry_rev
from flakesweep.core.services.target import resolve_target

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Result of the scan use case."""

    target: MatchTarget | None = None
    workspaces: list[Workspace] = field(default_factory=list)
    registry_rev: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.target is not None
        return {
            "target": {
                "url": self.target.url_like(),
                "rev": self.target.locked().rev,
                "ref": self.target.original().git_ref(),
            },
            "registry_rev": self.registry_rev,
            "workspaces": len(self.workspaces),
        }


@dataclass
class WorkspaceReport:
    """One workspace's locked input compared against the target."""

    workspace: Workspace
    node: LockfileNode | None = None
    match: MatchResult | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        ws = self.workspace
        result: dict = {
            "directory": str(ws.directory),
            "build_result": ws.has_build_result,
            "direnv": ws.has_direnv_markers,
            "gcroots": [str(m) for m in ws.gc_markers],
        }
        if self.error:
            result["error"] = self.error
            return result

        assert self.node is not None and self.match is not None
        modified = last_modified_at(self.node.locked)
        result["locked"] = {
            "type": self.node.locked.type,
            "rev": self.node.locked.rev,
            "ref": self.node.original.git_ref(),
            "url": self.node.locked.url_excluding_git(),
            "last_modified": modified.isoformat() if modified else None,
        }
        result["match"] = self.match.to_dict()
        return result


def scan(
    registry: AdapterRegistry,
    target_spec: str,
    input_id: str,
    gcroots_dir: Path,
) -> ScanResult:
    """Resolve the target, then discover workspaces under ``gcroots_dir``."""
    result = ScanResult()

    try:
        result.target = resolve_target(registry, target_spec)
    except FlakeSweepError as e:
        result.error = f"Cannot resolve target '{target_spec}': {e}"
        return result

    try:
        result.registry_rev = registry_rev(input_id)
    except (FlakeSweepError, OSError) as e:
        logger.warning("Ignoring user registry: %s", e)

    try:
        result.workspaces = list(discover_workspaces(gcroots_dir, input_id).values())
    except OSError as e:
        result.error = f"Cannot read gcroots directory {gcroots_dir}: {e}"

    return result


def analyze_workspace(
    workspace: Workspace,
    target: MatchTarget,
    freshness: timedelta,
) -> WorkspaceReport:
    """Decode a workspace's lock file and match its input against the target."""
    report = WorkspaceReport(workspace=workspace)
    try:
        node = read_lockfile(workspace.lockfile_path).extract_input(workspace.dependency_id)
        report.match = match_node(node, target, freshness)
        report.node = node
    except (FlakeSweepError, OSError) as e:
        logger.info("Cannot analyze %s: %s", workspace.directory, e)
        report.error = str(e)
    return report
