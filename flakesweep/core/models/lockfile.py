"""
Lock document models — typed views over ``flake.lock``.

A lock document is a graph of nodes keyed by id. Only the nodes a caller
asks for are decoded; the rest stay as raw dicts so that schema additions
in unrelated nodes never break us.

Every node carries two reference shapes:

    locked    — what the input resolved to (rev, narHash, lastModified, ...)
    original  — what the input was declared as (indirect id, github owner/repo, ...)

Locked shapes ignore keys they don't model. Original shapes keep them
(``extra="allow"``) and write them back out from ``to_json()``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from flakesweep.core.errors import FormatError, MissingDataError

logger = logging.getLogger(__name__)

SUPPORTED_LOCK_VERSION = 7

# Hosted git services that share one lock shape
GIT_SERVICES = ("github", "gitlab", "sourcehut")

# Guard against follows cycles in hand-edited lock files
_MAX_FOLLOWS_DEPTH = 32


def _source_type(data: dict[str, Any], what: str) -> str | None:
    kind = data.get("type")
    if kind is not None and not isinstance(kind, str):
        raise FormatError(f"{what} reference type must be a string, got {type(kind).__name__}")
    return kind


# ── Locked shapes ───────────────────────────────────────────────


class _LockedBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    rev: str | None = None
    last_modified: int | None = Field(default=None, alias="lastModified")

    def url_excluding_git(self) -> str | None:
        """Stable URL comparison key. Git-based kinds have none."""
        return None


class PathLocked(_LockedBase):
    type: Literal["path"] = "path"
    path: str
    last_modified: int = Field(alias="lastModified")


class TarballLocked(_LockedBase):
    type: Literal["tarball"] = "tarball"
    url: str

    def url_excluding_git(self) -> str | None:
        return self.url


class GitLocked(_LockedBase):
    type: Literal["git"] = "git"
    ref: str
    rev: str
    url: str
    shallow: bool | None = None


class GitServiceLocked(_LockedBase):
    type: Literal["github", "gitlab", "sourcehut"]
    owner: str
    repo: str
    rev: str
    host: str | None = None


class OtherLocked(_LockedBase):
    """Any source kind nix may add later (file, mercurial, ...)."""

    type: str
    url: str | None = None


LockedState = PathLocked | TarballLocked | GitLocked | GitServiceLocked | OtherLocked

_LOCKED_BY_TYPE: dict[str, type[_LockedBase]] = {
    "path": PathLocked,
    "tarball": TarballLocked,
    "git": GitLocked,
    **{svc: GitServiceLocked for svc in GIT_SERVICES},
}


def decode_locked(data: Any) -> LockedState:
    """Decode a ``locked`` record, falling back to ``OtherLocked`` for unknown kinds."""
    if not isinstance(data, dict):
        raise FormatError(f"Locked reference must be an object, got {type(data).__name__}")
    model = _LOCKED_BY_TYPE.get(_source_type(data, "Locked"), OtherLocked)
    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError as e:
        raise FormatError(f"Invalid locked reference: {e}") from e


# ── Original shapes ─────────────────────────────────────────────


class _OriginalBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    def git_ref(self) -> str | None:
        """Branch or tag name this reference follows, if it names one."""
        return None

    def to_json(self) -> dict[str, Any]:
        """Serialize back to the lock document shape, unknown keys included."""
        data = self.model_dump(mode="json")
        fields = type(self).model_fields
        return {k: v for k, v in data.items() if v is not None or k not in fields}


class IndirectOriginal(_OriginalBase):
    type: Literal["indirect"] = "indirect"
    id: str
    rev: str | None = None
    ref: str | None = None

    def git_ref(self) -> str | None:
        return self.ref


class PathOriginal(_OriginalBase):
    type: Literal["path"] = "path"


class TarballOriginal(_OriginalBase):
    type: Literal["tarball"] = "tarball"


class FileOriginal(_OriginalBase):
    type: Literal["file"] = "file"


class GitOriginal(_OriginalBase):
    type: Literal["git"] = "git"
    ref: str | None = None

    def git_ref(self) -> str | None:
        return self.ref


class MercurialOriginal(_OriginalBase):
    type: Literal["mercurial"] = "mercurial"


class GitServiceOriginal(_OriginalBase):
    type: Literal["github", "gitlab", "sourcehut"]
    ref: str | None = None

    def git_ref(self) -> str | None:
        return self.ref


class OtherOriginal(_OriginalBase):
    type: str


OriginalReference = (
    IndirectOriginal
    | PathOriginal
    | TarballOriginal
    | FileOriginal
    | GitOriginal
    | MercurialOriginal
    | GitServiceOriginal
    | OtherOriginal
)

_ORIGINAL_BY_TYPE: dict[str, type[_OriginalBase]] = {
    "indirect": IndirectOriginal,
    "path": PathOriginal,
    "tarball": TarballOriginal,
    "file": FileOriginal,
    "git": GitOriginal,
    "mercurial": MercurialOriginal,
    **{svc: GitServiceOriginal for svc in GIT_SERVICES},
}


def decode_original(data: Any) -> OriginalReference:
    """Decode an ``original`` record, keeping keys the model doesn't know."""
    if not isinstance(data, dict):
        raise FormatError(f"Original reference must be an object, got {type(data).__name__}")
    model = _ORIGINAL_BY_TYPE.get(_source_type(data, "Original"), OtherOriginal)
    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError as e:
        raise FormatError(f"Invalid original reference: {e}") from e


# ── Nodes and documents ─────────────────────────────────────────


class LockfileNode(BaseModel):
    """One input of a lock document: how it was declared and what it locked to."""

    model_config = ConfigDict(frozen=True)

    locked: LockedState
    original: OriginalReference

    @field_validator("locked", mode="before")
    @classmethod
    def _decode_locked(cls, value: Any) -> Any:
        return value if isinstance(value, _LockedBase) else decode_locked(value)

    @field_validator("original", mode="before")
    @classmethod
    def _decode_original(cls, value: Any) -> Any:
        return value if isinstance(value, _OriginalBase) else decode_original(value)

    @classmethod
    def from_json(cls, data: Any) -> LockfileNode:
        if not isinstance(data, dict):
            raise FormatError(f"Lock node must be an object, got {type(data).__name__}")
        for key in ("locked", "original"):
            if key not in data:
                raise MissingDataError(f"Lock node has no '{key}' reference")
        return cls(locked=data["locked"], original=data["original"])


class Lockfile(BaseModel):
    """Top level of ``flake.lock``. Nodes stay undecoded until asked for."""

    version: Literal[7]
    root: str
    nodes: dict[str, dict[str, Any]]

    def extract_input(self, input_id: str) -> LockfileNode:
        """Decode the node the root's ``inputs[input_id]`` points at.

        Raises:
            MissingDataError: If the root node, the input or its node is absent.
        """
        root_node = self.nodes.get(self.root)
        if root_node is None:
            raise MissingDataError(f"Root node '{self.root}' is missing from the lock file")

        target = _node_inputs(root_node, self.root).get(input_id)
        if target is None:
            raise MissingDataError(f"The lock file has no input '{input_id}'")

        node_id = target if isinstance(target, str) else self._follow(target)
        node = self.nodes.get(node_id)
        if node is None:
            raise MissingDataError(f"Input '{input_id}' points at missing node '{node_id}'")

        logger.debug("Input %s resolved to node %s", input_id, node_id)
        return LockfileNode.from_json(node)

    def _follow(self, path: Any, depth: int = 0) -> str:
        """Resolve a ``follows`` path (list of input names, relative to the root)."""
        if depth > _MAX_FOLLOWS_DEPTH:
            raise FormatError("Input follows chain is too deep (cycle?)")
        if not isinstance(path, list) or not all(isinstance(p, str) for p in path):
            raise FormatError(f"Invalid input reference: {path!r}")

        node_id = self.root
        for name in path:
            node = self.nodes.get(node_id)
            if node is None:
                raise MissingDataError(f"Follows path {path!r} crosses missing node '{node_id}'")
            ref = _node_inputs(node, node_id).get(name)
            if ref is None:
                raise MissingDataError(f"Follows path {path!r}: node '{node_id}' has no input '{name}'")
            node_id = ref if isinstance(ref, str) else self._follow(ref, depth + 1)
        return node_id


def _node_inputs(node: dict[str, Any], node_id: str) -> dict[str, Any]:
    inputs = node.get("inputs", {})
    if not isinstance(inputs, dict):
        raise FormatError(f"Inputs of node '{node_id}' must be an object, got {type(inputs).__name__}")
    return inputs


def decode_lockfile(raw: bytes | str) -> Lockfile:
    """Parse and validate a lock document.

    Raises:
        FormatError: Not JSON, wrong version, or missing ``root``/``nodes``.
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise FormatError(f"Lock file is not valid JSON: {e}") from e

    return parse_lockfile(data)


def parse_lockfile(data: Any) -> Lockfile:
    """Validate an already-parsed lock document (e.g. ``locks`` of flake metadata)."""
    if not isinstance(data, dict):
        raise FormatError(f"Expected a JSON object, got {type(data).__name__}")

    version = data.get("version")
    if version != SUPPORTED_LOCK_VERSION:
        raise FormatError(f"Unsupported lock file version {version!r}")

    try:
        return Lockfile.model_validate(data)
    except ValidationError as e:
        raise FormatError(f"Invalid lock file: {e}") from e


def read_lockfile(path: Path) -> Lockfile:
    """Read and decode a lock file from disk."""
    logger.debug("Reading lock file %s", path)
    return decode_lockfile(path.read_bytes())
