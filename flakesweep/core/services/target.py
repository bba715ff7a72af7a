"""
Target resolution — turn ``--target`` into something to compare against.

    nixpkgs                          the flake itself (its locked root)
    github:NixOS/nixpkgs/nixos-24.11 the flake itself
    /etc/nixos#nixpkgs               input ``nixpkgs`` of the flake at /etc/nixos

Both forms ask nix to describe the flake. The ``#input`` form then digs
the input out of the described lock document and has nix render its
original reference as a URL, which is what gets written into flake.nix.

Any failure here is fatal for the run: without a target there is
nothing to compare workspaces against.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from flakesweep.adapters.registry import AdapterRegistry
from flakesweep.core.errors import ExternalToolError, FormatError, MissingDataError
from flakesweep.core.models.lockfile import (
    OriginalReference,
    decode_locked,
    decode_original,
    parse_lockfile,
)
from flakesweep.core.models.target import MatchTarget, NestedInputTarget, RootTarget

logger = logging.getLogger(__name__)

INPUT_SEPARATOR = "#"


def parse_target_spec(spec: str) -> tuple[str, str | None]:
    """Split ``<flake-ref>[#<input-id>]``.

    Raises:
        FormatError: If either side of the separator is empty.
    """
    flake_ref, sep, input_id = spec.partition(INPUT_SEPARATOR)
    if not sep:
        return spec, None
    if not flake_ref or not input_id:
        raise FormatError(f"Invalid target '{spec}': expected <flake-ref>{INPUT_SEPARATOR}<input-id>")
    return flake_ref, input_id


def describe(registry: AdapterRegistry, flake_ref: str, cwd: Path | None = None) -> dict[str, Any]:
    """Run ``nix flake metadata --json`` and return the parsed document."""
    receipt = registry.run("nix", "metadata", cwd or Path.cwd(), ref=flake_ref)
    if not receipt.ok:
        raise ExternalToolError(
            f"Failed to get flake metadata for '{flake_ref}': {receipt.error}",
            receipt.returncode,
        )

    try:
        data = json.loads(receipt.output)
    except ValueError as e:
        raise FormatError(f"nix flake metadata returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise FormatError("nix flake metadata returned a non-object document")
    return data


def render_canonical_url(
    registry: AdapterRegistry,
    original: OriginalReference,
    cwd: Path | None = None,
) -> str:
    """Have nix render a reference shape as a flake URL."""
    receipt = registry.run("nix", "flake-ref-to-string", cwd or Path.cwd(), attrs=original.to_json())
    if not receipt.ok:
        raise ExternalToolError(f"Failed to render flake reference: {receipt.error}", receipt.returncode)

    url = receipt.output.strip()
    if not url:
        raise FormatError("nix rendered an empty flake reference")
    return url


def resolve_target(registry: AdapterRegistry, spec: str) -> MatchTarget:
    """Resolve the operator's target string into a MatchTarget."""
    flake_ref, input_id = parse_target_spec(spec)
    metadata = describe(registry, flake_ref)

    if input_id is None:
        for key in ("locked", "resolved", "resolvedUrl"):
            if key not in metadata:
                raise MissingDataError(f"Flake metadata for '{flake_ref}' has no '{key}'")
        target: MatchTarget = RootTarget(
            locked_state=decode_locked(metadata["locked"]),
            resolved=decode_original(metadata["resolved"]),
            resolved_url=metadata["resolvedUrl"],
        )
    else:
        locks = metadata.get("locks")
        if locks is None:
            raise MissingDataError(f"Flake metadata for '{flake_ref}' has no lock document")
        node = parse_lockfile(locks).extract_input(input_id)
        target = NestedInputTarget(
            node=node,
            canonical_url=render_canonical_url(registry, node.original),
        )

    logger.info("Target %s resolved to %s (rev %s)", spec, target.url_like(), target.locked().rev)
    return target
