"""
Nix user registry lookup — which revision does ``nixpkgs`` pin locally?

Reads ``$XDG_CONFIG_HOME/nix/registry.json`` (version 2) and returns the
``to.rev`` of the exact indirect entry for a flake id. Purely informational:
``list`` shows it next to the target so a stale registry pin stands out.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from flakesweep.core.errors import FormatError

logger = logging.getLogger(__name__)

SUPPORTED_REGISTRY_VERSION = 2


def user_registry_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "nix" / "registry.json"


def registry_rev(flake_id: str, path: Path | None = None) -> str | None:
    """Pinned revision of ``flake_id`` in the user registry, if any.

    Returns None when the registry file does not exist or has no exact
    pin for the id.

    Raises:
        FormatError: The file is not a version 2 registry.
    """
    path = path or user_registry_path()
    if not path.is_file():
        logger.debug("No user registry at %s", path)
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as e:
        raise FormatError(f"Invalid registry {path}: {e}") from e

    if not isinstance(data, dict):
        raise FormatError(f"Invalid registry {path}")
    if data.get("version") != SUPPORTED_REGISTRY_VERSION:
        raise FormatError(f"Unsupported registry version {data.get('version')!r}")

    flakes = data.get("flakes", [])
    if not isinstance(flakes, list):
        raise FormatError(f"Invalid registry {path}: 'flakes' must be a list")

    for entry in flakes:
        if not isinstance(entry, dict) or entry.get("exact") is not True:
            continue
        source, pinned = entry.get("from"), entry.get("to")
        if not isinstance(source, dict) or not isinstance(pinned, dict):
            raise FormatError(f"Invalid registry {path}: 'from' and 'to' must be objects")
        if source.get("type") != "indirect" or source.get("id") != flake_id:
            continue
        rev = pinned.get("rev")
        if isinstance(rev, str):
            return rev

    return None
