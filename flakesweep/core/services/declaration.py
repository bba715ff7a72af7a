"""
flake.nix rewrite — point the managed input at the target URL.

The edit itself is done by nix-editor so that comments, ordering and
formatting of everything else survive. This module only decides what to
ask for and how to read the answer.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from flakesweep.adapters.nix import nix_string
from flakesweep.adapters.registry import AdapterRegistry
from flakesweep.core.errors import ExternalToolError, FormatError

logger = logging.getLogger(__name__)


def input_url_attribute(input_id: str) -> str:
    return f"inputs.{input_id}.url"


def propose_declaration(registry: AdapterRegistry, flake_nix: Path, input_id: str, url: str) -> str:
    """Return the text of ``flake_nix`` with the input's URL set to ``url``.

    Raises:
        FormatError: nix-editor could not parse or edit the file.
        ExternalToolError: nix-editor could not be started.
    """
    receipt = registry.run(
        "nix-editor",
        "set",
        flake_nix.parent,
        file=flake_nix,
        attribute=input_url_attribute(input_id),
        value=nix_string(url),
    )
    if receipt.ok:
        return receipt.output
    if receipt.returncode is None:
        raise ExternalToolError(receipt.error or "nix-editor failed")
    raise FormatError(f"Invalid flake.nix: {flake_nix}")


def has_commented_definition(text: str, input_id: str) -> bool:
    """Whether a comment looks like it defines the input.

    nix-editor leaves comments alone, so a commented-out
    ``# inputs.nixpkgs.url = ...`` stays next to the rewritten one.
    """
    escaped = re.escape(input_id)
    pattern = re.compile(rf"#\s*(inputs\.)?{escaped}(\.url)?\s*=")
    return pattern.search(text) is not None
