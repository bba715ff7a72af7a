"""
Process runner — the one place flakesweep starts child processes.

stderr is never captured: nix, git and direnv talk to the operator
directly. stdout is captured only for operations whose output we parse
(``nix flake metadata --json``, ``nix-editor``).
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from collections.abc import Mapping, Sequence
from pathlib import Path

from flakesweep.core.models.action import Receipt
from flakesweep.core.reliability.sigint_guard import SigintGuard

logger = logging.getLogger(__name__)


def run_command(
    adapter: str,
    action_id: str,
    argv: Sequence[str],
    cwd: Path,
    *,
    capture: bool = False,
    env: Mapping[str, str] | None = None,
    guard_sigint: bool = True,
) -> Receipt:
    """Run ``argv`` in ``cwd`` and describe the outcome as a Receipt.

    Args:
        adapter: Adapter name recorded on the receipt.
        action_id: Action id recorded on the receipt.
        argv: Program and arguments (never passed through a shell).
        cwd: Working directory.
        capture: Capture stdout into ``Receipt.output``.
        env: Extra environment variables layered over ours.
        guard_sigint: Suppress SIGINT in this process while the child runs.
            Interactive children (editor, shell) manage the terminal themselves.
    """
    command = shlex.join(argv)
    logger.debug("Executing: %s (cwd=%s)", command, cwd)
    start = time.monotonic()

    child_env = {**os.environ, **env} if env else None

    try:
        if guard_sigint:
            with SigintGuard():
                result = _run(argv, cwd, capture, child_env)
        else:
            result = _run(argv, cwd, capture, child_env)
    except OSError as e:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Cannot run {argv[0]}: {e}",
            metadata={"command": command},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    output = result.stdout if capture else ""

    if result.returncode == 0:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=output,
            duration_ms=elapsed_ms,
            returncode=0,
            metadata={"command": command},
        )

    logger.info("%s exited with code %d", command, result.returncode)
    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=f"{argv[0]} exited with code {result.returncode}",
        output=output,
        duration_ms=elapsed_ms,
        returncode=result.returncode,
        metadata={"command": command},
    )


def _run(
    argv: Sequence[str],
    cwd: Path,
    capture: bool,
    env: Mapping[str, str] | None,
) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        list(argv),
        cwd=cwd,
        stdout=subprocess.PIPE if capture else None,
        text=True,
        env=env,
        check=False,
    )
