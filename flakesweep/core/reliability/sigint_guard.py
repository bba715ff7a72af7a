"""
SIGINT guard — keep Ctrl+C aimed at a child process from killing us.

While ``nix flake lock`` (or any other delegated tool) runs in the
foreground, the terminal delivers SIGINT to the whole process group.
The child should die; flakesweep should not, because it may be between
writing ``flake.nix`` and recording what it did.

Usage:
    with SigintGuard():
        subprocess.run([...])

The guard installs a handler that does nothing rather than ``SIG_IGN``:
ignored dispositions survive ``exec`` and the child would ignore Ctrl+C
too, while caught signals are reset to the default in the child.
"""

from __future__ import annotations

import logging
import signal
from types import FrameType, TracebackType
from typing import Any

logger = logging.getLogger(__name__)


def _swallow(signum: int, frame: FrameType | None) -> None:
    logger.debug("SIGINT received while a child process owns the terminal")


class SigintGuard:
    """Context manager that suppresses SIGINT for its duration."""

    def __init__(self) -> None:
        self._previous: Any = None
        self._installed = False

    def __enter__(self) -> SigintGuard:
        self._previous = signal.signal(signal.SIGINT, _swallow)
        self._installed = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._installed:
            # None means the previous handler was not installed from Python
            signal.signal(signal.SIGINT, self._previous if self._previous is not None else signal.SIG_DFL)
            self._installed = False
