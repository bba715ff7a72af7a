"""
Error taxonomy shared by services, use cases and the CLI.

Filesystem failures are left as the builtin ``OSError``; stale gcroots are
not errors at all and never reach this module.
"""

from __future__ import annotations


class FlakeSweepError(Exception):
    """Base class for every error flakesweep raises on purpose."""


class FormatError(FlakeSweepError):
    """A document failed schema or version checks."""


class MissingDataError(FlakeSweepError):
    """An expected key, node or file is absent."""


class ExternalToolError(FlakeSweepError):
    """A delegated process exited with a non-zero status."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode
