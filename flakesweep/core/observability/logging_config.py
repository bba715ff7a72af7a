"""
Logging configuration — set up once by the CLI entrypoint.

Every module that does ``logger = logging.getLogger(__name__)`` inherits
this config. Logging carries diagnostics only; diffs, prompts and reports
are written with click directly.

Console records go through ``click.echo(err=True)`` so they share stderr
with nix, git and direnv, which write there uninterpreted.

Level precedence:
    --debug / --verbose / --quiet  >  FLAKESWEEP_LOG_LEVEL  >  WARNING

Optional file output via FLAKESWEEP_LOG_FILE / FLAKESWEEP_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping

import click

LOG_LEVEL_ENV = "FLAKESWEEP_LOG_LEVEL"
LOG_FILE_ENV = "FLAKESWEEP_LOG_FILE"
LOG_FILE_LEVEL_ENV = "FLAKESWEEP_LOG_FILE_LEVEL"

_PACKAGE_PREFIX = "flakesweep."
_HANDLER_PREFIX = "flakesweep-"

_CONSOLE_FORMATS = {
    logging.DEBUG: "%(asctime)s %(levelname)-5s %(shortname)s:%(lineno)d %(message)s",
    logging.INFO: "%(asctime)s [%(shortname)s] %(message)s",
    logging.WARNING: "%(levelname)s: %(message)s",
}
_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLOURS = {
    logging.DEBUG: "bright_black",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class _ShortNameFilter(logging.Filter):
    """Adds ``shortname``: the logger name without the package prefix."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        record.shortname = name[len(_PACKAGE_PREFIX):] if name.startswith(_PACKAGE_PREFIX) else name
        return True


class ClickHandler(logging.Handler):
    """Console handler writing coloured records through click."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.secho(self.format(record), err=True, fg=_LEVEL_COLOURS.get(record.levelno))
        except Exception:
            self.handleError(record)


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(LOG_LEVEL_ENV) or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
    """
    console_level = _parse_level(level)

    console = ClickHandler()
    console.set_name(f"{_HANDLER_PREFIX}console")
    console.setLevel(console_level)
    console.addFilter(_ShortNameFilter())
    fmt = _CONSOLE_FORMATS[_format_level(console_level)]
    console.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if (handler.get_name() or "").startswith(_HANDLER_PREFIX):
            root.removeHandler(handler)
            handler.close()
    root.addHandler(console)

    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.set_name(f"{_HANDLER_PREFIX}file")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(file_handler)

    root.setLevel(root_level)

    # Handler errors are dropped, not raised
    logging.raiseExceptions = False


def _format_level(level: int) -> int:
    if level <= logging.DEBUG:
        return logging.DEBUG
    if level <= logging.INFO:
        return logging.INFO
    return logging.WARNING


def _parse_level(level: str | None) -> int:
    """``"info"`` -> ``logging.INFO``; anything unknown is WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
