"""
Settings loader — reads the optional flakesweep config file.

Every setting has a CLI flag; the file only changes the defaults. The
file is looked up in order:

    --config PATH
    $FLAKESWEEP_CONFIG
    $XDG_CONFIG_HOME/flakesweep/config.yml  (~/.config/flakesweep/config.yml)

Example::

    target: github:NixOS/nixpkgs/nixos-24.11
    input: nixpkgs
    freshness: 2 weeks
    diff_context: 5
"""

from __future__ import annotations

import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from flakesweep.core.config.duration import parse_duration
from flakesweep.core.services.discovery import DEFAULT_GCROOTS_DIR

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FLAKESWEEP_CONFIG"
CONFIG_FILE = "config.yml"

DEFAULT_TARGET = "nixpkgs"
DEFAULT_INPUT = "nixpkgs"
DEFAULT_FRESHNESS = "1month"
DEFAULT_DIFF_CONTEXT = 3


class ConfigError(Exception):
    """Raised when the config file is unreadable or invalid."""


class Settings(BaseModel):
    """Defaults for the list/update options."""

    model_config = ConfigDict(extra="forbid")

    target: str = DEFAULT_TARGET
    input: str = DEFAULT_INPUT
    freshness: timedelta = Field(default_factory=lambda: parse_duration(DEFAULT_FRESHNESS))
    gcroots_dir: Path = DEFAULT_GCROOTS_DIR
    diff_context: int = Field(default=DEFAULT_DIFF_CONTEXT, ge=0)
    allow_write: bool = False

    @field_validator("freshness", mode="before")
    @classmethod
    def _parse_freshness(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_duration(value)
        return value


def default_config_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "flakesweep" / CONFIG_FILE


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Locate the config file. An explicit path is returned even if missing."""
    if explicit is not None:
        return explicit

    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)

    candidate = default_config_path()
    return candidate if candidate.is_file() else None


def load_settings(path: Path | None = None) -> Settings:
    """Load settings, falling back to defaults when no file exists.

    Raises:
        ConfigError: If a file was named but is missing or invalid.
    """
    path = find_config_file(path)
    if path is None:
        return Settings()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
