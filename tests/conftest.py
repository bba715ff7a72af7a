"""
Shared test fixtures and configuration.
"""

import json
from pathlib import Path

import pytest

from flakesweep.adapters.mock import MockAdapter
from flakesweep.adapters.registry import AdapterRegistry

from tests.lockdocs import FLAKE_NIX, TARGET_URL, lock_doc, target_metadata


@pytest.fixture
def nix() -> MockAdapter:
    """Mock ``nix`` that describes nixpkgs-24.11 as the target."""
    mock = MockAdapter("nix")
    mock.set_output("metadata", json.dumps(target_metadata()))
    return mock


@pytest.fixture
def nix_editor() -> MockAdapter:
    """Mock ``nix-editor`` that rewrites the nixpkgs URL in FLAKE_NIX."""
    mock = MockAdapter("nix-editor")
    mock.set_output(
        "set",
        FLAKE_NIX.replace("github:NixOS/nixpkgs/nixos-24.05", TARGET_URL),
    )
    return mock


@pytest.fixture
def registry(nix: MockAdapter, nix_editor: MockAdapter) -> AdapterRegistry:
    return AdapterRegistry(
        [
            nix,
            nix_editor,
            MockAdapter("git"),
            MockAdapter("direnv"),
            MockAdapter("terminal"),
        ]
    )


@pytest.fixture
def make_flake(tmp_path: Path):
    """Factory: create a flake directory with flake.nix and flake.lock."""

    def _make(name: str = "proj", lock: dict | None = None, flake_nix: str = FLAKE_NIX) -> Path:
        directory = tmp_path / name
        directory.mkdir(parents=True)
        (directory / "flake.nix").write_text(flake_nix)
        (directory / "flake.lock").write_text(json.dumps(lock or lock_doc()))
        return directory.resolve()

    return _make


@pytest.fixture
def gcroots_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "gcroots"
    directory.mkdir()
    return directory


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the operator's real settings and nix registry out of tests."""
    config_home = tmp_path / "xdg-config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.delenv("FLAKESWEEP_CONFIG", raising=False)
    monkeypatch.delenv("FLAKESWEEP_LOG_LEVEL", raising=False)
    monkeypatch.delenv("FLAKESWEEP_LOG_FILE", raising=False)
    return config_home
