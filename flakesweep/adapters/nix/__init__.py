"""Nix adapters — the flake CLI and the flake.nix structural editor."""


def nix_string(text: str) -> str:
    """Quote ``text`` as a Nix double-quoted string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("${", "\\${")
    return f'"{escaped}"'
