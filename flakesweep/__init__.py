"""flakesweep — find flakes behind Nix garbage collector roots and bump their inputs."""

__version__ = "0.1.0"
