"""
Tests for adapter protocol, registry, mock, and tool adapters.
"""

import shutil
from pathlib import Path

import pytest

from flakesweep.adapters import default_registry
from flakesweep.adapters.base import ExecutionContext
from flakesweep.adapters.mock import MockAdapter
from flakesweep.adapters.nix import editor as editor_module
from flakesweep.adapters.nix import flake as flake_module
from flakesweep.adapters.nix.editor import NixEditorAdapter
from flakesweep.adapters.nix.flake import NixAdapter
from flakesweep.adapters.registry import AdapterRegistry
from flakesweep.adapters.shell import terminal as terminal_module
from flakesweep.adapters.shell.command import run_command
from flakesweep.adapters.shell.terminal import PROMPTEXTRA_ADDITION, TerminalAdapter
from flakesweep.adapters.vcs import git as git_module
from flakesweep.adapters.vcs.git import GitAdapter
from flakesweep.core.models.action import Action, Receipt


def _context(adapter: str, operation: str, **params) -> ExecutionContext:
    return ExecutionContext(
        action=Action(adapter=adapter, operation=operation, params=params),
        working_dir=Path("/work"),
        params=params,
    )


@pytest.fixture
def recorded(monkeypatch):
    """Capture the argv an adapter would run instead of running it."""
    calls = []

    def fake_run_command(adapter, action_id, argv, cwd, **kwargs):
        calls.append({"argv": list(argv), "cwd": cwd, **kwargs})
        return Receipt.success(adapter=adapter, action_id=action_id, output="out")

    for module in (flake_module, editor_module, git_module, terminal_module):
        monkeypatch.setattr(module, "run_command", fake_run_command)
    return calls


# ── Models ───────────────────────────────────────────────────────


class TestActionReceipt:
    def test_action_id(self):
        assert Action(adapter="nix", operation="lock").id == "nix:lock"

    def test_success(self):
        receipt = Receipt.success(adapter="nix", action_id="nix:lock", output="x")
        assert receipt.ok and not receipt.failed
        assert receipt.output == "x"

    def test_failure(self):
        receipt = Receipt.failure(adapter="nix", action_id="nix:lock", error="boom", returncode=2)
        assert receipt.failed
        assert receipt.returncode == 2


# ── Mock Adapter Tests ───────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter("nix", default_output="{}")
        receipt = mock.execute(_context("nix", "metadata"))
        assert receipt.ok
        assert receipt.output == "{}"
        assert mock.call_count == 1

    def test_set_output(self):
        mock = MockAdapter("nix")
        mock.set_output("metadata", "custom")
        assert mock.execute(_context("nix", "metadata")).output == "custom"
        assert mock.execute(_context("nix", "lock")).output == ""

    def test_set_failure(self):
        mock = MockAdapter("git")
        mock.set_failure("commit", error="Intentional failure")
        receipt = mock.execute(_context("git", "commit", message="m"))
        assert receipt.failed
        assert "Intentional failure" in receipt.error

    def test_handler(self):
        mock = MockAdapter("nix")
        mock.set_response(
            "update",
            lambda ctx: Receipt.success(adapter="nix", action_id=ctx.action.id, output=ctx.params["input"]),
        )
        assert mock.execute(_context("nix", "update", input="nixpkgs")).output == "nixpkgs"

    def test_calls_by_operation(self):
        mock = MockAdapter("git")
        mock.execute(_context("git", "add", files=["flake.nix"]))
        mock.execute(_context("git", "commit", message="m"))
        assert [c.params["message"] for c in mock.calls("commit")] == ["m"]

    def test_reset(self):
        mock = MockAdapter("nix")
        mock.set_failure("lock")
        mock.execute(_context("nix", "lock"))
        mock.reset()
        assert mock.call_count == 0
        assert mock.execute(_context("nix", "lock")).ok


# ── Registry Tests ───────────────────────────────────────────────


class TestAdapterRegistry:
    def test_register_and_get(self):
        mock = MockAdapter("nix")
        registry = AdapterRegistry([mock])
        assert registry.get("nix") is mock
        assert registry.list_adapters() == ["nix"]

    def test_run(self):
        mock = MockAdapter("nix")
        registry = AdapterRegistry([mock])
        receipt = registry.run("nix", "update", Path("/proj"), input="nixpkgs")
        assert receipt.ok
        assert mock.call_log[0].working_dir == Path("/proj")
        assert mock.call_log[0].params == {"input": "nixpkgs"}

    def test_unknown_adapter(self):
        receipt = AdapterRegistry().run("nix", "lock", Path("."))
        assert receipt.failed
        assert "No adapter" in receipt.error
        assert receipt.returncode is None

    def test_validation_failure(self):
        registry = AdapterRegistry([NixAdapter()])
        receipt = registry.run("nix", "frobnicate", Path("."))
        assert receipt.failed
        assert "Unknown operation" in receipt.error

    def test_missing_param(self):
        registry = AdapterRegistry([NixAdapter()])
        receipt = registry.run("nix", "update", Path("."))
        assert receipt.failed
        assert "input" in receipt.error

    def test_adapter_exception_becomes_failure(self):
        mock = MockAdapter("nix")
        mock.set_response("lock", lambda ctx: 1 / 0)
        receipt = AdapterRegistry([mock]).run("nix", "lock", Path("."))
        assert receipt.failed
        assert "Unexpected error" in receipt.error

    def test_missing_tools(self):
        registry = AdapterRegistry([MockAdapter("nix"), MockAdapter("git", available=False)])
        assert registry.missing_tools(["nix", "git", "direnv"]) == ["git", "direnv"]

    def test_availability_check_raising_counts_as_missing(self, monkeypatch):
        mock = MockAdapter("nix")
        monkeypatch.setattr(mock, "is_available", lambda: 1 / 0)
        assert AdapterRegistry([mock]).missing_tools(["nix"]) == ["nix"]

    def test_default_registry(self):
        assert set(default_registry().list_adapters()) == {
            "nix",
            "nix-editor",
            "git",
            "direnv",
            "terminal",
        }


# ── Tool adapters ────────────────────────────────────────────────


class TestNixAdapter:
    def test_metadata(self, recorded):
        receipt = NixAdapter().execute(_context("nix", "metadata", ref="nixpkgs"))
        assert receipt.output == "out"
        assert recorded[0]["argv"] == ["nix", "flake", "metadata", "--json", "nixpkgs"]
        assert recorded[0]["capture"] is True

    def test_flake_ref_to_string(self, recorded):
        NixAdapter().execute(_context("nix", "flake-ref-to-string", attrs={"type": "indirect", "id": "nixpkgs"}))
        argv = recorded[0]["argv"]
        assert argv[:4] == ["nix", "eval", "--raw", "--expr"]
        assert argv[4] == (
            'builtins.flakeRefToString (builtins.fromJSON "{\\"id\\": \\"nixpkgs\\", \\"type\\": \\"indirect\\"}")'
        )

    def test_update_and_lock_inherit_stdout(self, recorded):
        NixAdapter().execute(_context("nix", "update", input="nixpkgs"))
        NixAdapter().execute(_context("nix", "lock"))
        assert recorded[0]["argv"] == ["nix", "flake", "update", "nixpkgs"]
        assert recorded[1]["argv"] == ["nix", "flake", "lock"]
        assert recorded[0]["capture"] is False
        assert recorded[0]["cwd"] == Path("/work")


class TestNixEditorAdapter:
    def test_set(self, recorded):
        NixEditorAdapter().execute(
            _context("nix-editor", "set", file=Path("/work/flake.nix"), attribute="inputs.nixpkgs.url", value='"x"')
        )
        assert recorded[0]["argv"] == ["nix-editor", "/work/flake.nix", "inputs.nixpkgs.url", "-v", '"x"']
        assert recorded[0]["capture"] is True


class TestGitAdapter:
    @pytest.mark.parametrize(
        "operation,params,args",
        [
            ("has-commits", {}, ["log", "-0"]),
            ("stage-clean", {}, ["diff", "--quiet", "--cached", "--exit-code"]),
            ("add", {"files": ["flake.nix", "flake.lock"]}, ["add", "--", "flake.nix", "flake.lock"]),
            ("commit", {"message": "chore: bump"}, ["commit", "-m", "chore: bump"]),
        ],
    )
    def test_operations(self, recorded, operation, params, args):
        GitAdapter().execute(_context("git", operation, **params))
        assert recorded[0]["argv"] == ["git", *args]

    def test_empty_message_rejected(self):
        valid, error = GitAdapter().validate(_context("git", "commit", message=""))
        assert not valid
        assert "empty" in error

    def test_nothing_to_stage(self):
        valid, _ = GitAdapter().validate(_context("git", "add", files=[]))
        assert not valid


class TestTerminalAdapter:
    def test_editor_missing(self, monkeypatch):
        monkeypatch.delenv("EDITOR", raising=False)
        receipt = TerminalAdapter().execute(_context("terminal", "editor", file=Path("/work/flake.nix")))
        assert receipt.failed
        assert receipt.error == "EDITOR environment variable missing"

    def test_shell_missing(self, monkeypatch):
        monkeypatch.delenv("SHELL", raising=False)
        receipt = TerminalAdapter().execute(_context("terminal", "shell"))
        assert receipt.failed
        assert "SHELL" in receipt.error

    def test_editor_with_flags(self, monkeypatch, recorded):
        monkeypatch.setenv("EDITOR", "code --wait")
        TerminalAdapter().execute(_context("terminal", "editor", file=Path("/work/flake.nix")))
        assert recorded[0]["argv"] == ["code", "--wait", "/work/flake.nix"]
        assert recorded[0]["guard_sigint"] is False

    def test_shell_prompt_extra(self, monkeypatch, recorded):
        monkeypatch.setenv("SHELL", "/bin/zsh")
        monkeypatch.setenv("PROMPTEXTRA", "nix")
        TerminalAdapter().execute(_context("terminal", "shell"))
        assert recorded[0]["argv"] == ["/bin/zsh"]
        assert recorded[0]["env"] == {"PROMPTEXTRA": f"nix {PROMPTEXTRA_ADDITION}"}


# ── Process runner ───────────────────────────────────────────────


@pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")
class TestRunCommand:
    def test_captures_stdout(self, tmp_path):
        receipt = run_command("t", "t:op", ["sh", "-c", "echo hello"], tmp_path, capture=True)
        assert receipt.ok
        assert receipt.output == "hello\n"
        assert receipt.returncode == 0

    def test_runs_in_cwd(self, tmp_path):
        receipt = run_command("t", "t:op", ["sh", "-c", "pwd"], tmp_path, capture=True)
        assert Path(receipt.output.strip()).resolve() == tmp_path.resolve()

    def test_nonzero_exit(self, tmp_path):
        receipt = run_command("t", "t:op", ["sh", "-c", "exit 3"], tmp_path)
        assert receipt.failed
        assert receipt.returncode == 3

    def test_extra_env(self, tmp_path):
        receipt = run_command(
            "t", "t:op", ["sh", "-c", 'echo "$FLAKESWEEP_TEST"'], tmp_path, capture=True, env={"FLAKESWEEP_TEST": "yes"}
        )
        assert receipt.output == "yes\n"

    def test_missing_program(self, tmp_path):
        receipt = run_command("t", "t:op", ["definitely-not-a-real-program-xyz"], tmp_path)
        assert receipt.failed
        assert receipt.returncode is None
        assert "Cannot run" in receipt.error
