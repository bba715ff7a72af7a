"""
Tests for prompt command parsing.
"""

import pytest

from flakesweep.core.services.prompt import PromptCommand


class TestPromptCommand:
    @pytest.mark.parametrize(
        "token,command",
        [
            ("a", PromptCommand.APPLY),
            ("n", PromptCommand.NEXT),
            ("e", PromptCommand.EDIT),
            ("sh", PromptCommand.SHELL),
            ("up", PromptCommand.UPDATE_INPUT),
            ("dg", PromptCommand.DELETE_GCROOTS),
            ("lock", PromptCommand.LOCK),
            ("direnv", PromptCommand.REFRESH_DIRENV),
            ("commit", PromptCommand.COMMIT),
            ("?", PromptCommand.HELP),
            ("  lock \n", PromptCommand.LOCK),
        ],
    )
    def test_parse(self, token, command):
        assert PromptCommand.parse(token) is command

    @pytest.mark.parametrize("token", ["", "A", "apply", "x", "lock now"])
    def test_unknown(self, token):
        assert PromptCommand.parse(token) is None

    def test_writing_commands(self):
        writing = {c for c in PromptCommand if c.writes}
        assert writing == {
            PromptCommand.APPLY,
            PromptCommand.UPDATE_INPUT,
            PromptCommand.DELETE_GCROOTS,
            PromptCommand.LOCK,
        }

    def test_every_command_described(self):
        for command in PromptCommand:
            assert command.description
