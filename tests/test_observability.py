"""
Tests for logging setup.
"""

import logging

import pytest

from flakesweep.core.observability.logging_config import ClickHandler, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestResolveLevel:
    def test_flags_win(self):
        env = {"FLAKESWEEP_LOG_LEVEL": "ERROR"}
        assert resolve_level(debug=True, environ=env) == "DEBUG"
        assert resolve_level(verbose=True, environ=env) == "INFO"
        assert resolve_level(quiet=True, environ={}) == "ERROR"

    def test_debug_beats_quiet(self):
        assert resolve_level(debug=True, quiet=True, environ={}) == "DEBUG"

    def test_environment(self):
        assert resolve_level(environ={"FLAKESWEEP_LOG_LEVEL": "info"}) == "info"

    def test_default(self):
        assert resolve_level(environ={}) == "WARNING"


class TestSetupLogging:
    def _ours(self):
        return [h for h in logging.getLogger().handlers if (h.get_name() or "").startswith("flakesweep-")]

    def test_console_handler(self):
        setup_logging("INFO")
        handlers = self._ours()
        assert len(handlers) == 1
        assert isinstance(handlers[0], ClickHandler)
        assert handlers[0].level == logging.INFO
        assert logging.getLogger().level == logging.INFO

    def test_repeated_setup_does_not_stack(self):
        setup_logging("INFO")
        setup_logging("DEBUG")
        assert len(self._ours()) == 1

    def test_unknown_level_falls_back(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_output(self, tmp_path):
        log_file = tmp_path / "flakesweep.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        logging.getLogger("flakesweep.test").debug("lock file decoded")
        for handler in self._ours():
            handler.flush()

        assert logging.getLogger().level == logging.DEBUG
        assert "lock file decoded" in log_file.read_text()

    def test_console_strips_package_prefix(self, capsys):
        setup_logging("INFO")
        logging.getLogger("flakesweep.core.services.discovery").info("Found 2 workspace(s)")
        err = capsys.readouterr().err
        assert "[core.services.discovery] Found 2 workspace(s)" in err
