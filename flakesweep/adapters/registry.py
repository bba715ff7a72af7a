"""
Adapter registry — the only way services reach an external tool.

    services ──run("nix", "lock", cwd)──► registry ──► NixAdapter ──► Receipt

Lookup, parameter validation and timing happen here, so an adapter only
has to turn a validated context into a process call. Whatever goes wrong
on the way comes back as a failed Receipt: a missing adapter, bad params,
or an adapter that raised.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus the dispatch that never raises."""

    def __init__(self, adapters: Iterable[Adapter] = ()):
        self._adapters: dict[str, Adapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: Adapter) -> None:
        """Add ``adapter``; a later registration under the same name wins."""
        if adapter.name in self._adapters:
            logger.debug("Replacing adapter %s", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        return list(self._adapters)

    def missing_tools(self, names: Iterable[str]) -> list[str]:
        """Names among ``names`` with no adapter or no installed tool."""
        missing = []
        for name in names:
            adapter = self._adapters.get(name)
            if adapter is None or not _available(adapter):
                missing.append(name)
        return missing

    def run(self, adapter: str, operation: str, working_dir: Path, **params: Any) -> Receipt:
        """Run ``adapter``'s ``operation`` in ``working_dir``."""
        return self.execute_action(
            Action(adapter=adapter, operation=operation, params=params),
            working_dir,
        )

    def execute_action(self, action: Action, working_dir: Path) -> Receipt:
        """Validate and execute one action, timing it."""
        started = time.monotonic()
        receipt = self._dispatch(action, working_dir)
        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug("%s in %s: %s (%dms)", action.id, working_dir, receipt.status, receipt.duration_ms)
        return receipt

    def _dispatch(self, action: Action, working_dir: Path) -> Receipt:
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return _refused(action, f"No adapter registered for '{action.adapter}'")

        context = ExecutionContext(action=action, working_dir=working_dir, params=action.params)
        try:
            valid, reason = adapter.validate(context)
            if not valid:
                return _refused(action, f"Validation failed: {reason}")
            return adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", action.adapter, action.operation, e)
            return _refused(action, f"Unexpected error: {e}")


def _available(adapter: Adapter) -> bool:
    try:
        return adapter.is_available()
    except Exception:
        logger.debug("Availability check for %s raised", adapter.name, exc_info=True)
        return False


def _refused(action: Action, error: str) -> Receipt:
    return Receipt.failure(adapter=action.adapter, action_id=action.id, error=error)
