"""
Scriptable stand-in for a tool adapter.

``MockAdapter("nix")`` takes the place of the real nix adapter in the
registry. Every operation succeeds with ``default_output`` unless a test
scripts it with :meth:`set_output`, :meth:`set_failure`, or a handler via
:meth:`set_response` (useful when the fake has to touch files, such as
rewriting a lock).
"""

from __future__ import annotations

from collections.abc import Callable

from flakesweep.adapters.base import Adapter, ExecutionContext
from flakesweep.core.models.action import Receipt

Handler = Callable[[ExecutionContext], Receipt]


class MockAdapter(Adapter):
    def __init__(self, adapter_name: str = "mock", available: bool = True, default_output: str = ""):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._scripted: dict[str, Receipt | Handler] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def calls(self, operation: str) -> list[ExecutionContext]:
        """Contexts received for ``operation``, oldest first."""
        return [ctx for ctx in self.call_log if ctx.action.operation == operation]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, operation: str, response: Receipt | Handler) -> None:
        self._scripted[operation] = response

    def set_output(self, operation: str, output: str) -> None:
        self._scripted[operation] = self._receipt(operation, output=output)

    def set_failure(self, operation: str, error: str = "Mock failure") -> None:
        self._scripted[operation] = Receipt.failure(
            adapter=self._name,
            action_id=f"{self._name}:{operation}",
            error=error,
            returncode=1,
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)
        scripted = self._scripted.get(context.action.operation)
        if scripted is None:
            return self._receipt(context.action.operation, output=self._default_output)
        if callable(scripted):
            return scripted(context)
        return scripted.model_copy()

    def reset(self) -> None:
        """Forget recorded calls and scripted responses."""
        self.call_log.clear()
        self._scripted.clear()

    def _receipt(self, operation: str, output: str) -> Receipt:
        return Receipt.success(adapter=self._name, action_id=f"{self._name}:{operation}", output=output)
