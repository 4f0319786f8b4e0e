"""
Mock adapter — records commands instead of running them.

Used by tests and by ``AdapterRegistry(mock_mode=True)``. Individual
action ids, or any command containing a given fragment, can be set up
to fail.
"""

from __future__ import annotations

from kubefs.adapters.base import Adapter, ExecutionContext
from kubefs.core.models.action import Receipt


class MockAdapter(Adapter):
    """Succeeds by default; remembers every context it was given."""

    def __init__(
        self,
        adapter_name: str = "mock",
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._failing_fragments: dict[str, str] = {}
        self._outputs: dict[str, str] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Command lines received, in order."""
        return [ctx.action.command for ctx in self._call_log]

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Answer ``action_id`` with a fixed receipt."""
        self._responses[action_id] = receipt

    def fail_when(self, fragment: str, error: str = "Mock failure") -> None:
        """Fail every command whose text contains ``fragment``."""
        self._failing_fragments[fragment] = error

    def output_when(self, fragment: str, output: str) -> None:
        """Print ``output`` for every command whose text contains ``fragment``."""
        self._outputs[fragment] = output

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action = context.action

        if action.id in self._responses:
            return self._responses[action.id]

        for fragment, error in self._failing_fragments.items():
            if fragment in action.command:
                return Receipt.failure(
                    adapter=self._name,
                    action_id=action.id,
                    error=error,
                    metadata={"mock": True, "command": action.command},
                )

        output = self._default_output
        for fragment, text in self._outputs.items():
            if fragment in action.command:
                output = text
                break

        return Receipt.success(
            adapter=self._name,
            action_id=action.id,
            output=output,
            metadata={"mock": True, "command": action.command},
        )

    def reset(self) -> None:
        self._call_log.clear()
        self._responses.clear()
        self._failing_fragments.clear()
        self._outputs.clear()
