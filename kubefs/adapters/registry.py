"""
Adapter registry — dispatch point between the core and command executors.

The engine never talks to an adapter directly. In mock mode every
action is routed to a single mock adapter, which lets the whole CLI
run without touching minikube, helm or docker.
"""

from __future__ import annotations

import logging
import time

from kubefs.adapters.base import Adapter, ExecutionContext
from kubefs.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Registers adapters by name and executes actions through them."""

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Route every action to ``mock_adapter`` (or a canned success) while enabled."""
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def execute_action(
        self,
        action: Action,
        project_root: str = ".",
        dry_run: bool = False,
    ) -> Receipt:
        """Validate and run one action. Always returns a Receipt.

        In dry-run mode nothing runs; the action is answered with a
        'skipped' receipt whose output is the command line.
        """
        start_time = time.monotonic()
        context = ExecutionContext(action=action, project_root=project_root, dry_run=dry_run)

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=action.command,
                metadata={"dry_run": True},
            )

        adapter: Adapter | None
        if self._mock_mode and self._mock_adapter:
            adapter = self._mock_adapter
        elif self._mock_mode:
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.command}",
                metadata={"mock": True},
            )
        else:
            adapter = self._adapters.get(action.adapter)

        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )

        is_valid, error_msg = adapter.validate(context)
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        receipt = adapter.execute(context)
        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt


def default_registry() -> AdapterRegistry:
    """A registry with the shell adapter registered."""
    from kubefs.adapters.shell.command import ShellCommandAdapter

    registry = AdapterRegistry()
    registry.register(ShellCommandAdapter())
    return registry
