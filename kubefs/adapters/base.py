"""
Adapter base — the contract between the core and external tools.

The core compiles manifest entities into Actions. An adapter runs an
Action and reports the outcome as a Receipt. Adapters never raise:
a failing command is a Receipt with status 'failed'.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from kubefs.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """The adapter's view of one command: what to run, where, and whether for real."""

    action: Action
    project_root: str = "."
    dry_run: bool = False

    @property
    def working_dir(self) -> str:
        """``action.cwd`` resolved against the project root."""
        if self.action.cwd:
            return f"{self.project_root}/{self.action.cwd}"
        return self.project_root


class Adapter(ABC):
    """Abstract base class for command executors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g. 'shell')."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Return (is_valid, error_message); the message is empty if valid."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action. Failures are reported in the Receipt, never raised."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
