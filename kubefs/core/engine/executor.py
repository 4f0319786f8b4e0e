"""
Engine executor — runs compiled commands and aggregates batch results.

Two levels:
    run_steps   one element's commands, in order, stopping at the first
                failure (raised as ExternalFailureError)
    run_batch   a sequence of named elements, best effort: a failing
                element is recorded and the loop moves on

Execution is sequential and single-threaded, in the order given.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from kubefs.adapters.registry import AdapterRegistry
from kubefs.core.errors import ExternalFailureError, KubefsError
from kubefs.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


@dataclass
class ElementResult:
    """Outcome for one named element of a batch."""

    name: str
    ok: bool
    receipts: list[Receipt] = field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None
    output: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "error": self.error,
            "error_kind": self.error_kind,
            "output": self.output,
            "commands": [r.metadata.get("command", r.output) for r in self.receipts],
        }


@dataclass
class BatchReport:
    """Aggregated result of a best-effort batch."""

    operation: str = ""
    operation_id: str = field(default_factory=lambda: f"op-{uuid.uuid4().hex[:12]}")
    elements: list[ElementResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [e.name for e in self.elements if e.ok]

    @property
    def failed(self) -> list[str]:
        return [e.name for e in self.elements if not e.ok]

    @property
    def all_ok(self) -> bool:
        return not self.failed

    @property
    def status(self) -> str:
        if not self.failed:
            return "ok"
        if self.succeeded:
            return "partial"
        return "failed"

    def get(self, name: str) -> ElementResult | None:
        for element in self.elements:
            if element.name == name:
                return element
        return None

    def record_success(self, name: str, receipts: list[Receipt] | None = None) -> None:
        self.elements.append(ElementResult(name=name, ok=True, receipts=receipts or []))

    def record_failure(self, name: str, error: KubefsError) -> None:
        self.elements.append(ElementResult(
            name=name,
            ok=False,
            error=str(error),
            error_kind=type(error).__name__,
            output=getattr(error, "output", ""),
        ))
        logger.warning("%s failed for '%s': %s", self.operation or "batch", name, error)

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "operation_id": self.operation_id,
            "status": self.status,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "elements": [e.to_dict() for e in self.elements],
        }


def run_steps(
    registry: AdapterRegistry,
    commands: Iterable[str],
    project_root: Path | str = ".",
    entity: str | None = None,
    cwd: str | None = None,
    prefix: str = "step",
    dry_run: bool = False,
    stream: bool = False,
) -> list[Receipt]:
    """Run commands in order; the first failure aborts the rest.

    Raises:
        ExternalFailureError: a command failed. Its captured output is
            carried on the error.
    """
    receipts: list[Receipt] = []
    for index, command in enumerate(commands, start=1):
        action = Action(
            id=f"{prefix}:{entity or 'project'}:{index}",
            command=command,
            cwd=cwd,
            for_entity=entity,
            stream=stream,
        )
        receipt = registry.execute_action(action, project_root=str(project_root), dry_run=dry_run)
        receipts.append(receipt)
        if receipt.failed:
            raise ExternalFailureError(
                f"Command failed: {command}",
                output=receipt.diagnostics,
                command=command,
            )
    return receipts


def run_batch(
    operation: str,
    names: Iterable[str],
    step: Callable[[str], list[Receipt]],
) -> BatchReport:
    """Apply ``step`` to each name; record failures and keep going.

    Only KubefsError is treated as an element failure. Anything else is
    a bug and propagates.
    """
    report = BatchReport(operation=operation)
    for name in names:
        try:
            receipts = step(name)
        except KubefsError as e:
            report.record_failure(name, e)
            continue
        report.record_success(name, receipts)
        logger.info("%s succeeded for '%s'", operation, name)
    return report
