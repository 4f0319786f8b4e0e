"""
Run use case — bring one resource up as a local process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from kubefs.adapters.registry import AdapterRegistry, default_registry
from kubefs.core.config.loader import load_project, project_root, resolve_manifest_path
from kubefs.core.engine.executor import run_steps
from kubefs.core.errors import KubefsError
from kubefs.core.models.action import Receipt
from kubefs.core.services.graph import check_integrity
from kubefs.core.services.local_run import LocalInvocation, compile_local
from kubefs.core.services.wiring import read_secret_file

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a local run."""

    resource: str = ""
    invocation: LocalInvocation | None = None
    receipts: list[Receipt] = field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "resource": self.resource,
            "ok": self.ok,
            "invocation": self.invocation.to_dict() if self.invocation else None,
            "error": self.error,
            "error_kind": self.error_kind,
        }


def run_local(
    name: str,
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    dry_run: bool = False,
) -> RunResult:
    """Compile and run ``name``'s bring-up command in its directory.

    The process inherits the terminal and blocks until it exits.
    """
    result = RunResult(resource=name)
    registry = registry or default_registry()
    try:
        path = resolve_manifest_path(manifest_path)
        project = load_project(path)
        check_integrity(project)
        root = project_root(path)

        invocation = compile_local(project, name, read_secret_file(root, name))
        result.invocation = invocation
        logger.info("Running '%s' locally", name)
        result.receipts = run_steps(
            registry,
            [invocation.command],
            project_root=root,
            entity=name,
            cwd=invocation.cwd,
            prefix="run",
            dry_run=dry_run,
            stream=True,
        )
    except KubefsError as e:
        result.error = str(e)
        result.error_kind = type(e).__name__
    return result
