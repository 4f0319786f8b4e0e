"""
Deploy / undeploy use cases — cluster batches.

Pre-conditions are checked once before any element runs: the manifest
must pass the integrity check, the provider must have a main cluster,
and activating that cluster's context must succeed. After that every
element is compiled and run independently; failures are recorded and
the batch continues.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from kubefs.adapters.registry import AdapterRegistry, default_registry
from kubefs.core.config.loader import load_project, project_root, resolve_manifest_path
from kubefs.core.engine.executor import BatchReport, run_batch, run_steps
from kubefs.core.errors import KubefsError
from kubefs.core.models.action import Receipt
from kubefs.core.services.context_switch import ClusterContext, activate_context, resolve_context
from kubefs.core.services.graph import check_integrity
from kubefs.core.services.helm import compile_deploy, compile_undeploy
from kubefs.core.services.wiring import read_secret_file
from kubefs.core.use_cases.testbed import select_entities

logger = logging.getLogger(__name__)


@dataclass
class DeployResult:
    """Outcome of a deploy or undeploy batch."""

    operation: str = "deploy"
    provider: str = ""
    context: ClusterContext | None = None
    report: BatchReport | None = None
    error: str | None = None
    error_kind: str | None = None
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.all_ok

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "provider": self.provider,
            "ok": self.ok,
            "context": self.context.to_dict() if self.context else None,
            "report": self.report.to_dict() if self.report else None,
            "error": self.error,
            "error_kind": self.error_kind,
            "output": self.output,
        }


def _cluster_batch(
    operation: str,
    provider: str,
    names: Sequence[str],
    addons: Sequence[str],
    manifest_path: Path | None,
    registry: AdapterRegistry | None,
    dry_run: bool,
) -> DeployResult:
    result = DeployResult(operation=operation, provider=provider)
    registry = registry or default_registry()
    try:
        path = resolve_manifest_path(manifest_path)
        project = load_project(path)
        check_integrity(project)
        context = resolve_context(project, provider)
        result.context = context
        root = project_root(path)
        activate_context(context, registry, project_root=root, dry_run=dry_run)
    except KubefsError as e:
        result.error = str(e)
        result.error_kind = type(e).__name__
        result.output = getattr(e, "output", "")
        return result

    logger.info("%s on %s cluster '%s'", operation, provider, context.cluster)

    def step(name: str) -> list[Receipt]:
        if operation == "deploy":
            secrets = read_secret_file(root, name) if name in project.resources else []
            commands = compile_deploy(project, name, context, secrets)
        else:
            commands = compile_undeploy(project, name, context)
        return run_steps(
            registry, commands,
            project_root=root, entity=name, prefix=operation, dry_run=dry_run,
        )

    result.report = run_batch(operation, select_entities(project, names, addons), step)
    return result


def deploy(
    names: Sequence[str] = (),
    addons: Sequence[str] = (),
    provider: str = "minikube",
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    dry_run: bool = False,
) -> DeployResult:
    """Deploy the named resources and addons (default: everything)."""
    return _cluster_batch("deploy", provider, names, addons, manifest_path, registry, dry_run)


def undeploy(
    names: Sequence[str] = (),
    addons: Sequence[str] = (),
    provider: str = "minikube",
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    dry_run: bool = False,
) -> DeployResult:
    """Uninstall the named resources and addons (default: everything)."""
    return _cluster_batch("undeploy", provider, names, addons, manifest_path, registry, dry_run)
