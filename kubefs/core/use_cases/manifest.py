"""
Manifest use cases — init, describe, check, and the shared mutation cycle.

Every graph or registry mutation goes through ``apply_change``:
load the manifest once, run one logical change, write it back once.
A KubefsError anywhere in the change leaves the file untouched and is
reported on the result.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from kubefs.core.config.loader import ConfigError, load_project, resolve_manifest_path
from kubefs.core.errors import KubefsError
from kubefs.core.models.project import Project
from kubefs.core.persistence.manifest_file import init_project, manifest_transaction
from kubefs.core.services.graph import integrity_problems
from kubefs.core.services.wiring import TARGETS, resolve

logger = logging.getLogger(__name__)


# ── Mutations ───────────────────────────────────────────────────


@dataclass
class ChangeResult:
    """Outcome of one manifest mutation."""

    operation: str = ""
    target: str = ""
    ok: bool = False
    changed: bool = False
    detail: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_kind: str | None = None
    output: str = ""

    def fail(self, error: KubefsError) -> ChangeResult:
        self.ok = False
        self.error = str(error)
        self.error_kind = type(error).__name__
        self.output = getattr(error, "output", "")
        return self

    def to_dict(self) -> dict:
        return {
            "operation": self.operation,
            "target": self.target,
            "ok": self.ok,
            "changed": self.changed,
            "detail": self.detail,
            "error": self.error,
            "error_kind": self.error_kind,
            "output": self.output,
        }


def apply_change(
    operation: str,
    target: str,
    mutate: Callable[[Project], Any],
    manifest_path: Path | None = None,
) -> ChangeResult:
    """Run ``mutate`` inside one load/save cycle.

    ``mutate`` may return False to signal a no-op (e.g. an attach that
    already existed) or a dict that is copied into ``result.detail``.
    """
    result = ChangeResult(operation=operation, target=target)
    try:
        with manifest_transaction(manifest_path) as project:
            outcome = mutate(project)
    except KubefsError as e:
        logger.debug("%s %s failed: %s", operation, target, e)
        return result.fail(e)

    result.ok = True
    result.changed = outcome is not False
    if isinstance(outcome, dict):
        result.detail = outcome
    return result


# ── Init ────────────────────────────────────────────────────────


def create_project(directory: Path, name: str, description: str = "") -> ChangeResult:
    result = ChangeResult(operation="init", target=name)
    try:
        manifest = init_project(directory, name, description)
    except KubefsError as e:
        return result.fail(e)
    result.ok = True
    result.changed = True
    result.detail = {"manifest": str(manifest)}
    return result


# ── Describe ────────────────────────────────────────────────────


@dataclass
class DescribeResult:
    """A project summary, or one entity with its wiring per target."""

    project: Project | None = None
    manifest_path: Path | None = None
    entity: str | None = None
    entity_kind: str | None = None
    wiring: dict[str, list[tuple[str, str]]] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.project is not None
        data: dict[str, Any] = {"manifest": str(self.manifest_path)}
        if self.entity is None:
            data["project"] = self.project.model_dump(mode="json")
            return data

        if self.entity_kind == "resource":
            entity = self.project.resources[self.entity]
        else:
            entity = self.project.addons[self.entity]
        data[self.entity_kind or "entity"] = {"name": self.entity, **entity.model_dump(mode="json")}
        data["wiring"] = {t: dict(pairs) for t, pairs in self.wiring.items()}
        return data


def describe(name: str | None = None, manifest_path: Path | None = None) -> DescribeResult:
    result = DescribeResult(entity=name)
    try:
        path = resolve_manifest_path(manifest_path)
        project = load_project(path)
        result.project = project
        result.manifest_path = path
        if name is None:
            return result

        if name in project.resources:
            result.entity_kind = "resource"
        elif name in project.addons:
            result.entity_kind = "addon"
        else:
            result.error = f"No resource or addon named '{name}'"
            return result
        result.wiring = {target: resolve(project, name, target) for target in TARGETS}
    except KubefsError as e:
        result.error = str(e)
    return result


# ── Check ───────────────────────────────────────────────────────


@dataclass
class CheckResult:
    """Manifest validation report."""

    valid: bool = False
    manifest_path: Path | None = None
    project: Project | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "manifest": str(self.manifest_path) if self.manifest_path else None,
            "project_name": self.project.name if self.project else None,
            "resource_count": len(self.project.resources) if self.project else 0,
            "addon_count": len(self.project.addons) if self.project else 0,
            "errors": self.errors,
            "warnings": self.warnings,
        }


def check_manifest(manifest_path: Path | None = None) -> CheckResult:
    """Validate the manifest: schema, graph integrity, and soft warnings."""
    result = CheckResult()
    try:
        path = resolve_manifest_path(manifest_path)
        result.manifest_path = path
        project = load_project(path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.project = project
    result.errors.extend(integrity_problems(project))

    for resource in project.resources.values():
        if resource.is_database and not resource.opts.get("password"):
            result.warnings.append(f"Database '{resource.name}' has no password set")
        if resource.type == "frontend" and not resource.opts.get("host-domain"):
            result.warnings.append(f"Frontend '{resource.name}' has no host-domain for its ingress")
    for addon in project.addons.values():
        if not addon.dependencies:
            result.warnings.append(f"Addon '{addon.name}' serves no resources")
    for provider, config in project.cloud_config.items():
        if not config.main_cluster:
            result.warnings.append(f"Provider '{provider}' has no main cluster")

    result.valid = not result.errors
    return result
