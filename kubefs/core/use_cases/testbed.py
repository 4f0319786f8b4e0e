"""
Test use case — compose the project into docker-compose.yaml and run it.

Entities are added to the document one at a time. An entity that fails
to resolve is reported and left out; the rest still make it into the
document, which is written exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from kubefs.adapters.registry import AdapterRegistry, default_registry
from kubefs.core.config.loader import load_project, project_root, resolve_manifest_path
from kubefs.core.engine.executor import BatchReport, run_batch, run_steps
from kubefs.core.errors import ExternalFailureError, KubefsError, NotFoundError
from kubefs.core.models.action import Receipt
from kubefs.core.models.project import Project
from kubefs.core.services.compose import (
    COMPOSE_FILE,
    ComposeDocument,
    compose_down_command,
    compose_up_command,
)
from kubefs.core.services.graph import check_integrity
from kubefs.core.services.wiring import read_secret_file, resolve

logger = logging.getLogger(__name__)


@dataclass
class TestbedResult:
    """Outcome of composing (and optionally running) the test topology."""

    compose_file: Path | None = None
    report: BatchReport | None = None
    started: bool = False
    error: str | None = None
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.all_ok

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "compose_file": str(self.compose_file) if self.compose_file else None,
            "started": self.started,
            "report": self.report.to_dict() if self.report else None,
            "error": self.error,
            "output": self.output,
        }


def select_entities(
    project: Project,
    names: Sequence[str] = (),
    addons: Sequence[str] = (),
) -> list[str]:
    """Requested names in order, or every resource then every addon."""
    if not names and not addons:
        return project.entity_names()
    selected: list[str] = []
    for name in [*names, *addons]:
        if name not in selected:
            selected.append(name)
    return selected


def build_compose(
    project: Project,
    root: Path,
    names: Sequence[str],
) -> tuple[ComposeDocument, BatchReport]:
    """Add each named entity to a fresh document, best effort."""
    document = ComposeDocument(project.name)

    def add(name: str) -> list[Receipt]:
        resource = project.get_resource(name)
        if resource is not None:
            pairs = resolve(project, name, "test", read_secret_file(root, name))
            document.add_resource(resource, pairs)
            return []
        addon = project.get_addon(name)
        if addon is not None:
            document.add_addon(addon, resolve(project, name, "test"))
            return []
        raise NotFoundError(f"No resource or addon named '{name}'")

    return document, run_batch("test", names, add)


def compose_test(
    names: Sequence[str] = (),
    addons: Sequence[str] = (),
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    only_write: bool = False,
    persist_data: bool = False,
    dry_run: bool = False,
) -> TestbedResult:
    """Write the compose document, then bring it up and tear it down."""
    result = TestbedResult()
    registry = registry or default_registry()
    try:
        path = resolve_manifest_path(manifest_path)
        project = load_project(path)
        check_integrity(project)
    except KubefsError as e:
        result.error = str(e)
        return result

    root = project_root(path)
    document, report = build_compose(project, root, select_entities(project, names, addons))
    result.report = report
    if not report.succeeded:
        result.error = "Nothing to compose"
        return result
    result.compose_file = document.write(root / COMPOSE_FILE)

    if only_write:
        return result

    result.started = True
    try:
        run_steps(
            registry, [compose_up_command()],
            project_root=root, prefix="compose-up", dry_run=dry_run, stream=True,
        )
    except ExternalFailureError as e:
        result.error = str(e)
        result.output = e.output
    finally:
        try:
            run_steps(
                registry, [compose_down_command(persist_data)],
                project_root=root, prefix="compose-down", dry_run=dry_run,
            )
        except ExternalFailureError as e:
            logger.error("Compose teardown failed: %s", e.output or e)
            result.error = result.error or str(e)
            result.output = result.output or e.output
    return result
