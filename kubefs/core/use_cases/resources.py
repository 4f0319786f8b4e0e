"""
Resource and addon use cases — graph mutations persisted in one write each.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from kubefs.core.models.project import Project
from kubefs.core.services import graph
from kubefs.core.use_cases.manifest import ChangeResult, apply_change


def create_resource(
    name: str,
    type: str,
    port: int,
    framework: str | None = None,
    docker_repo: str = "",
    opts: dict[str, str] | None = None,
    environment: dict[str, str] | None = None,
    manifest_path: Path | None = None,
) -> ChangeResult:
    def mutate(project: Project) -> dict:
        resource = graph.create_resource(
            project, name, type, port,
            framework=framework,
            docker_repo=docker_repo,
            opts=opts,
            environment=environment,
        )
        return {"type": resource.type, "framework": resource.framework, "port": resource.port}

    return apply_change("create", name, mutate, manifest_path)


def remove_resource(name: str, manifest_path: Path | None = None) -> ChangeResult:
    def mutate(project: Project) -> dict:
        served_by = [a.name for a in project.addons.values() if name in a.dependencies]
        graph.remove_resource(project, name)
        return {"detached_from": served_by}

    return apply_change("remove", name, mutate, manifest_path)


def enable_addon(
    name: str,
    port: int,
    framework: str | None = None,
    dependencies: Sequence[str] = (),
    environment: Sequence[str] = (),
    manifest_path: Path | None = None,
) -> ChangeResult:
    def mutate(project: Project) -> dict:
        addon = graph.enable_addon(
            project, name, port,
            framework=framework,
            dependencies=dependencies,
            environment=environment,
        )
        return {"framework": addon.framework, "port": addon.port, "dependencies": addon.dependencies}

    return apply_change("enable", name, mutate, manifest_path)


def disable_addon(name: str, manifest_path: Path | None = None) -> ChangeResult:
    def mutate(project: Project) -> dict:
        addon = graph.disable_addon(project, name)
        return {"detached_from": addon.dependencies}

    return apply_change("disable", name, mutate, manifest_path)


def attach_addon(addon: str, resource: str, manifest_path: Path | None = None) -> ChangeResult:
    return apply_change(
        "attach",
        f"{addon}->{resource}",
        lambda project: graph.attach(project, addon, resource),
        manifest_path,
    )


def detach_addon(addon: str, resource: str, manifest_path: Path | None = None) -> ChangeResult:
    return apply_change(
        "detach",
        f"{addon}->{resource}",
        lambda project: graph.detach(project, addon, resource),
        manifest_path,
    )
