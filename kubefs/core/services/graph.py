"""
Dependency graph — resources, addons and the edges between them.

An edge between addon ``A`` and resource ``R`` is stored twice:
``R`` in ``A.dependencies`` and ``A`` in ``R.dependents``. Every
operation here keeps both halves in step, and ``check_integrity``
rejects any manifest where they disagree. All functions mutate the
in-memory Project only; persisting is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from kubefs.core.errors import (
    ConflictError,
    IntegrityError,
    InvalidNameError,
    NotFoundError,
    UnsupportedOperationError,
)
from kubefs.core.models.project import ENTITY_NAME, FRAMEWORKS, Addon, Project, Resource

logger = logging.getLogger(__name__)

RESOURCE_TYPES = ("api", "frontend", "database")

DEFAULT_FRAMEWORK = {
    "api": "fast",
    "frontend": "next",
    "database": "postgresql",
    "addon": "oauth2",
}

ADDON_IMAGES = {
    "oauth2": "kubefs/oauth2",
    "gateway": "kubefs/gateway",
}


# ── Lookups ─────────────────────────────────────────────────────


def require_resource(project: Project, name: str) -> Resource:
    resource = project.get_resource(name)
    if resource is None:
        raise NotFoundError(f"Resource '{name}' not found")
    return resource


def require_addon(project: Project, name: str) -> Addon:
    addon = project.get_addon(name)
    if addon is None:
        raise NotFoundError(f"Addon '{name}' not found")
    return addon


def list_resources(project: Project) -> list[Resource]:
    """Resources in insertion order."""
    return list(project.resources.values())


def list_addons(project: Project) -> list[Addon]:
    """Addons in insertion order."""
    return list(project.addons.values())


def _check_available(project: Project, name: str, port: int) -> None:
    if not ENTITY_NAME.match(name):
        raise InvalidNameError(
            f"'{name}' must start with a lowercase letter and contain only lowercase letters and digits"
        )
    if name in project.resources or name in project.addons:
        raise ConflictError(f"Name '{name}' is already used in project '{project.name}'")
    owner = project.used_ports().get(port)
    if owner is not None:
        raise ConflictError(f"Port {port} is already used by '{owner}'")


def _check_framework(kind: str, framework: str) -> None:
    supported = FRAMEWORKS[kind]
    if framework not in supported:
        raise UnsupportedOperationError(
            f"Framework '{framework}' is not supported for {kind}; "
            f"expected one of {', '.join(supported)}"
        )


# ── Resources ───────────────────────────────────────────────────


def _service_hosts(name: str, port: int) -> dict[str, str]:
    return {
        "local_host": f"http://localhost:{port}",
        "docker_host": f"http://{name}:{port}",
        "cluster_host": f"http://{name}-deploy.{name}.svc.cluster.local:{port}",
    }


def _database_hosts(name: str, port: int, framework: str, opts: dict[str, str]) -> dict[str, str]:
    user, password = opts["user"], opts["password"]
    if framework == "postgresql":
        db = opts["default-database"]
        primary = f"{name}-postgresql-primary.{name}.svc.cluster.local:{port}"
        read = f"{name}-postgresql-read.{name}.svc.cluster.local:{port}"
        auth = f"postgresql://{user}:{password}@"
        suffix = f"/{db}?sslmode=disable"
        return {
            "local_host": f"{auth}localhost:{port}{suffix}",
            "docker_host": f"{auth}{name}:{port}{suffix}",
            "cluster_host": f"{auth}{primary}{suffix}",
            "cluster_host_read": f"{auth}{read}{suffix}",
        }

    auth = f"redis://{user}:{password}@"
    return {
        "local_host": f"{auth}localhost:{port}",
        "docker_host": f"{auth}{name}:{port}",
        "cluster_host": f"{auth}{name}-redis-master.{name}.svc.cluster.local:{port}",
        "cluster_host_read": f"{auth}{name}-redis-replicas.{name}.svc.cluster.local:{port}",
    }


def _bring_up_command(framework: str, port: int) -> str:
    if framework == "fast":
        return f". venv/bin/activate && uvicorn main:app --reload --port {port}"
    if framework == "nest":
        return f"PORT={port} npm run start:debug"
    if framework == "gin":
        return f"PORT={port} go run main.go"
    return f"npm run dev -- --port {port}"


def create_resource(
    project: Project,
    name: str,
    type: str,
    port: int,
    framework: str | None = None,
    docker_repo: str = "",
    opts: dict[str, str] | None = None,
    environment: dict[str, str] | None = None,
) -> Resource:
    """Add a resource with derived hosts, bring-up command and options.

    Raises:
        InvalidNameError: name unusable as an env key prefix.
        ConflictError: name or port already taken.
        UnsupportedOperationError: unknown type, or framework for the type.
    """
    if type not in RESOURCE_TYPES:
        raise UnsupportedOperationError(
            f"Unknown resource type '{type}'; expected one of {', '.join(RESOURCE_TYPES)}"
        )
    framework = framework or DEFAULT_FRAMEWORK[type]
    _check_framework(type, framework)
    _check_available(project, name, port)
    opts = dict(opts or {})

    if type == "database":
        opts.setdefault("user", "default")
        opts.setdefault("password", "")
        opts.setdefault("default-database", "0" if framework == "redis" else name)
        opts.setdefault("persistence", "1Gi")
        hosts = _database_hosts(name, port, framework, opts)
        docker_repo = docker_repo or f"bitnami/{framework}"
        up_local = ""
    else:
        if type == "frontend":
            opts.setdefault("host-domain", f"{name}.{project.name}.local")
        hosts = _service_hosts(name, port)
        docker_repo = docker_repo or f"{project.name}-{name}"
        up_local = _bring_up_command(framework, port)

    resource = Resource(
        name=name,
        port=port,
        type=type,
        framework=framework,
        docker_repo=docker_repo,
        opts=opts,
        environment=dict(environment or {}),
        up_local=up_local,
        **hosts,
    )
    project.resources[name] = resource
    logger.info("Created %s resource '%s' on port %d", type, name, port)
    return resource


def remove_resource(project: Project, name: str) -> Resource:
    """Remove a resource, detaching it from every addon first."""
    resource = require_resource(project, name)
    for addon in project.addons.values():
        if name in addon.dependencies:
            addon.dependencies.remove(name)
            logger.debug("Detached '%s' from addon '%s'", name, addon.name)
    del project.resources[name]
    logger.info("Removed resource '%s'", name)
    return resource


# ── Addons ──────────────────────────────────────────────────────


def enable_addon(
    project: Project,
    name: str,
    port: int,
    framework: str | None = None,
    dependencies: Iterable[str] = (),
    environment: Iterable[str] = (),
    docker_repo: str = "",
) -> Addon:
    """Create an addon serving ``dependencies`` and record both edge halves.

    Every dependency is validated before anything is mutated.
    """
    framework = framework or DEFAULT_FRAMEWORK["addon"]
    _check_framework("addon", framework)
    _check_available(project, name, port)

    served: list[str] = []
    for dep in dependencies:
        _require_attachable(project, dep)
        if dep not in served:
            served.append(dep)

    addon = Addon(
        name=name,
        framework=framework,
        port=port,
        docker_repo=docker_repo or ADDON_IMAGES[framework],
        local_host=f"http://localhost:{port}",
        docker_host=f"http://{name}:{port}",
        cluster_host=f"http://{name}-deploy.{name}.svc.cluster.local:{port}",
        environment=list(environment),
        persistent=framework == "oauth2",
        store_release=f"{name}-store" if framework == "oauth2" else "",
    )
    project.addons[name] = addon
    for dep in served:
        _link(addon, project.resources[dep])
    logger.info("Enabled addon '%s' serving %s", name, served or "nothing")
    return addon


def disable_addon(project: Project, name: str) -> Addon:
    """Remove an addon, clearing it from every served resource first."""
    addon = require_addon(project, name)
    for resource in project.resources.values():
        if name in resource.dependents:
            resource.dependents.remove(name)
    del project.addons[name]
    logger.info("Disabled addon '%s'", name)
    return addon


def _require_attachable(project: Project, resource_name: str) -> Resource:
    resource = require_resource(project, resource_name)
    if resource.is_database:
        raise ConflictError(f"Database '{resource_name}' cannot be served by an addon")
    return resource


def _link(addon: Addon, resource: Resource) -> None:
    if resource.name not in addon.dependencies:
        addon.dependencies.append(resource.name)
    if addon.name not in resource.dependents:
        resource.dependents.append(addon.name)


def attach(project: Project, addon_name: str, resource_name: str) -> bool:
    """Add the edge addon ↔ resource. Returns False if it already existed."""
    addon = require_addon(project, addon_name)
    resource = _require_attachable(project, resource_name)
    existed = resource_name in addon.dependencies and addon_name in resource.dependents
    _link(addon, resource)
    if not existed:
        logger.info("Attached addon '%s' to '%s'", addon_name, resource_name)
    return not existed


def detach(project: Project, addon_name: str, resource_name: str) -> bool:
    """Remove the edge addon ↔ resource. Returns False if there was none."""
    addon = require_addon(project, addon_name)
    resource = require_resource(project, resource_name)
    existed = resource_name in addon.dependencies or addon_name in resource.dependents
    if resource_name in addon.dependencies:
        addon.dependencies.remove(resource_name)
    if addon_name in resource.dependents:
        resource.dependents.remove(addon_name)
    if existed:
        logger.info("Detached addon '%s' from '%s'", addon_name, resource_name)
    return existed


# ── Integrity ───────────────────────────────────────────────────


def integrity_problems(project: Project) -> list[str]:
    """Every dangling or asymmetric reference in the manifest."""
    problems: list[str] = []

    shared = set(project.resources) & set(project.addons)
    for name in sorted(shared):
        problems.append(f"'{name}' is both a resource and an addon")

    for resource in project.resources.values():
        if len(set(resource.dependents)) != len(resource.dependents):
            problems.append(f"Resource '{resource.name}' lists an addon twice")
        if resource.is_database and resource.dependents:
            problems.append(f"Database '{resource.name}' has addons attached")
        for addon_name in resource.dependents:
            addon = project.addons.get(addon_name)
            if addon is None:
                problems.append(f"Resource '{resource.name}' references missing addon '{addon_name}'")
            elif resource.name not in addon.dependencies:
                problems.append(
                    f"Resource '{resource.name}' lists addon '{addon_name}' "
                    "but the addon does not serve it"
                )

    for addon in project.addons.values():
        if len(set(addon.dependencies)) != len(addon.dependencies):
            problems.append(f"Addon '{addon.name}' lists a resource twice")
        for resource_name in addon.dependencies:
            resource = project.resources.get(resource_name)
            if resource is None:
                problems.append(f"Addon '{addon.name}' references missing resource '{resource_name}'")
            elif addon.name not in resource.dependents:
                problems.append(
                    f"Addon '{addon.name}' serves '{resource_name}' "
                    "but the resource does not list it"
                )

    for provider, config in project.cloud_config.items():
        if len(set(config.cluster_names)) != len(config.cluster_names):
            problems.append(f"Provider '{provider}' lists a cluster twice")
        if config.main_cluster and config.main_cluster not in config.cluster_names:
            problems.append(
                f"Provider '{provider}' main cluster '{config.main_cluster}' is not a known cluster"
            )
        for cluster in config.cluster_states:
            if cluster not in config.cluster_names:
                problems.append(f"Provider '{provider}' tracks state for unknown cluster '{cluster}'")

    return problems


def check_integrity(project: Project) -> None:
    """Raise IntegrityError if the manifest holds any dangling reference."""
    problems = integrity_problems(project)
    if problems:
        raise IntegrityError("; ".join(problems))
