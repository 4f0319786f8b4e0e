"""
Environment wiring — connectivity pairs derived from the graph.

``resolve`` turns one resource or addon into an ordered list of
``(key, value)`` pairs for a target:

    run     → local_host    (loopback)
    test    → docker_host   (compose network service name)
    deploy  → cluster_host  (in-cluster DNS), plus cluster_host_read

Graph-derived pairs come first: ``{R}HOST`` for every other resource in
manifest order (``{R}HOST_READ`` too for databases with a read
endpoint), then ``{A}HOST`` for every attached addon. Declared
environment and secret-file entries follow. A repeated key keeps its
first position and takes the last value, so the output never holds a
duplicate key.

Indices for positional chart directives are assigned only when the
pairs are serialized (``index_directives``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Literal

from kubefs.core.config.loader import ConfigError
from kubefs.core.errors import IntegrityError, NotFoundError
from kubefs.core.models.project import Addon, Project, Resource

logger = logging.getLogger(__name__)

Target = Literal["run", "test", "deploy"]
TARGETS: tuple[str, ...] = ("run", "test", "deploy")

Pairs = list[tuple[str, str]]

SECRET_FILE = ".env"

_HOST_ATTR = {
    "run": "local_host",
    "test": "docker_host",
    "deploy": "cluster_host",
}


def host_for(entity: Resource | Addon, target: str) -> str:
    """The address of ``entity`` as seen from inside ``target``."""
    return getattr(entity, _HOST_ATTR[target])


def parse_assignment(line: str) -> tuple[str, str]:
    """Split ``KEY=VALUE`` on the first ``=``; surrounding quotes are dropped."""
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        raise ValueError(f"not a KEY=VALUE assignment: {line!r}")
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1]
    return key, value


def merge_pairs(*groups: Iterable[tuple[str, str]]) -> Pairs:
    """Concatenate pair groups; later values win, first-seen order is kept."""
    merged: dict[str, str] = {}
    for group in groups:
        for key, value in group:
            merged[key] = value
    return list(merged.items())


# ── Secret files ────────────────────────────────────────────────


def secret_file_path(project_root: Path, resource_name: str) -> Path:
    return project_root / resource_name / SECRET_FILE


def read_secret_file(project_root: Path, resource_name: str) -> Pairs:
    """Read ``<resource>/.env``. A missing file yields no pairs.

    Blank lines and ``#`` comments are ignored.

    Raises:
        ConfigError: a line is not a KEY=VALUE assignment.
    """
    path = secret_file_path(project_root, resource_name)
    if not path.is_file():
        return []

    pairs: Pairs = []
    for lineno, raw in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            pairs.append(parse_assignment(line))
        except ValueError as e:
            raise ConfigError(f"{path}:{lineno}: {e}") from e
    logger.debug("Read %d secret entries for '%s'", len(pairs), resource_name)
    return pairs


# ── Addon data store ────────────────────────────────────────────


def store_credentials(addon: Addon) -> tuple[str, str, str]:
    """(user, password, database) for the addon's in-cluster store release."""
    password = addon.name
    for entry in addon.environment:
        key, _, value = entry.partition("=")
        if key.strip() == "STORE_PASSWORD":
            password = value.strip()
    return addon.name, password, addon.name


def store_endpoints(addon: Addon) -> tuple[str, str]:
    """(write, read) connection strings of the addon's store release."""
    release = addon.store_release
    user, password, database = store_credentials(addon)
    base = f"postgresql://{user}:{password}@{release}-postgresql-{{}}.{release}.svc.cluster.local:5432/{database}?sslmode=disable"
    return base.format("primary"), base.format("read")


# ── Resolution ──────────────────────────────────────────────────


def _resource_pairs(project: Project, resource: Resource, target: str) -> Pairs:
    pairs: Pairs = []
    for other in project.resources.values():
        if other.name == resource.name:
            continue
        pairs.append((f"{other.name}HOST", host_for(other, target)))
        if other.is_database and target == "deploy" and other.cluster_host_read:
            pairs.append((f"{other.name}HOST_READ", other.cluster_host_read))

    for addon_name in resource.dependents:
        addon = project.get_addon(addon_name)
        if addon is None:
            raise IntegrityError(
                f"Resource '{resource.name}' references missing addon '{addon_name}'"
            )
        pairs.append((f"{addon_name}HOST", host_for(addon, target)))
    return pairs


def _addon_pairs(project: Project, addon: Addon, target: str) -> Pairs:
    pairs: Pairs = []
    origins: list[str] = []
    for resource_name in addon.dependencies:
        resource = project.get_resource(resource_name)
        if resource is None:
            raise IntegrityError(
                f"Addon '{addon.name}' references missing resource '{resource_name}'"
            )
        host = host_for(resource, target)
        pairs.append((f"{resource_name}HOST", host))
        origins.append(host)

    pairs += [
        ("ALLOWED_ORIGINS", ",".join(origins)),
        ("PORT", str(addon.port)),
        ("NAME", project.name),
    ]
    if addon.store_release:
        if target == "deploy":
            write, read = store_endpoints(addon)
            pairs += [
                ("MODE", "release"),
                ("WRITE_CONNECTION_STRING", write),
                ("READ_CONNECTION_STRING", read),
            ]
        else:
            pairs.append(("MODE", "dev"))
    return pairs


def _addon_environment(addon: Addon) -> Pairs:
    pairs: Pairs = []
    for entry in addon.environment:
        try:
            pairs.append(parse_assignment(entry))
        except ValueError as e:
            raise ConfigError(f"Addon '{addon.name}' environment: {e}") from e
    return pairs


def resolve(
    project: Project,
    name: str,
    target: str,
    secrets: Iterable[tuple[str, str]] = (),
) -> Pairs:
    """Resolve the wiring of resource or addon ``name`` for ``target``.

    Databases are not wired and always resolve to an empty list.

    Raises:
        NotFoundError: ``name`` is neither a resource nor an addon.
        IntegrityError: an edge points at a missing entity.
    """
    if target not in _HOST_ATTR:
        raise ValueError(f"Unknown target '{target}'; expected one of {', '.join(TARGETS)}")

    resource = project.get_resource(name)
    if resource is not None:
        if resource.is_database:
            return []
        return merge_pairs(
            _resource_pairs(project, resource, target),
            resource.environment.items(),
            secrets,
        )

    addon = project.get_addon(name)
    if addon is not None:
        return merge_pairs(_addon_pairs(project, addon, target), _addon_environment(addon))

    raise NotFoundError(f"No resource or addon named '{name}'")


# ── Serialization ───────────────────────────────────────────────


def as_assignments(pairs: Iterable[tuple[str, str]]) -> list[str]:
    """``["KEY=VALUE", ...]`` in pair order."""
    return [f"{key}={value}" for key, value in pairs]


def index_directives(prefix: str, rows: Iterable[Mapping[str, str]]) -> list[str]:
    """Number rows densely from 0: ``prefix[i].field=value`` per field."""
    directives: list[str] = []
    for index, row in enumerate(rows):
        for field, value in row.items():
            directives.append(f"{prefix}[{index}].{field}={value}")
    return directives
