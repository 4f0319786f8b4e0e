"""
Cluster use cases — provider commands first, manifest second.

The manifest must pass its integrity check before any provider command
runs. The commands run inside the manifest transaction; if any of them
fails the ExternalFailureError unwinds the transaction and the
manifest is not rewritten.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from kubefs.adapters.registry import AdapterRegistry, default_registry
from kubefs.core.config.loader import load_project, project_root, resolve_manifest_path
from kubefs.core.engine.executor import run_steps
from kubefs.core.errors import KubefsError
from kubefs.core.models.project import CloudConfig, Project
from kubefs.core.services import clusters
from kubefs.core.services.graph import check_integrity
from kubefs.core.services.providers import GcloudIdentity
from kubefs.core.use_cases.manifest import ChangeResult, apply_change

logger = logging.getLogger(__name__)


def _config_detail(config: CloudConfig) -> dict:
    return {
        "provider": config.provider,
        "clusters": list(config.cluster_names),
        "main_cluster": config.main_cluster,
    }


def _transition(
    operation: str,
    provider: str,
    cluster: str,
    plan: Callable[[Project, str, str], list[str]],
    apply: Callable[[Project, str, str], CloudConfig],
    manifest_path: Path | None,
    registry: AdapterRegistry | None,
) -> ChangeResult:
    registry = registry or default_registry()
    try:
        path = resolve_manifest_path(manifest_path)
    except KubefsError as e:
        return ChangeResult(operation=operation, target=cluster).fail(e)
    root = project_root(path)

    def mutate(project: Project) -> dict:
        check_integrity(project)
        commands = plan(project, provider, cluster)
        run_steps(registry, commands, project_root=root, entity=cluster, prefix=operation)
        return _config_detail(apply(project, provider, cluster))

    return apply_change(operation, cluster, mutate, path)


def provision_cluster(
    provider: str,
    cluster: str,
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ChangeResult:
    return _transition(
        "provision", provider, cluster,
        clusters.plan_provision, clusters.apply_provision,
        manifest_path, registry,
    )


def delete_cluster(
    provider: str,
    cluster: str,
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ChangeResult:
    return _transition(
        "delete", provider, cluster,
        clusters.plan_delete, clusters.apply_delete,
        manifest_path, registry,
    )


def pause_cluster(
    provider: str,
    cluster: str,
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ChangeResult:
    return _transition(
        "pause", provider, cluster,
        clusters.plan_pause, clusters.apply_pause,
        manifest_path, registry,
    )


def start_cluster(
    provider: str,
    cluster: str,
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ChangeResult:
    return _transition(
        "start", provider, cluster,
        clusters.plan_start, clusters.apply_start,
        manifest_path, registry,
    )


def set_main_cluster(provider: str, cluster: str, manifest_path: Path | None = None) -> ChangeResult:
    return apply_change(
        "main",
        cluster,
        lambda project: _config_detail(clusters.set_main_cluster(project, provider, cluster)),
        manifest_path,
    )


def configure_gcp(
    project_name: str,
    identity=None,
    manifest_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ChangeResult:
    """Record the gcp project id and region resolved for ``project_name``."""
    try:
        path = resolve_manifest_path(manifest_path)
    except KubefsError as e:
        return ChangeResult(operation="config", target="gcp").fail(e)
    identity = identity or GcloudIdentity(registry or default_registry(), str(project_root(path)))

    def mutate(project: Project) -> dict:
        check_integrity(project)
        project_id, region = identity.resolve(project_name)
        config = clusters.configure_provider(
            project, "gcp", project_id=project_id, project_name=project_name, region=region,
        )
        return {"project_id": config.project_id, "region": config.region, **_config_detail(config)}

    return apply_change("config", "gcp", mutate, path)


@dataclass
class ClusterListResult:
    clusters: list[dict] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        return {"clusters": self.clusters, "error": self.error}


def list_clusters(provider: str | None = None, manifest_path: Path | None = None) -> ClusterListResult:
    result = ClusterListResult()
    try:
        project = load_project(manifest_path)
    except KubefsError as e:
        result.error = str(e)
        return result
    rows = clusters.list_clusters(project)
    if provider:
        rows = [r for r in rows if r["provider"] == provider]
    result.clusters = rows
    return result
