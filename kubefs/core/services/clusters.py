"""
Cluster registry — per-provider cluster names, states and main cluster.

Lifecycle of one (provider, cluster):

    nonexistent → provisioned (running) ⇄ paused → deleted

Each operation is split in two. ``plan_*`` validates the transition
against the manifest and returns the provider commands to run.
``apply_*`` records the new state once those commands succeeded, so a
failed command never touches the manifest.
"""

from __future__ import annotations

import logging

from kubefs.core.errors import ConflictError, NotFoundError
from kubefs.core.models.project import CloudConfig, Project
from kubefs.core.services.providers import get_provider

logger = logging.getLogger(__name__)


def require_config(project: Project, provider: str) -> CloudConfig:
    """The provider's CloudConfig. Unknown or unconfigured providers raise NotFoundError."""
    get_provider(provider)
    config = project.get_cloud_config(provider)
    if config is None:
        raise NotFoundError(f"Provider '{provider}' is not configured for this project")
    return config


def _require_cluster(config: CloudConfig, cluster: str) -> None:
    if cluster not in config.cluster_names:
        raise NotFoundError(f"Cluster '{cluster}' not found for provider '{config.provider}'")


def cluster_state(config: CloudConfig, cluster: str) -> str:
    return config.cluster_states.get(cluster, "running")


# ── Provision ───────────────────────────────────────────────────


def plan_provision(project: Project, provider: str, cluster: str) -> list[str]:
    config = require_config(project, provider)
    if cluster in config.cluster_names:
        raise ConflictError(f"Cluster '{cluster}' already exists for provider '{provider}'")
    return get_provider(provider).provision(config, cluster)


def apply_provision(project: Project, provider: str, cluster: str) -> CloudConfig:
    """Record a new running cluster; the first one becomes main."""
    config = require_config(project, provider)
    if cluster in config.cluster_names:
        raise ConflictError(f"Cluster '{cluster}' already exists for provider '{provider}'")
    config.cluster_names.append(cluster)
    config.cluster_states[cluster] = "running"
    if not config.main_cluster:
        config.main_cluster = cluster
        logger.info("Cluster '%s' is now main for %s", cluster, provider)
    return config


# ── Delete ──────────────────────────────────────────────────────


def plan_delete(project: Project, provider: str, cluster: str) -> list[str]:
    config = require_config(project, provider)
    _require_cluster(config, cluster)
    return get_provider(provider).delete(config, cluster)


def apply_delete(project: Project, provider: str, cluster: str) -> CloudConfig:
    """Forget a cluster. Deleting main promotes the first remaining cluster."""
    config = require_config(project, provider)
    _require_cluster(config, cluster)
    config.cluster_names.remove(cluster)
    config.cluster_states.pop(cluster, None)
    if config.main_cluster == cluster:
        config.main_cluster = config.cluster_names[0] if config.cluster_names else ""
        logger.info("Main cluster for %s is now %r", provider, config.main_cluster)
    return config


# ── Pause / start ───────────────────────────────────────────────


def plan_pause(project: Project, provider: str, cluster: str) -> list[str]:
    config = require_config(project, provider)
    _require_cluster(config, cluster)
    commands = get_provider(provider).pause(config, cluster)
    if cluster_state(config, cluster) == "paused":
        raise ConflictError(f"Cluster '{cluster}' is already paused")
    return commands


def apply_pause(project: Project, provider: str, cluster: str) -> CloudConfig:
    config = require_config(project, provider)
    _require_cluster(config, cluster)
    config.cluster_states[cluster] = "paused"
    return config


def plan_start(project: Project, provider: str, cluster: str) -> list[str]:
    config = require_config(project, provider)
    _require_cluster(config, cluster)
    commands = get_provider(provider).start(config, cluster)
    if cluster_state(config, cluster) == "running":
        raise ConflictError(f"Cluster '{cluster}' is already running")
    return commands


def apply_start(project: Project, provider: str, cluster: str) -> CloudConfig:
    config = require_config(project, provider)
    _require_cluster(config, cluster)
    config.cluster_states[cluster] = "running"
    return config


# ── Main designation / listing ──────────────────────────────────


def set_main_cluster(project: Project, provider: str, cluster: str) -> CloudConfig:
    config = require_config(project, provider)
    _require_cluster(config, cluster)
    config.main_cluster = cluster
    logger.info("Main cluster for %s set to '%s'", provider, cluster)
    return config


def list_clusters(project: Project) -> list[dict]:
    """One row per known cluster, providers in manifest order."""
    rows = []
    for provider, config in project.cloud_config.items():
        for cluster in config.cluster_names:
            rows.append({
                "provider": provider,
                "name": cluster,
                "state": cluster_state(config, cluster),
                "main": cluster == config.main_cluster,
            })
    return rows


def configure_provider(
    project: Project,
    provider: str,
    project_id: str = "",
    project_name: str = "",
    region: str = "",
) -> CloudConfig:
    """Create or update a provider's identifiers, keeping its clusters."""
    get_provider(provider)
    config = project.cloud_config.get(provider)
    if config is None:
        config = CloudConfig(provider=provider)
        project.cloud_config[provider] = config
    config.project_id = project_id or config.project_id
    config.project_name = project_name or config.project_name
    config.region = region or config.region
    return config
