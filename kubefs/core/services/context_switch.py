"""
Cluster context switcher — which cluster a cluster-target batch runs against.

A ClusterContext is an immutable value resolved from the manifest and
passed explicitly to the deploy compiler and use cases. Nothing here
keeps a process-wide "current cluster".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from kubefs.adapters.registry import AdapterRegistry
from kubefs.core.config.loader import ConfigError
from kubefs.core.engine.executor import run_steps
from kubefs.core.errors import IntegrityError
from kubefs.core.models.action import Receipt
from kubefs.core.models.project import Project
from kubefs.core.services.providers import get_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterContext:
    """The main cluster of one provider, ready to activate."""

    provider: str
    cluster: str
    kube_context: str
    region: str = ""
    project_id: str = ""
    activation: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "cluster": self.cluster,
            "kube_context": self.kube_context,
            "region": self.region,
            "project_id": self.project_id,
        }


def resolve_context(project: Project, provider: str) -> ClusterContext:
    """Resolve the provider's main cluster.

    Raises:
        ConfigError: the provider is not configured or has no main cluster.
        IntegrityError: the main cluster is not a known cluster.
    """
    config = project.get_cloud_config(provider)
    if config is None:
        raise ConfigError(f"Provider '{provider}' is not configured for this project")
    if not config.main_cluster:
        raise ConfigError(
            f"No main cluster set for provider '{provider}'. "
            f"Provision one with 'kubefs cluster provision --target {provider} <name>'."
        )
    if config.main_cluster not in config.cluster_names:
        raise IntegrityError(
            f"Main cluster '{config.main_cluster}' is not a known {provider} cluster"
        )
    if config.cluster_states.get(config.main_cluster) == "paused":
        raise ConfigError(
            f"Main cluster '{config.main_cluster}' is paused. "
            f"Start it with 'kubefs cluster start --target {provider} {config.main_cluster}'."
        )

    backend = get_provider(provider)
    return ClusterContext(
        provider=provider,
        cluster=config.main_cluster,
        kube_context=backend.kube_context(config, config.main_cluster),
        region=config.region,
        project_id=config.project_id,
        activation=tuple(backend.activate(config, config.main_cluster)),
    )


def activate_context(
    context: ClusterContext,
    registry: AdapterRegistry,
    project_root: Path | str = ".",
    dry_run: bool = False,
) -> list[Receipt]:
    """Make ``context`` the ambient cluster before a batch runs.

    Raises:
        ExternalFailureError: an activation command failed.
    """
    logger.info("Activating %s cluster '%s'", context.provider, context.cluster)
    return run_steps(
        registry,
        context.activation,
        project_root=project_root,
        prefix="context",
        dry_run=dry_run,
    )
