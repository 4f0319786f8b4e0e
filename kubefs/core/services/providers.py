"""
Provider command builders — minikube profiles and GKE Autopilot clusters.

Builders only produce command strings; running them is the executor's
job. Each provider also names the kube context a cluster maps to, so
chart invocations can pin ``--kube-context`` explicitly.
"""

from __future__ import annotations

import logging
import shlex
from abc import ABC, abstractmethod

from kubefs.core.errors import (
    ExternalFailureError,
    NotFoundError,
    UnsupportedOperationError,
)
from kubefs.core.models.action import Action
from kubefs.core.models.project import CloudConfig

logger = logging.getLogger(__name__)

METRICS_SERVER_MANIFEST = (
    "https://github.com/kubernetes-sigs/metrics-server/releases/latest/download/components.yaml"
)


class Provider(ABC):
    """Command vocabulary of one cloud provider."""

    name: str = ""

    @abstractmethod
    def provision(self, config: CloudConfig, cluster: str) -> list[str]:
        """Commands that create and prepare a cluster."""

    @abstractmethod
    def delete(self, config: CloudConfig, cluster: str) -> list[str]:
        """Commands that destroy a cluster."""

    @abstractmethod
    def activate(self, config: CloudConfig, cluster: str) -> list[str]:
        """Commands that make ``cluster`` the ambient kube context."""

    @abstractmethod
    def kube_context(self, config: CloudConfig, cluster: str) -> str:
        """Name of the kubeconfig context for ``cluster``."""

    def pause(self, config: CloudConfig, cluster: str) -> list[str]:
        raise UnsupportedOperationError(f"Provider '{self.name}' does not support pausing clusters")

    def start(self, config: CloudConfig, cluster: str) -> list[str]:
        raise UnsupportedOperationError(f"Provider '{self.name}' does not support starting clusters")


class MinikubeProvider(Provider):
    """Local clusters, one minikube profile each."""

    name = "minikube"

    def provision(self, config: CloudConfig, cluster: str) -> list[str]:
        profile = shlex.quote(cluster)
        return [
            f"minikube start -p {profile}",
            f"minikube addons enable ingress -p {profile}",
            f"minikube addons enable metrics-server -p {profile}",
        ]

    def delete(self, config: CloudConfig, cluster: str) -> list[str]:
        return [f"minikube delete -p {shlex.quote(cluster)}"]

    def pause(self, config: CloudConfig, cluster: str) -> list[str]:
        return [f"minikube stop -p {shlex.quote(cluster)}"]

    def start(self, config: CloudConfig, cluster: str) -> list[str]:
        return [f"minikube start -p {shlex.quote(cluster)}"]

    def activate(self, config: CloudConfig, cluster: str) -> list[str]:
        profile = shlex.quote(cluster)
        return [f"minikube profile {profile}", f"kubectl config use-context {profile}"]

    def kube_context(self, config: CloudConfig, cluster: str) -> str:
        return cluster


class GcpProvider(Provider):
    """GKE Autopilot clusters. Autopilot cannot be paused or restarted."""

    name = "gcp"

    def _location(self, config: CloudConfig) -> str:
        location = f"--location {shlex.quote(config.region)}"
        if config.project_id:
            location += f" --project {shlex.quote(config.project_id)}"
        return location

    def provision(self, config: CloudConfig, cluster: str) -> list[str]:
        name = shlex.quote(cluster)
        where = self._location(config)
        return [
            f"gcloud container clusters create-auto {name} {where}",
            f"gcloud container clusters get-credentials {name} {where}",
            f"kubectl apply -f {METRICS_SERVER_MANIFEST}",
            "helm upgrade --install ingress-nginx ingress-nginx "
            "--repo https://kubernetes.github.io/ingress-nginx "
            "--namespace ingress-nginx --create-namespace "
            "--set controller.service.externalTrafficPolicy=Local",
        ]

    def delete(self, config: CloudConfig, cluster: str) -> list[str]:
        return [f"gcloud container clusters delete {shlex.quote(cluster)} {self._location(config)} --quiet"]

    def pause(self, config: CloudConfig, cluster: str) -> list[str]:
        raise UnsupportedOperationError("gcp autopilot clusters don't support pausing")

    def start(self, config: CloudConfig, cluster: str) -> list[str]:
        raise UnsupportedOperationError("gcp autopilot clusters don't support starting")

    def activate(self, config: CloudConfig, cluster: str) -> list[str]:
        return [f"gcloud container clusters get-credentials {shlex.quote(cluster)} {self._location(config)}"]

    def kube_context(self, config: CloudConfig, cluster: str) -> str:
        return f"gke_{config.project_id}_{config.region}_{cluster}"


_PROVIDERS: dict[str, Provider] = {
    "minikube": MinikubeProvider(),
    "gcp": GcpProvider(),
}


def get_provider(name: str) -> Provider:
    """Look up a provider's command vocabulary by identifier."""
    provider = _PROVIDERS.get(name)
    if provider is None:
        raise NotFoundError(f"Unknown provider '{name}'; expected one of {', '.join(_PROVIDERS)}")
    return provider


# ── Cloud identity ──────────────────────────────────────────────


class GcloudIdentity:
    """Resolves a GCP project name to (project id, region) through gcloud.

    Commands run through an AdapterRegistry so tests can swap in a mock.
    """

    def __init__(self, registry, project_root: str = "."):
        self._registry = registry
        self._project_root = project_root

    def _query(self, action_id: str, command: str) -> str:
        receipt = self._registry.execute_action(
            Action(id=action_id, command=command), project_root=self._project_root,
        )
        if not receipt.ok:
            raise ExternalFailureError(
                f"'{command}' failed", output=receipt.diagnostics, command=command,
            )
        return receipt.output.strip()

    def resolve(self, project_name: str) -> tuple[str, str]:
        """Return (project_id, region) for ``project_name``.

        Raises:
            NotFoundError: no GCP project has that name.
            ExternalFailureError: gcloud failed.
        """
        filter_arg = shlex.quote(f"name:{project_name}")
        output = self._query(
            "gcp:project",
            f"gcloud projects list --filter={filter_arg} --format='value(projectId)'",
        )
        project_ids = output.split()
        if not project_ids:
            raise NotFoundError(f"No GCP project named '{project_name}'")

        region = self._query("gcp:region", "gcloud config get-value compute/region")
        if not region or region == "(unset)":
            region = "us-central1"
            logger.warning("No default compute/region configured; using %s", region)
        return project_ids[0], region
