"""
Deploy target — helm invocations for resources and addons.

Each entity compiles to an ordered list of shell commands. Chart
values are a concatenation of:

    image / port / namespace directives
    probe and exposure directives (api: internal, /health;
                                   frontend: ingress, /)
    env[i].*      indexed wiring pairs
    secrets[i].*  indexed secret-file pairs bound to <name>-deploy-secret

Databases install the bitnami chart with storage, credential and
replica directives and no wiring. Every helm and kubectl call is
pinned to the kube context of the resolved main cluster.
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Iterable
from dataclasses import dataclass, field

from kubefs.core.errors import NotFoundError
from kubefs.core.models.project import Addon, Project, Resource
from kubefs.core.services.context_switch import ClusterContext
from kubefs.core.services.wiring import index_directives, resolve, store_credentials

logger = logging.getLogger(__name__)

BITNAMI_REGISTRY = "oci://registry-1.docker.io/bitnamicharts"
REPLICAS = 3
STORE_PERSISTENCE = "1Gi"


def secret_ref(name: str) -> str:
    return f"{name}-deploy-secret"


def _escape(value: str) -> str:
    # helm splits --set values on commas
    return value.replace("\\", "\\\\").replace(",", "\\,")


@dataclass
class HelmRelease:
    """One ``helm upgrade --install`` call."""

    release: str
    chart: str
    kube_context: str = ""
    namespace: str | None = None
    values: list[str] = field(default_factory=list)          # --set
    string_values: list[str] = field(default_factory=list)   # --set-string

    def command(self) -> str:
        parts = ["helm", "upgrade", "--install", self.release, self.chart]
        if self.namespace:
            parts += ["--namespace", self.namespace, "--create-namespace"]
        if self.kube_context:
            parts += ["--kube-context", self.kube_context]
        for directive in self.values:
            parts += ["--set", _escape(directive)]
        for directive in self.string_values:
            parts += ["--set-string", _escape(directive)]
        return " ".join(shlex.quote(p) for p in parts)


def _uninstall(release: str, context: ClusterContext, namespace: str | None = None) -> str:
    parts = ["helm", "uninstall", release]
    if namespace:
        parts += ["--namespace", namespace]
    parts += ["--kube-context", context.kube_context]
    return " ".join(shlex.quote(p) for p in parts)


def _delete_namespace(namespace: str, context: ClusterContext) -> str:
    parts = ["kubectl", "delete", "namespace", namespace, "--context", context.kube_context]
    return " ".join(shlex.quote(p) for p in parts)


def _pull(image: str) -> str:
    return f"docker pull {shlex.quote(image)}"


def _service_values(name: str, image: str, port: int, replicas: int) -> list[str]:
    return [
        f"image.repository={image}",
        "image.tag=latest",
        "image.pullPolicy=Always",
        f"namespace={name}",
        f"service.port={port}",
        f"replicaCount={replicas}",
    ]


def _exposure_values(kind: str, host_domain: str = "") -> list[str]:
    if kind == "frontend":
        values = ["service.type=NodePort", "ingress.enabled=true", f"ingress.host={host_domain}"]
        probe = "/"
    else:
        values = ["service.type=ClusterIP", "ingress.enabled=false"]
        probe = "/health"
    return values + [
        f"readinessProbe.httpGet.path={probe}",
        f"livenessProbe.httpGet.path={probe}",
    ]


def _env_directives(pairs: Iterable[tuple[str, str]]) -> list[str]:
    return index_directives("env", ({"name": k, "value": v} for k, v in pairs))


def _secret_directives(name: str, secrets: Iterable[tuple[str, str]]) -> list[str]:
    ref = secret_ref(name)
    return index_directives(
        "secrets", ({"name": k, "value": v, "secretRef": ref} for k, v in secrets)
    )


# ── Releases ────────────────────────────────────────────────────


def resource_release(
    project: Project,
    resource: Resource,
    context: ClusterContext,
    secrets: Iterable[tuple[str, str]] = (),
) -> HelmRelease:
    """The chart release of an api, frontend or database resource."""
    if resource.is_database:
        return database_release(resource, context)

    secrets = list(secrets)
    release = HelmRelease(
        release=resource.name,
        chart=f"{resource.name}/deploy",
        kube_context=context.kube_context,
    )
    release.values += _service_values(resource.name, resource.docker_repo, resource.port, REPLICAS)
    release.values += _exposure_values(resource.type, resource.opts.get("host-domain", ""))
    # Secret-file pairs go to secrets[i]; wiring stays free of them
    release.string_values += _env_directives(resolve(project, resource.name, "deploy"))
    release.string_values += _secret_directives(resource.name, secrets)
    return release


def database_release(resource: Resource, context: ClusterContext) -> HelmRelease:
    """Bitnami chart with persistence, credentials and read replicas."""
    opts = resource.opts
    size = opts.get("persistence", "1Gi")
    release = HelmRelease(
        release=resource.name,
        chart=f"{BITNAMI_REGISTRY}/{resource.framework}",
        kube_context=context.kube_context,
        namespace=resource.name,
    )
    if resource.framework == "postgresql":
        release.values += [
            "architecture=replication",
            f"primary.persistence.size={size}",
            f"readReplicas.persistence.size={size}",
            "readReplicas.replicaCount=1",
            f"primary.service.ports.postgresql={resource.port}",
            f"readReplicas.service.ports.postgresql={resource.port}",
        ]
        release.string_values += [
            f"auth.username={opts.get('user', '')}",
            f"auth.password={opts.get('password', '')}",
            f"auth.database={opts.get('default-database', '')}",
        ]
    else:
        release.values += [
            "architecture=replication",
            f"master.persistence.size={size}",
            f"replica.persistence.size={size}",
            "replica.replicaCount=1",
            f"master.service.ports.redis={resource.port}",
            f"replica.service.ports.redis={resource.port}",
        ]
        release.string_values += [f"auth.password={opts.get('password', '')}"]
    return release


def store_release(addon: Addon, context: ClusterContext) -> HelmRelease:
    """The postgresql release an addon keeps its accounts in."""
    user, password, database = store_credentials(addon)
    release = HelmRelease(
        release=addon.store_release,
        chart=f"{BITNAMI_REGISTRY}/postgresql",
        kube_context=context.kube_context,
        namespace=addon.store_release,
    )
    release.values += [
        "architecture=replication",
        f"primary.persistence.size={STORE_PERSISTENCE}",
        "readReplicas.replicaCount=1",
    ]
    release.string_values += [
        f"auth.username={user}",
        f"auth.password={password}",
        f"auth.database={database}",
    ]
    return release


def addon_release(project: Project, addon: Addon, context: ClusterContext) -> HelmRelease:
    release = HelmRelease(
        release=addon.name,
        chart=f"addons/{addon.name}/deploy",
        kube_context=context.kube_context,
    )
    release.values += _service_values(addon.name, addon.docker_repo, addon.port, 1)
    release.values += _exposure_values("addon")
    release.string_values += _env_directives(resolve(project, addon.name, "deploy"))
    return release


# ── Commands ────────────────────────────────────────────────────


def compile_deploy(
    project: Project,
    name: str,
    context: ClusterContext,
    secrets: Iterable[tuple[str, str]] = (),
) -> list[str]:
    """Commands that deploy resource or addon ``name`` to the context's cluster.

    Raises:
        NotFoundError: ``name`` is neither a resource nor an addon.
        IntegrityError: wiring hit a dangling edge.
    """
    resource = project.get_resource(name)
    if resource is not None:
        release = resource_release(project, resource, context, secrets)
        if resource.is_database:
            return [release.command()]
        return [_pull(resource.docker_repo), release.command()]

    addon = project.get_addon(name)
    if addon is not None:
        commands = [_pull(addon.docker_repo)]
        if addon.store_release:
            commands.append(store_release(addon, context).command())
        commands.append(addon_release(project, addon, context).command())
        return commands

    raise NotFoundError(f"No resource or addon named '{name}'")


def compile_undeploy(project: Project, name: str, context: ClusterContext) -> list[str]:
    """Commands that remove ``name`` and anything it owns from the cluster."""
    resource = project.get_resource(name)
    if resource is not None:
        if resource.is_database:
            return [
                _uninstall(name, context, namespace=name),
                _delete_namespace(name, context),
            ]
        return [_uninstall(name, context)]

    addon = project.get_addon(name)
    if addon is not None:
        commands = [_uninstall(name, context)]
        if addon.store_release:
            commands += [
                _uninstall(addon.store_release, context, namespace=addon.store_release),
                _delete_namespace(addon.store_release, context),
            ]
        return commands

    raise NotFoundError(f"No resource or addon named '{name}'")
