"""
Project model — the root of manifest.yaml.

The manifest holds every resource, every addon and the per-provider
cluster bookkeeping. Resources and addons reference each other by name
only (``Resource.dependents`` / ``Addon.dependencies``); edges are
resolved by lookup at use time.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

ResourceType = Literal["api", "frontend", "database"]
ClusterState = Literal["running", "paused"]

# Supported framework tags per resource type, plus addon frameworks
FRAMEWORKS: dict[str, tuple[str, ...]] = {
    "api": ("fast", "nest", "gin"),
    "frontend": ("next", "sveltekit", "remix"),
    "database": ("postgresql", "redis"),
    "addon": ("oauth2", "gateway"),
}

# Cloud providers a manifest may carry configuration for
PROVIDERS: tuple[str, ...] = ("minikube", "gcp")
DEFAULT_PROVIDER = "minikube"

# Names become env keys ({name}HOST), release names and DNS labels
ENTITY_NAME = re.compile(r"^[a-z][a-z0-9]*$")


class Resource(BaseModel):
    """A deployable unit: api, frontend or database."""

    name: str = Field(default="", exclude=True)  # filled from the mapping key
    port: int
    type: ResourceType
    framework: str = ""
    docker_repo: str = ""
    local_host: str = ""
    docker_host: str = ""
    cluster_host: str = ""
    cluster_host_read: str = ""
    opts: dict[str, str] = Field(default_factory=dict)
    environment: dict[str, str] = Field(default_factory=dict)
    up_local: str = ""
    dependents: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _supported_framework(self) -> Resource:
        if self.framework not in FRAMEWORKS[self.type]:
            raise ValueError(
                f"framework '{self.framework}' is not supported for {self.type}; "
                f"expected one of {', '.join(FRAMEWORKS[self.type])}"
            )
        return self

    @property
    def is_database(self) -> bool:
        return self.type == "database"


class Addon(BaseModel):
    """An auxiliary service attached to one or more resources."""

    name: str = Field(default="", exclude=True)
    framework: str = "oauth2"
    port: int
    docker_repo: str = ""
    local_host: str = ""
    docker_host: str = ""
    cluster_host: str = ""
    dependencies: list[str] = Field(default_factory=list)
    environment: list[str] = Field(default_factory=list)  # raw KEY=VALUE
    persistent: bool = False
    store_release: str = ""

    @field_validator("framework")
    @classmethod
    def _supported_framework(cls, value: str) -> str:
        if value not in FRAMEWORKS["addon"]:
            raise ValueError(
                f"framework '{value}' is not supported for addons; "
                f"expected one of {', '.join(FRAMEWORKS['addon'])}"
            )
        return value


class CloudConfig(BaseModel):
    """Cluster bookkeeping for one provider."""

    provider: str = Field(default="", exclude=True)
    project_id: str = ""
    project_name: str = ""
    region: str = ""
    cluster_names: list[str] = Field(default_factory=list)
    main_cluster: str = ""
    cluster_states: dict[str, ClusterState] = Field(default_factory=dict)


class Project(BaseModel):
    """Root manifest model.

    Maps to the top-level structure of manifest.yaml. Mapping order is
    insertion order and survives a load/save round trip.
    """

    name: str
    version: str = "0.0.1"
    description: str = ""
    resources: dict[str, Resource] = Field(default_factory=dict)
    addons: dict[str, Addon] = Field(default_factory=dict)
    cloud_config: dict[str, CloudConfig] = Field(default_factory=dict)

    @field_validator("cloud_config")
    @classmethod
    def _known_providers(cls, value: dict[str, CloudConfig]) -> dict[str, CloudConfig]:
        unknown = [p for p in value if p not in PROVIDERS]
        if unknown:
            raise ValueError(
                f"unknown provider(s) {', '.join(unknown)}; expected one of {', '.join(PROVIDERS)}"
            )
        return value

    @model_validator(mode="after")
    def _valid_entity_names(self) -> Project:
        invalid = [n for n in (*self.resources, *self.addons) if not ENTITY_NAME.match(n)]
        if invalid:
            raise ValueError(
                f"invalid entity name(s) {', '.join(invalid)}; "
                "names start with a lowercase letter and contain only lowercase letters and digits"
            )
        return self

    @model_validator(mode="after")
    def _bind_names(self) -> Project:
        for key, resource in self.resources.items():
            resource.name = key
        for key, addon in self.addons.items():
            addon.name = key
        for key, config in self.cloud_config.items():
            config.provider = key
        return self

    def get_resource(self, name: str) -> Resource | None:
        """Look up a resource by name."""
        return self.resources.get(name)

    def get_addon(self, name: str) -> Addon | None:
        """Look up an addon by name."""
        return self.addons.get(name)

    def get_cloud_config(self, provider: str) -> CloudConfig | None:
        """Look up the cluster bookkeeping for a provider."""
        return self.cloud_config.get(provider)

    def entity_names(self) -> list[str]:
        """All resource and addon names, resources first."""
        return [*self.resources, *self.addons]

    def used_ports(self) -> dict[int, str]:
        """Port → owning entity name, across resources and addons."""
        ports = {r.port: r.name for r in self.resources.values()}
        ports.update({a.port: a.name for a in self.addons.values()})
        return ports
