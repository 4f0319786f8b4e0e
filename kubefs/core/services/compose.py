"""
Test target — one docker compose document for the whole project.

Services are added one entity at a time. Every service joins the
shared bridge network, publishes ``port:port`` and receives its
``test`` wiring as environment entries. Stateful services mount named
volumes that are declared once at document level.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import yaml

from kubefs.core.models.project import Addon, Resource
from kubefs.core.services.wiring import as_assignments

logger = logging.getLogger(__name__)

COMPOSE_FILE = "docker-compose.yaml"
NETWORK = "shared_network"

_DATA_MOUNTS = {
    "postgresql": "/bitnami/postgresql",
    "redis": "/bitnami/redis/data",
}


def database_environment(resource: Resource) -> list[tuple[str, str]]:
    """Credential variables the bitnami images read on first start."""
    opts = resource.opts
    if resource.framework == "postgresql":
        return [
            ("POSTGRESQL_USERNAME", opts.get("user", "")),
            ("POSTGRESQL_PASSWORD", opts.get("password", "")),
            ("POSTGRESQL_DATABASE", opts.get("default-database", "")),
            ("POSTGRESQL_PORT_NUMBER", str(resource.port)),
        ]
    return [
        ("REDIS_PASSWORD", opts.get("password", "")),
        ("REDIS_DATABASE", opts.get("default-database", "")),
        ("REDIS_PORT_NUMBER", str(resource.port)),
    ]


class ComposeDocument:
    """Incrementally built compose topology."""

    def __init__(self, project_name: str):
        self.project_name = project_name
        self.services: dict[str, dict] = {}
        self.volumes: dict[str, dict] = {}

    def _declare_volume(self, name: str) -> str:
        self.volumes.setdefault(name, {"driver": "local"})
        return name

    def _service(self, image: str, port: int, pairs: Iterable[tuple[str, str]]) -> dict:
        return {
            "image": image,
            "ports": [f"{port}:{port}"],
            "networks": [NETWORK],
            "environment": as_assignments(pairs),
        }

    def add_resource(self, resource: Resource, pairs: Iterable[tuple[str, str]]) -> dict:
        """Add one resource service; databases get credentials and a data volume."""
        if resource.is_database:
            service = self._service(resource.docker_repo, resource.port, database_environment(resource))
            volume = self._declare_volume(f"{resource.name}_data")
            service["volumes"] = [f"{volume}:{_DATA_MOUNTS[resource.framework]}"]
        else:
            service = self._service(resource.docker_repo, resource.port, pairs)
        self.services[resource.name] = service
        logger.debug("Added service '%s' to compose document", resource.name)
        return service

    def add_addon(self, addon: Addon, pairs: Iterable[tuple[str, str]]) -> dict:
        """Add one addon service; persistent addons get a store volume."""
        service = self._service(addon.docker_repo, addon.port, pairs)
        if addon.persistent:
            volume = self._declare_volume(f"{addon.name}_store")
            mounts = [f"{volume}:/app/store"]
            if addon.framework == "oauth2":
                keys = f"./addons/{addon.name}"
                mounts += [
                    f"{keys}/private_key.pem:/etc/ssl/private/private_key.pem",
                    f"{keys}/public_key.pem:/etc/ssl/public/public_key.pem",
                ]
            service["volumes"] = mounts
        self.services[addon.name] = service
        logger.debug("Added addon service '%s' to compose document", addon.name)
        return service

    def to_dict(self) -> dict:
        document: dict = {
            "name": self.project_name,
            "services": self.services,
            "networks": {NETWORK: {"driver": "bridge"}},
        }
        if self.volumes:
            document["volumes"] = self.volumes
        return document

    def dump(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)

    def write(self, path: Path) -> Path:
        path.write_text(self.dump(), encoding="utf-8")
        logger.info("Wrote %s with %d services", path, len(self.services))
        return path


def compose_up_command() -> str:
    return "docker compose up --remove-orphans"


def compose_down_command(persist_data: bool = False) -> str:
    """Tear the topology down; volumes and images go too unless data is kept."""
    if persist_data:
        return "docker compose down"
    return "docker compose down -v --rmi all"
