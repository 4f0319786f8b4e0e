"""
Shared test fixtures.

The sample project is the canonical three-entity graph:

    svc    api       :8080   served by auth
    store  database  :5432
    auth   oauth2    :9000   serves svc
"""

from pathlib import Path

import pytest

from kubefs.adapters.mock import MockAdapter
from kubefs.adapters.registry import AdapterRegistry
from kubefs.core.models.project import CloudConfig, Project
from kubefs.core.persistence.manifest_file import save_project
from kubefs.core.services import graph


def build_sample_project() -> Project:
    project = Project(
        name="demo",
        description="sample project",
        cloud_config={"minikube": CloudConfig(provider="minikube")},
    )
    graph.create_resource(project, "svc", "api", 8080)
    graph.create_resource(project, "store", "database", 5432, opts={"password": "pw"})
    graph.enable_addon(project, "auth", 9000, dependencies=["svc"])
    return project


@pytest.fixture
def sample_project() -> Project:
    return build_sample_project()


@pytest.fixture
def manifest(tmp_path: Path, sample_project: Project) -> Path:
    """The sample project written to tmp_path/manifest.yaml."""
    path = tmp_path / "manifest.yaml"
    save_project(sample_project, path)
    return path


@pytest.fixture
def deployable_manifest(tmp_path: Path, sample_project: Project) -> Path:
    """The sample project with a running minikube cluster 'dev' as main."""
    config = sample_project.cloud_config["minikube"]
    config.cluster_names.append("dev")
    config.cluster_states["dev"] = "running"
    config.main_cluster = "dev"
    path = tmp_path / "manifest.yaml"
    save_project(sample_project, path)
    return path


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter(adapter_name="shell")


@pytest.fixture
def mock_registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    """A registry that routes every command to ``mock_adapter``."""
    registry = AdapterRegistry()
    registry.set_mock_mode(True, mock_adapter)
    return registry
