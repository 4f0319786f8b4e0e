"""
Tests for manifest discovery and loading.
"""

import textwrap
from pathlib import Path

import pytest

from kubefs.core.config.loader import (
    ConfigError,
    find_manifest_file,
    load_project,
    project_root,
)
from kubefs.core.errors import KubefsError


class TestFindManifestFile:
    def test_in_current_dir(self, tmp_path: Path):
        (tmp_path / "manifest.yaml").write_text("name: demo\n")
        assert find_manifest_file(tmp_path) == (tmp_path / "manifest.yaml").resolve()

    def test_walks_up(self, tmp_path: Path):
        (tmp_path / "manifest.yaml").write_text("name: demo\n")
        nested = tmp_path / "svc" / "src"
        nested.mkdir(parents=True)
        assert find_manifest_file(nested) == (tmp_path / "manifest.yaml").resolve()

    def test_not_found(self, tmp_path: Path):
        assert find_manifest_file(tmp_path) is None


class TestLoadProject:
    def test_full_manifest(self, tmp_path: Path):
        path = tmp_path / "manifest.yaml"
        path.write_text(textwrap.dedent("""\
            name: demo
            version: 1.2.0
            description: "sample"
            resources:
              svc:
                port: 8080
                type: api
                framework: fast
                dependents: [auth]
            addons:
              auth:
                port: 9000
                dependencies: [svc]
                environment:
                  - TWO_FACTOR_AUTH=false
            cloud_config:
              minikube:
                cluster_names: [dev]
                main_cluster: dev
        """))
        project = load_project(path)
        assert project.name == "demo"
        assert project.version == "1.2.0"
        assert project.resources["svc"].dependents == ["auth"]
        assert project.addons["auth"].environment == ["TWO_FACTOR_AUTH=false"]
        assert project.cloud_config["minikube"].main_cluster == "dev"

    def test_empty_sections(self, tmp_path: Path):
        path = tmp_path / "manifest.yaml"
        path.write_text("name: demo\nresources:\naddons:\ncloud_config:\n")
        project = load_project(path)
        assert project.resources == {}
        assert project.addons == {}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_project(tmp_path / "manifest.yaml")

    def test_no_manifest_anywhere(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match="kubefs init"):
            load_project()

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "manifest.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_project(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "manifest.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_project(path)

    def test_schema_error(self, tmp_path: Path):
        path = tmp_path / "manifest.yaml"
        path.write_text("name: demo\ncloud_config:\n  azure: {}\n")
        with pytest.raises(ConfigError, match="Invalid manifest"):
            load_project(path)

    @pytest.mark.parametrize("entity", [
        "resources:\n  store:\n    port: 5432\n    type: database\n    framework: mysql\n",
        "resources:\n  svc:\n    port: 8080\n    type: api\n    framework: next\n",
        "addons:\n  auth:\n    port: 9000\n    framework: keycloak\n",
    ])
    def test_unsupported_framework(self, tmp_path: Path, entity: str):
        path = tmp_path / "manifest.yaml"
        path.write_text("name: demo\n" + entity)
        with pytest.raises(ConfigError, match="is not supported"):
            load_project(path)

    def test_invalid_entity_name(self, tmp_path: Path):
        path = tmp_path / "manifest.yaml"
        path.write_text("name: demo\nresources:\n  my-api:\n    port: 8080\n    type: api\n    framework: fast\n")
        with pytest.raises(ConfigError, match="invalid entity name"):
            load_project(path)

    def test_config_error_is_kubefs_error(self):
        assert issubclass(ConfigError, KubefsError)


class TestProjectRoot:
    def test_parent_of_manifest(self, tmp_path: Path):
        assert project_root(tmp_path / "manifest.yaml") == tmp_path.resolve()
