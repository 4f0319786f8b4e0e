"""
Tests for manifest persistence — round trip, atomic writes, transactions.
"""

from pathlib import Path

import pytest
import yaml

from kubefs.core.config.loader import load_project
from kubefs.core.errors import ConflictError, IntegrityError, NotFoundError
from kubefs.core.persistence.manifest_file import (
    dump_project,
    init_project,
    manifest_transaction,
    save_project,
)
from kubefs.core.services import graph


class TestSaveProject:
    def test_round_trip(self, tmp_path: Path, sample_project):
        path = tmp_path / "manifest.yaml"
        save_project(sample_project, path)
        loaded = load_project(path)
        assert loaded.resources == sample_project.resources
        assert loaded.addons == sample_project.addons
        assert loaded.cloud_config == sample_project.cloud_config
        assert loaded == sample_project

    def test_round_trip_keeps_order(self, tmp_path: Path, sample_project):
        graph.create_resource(sample_project, "alpha", "api", 7000)
        path = tmp_path / "manifest.yaml"
        save_project(sample_project, path)
        assert list(load_project(path).resources) == ["svc", "store", "alpha"]

    def test_no_temp_files_left(self, tmp_path: Path, sample_project):
        save_project(sample_project, tmp_path / "manifest.yaml")
        assert [p.name for p in tmp_path.iterdir()] == ["manifest.yaml"]

    def test_creates_parent_dir(self, tmp_path: Path, sample_project):
        path = tmp_path / "nested" / "manifest.yaml"
        save_project(sample_project, path)
        assert path.is_file()

    def test_dangling_edge_refused(self, manifest: Path, sample_project):
        before = manifest.read_bytes()
        sample_project.addons["auth"].dependencies.append("ghost")
        with pytest.raises(IntegrityError, match="ghost"):
            save_project(sample_project, manifest)
        assert manifest.read_bytes() == before

    def test_dump_is_plain_yaml(self, sample_project):
        data = yaml.safe_load(dump_project(sample_project))
        assert data["name"] == "demo"
        assert data["resources"]["svc"]["port"] == 8080
        assert data["addons"]["auth"]["dependencies"] == ["svc"]


class TestManifestTransaction:
    def test_commits_on_success(self, manifest: Path):
        with manifest_transaction(manifest) as project:
            graph.detach(project, "auth", "svc")
        loaded = load_project(manifest)
        assert loaded.addons["auth"].dependencies == []
        assert loaded.resources["svc"].dependents == []

    def test_nothing_written_on_error(self, manifest: Path):
        before = manifest.read_bytes()
        with pytest.raises(NotFoundError):
            with manifest_transaction(manifest) as project:
                graph.create_resource(project, "extra", "api", 7000)
                graph.attach(project, "auth", "nope")
        assert manifest.read_bytes() == before


class TestInitProject:
    def test_creates_manifest(self, tmp_path: Path):
        path = init_project(tmp_path, "demo", "a demo")
        assert path == tmp_path / "demo" / "manifest.yaml"
        assert (tmp_path / "demo" / "addons").is_dir()
        project = load_project(path)
        assert project.description == "a demo"
        assert list(project.cloud_config) == ["minikube"]
        assert project.cloud_config["minikube"].cluster_names == []

    def test_refuses_existing(self, tmp_path: Path):
        init_project(tmp_path, "demo")
        with pytest.raises(ConflictError):
            init_project(tmp_path, "demo")
