"""
Tests for CLI commands — global options, manifest editing, clusters, targets.
"""

import json
from pathlib import Path

from click.testing import CliRunner

from kubefs.core.config.loader import load_project
from kubefs.main import cli


def _invoke(manifest: Path, *args: str, registry=None, **obj):
    if registry is not None:
        obj["registry"] = registry
    return CliRunner().invoke(cli, ["--manifest", str(manifest), *args], obj=obj)


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "deploy" in result.output
        assert "addons" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_missing_manifest(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["describe"])
        assert result.exit_code == 1
        assert "No manifest.yaml found" in result.output


class TestInit:
    def test_init(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["init", "shop", "--directory", str(tmp_path)])
        assert result.exit_code == 0
        assert "Initialized project 'shop'" in result.output
        assert (tmp_path / "shop" / "manifest.yaml").is_file()
        assert (tmp_path / "shop" / "addons").is_dir()

    def test_init_existing(self, tmp_path: Path):
        CliRunner().invoke(cli, ["init", "shop", "--directory", str(tmp_path)])
        result = CliRunner().invoke(cli, ["init", "shop", "--directory", str(tmp_path)])
        assert result.exit_code == 1
        assert "already exists" in result.output


class TestCreateRemove:
    def test_create_api(self, manifest: Path):
        result = _invoke(manifest, "create", "api", "web", "--port", "7000", "-f", "gin")
        assert result.exit_code == 0
        assert "Created api 'web' on port 7000" in result.output
        web = load_project(manifest).resources["web"]
        assert web.framework == "gin"
        assert web.up_local == "PORT=7000 go run main.go"

    def test_create_with_env(self, manifest: Path):
        result = _invoke(manifest, "create", "api", "web", "-p", "7000", "-e", "DEBUG=1")
        assert result.exit_code == 0
        assert load_project(manifest).resources["web"].environment == {"DEBUG": "1"}

    def test_bad_env(self, manifest: Path):
        result = _invoke(manifest, "create", "api", "web", "-p", "7000", "-e", "DEBUG")
        assert result.exit_code != 0
        assert "KEY=VALUE" in result.output

    def test_create_database(self, manifest: Path):
        result = _invoke(
            manifest, "create", "database", "cache", "-p", "6379", "-f", "redis", "--password", "s3",
        )
        assert result.exit_code == 0
        cache = load_project(manifest).resources["cache"]
        assert cache.opts["password"] == "s3"
        assert cache.docker_repo == "bitnami/redis"

    def test_invalid_name(self, manifest: Path):
        result = _invoke(manifest, "create", "api", "Web", "-p", "7000")
        assert result.exit_code == 2
        assert "lowercase" in result.output

    def test_duplicate_port(self, manifest: Path):
        result = _invoke(manifest, "create", "api", "web", "-p", "8080")
        assert result.exit_code == 1
        assert "Port 8080 is already used by 'svc'" in result.output

    def test_create_json(self, manifest: Path):
        result = _invoke(manifest, "create", "frontend", "web", "-p", "3000", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["detail"]["framework"] == "next"

    def test_remove(self, manifest: Path):
        result = _invoke(manifest, "remove", "svc")
        assert result.exit_code == 0
        assert "detached from: auth" in result.output
        assert "svc" not in load_project(manifest).resources


class TestAddons:
    def test_enable(self, manifest: Path):
        result = _invoke(manifest, "addons", "enable", "gw", "--port", "9100", "-f", "gateway", "--for", "svc")
        assert result.exit_code == 0
        assert load_project(manifest).resources["svc"].dependents == ["auth", "gw"]

    def test_attach_no_change(self, manifest: Path):
        result = _invoke(manifest, "addons", "attach", "auth", "svc")
        assert result.exit_code == 0
        assert "(no change)" in result.output

    def test_attach_database(self, manifest: Path):
        result = _invoke(manifest, "addons", "attach", "auth", "store")
        assert result.exit_code == 1
        assert "cannot be served" in result.output

    def test_detach_and_disable(self, manifest: Path):
        assert _invoke(manifest, "addons", "detach", "auth", "svc").exit_code == 0
        assert _invoke(manifest, "addons", "disable", "auth").exit_code == 0
        assert load_project(manifest).addons == {}

    def test_list_json(self, manifest: Path):
        result = _invoke(manifest, "addons", "list", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["addons"] == [
            {"name": "auth", "framework": "oauth2", "port": 9000, "dependencies": ["svc"]},
        ]


class TestDescribeCheck:
    def test_describe_project(self, manifest: Path):
        result = _invoke(manifest, "describe")
        assert result.exit_code == 0
        assert "demo v0.0.1" in result.output
        assert "svc [api/fast] :8080" in result.output

    def test_describe_entity(self, manifest: Path):
        result = _invoke(manifest, "describe", "svc")
        assert result.exit_code == 0
        assert "authHOST=http://auth:9000" in result.output

    def test_describe_json(self, manifest: Path):
        result = _invoke(manifest, "describe", "svc", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["wiring"]["test"]["authHOST"] == "http://auth:9000"
        assert data["resource"]["port"] == 8080

    def test_check(self, manifest: Path):
        result = _invoke(manifest, "check")
        assert result.exit_code == 0
        assert "is valid" in result.output
        assert "has no main cluster" in result.output

    def test_check_invalid(self, tmp_path: Path):
        path = tmp_path / "manifest.yaml"
        path.write_text("name: demo\nresources: [1, 2]\n", encoding="utf-8")
        result = _invoke(path, "check", "--json")
        assert result.exit_code == 1
        assert json.loads(result.output)["valid"] is False


class TestClusterCommands:
    def test_provision(self, manifest: Path, mock_registry, mock_adapter):
        result = _invoke(manifest, "cluster", "provision", "dev", registry=mock_registry)
        assert result.exit_code == 0
        assert "Provisioned minikube cluster 'dev'" in result.output
        assert "main: dev" in result.output
        assert mock_adapter.commands[0] == "minikube start -p dev"

    def test_provision_failure(self, manifest: Path, mock_registry, mock_adapter):
        mock_adapter.fail_when("minikube start", "driver not found")
        result = _invoke(manifest, "cluster", "provision", "dev", registry=mock_registry)
        assert result.exit_code == 1
        assert "driver not found" in result.output
        assert load_project(manifest).cloud_config["minikube"].cluster_names == []

    def test_gcp_pause(self, deployable_manifest: Path, mock_registry):
        result = _invoke(deployable_manifest, "cluster", "pause", "dev", "--target", "gcp", registry=mock_registry)
        assert result.exit_code == 1

    def test_list(self, deployable_manifest: Path):
        result = _invoke(deployable_manifest, "cluster", "list")
        assert result.exit_code == 0
        assert "minikube/dev" in result.output
        assert "← main" in result.output

    def test_config_gcp(self, manifest: Path):
        class Identity:
            def resolve(self, project_name):
                return "p-123", "us-east1"

        result = _invoke(manifest, "config", "gcp", "--project", "Demo", identity=Identity())
        assert result.exit_code == 0
        assert "project id: p-123" in result.output
        assert load_project(manifest).cloud_config["gcp"].region == "us-east1"


class TestTargetCommands:
    def test_deploy_dry_run(self, deployable_manifest: Path, mock_registry, mock_adapter):
        result = _invoke(deployable_manifest, "deploy", "--dry-run", registry=mock_registry)
        assert result.exit_code == 0
        assert "$ docker pull demo-svc" in result.output
        assert "Result: 3/3 deployed" in result.output
        assert mock_adapter.call_count == 0

    def test_deploy_partial(self, deployable_manifest: Path, mock_registry, mock_adapter):
        mock_adapter.fail_when("helm upgrade --install store ", "release failed")
        result = _invoke(deployable_manifest, "deploy", registry=mock_registry)
        assert result.exit_code == 1
        assert "✗ store" in result.output
        assert "Result: 2/3 deployed" in result.output

    def test_deploy_without_main(self, manifest: Path, mock_registry):
        result = _invoke(manifest, "deploy", registry=mock_registry)
        assert result.exit_code == 1
        assert "No main cluster" in result.output

    def test_undeploy_json(self, deployable_manifest: Path, mock_registry):
        result = _invoke(deployable_manifest, "undeploy", "svc", "--json", registry=mock_registry)
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["report"]["succeeded"] == ["svc"]
        assert data["context"]["cluster"] == "dev"

    def test_run_dry_run(self, manifest: Path, mock_registry):
        result = _invoke(manifest, "run", "svc", "--dry-run", registry=mock_registry)
        assert result.exit_code == 0
        assert "(cd svc && " in result.output

    def test_run_database(self, manifest: Path, mock_registry):
        result = _invoke(manifest, "run", "store", registry=mock_registry)
        assert result.exit_code == 1
        assert "cannot be run locally" in result.output

    def test_test_only_write(self, manifest: Path, mock_registry, mock_adapter):
        result = _invoke(manifest, "test", "--only-write", registry=mock_registry)
        assert result.exit_code == 0
        assert "docker-compose.yaml" in result.output
        assert "Result: 3/3 composed" in result.output
        assert (manifest.parent / "docker-compose.yaml").is_file()
        assert mock_adapter.call_count == 0
