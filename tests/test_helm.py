"""
Tests for deploy compilation — helm releases and command lists.
"""

import shlex

import pytest

from kubefs.core.errors import NotFoundError
from kubefs.core.services import graph
from kubefs.core.services.context_switch import ClusterContext
from kubefs.core.services.helm import (
    BITNAMI_REGISTRY,
    HelmRelease,
    compile_deploy,
    compile_undeploy,
    resource_release,
    store_release,
)

CTX = ClusterContext(provider="minikube", cluster="dev", kube_context="dev")


def _set_values(command: str, flag: str) -> list[str]:
    tokens = shlex.split(command)
    return [tokens[i + 1] for i, token in enumerate(tokens) if token == flag]


class TestHelmRelease:
    def test_command_shape(self):
        release = HelmRelease("svc", "svc/deploy", kube_context="dev", values=["a=1"], string_values=["b=2"])
        assert shlex.split(release.command()) == [
            "helm", "upgrade", "--install", "svc", "svc/deploy",
            "--kube-context", "dev",
            "--set", "a=1",
            "--set-string", "b=2",
        ]

    def test_namespace(self):
        release = HelmRelease("db", "chart", namespace="db")
        tokens = shlex.split(release.command())
        assert tokens[5:] == ["--namespace", "db", "--create-namespace"]

    def test_commas_escaped(self):
        release = HelmRelease("a", "chart", string_values=["env[0].value=x,y"])
        assert _set_values(release.command(), "--set-string") == ["env[0].value=x\\,y"]


class TestResourceRelease:
    def test_api_values(self, sample_project):
        release = resource_release(sample_project, sample_project.resources["svc"], CTX)
        assert release.chart == "svc/deploy"
        assert release.namespace is None
        assert "image.repository=demo-svc" in release.values
        assert "replicaCount=3" in release.values
        assert "service.type=ClusterIP" in release.values
        assert "ingress.enabled=false" in release.values
        assert "readinessProbe.httpGet.path=/health" in release.values

    def test_env_directives_indexed_densely(self, sample_project):
        release = resource_release(sample_project, sample_project.resources["svc"], CTX)
        env = [v for v in release.string_values if v.startswith("env[")]
        assert env[0] == "env[0].name=storeHOST"
        assert env[2] == "env[1].name=storeHOST_READ"
        assert env[4] == "env[2].name=authHOST"
        assert env[5] == "env[2].value=http://auth-deploy.auth.svc.cluster.local:9000"
        assert len(env) == 6

    def test_secrets_separate_from_env(self, sample_project):
        release = resource_release(
            sample_project, sample_project.resources["svc"], CTX, [("API_KEY", "abc")]
        )
        assert "secrets[0].name=API_KEY" in release.string_values
        assert "secrets[0].value=abc" in release.string_values
        assert "secrets[0].secretRef=svc-deploy-secret" in release.string_values
        assert not any("API_KEY" in v for v in release.string_values if v.startswith("env["))

    def test_frontend_ingress(self, sample_project):
        web = graph.create_resource(sample_project, "web", "frontend", 3000)
        release = resource_release(sample_project, web, CTX)
        assert "service.type=NodePort" in release.values
        assert "ingress.host=web.demo.local" in release.values
        assert "livenessProbe.httpGet.path=/" in release.values

    def test_postgres_release(self, sample_project):
        release = resource_release(sample_project, sample_project.resources["store"], CTX)
        assert release.chart == f"{BITNAMI_REGISTRY}/postgresql"
        assert release.namespace == "store"
        assert "primary.persistence.size=1Gi" in release.values
        assert release.string_values == [
            "auth.username=default",
            "auth.password=pw",
            "auth.database=store",
        ]

    def test_redis_release(self, sample_project):
        cache = graph.create_resource(sample_project, "cache", "database", 6379, framework="redis",
                                      opts={"password": "s3", "persistence": "2Gi"})
        release = resource_release(sample_project, cache, CTX)
        assert release.chart == f"{BITNAMI_REGISTRY}/redis"
        assert "master.persistence.size=2Gi" in release.values
        assert release.string_values == ["auth.password=s3"]

    def test_store_release(self, sample_project):
        release = store_release(sample_project.addons["auth"], CTX)
        assert release.release == "auth-store"
        assert release.namespace == "auth-store"
        assert "auth.password=auth" in release.string_values


class TestCompile:
    def test_deploy_api(self, sample_project):
        commands = compile_deploy(sample_project, "svc", CTX)
        assert commands[0] == "docker pull demo-svc"
        assert shlex.split(commands[1])[:5] == ["helm", "upgrade", "--install", "svc", "svc/deploy"]
        assert len(commands) == 2

    def test_deploy_database(self, sample_project):
        commands = compile_deploy(sample_project, "store", CTX)
        assert len(commands) == 1
        assert "--kube-context dev" in commands[0]

    def test_deploy_addon(self, sample_project):
        commands = compile_deploy(sample_project, "auth", CTX)
        assert commands[0] == "docker pull kubefs/oauth2"
        assert shlex.split(commands[1])[3] == "auth-store"
        assert shlex.split(commands[2])[3:5] == ["auth", "addons/auth/deploy"]
        assert "MODE" in " ".join(_set_values(commands[2], "--set-string"))

    def test_every_call_pinned_to_context(self, sample_project):
        for name in ("svc", "store", "auth"):
            for command in compile_deploy(sample_project, name, CTX):
                if command.startswith("helm"):
                    assert "--kube-context dev" in command

    def test_deploy_unknown(self, sample_project):
        with pytest.raises(NotFoundError):
            compile_deploy(sample_project, "nope", CTX)

    def test_undeploy_api(self, sample_project):
        assert compile_undeploy(sample_project, "svc", CTX) == ["helm uninstall svc --kube-context dev"]

    def test_undeploy_database(self, sample_project):
        assert compile_undeploy(sample_project, "store", CTX) == [
            "helm uninstall store --namespace store --kube-context dev",
            "kubectl delete namespace store --context dev",
        ]

    def test_undeploy_addon_with_store(self, sample_project):
        assert compile_undeploy(sample_project, "auth", CTX) == [
            "helm uninstall auth --kube-context dev",
            "helm uninstall auth-store --namespace auth-store --kube-context dev",
            "kubectl delete namespace auth-store --context dev",
        ]

    def test_gcp_context(self, sample_project):
        ctx = ClusterContext(provider="gcp", cluster="g1", kube_context="gke_p-123_us-east1_g1")
        commands = compile_undeploy(sample_project, "svc", ctx)
        assert commands == ["helm uninstall svc --kube-context gke_p-123_us-east1_g1"]
