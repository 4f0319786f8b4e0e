"""
CLI commands for clusters and provider configuration.

Thin wrappers over ``kubefs.core.use_cases.clusters``.
"""

from __future__ import annotations

import click

from kubefs.ui.cli.common import (
    emit_json,
    fail,
    json_option,
    manifest_path,
    registry,
    render_change,
    target_option,
)


@click.group("cluster")
def cluster() -> None:
    """Clusters — provision, pause, start, delete, choose main."""


def _summary(result) -> None:
    if result.ok and result.detail:
        main = result.detail.get("main_cluster") or "-"
        click.echo(f"   clusters: {', '.join(result.detail.get('clusters', [])) or '-'}  main: {main}")


@cluster.command("provision")
@click.argument("name")
@target_option
@json_option
@click.pass_context
def provision(ctx: click.Context, name: str, provider: str, as_json: bool) -> None:
    """Provision a new cluster."""
    from kubefs.core.use_cases.clusters import provision_cluster

    if not as_json:
        click.secho(f"⏳ Provisioning {provider} cluster '{name}'...", fg="cyan")
    result = provision_cluster(provider, name, manifest_path(ctx), registry(ctx))
    render_change(result, f"Provisioned {provider} cluster '{name}'", as_json)
    if not as_json:
        _summary(result)


@cluster.command("delete")
@click.argument("name")
@target_option
@json_option
@click.pass_context
def delete(ctx: click.Context, name: str, provider: str, as_json: bool) -> None:
    """Delete a cluster. Deleting main promotes the next cluster."""
    from kubefs.core.use_cases.clusters import delete_cluster

    result = delete_cluster(provider, name, manifest_path(ctx), registry(ctx))
    render_change(result, f"Deleted {provider} cluster '{name}'", as_json)
    if not as_json:
        _summary(result)


@cluster.command("pause")
@click.argument("name")
@target_option
@json_option
@click.pass_context
def pause(ctx: click.Context, name: str, provider: str, as_json: bool) -> None:
    """Pause (stop) a running cluster."""
    from kubefs.core.use_cases.clusters import pause_cluster

    result = pause_cluster(provider, name, manifest_path(ctx), registry(ctx))
    render_change(result, f"Paused {provider} cluster '{name}'", as_json)


@cluster.command("start")
@click.argument("name")
@target_option
@json_option
@click.pass_context
def start(ctx: click.Context, name: str, provider: str, as_json: bool) -> None:
    """Start a paused cluster."""
    from kubefs.core.use_cases.clusters import start_cluster

    result = start_cluster(provider, name, manifest_path(ctx), registry(ctx))
    render_change(result, f"Started {provider} cluster '{name}'", as_json)


@cluster.command("main")
@click.argument("name")
@target_option
@json_option
@click.pass_context
def main(ctx: click.Context, name: str, provider: str, as_json: bool) -> None:
    """Designate the main cluster deployments go to."""
    from kubefs.core.use_cases.clusters import set_main_cluster

    result = set_main_cluster(provider, name, manifest_path(ctx))
    render_change(result, f"'{name}' is now the main {provider} cluster", as_json)


@cluster.command("list")
@click.option("--target", "-t", "provider", default=None, help="Only this provider.")
@json_option
@click.pass_context
def list_(ctx: click.Context, provider: str | None, as_json: bool) -> None:
    """List known clusters per provider."""
    from kubefs.core.use_cases.clusters import list_clusters

    result = list_clusters(provider, manifest_path(ctx))
    if as_json:
        emit_json(result.to_dict())
        return
    if result.error:
        fail(result.error)
    if not result.clusters:
        click.echo("No clusters provisioned.")
        return
    for row in result.clusters:
        marker = " ← main" if row["main"] else ""
        color = "green" if row["state"] == "running" else "yellow"
        click.echo(f"  • {row['provider']}/{row['name']}  ", nl=False)
        click.secho(row["state"], fg=color, nl=False)
        click.echo(marker)


# ── Provider configuration ──────────────────────────────────────


@click.group("config")
def config() -> None:
    """Provider configuration."""


@config.command("gcp")
@click.option("--project", "project_name", required=True, help="GCP project name.")
@json_option
@click.pass_context
def config_gcp(ctx: click.Context, project_name: str, as_json: bool) -> None:
    """Resolve a GCP project id and region and record them."""
    from kubefs.core.use_cases.clusters import configure_gcp

    result = configure_gcp(
        project_name,
        identity=ctx.obj.get("identity"),
        manifest_path=manifest_path(ctx),
        registry=registry(ctx),
    )
    render_change(result, f"Configured gcp project '{project_name}'", as_json)
    if not as_json:
        click.echo(f"   project id: {result.detail['project_id']}  region: {result.detail['region']}")
