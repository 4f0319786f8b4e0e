"""
CLI commands for execution targets — run, test, deploy, undeploy.

Thin wrappers over ``kubefs.core.use_cases``.
"""

from __future__ import annotations

import sys

import click

from kubefs.ui.cli.common import (
    emit_json,
    fail,
    json_option,
    manifest_path,
    registry,
    render_report,
    target_option,
)

dry_run_option = click.option("--dry-run", is_flag=True, help="Print the commands without running them.")
addon_option = click.option("--addon", "-a", "addons", multiple=True, help="Addon to include (repeatable).")


@click.command("run")
@click.argument("name")
@dry_run_option
@json_option
@click.pass_context
def run(ctx: click.Context, name: str, dry_run: bool, as_json: bool) -> None:
    """Run a resource locally with its wiring exported."""
    from kubefs.core.use_cases.run import run_local

    result = run_local(name, manifest_path(ctx), registry(ctx), dry_run=dry_run)
    if as_json:
        emit_json(result.to_dict())
        if not result.ok:
            sys.exit(1)
        return
    if not result.ok:
        fail(result.error or "run failed")
    if dry_run and result.invocation:
        click.echo(f"(cd {result.invocation.cwd} && {result.invocation.command})")


@click.command("test")
@click.argument("names", nargs=-1)
@addon_option
@click.option("--only-write", is_flag=True, help="Write docker-compose.yaml without starting it.")
@click.option("--persist-data", is_flag=True, help="Keep volumes and images on teardown.")
@dry_run_option
@json_option
@click.pass_context
def test(ctx, names, addons, only_write, persist_data, dry_run, as_json) -> None:
    """Compose resources and addons into docker-compose.yaml and run them."""
    from kubefs.core.use_cases.testbed import compose_test

    result = compose_test(
        names, addons,
        manifest_path=manifest_path(ctx),
        registry=registry(ctx),
        only_write=only_write,
        persist_data=persist_data,
        dry_run=dry_run,
    )
    if as_json:
        emit_json(result.to_dict())
        if not result.ok:
            sys.exit(1)
        return

    if result.report:
        render_report(result.report, "composed")
    if result.compose_file:
        click.secho(f"📄 {result.compose_file}", fg="cyan")
    if result.error:
        fail(result.error, result.output)
    if not result.ok:
        sys.exit(1)


def _cluster_command(ctx, operation, names, addons, provider, dry_run, as_json) -> None:
    from kubefs.core.use_cases import deploy as deploy_uc

    batch = deploy_uc.deploy if operation == "deploy" else deploy_uc.undeploy
    result = batch(
        names, addons,
        provider=provider,
        manifest_path=manifest_path(ctx),
        registry=registry(ctx),
        dry_run=dry_run,
    )
    if as_json:
        emit_json(result.to_dict())
        if not result.ok:
            sys.exit(1)
        return

    if result.error:
        fail(result.error, result.output)
    assert result.report is not None and result.context is not None

    click.secho(f"☸️  {provider}/{result.context.cluster}", fg="cyan", bold=True)
    if dry_run:
        for element in result.report.elements:
            for receipt in element.receipts:
                click.echo(f"   $ {receipt.output}")
    render_report(result.report, "deployed" if operation == "deploy" else "undeployed")
    if not result.ok:
        sys.exit(1)


@click.command("deploy")
@click.argument("names", nargs=-1)
@addon_option
@target_option
@dry_run_option
@json_option
@click.pass_context
def deploy(ctx, names, addons, provider, dry_run, as_json) -> None:
    """Deploy resources and addons to the main cluster."""
    _cluster_command(ctx, "deploy", names, addons, provider, dry_run, as_json)


@click.command("undeploy")
@click.argument("names", nargs=-1)
@addon_option
@target_option
@dry_run_option
@json_option
@click.pass_context
def undeploy(ctx, names, addons, provider, dry_run, as_json) -> None:
    """Remove resources and addons from the main cluster."""
    _cluster_command(ctx, "undeploy", names, addons, provider, dry_run, as_json)
