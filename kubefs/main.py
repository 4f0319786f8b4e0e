"""
kubefs — CLI entrypoint.

Usage:
    kubefs --help
    kubefs init my-project
    kubefs create api svc --port 8080
    kubefs deploy --target minikube
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from kubefs import __version__
from kubefs.core.observability.logging_config import resolve_level, setup_logging
from kubefs.ui.cli.common import emit_json, fail, json_option, manifest_path, render_change


@click.group()
@click.version_option(version=__version__, prog_name="kubefs")
@click.option("--verbose", "-v", is_flag=True, help="Log every external command.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--manifest",
    "-m",
    "manifest",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to manifest.yaml (default: search upward from cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    manifest: str | None,
) -> None:
    """kubefs — describe, wire and deploy multi-resource projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["manifest_path"] = Path(manifest) if manifest else None

    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.argument("name")
@click.option("--description", "-d", default="", help="Free-text project description.")
@click.option(
    "--directory",
    type=click.Path(file_okay=False),
    default=".",
    help="Where to create the project directory.",
)
@json_option
def init(name: str, description: str, directory: str, as_json: bool) -> None:
    """Create a new project with an empty manifest."""
    from kubefs.core.use_cases.manifest import create_project

    result = create_project(Path(directory), name, description)
    render_change(result, f"Initialized project '{name}'", as_json)
    if not as_json:
        click.echo(f"   {result.detail['manifest']}")


@cli.command()
@click.argument("name", required=False)
@json_option
@click.pass_context
def describe(ctx: click.Context, name: str | None, as_json: bool) -> None:
    """Describe the project, or one resource/addon and its wiring."""
    from kubefs.core.use_cases.manifest import describe as describe_uc

    result = describe_uc(name, manifest_path(ctx))
    if as_json:
        emit_json(result.to_dict())
        if result.error:
            sys.exit(1)
        return
    if result.error:
        fail(result.error)

    project = result.project
    assert project is not None

    if name is None:
        click.secho(f"\n📋 {project.name} v{project.version}", fg="cyan", bold=True)
        if project.description:
            click.echo(f"   {project.description}")
        click.echo()

        click.secho(f"   Resources: {len(project.resources)}", fg="white", bold=True)
        for resource in project.resources.values():
            attached = f"  + {', '.join(resource.dependents)}" if resource.dependents else ""
            click.echo(f"     • {resource.name} [{resource.type}/{resource.framework}] :{resource.port}{attached}")

        click.secho(f"   Addons: {len(project.addons)}", fg="white", bold=True)
        for addon in project.addons.values():
            click.echo(f"     • {addon.name} [{addon.framework}] :{addon.port}  → {', '.join(addon.dependencies) or '-'}")

        for provider, config in project.cloud_config.items():
            click.secho(f"   {provider}: ", fg="white", bold=True, nl=False)
            click.echo(f"{len(config.cluster_names)} cluster(s), main: {config.main_cluster or '-'}")
        click.echo()
        return

    entity = project.resources.get(name) or project.addons.get(name)
    click.secho(f"\n📦 {name} ({result.entity_kind})", fg="cyan", bold=True)
    click.echo(f"   port: {entity.port}  image: {entity.docker_repo}")
    for target, pairs in result.wiring.items():
        click.secho(f"   {target}:", fg="white", bold=True)
        if not pairs:
            click.echo("     (no wiring)")
        for key, value in pairs:
            click.echo(f"     {key}={value}")
    click.echo()


@cli.command()
@json_option
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Validate the manifest and its dependency graph."""
    from kubefs.core.use_cases.manifest import check_manifest

    result = check_manifest(manifest_path(ctx))

    if as_json:
        emit_json(result.to_dict())
        if not result.valid:
            sys.exit(1)
        return

    if result.valid:
        click.secho(f"✅ {result.manifest_path} is valid", fg="green")
    else:
        click.secho("❌ Manifest has errors:", fg="red")
        for error in result.errors:
            click.secho(f"   • {error}", fg="red")
    for warning in result.warnings:
        click.secho(f"   ⚠ {warning}", fg="yellow")

    if not result.valid:
        sys.exit(1)


# ── Command groups ──────────────────────────────────────────────

from kubefs.ui.cli.addons import addons  # noqa: E402
from kubefs.ui.cli.cluster import cluster, config  # noqa: E402
from kubefs.ui.cli.resource import create, remove  # noqa: E402
from kubefs.ui.cli.targets import deploy, run, test, undeploy  # noqa: E402

cli.add_command(create)
cli.add_command(remove)
cli.add_command(addons)
cli.add_command(cluster)
cli.add_command(config)
cli.add_command(run)
cli.add_command(test)
cli.add_command(deploy)
cli.add_command(undeploy)


if __name__ == "__main__":
    cli()
