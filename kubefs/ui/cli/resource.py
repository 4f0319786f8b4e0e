"""
CLI commands for resources — create and remove.

Thin wrappers over ``kubefs.core.use_cases.resources``.
"""

from __future__ import annotations

import click

from kubefs.core.models.project import FRAMEWORKS
from kubefs.ui.cli.common import (
    json_option,
    manifest_path,
    render_change,
    validate_entity_name,
)

port_option = click.option("--port", "-p", type=click.IntRange(1, 65535), required=True, help="Listening port.")


def _parse_env(values: tuple[str, ...]) -> dict[str, str]:
    env: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got '{item}'", param_hint="--env")
        env[key] = value
    return env


@click.group("create")
def create() -> None:
    """Create a resource: api, frontend or database."""


def _create(ctx, name, type, port, framework, docker_repo, opts, env, as_json) -> None:
    from kubefs.core.use_cases.resources import create_resource

    result = create_resource(
        name, type, port,
        framework=framework,
        docker_repo=docker_repo or "",
        opts=opts,
        environment=_parse_env(env),
        manifest_path=manifest_path(ctx),
    )
    render_change(result, f"Created {type} '{name}' on port {port}", as_json)


@create.command("api")
@click.argument("name", callback=validate_entity_name)
@port_option
@click.option("--framework", "-f", type=click.Choice(FRAMEWORKS["api"]), default="fast", show_default=True)
@click.option("--docker-repo", default=None, help="Image repository (default: <project>-<name>).")
@click.option("--env", "-e", multiple=True, help="KEY=VALUE environment entry (repeatable).")
@json_option
@click.pass_context
def create_api(ctx, name, port, framework, docker_repo, env, as_json) -> None:
    """Create an api resource."""
    _create(ctx, name, "api", port, framework, docker_repo, {}, env, as_json)


@create.command("frontend")
@click.argument("name", callback=validate_entity_name)
@port_option
@click.option("--framework", "-f", type=click.Choice(FRAMEWORKS["frontend"]), default="next", show_default=True)
@click.option("--host-domain", default=None, help="Ingress host (default: <name>.<project>.local).")
@click.option("--docker-repo", default=None, help="Image repository (default: <project>-<name>).")
@click.option("--env", "-e", multiple=True, help="KEY=VALUE environment entry (repeatable).")
@json_option
@click.pass_context
def create_frontend(ctx, name, port, framework, host_domain, docker_repo, env, as_json) -> None:
    """Create a frontend resource."""
    opts = {"host-domain": host_domain} if host_domain else {}
    _create(ctx, name, "frontend", port, framework, docker_repo, opts, env, as_json)


@create.command("database")
@click.argument("name", callback=validate_entity_name)
@port_option
@click.option("--framework", "-f", type=click.Choice(FRAMEWORKS["database"]), default="postgresql", show_default=True)
@click.option("--user", default="default", show_default=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--database", "default_database", default=None, help="Database created on init.")
@click.option("--persistence", default="1Gi", show_default=True, help="Volume size per pod.")
@json_option
@click.pass_context
def create_database(ctx, name, port, framework, user, password, default_database, persistence, as_json) -> None:
    """Create a database resource (postgresql or redis)."""
    opts = {"user": user, "password": password, "persistence": persistence}
    if default_database:
        opts["default-database"] = default_database
    _create(ctx, name, "database", port, framework, None, opts, (), as_json)


@click.command("remove")
@click.argument("name")
@json_option
@click.pass_context
def remove(ctx: click.Context, name: str, as_json: bool) -> None:
    """Remove a resource and detach it from every addon."""
    from kubefs.core.use_cases.resources import remove_resource

    result = remove_resource(name, manifest_path=manifest_path(ctx))
    render_change(result, f"Removed resource '{name}'", as_json)
    if not as_json and result.ok and result.detail.get("detached_from"):
        click.echo(f"   detached from: {', '.join(result.detail['detached_from'])}")
