"""
CLI commands for addons — enable, disable, attach, detach, list.

Thin wrappers over ``kubefs.core.use_cases.resources``.
"""

from __future__ import annotations

import click

from kubefs.core.models.project import FRAMEWORKS
from kubefs.ui.cli.common import (
    emit_json,
    fail,
    json_option,
    manifest_path,
    render_change,
    validate_entity_name,
)


@click.group("addons")
def addons() -> None:
    """Addons — auxiliary services attached to resources."""


@addons.command("enable")
@click.argument("name", callback=validate_entity_name)
@click.option("--port", "-p", type=click.IntRange(1, 65535), required=True)
@click.option("--framework", "-f", type=click.Choice(FRAMEWORKS["addon"]), default="oauth2", show_default=True)
@click.option("--for", "-r", "dependencies", multiple=True, help="Resource the addon serves (repeatable).")
@click.option("--env", "-e", multiple=True, help="KEY=VALUE environment entry (repeatable).")
@json_option
@click.pass_context
def enable(ctx, name, port, framework, dependencies, env, as_json) -> None:
    """Enable an addon serving the given resources."""
    from kubefs.core.use_cases.resources import enable_addon

    result = enable_addon(
        name, port,
        framework=framework,
        dependencies=dependencies,
        environment=env,
        manifest_path=manifest_path(ctx),
    )
    render_change(result, f"Enabled addon '{name}'", as_json)


@addons.command("disable")
@click.argument("name")
@json_option
@click.pass_context
def disable(ctx: click.Context, name: str, as_json: bool) -> None:
    """Disable an addon and detach it from every resource."""
    from kubefs.core.use_cases.resources import disable_addon

    result = disable_addon(name, manifest_path=manifest_path(ctx))
    render_change(result, f"Disabled addon '{name}'", as_json)


@addons.command("attach")
@click.argument("addon")
@click.argument("resource")
@json_option
@click.pass_context
def attach(ctx: click.Context, addon: str, resource: str, as_json: bool) -> None:
    """Attach ADDON to RESOURCE."""
    from kubefs.core.use_cases.resources import attach_addon

    result = attach_addon(addon, resource, manifest_path=manifest_path(ctx))
    render_change(result, f"Attached '{addon}' to '{resource}'", as_json)


@addons.command("detach")
@click.argument("addon")
@click.argument("resource")
@json_option
@click.pass_context
def detach(ctx: click.Context, addon: str, resource: str, as_json: bool) -> None:
    """Detach ADDON from RESOURCE."""
    from kubefs.core.use_cases.resources import detach_addon

    result = detach_addon(addon, resource, manifest_path=manifest_path(ctx))
    render_change(result, f"Detached '{addon}' from '{resource}'", as_json)


@addons.command("list")
@json_option
@click.pass_context
def list_(ctx: click.Context, as_json: bool) -> None:
    """List addons and the resources they serve."""
    from kubefs.core.use_cases.manifest import describe

    result = describe(manifest_path=manifest_path(ctx))
    if result.error:
        fail(result.error)
    assert result.project is not None

    if as_json:
        emit_json({
            "addons": [
                {"name": a.name, "framework": a.framework, "port": a.port, "dependencies": a.dependencies}
                for a in result.project.addons.values()
            ],
        })
        return

    if not result.project.addons:
        click.echo("No addons enabled.")
        return
    for addon in result.project.addons.values():
        served = ", ".join(addon.dependencies) or "-"
        click.echo(f"  • {addon.name} [{addon.framework}] :{addon.port}  → {served}")
