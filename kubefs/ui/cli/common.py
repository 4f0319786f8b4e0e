"""
Shared CLI helpers — option plumbing and result rendering.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from kubefs.adapters.registry import AdapterRegistry, default_registry
from kubefs.core.engine.executor import BatchReport
from kubefs.core.models.project import ENTITY_NAME, PROVIDERS

json_option = click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
target_option = click.option(
    "--target", "-t", "provider",
    type=click.Choice(PROVIDERS),
    default="minikube",
    show_default=True,
    help="Cloud provider.",
)


def manifest_path(ctx: click.Context) -> Path | None:
    return ctx.obj.get("manifest_path")


def registry(ctx: click.Context) -> AdapterRegistry:
    """The registry injected into ctx.obj, or a fresh shell-backed one."""
    reg = ctx.obj.get("registry")
    if reg is None:
        reg = default_registry()
        ctx.obj["registry"] = reg
    return reg


def validate_entity_name(ctx: click.Context, param: click.Parameter, value):
    names = value if isinstance(value, tuple) else (value,)
    for name in names:
        if name is not None and not ENTITY_NAME.match(name):
            raise click.BadParameter(
                f"'{name}' must start with a lowercase letter and contain only lowercase letters and digits"
            )
    return value


def emit_json(data: dict) -> None:
    click.echo(json.dumps(data, indent=2))


def fail(message: str, output: str = "") -> None:
    """Print an error (and captured command output) and exit 1."""
    click.secho(f"❌ {message}", fg="red")
    if output:
        click.echo(output)
    sys.exit(1)


def render_change(result, success: str, as_json: bool) -> None:
    """Print a ChangeResult; exit 1 if it failed."""
    if as_json:
        emit_json(result.to_dict())
        if not result.ok:
            sys.exit(1)
        return
    if not result.ok:
        fail(result.error or "failed", result.output)
    if result.changed:
        click.secho(f"✅ {success}", fg="green")
    else:
        click.secho(f"• {success} (no change)", fg="white")


def render_report(report: BatchReport, verb: str) -> None:
    """Per-element ✓/✗ lines plus a summary line."""
    for element in report.elements:
        if element.ok:
            click.secho(f"   ✓ {element.name}", fg="green")
        else:
            click.secho(f"   ✗ {element.name}: {element.error}", fg="red")
            if element.output:
                for line in element.output.splitlines():
                    click.echo(f"       {line}")

    click.echo()
    total = len(report.elements)
    color = {"ok": "green", "partial": "yellow", "failed": "red"}[report.status]
    click.secho(f"Result: {len(report.succeeded)}/{total} {verb}", fg=color, bold=True)
    if report.failed:
        click.secho(f"Failed: {', '.join(report.failed)}", fg="red")
