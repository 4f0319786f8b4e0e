"""
Local target — one shell invocation per resource.

The bring-up command runs inside the resource directory with the
``run`` wiring exported as environment assignments:

    storeHOST=postgresql://... authHOST=http://localhost:9000 sh -c '<up_local>'
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable
from dataclasses import dataclass

from kubefs.core.errors import UnsupportedOperationError
from kubefs.core.models.project import Project
from kubefs.core.services.graph import require_resource
from kubefs.core.services.wiring import resolve


@dataclass(frozen=True)
class LocalInvocation:
    """A compiled local bring-up."""

    resource: str
    command: str
    cwd: str
    environment: tuple[tuple[str, str], ...] = ()

    def to_dict(self) -> dict:
        return {
            "resource": self.resource,
            "command": self.command,
            "cwd": self.cwd,
            "environment": dict(self.environment),
        }


def compile_local(
    project: Project,
    name: str,
    secrets: Iterable[tuple[str, str]] = (),
) -> LocalInvocation:
    """Compile the local bring-up of resource ``name``.

    Raises:
        NotFoundError: no such resource.
        UnsupportedOperationError: databases (and resources without a
            bring-up command) cannot run on their own.
    """
    resource = require_resource(project, name)
    if resource.is_database:
        raise UnsupportedOperationError(f"Database '{name}' cannot be run locally on its own")
    if not resource.up_local:
        raise UnsupportedOperationError(f"Resource '{name}' has no bring-up command")

    pairs = resolve(project, name, "run", secrets)
    assignments = " ".join(f"{key}={shlex.quote(value)}" for key, value in pairs)
    command = f"sh -c {shlex.quote(resource.up_local)}"
    if assignments:
        command = f"{assignments} {command}"
    return LocalInvocation(resource=name, command=command, cwd=name, environment=tuple(pairs))
