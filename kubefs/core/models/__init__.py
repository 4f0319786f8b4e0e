"""
Domain models — Pydantic types for kubefs.

    from kubefs.core.models import Project, Resource, Addon, CloudConfig, Action, Receipt
"""

from kubefs.core.models.action import Action, Receipt
from kubefs.core.models.project import (
    DEFAULT_PROVIDER,
    FRAMEWORKS,
    PROVIDERS,
    Addon,
    CloudConfig,
    Project,
    Resource,
)

__all__ = [
    "Action",
    "Addon",
    "CloudConfig",
    "DEFAULT_PROVIDER",
    "FRAMEWORKS",
    "PROVIDERS",
    "Project",
    "Receipt",
    "Resource",
]
