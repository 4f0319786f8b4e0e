"""Adapters — external command executors.

Public re-exports for convenient access.
"""

from kubefs.adapters.base import Adapter, ExecutionContext
from kubefs.adapters.mock import MockAdapter
from kubefs.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
