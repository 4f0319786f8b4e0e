"""
Error kinds raised by the core.

Single-entity operations raise these to their caller. Batch use cases
catch them per element and record the failure; only integrity and
context errors abort a batch before it starts.
"""

from __future__ import annotations


class KubefsError(Exception):
    """Base class for every error the core raises on purpose."""


class NotFoundError(KubefsError):
    """A referenced resource, addon, provider or cluster does not exist."""


class ConflictError(KubefsError):
    """A name or port is already taken, or a state transition is invalid."""


class IntegrityError(KubefsError):
    """The manifest holds a dangling or asymmetric reference."""


class UnsupportedOperationError(KubefsError):
    """The provider or entity type cannot perform the requested operation."""


class ExternalFailureError(KubefsError):
    """An external command exited non-zero.

    ``output`` carries the captured diagnostics verbatim.
    """

    def __init__(self, message: str, output: str = "", command: str = ""):
        super().__init__(message)
        self.output = output
        self.command = command


class InvalidNameError(KubefsError):
    """An entity name cannot serve as an env key prefix or DNS label."""
