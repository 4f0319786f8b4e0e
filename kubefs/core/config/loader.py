"""
Manifest loader — reads manifest.yaml into the Project model.

Commands may run from any subdirectory of a project: the manifest is
found by walking upward from the working directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from kubefs.core.errors import KubefsError
from kubefs.core.models.project import Project

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.yaml"


class ConfigError(KubefsError):
    """Raised when the manifest or a cluster context is missing or invalid."""


def find_manifest_file(start_dir: Path | None = None) -> Path | None:
    """Search for manifest.yaml starting from ``start_dir`` (default cwd), walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def resolve_manifest_path(path: Path | None = None) -> Path:
    """Return an existing manifest path or raise ConfigError."""
    if path is None:
        path = find_manifest_file()

    if path is None:
        raise ConfigError(
            f"No {MANIFEST_FILE} found. "
            "Run 'kubefs init <name>' to create one, or pass --manifest."
        )

    if not path.is_file():
        raise ConfigError(f"Manifest not found: {path}")

    return path


def load_project(path: Path | None = None) -> Project:
    """Load and validate the manifest.

    Args:
        path: Explicit path to manifest.yaml. If None, searches upward.

    Raises:
        ConfigError: If the file is missing, unreadable or invalid.
    """
    path = resolve_manifest_path(path)
    logger.debug("Loading manifest from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # Empty sections are written as bare keys by hand-edited manifests
    for key in ("resources", "addons", "cloud_config"):
        if key in data and data[key] is None:
            data[key] = {}

    try:
        project = Project.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid manifest {path}: {e}") from e

    logger.info(
        "Loaded project '%s' with %d resources, %d addons",
        project.name, len(project.resources), len(project.addons),
    )
    return project


def project_root(manifest_path: Path) -> Path:
    """The project root is the directory holding the manifest."""
    return manifest_path.parent.resolve()
