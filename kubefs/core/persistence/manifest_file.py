"""
Manifest persistence — atomic write-back of manifest.yaml.

Every mutating command follows one cycle: load the whole document,
mutate it in memory, write it back once. Writes go to a temp file in
the same directory and are renamed over the manifest, so a crash or a
failed integrity check never leaves a half-written document behind.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import yaml

from kubefs.core.config.loader import MANIFEST_FILE, load_project, resolve_manifest_path
from kubefs.core.errors import ConflictError
from kubefs.core.models.project import DEFAULT_PROVIDER, CloudConfig, Project
from kubefs.core.services.graph import check_integrity

logger = logging.getLogger(__name__)


def dump_project(project: Project) -> str:
    """Serialize a project to manifest YAML, keeping mapping order."""
    data = project.model_dump(mode="json")
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)


def save_project(project: Project, path: Path) -> None:
    """Write the manifest atomically after verifying graph integrity.

    Raises:
        IntegrityError: the in-memory graph holds a dangling edge; the
            file on disk is left untouched.
    """
    check_integrity(project)

    content = dump_project(project)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=".manifest_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        tmp.rename(path)
        logger.debug("Saved manifest to %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


@contextmanager
def manifest_transaction(path: Path | None = None) -> Iterator[Project]:
    """Load the manifest, yield it for mutation, write it back once.

    If the body raises, nothing is written and the exception propagates.
    """
    path = resolve_manifest_path(path)
    project = load_project(path)
    yield project
    save_project(project, path)


def init_project(directory: Path, name: str, description: str = "") -> Path:
    """Create ``<directory>/<name>/manifest.yaml`` for a new project.

    The default provider gets an empty cluster registry.

    Raises:
        ConflictError: a manifest already exists there.
    """
    root = directory / name
    manifest = root / MANIFEST_FILE
    if manifest.exists():
        raise ConflictError(f"A project already exists at {root}")

    project = Project(
        name=name,
        description=description,
        cloud_config={DEFAULT_PROVIDER: CloudConfig(provider=DEFAULT_PROVIDER)},
    )
    (root / "addons").mkdir(parents=True, exist_ok=True)
    save_project(project, manifest)
    logger.info("Initialized project '%s' at %s", name, root)
    return manifest
