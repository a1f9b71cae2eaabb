"""Project scaffolding and cleanup.

- new_project(): create a minimal project skeleton
- clean_project(): remove the build output directory
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from cult.errors import CultError
from cult.project.io import DEFAULT_MANIFEST_NAME

logger = logging.getLogger(__name__)

MANIFEST_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"
"""

MAIN_TEMPLATE = """\
void main() {
    System.out.println("Hail, World!");
}
"""


class ProjectError(CultError):
    """Raised when a project cannot be created or cleaned."""

    def __init__(
        self,
        message: str,
        code: str = "project_error",
        path: Path | str | None = None,
    ) -> None:
        super().__init__(message, code=code, path=path)


def new_project(
    path: Path,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
    source_dir: Path = Path("src"),
) -> Path:
    """Create a new project skeleton at ``path``.

    The project is named after the final path component.

    Args:
        path: Project root to create.
        manifest_name: Manifest file name.
        source_dir: Source directory relative to the root.

    Returns:
        Path to the written manifest.

    Raises:
        ProjectError: If a manifest already exists or a file cannot be written.
    """
    manifest_path = path / manifest_name
    if manifest_path.exists():
        raise ProjectError(
            f"`{manifest_path}` already exists",
            code="project_exists",
            path=manifest_path,
        )

    name = path.resolve().name
    logger.info("Creating project %s at %s", name, path)
    try:
        (path / source_dir).mkdir(parents=True, exist_ok=True)
        manifest_path.write_text(MANIFEST_TEMPLATE.format(name=name), encoding="utf-8")
        main_path = path / source_dir / "Main.java"
        if not main_path.exists():
            main_path.write_text(MAIN_TEMPLATE, encoding="utf-8")
    except OSError as e:
        raise ProjectError(
            f"could not create project under `{path}`: {e}",
            code="project_create_failed",
            path=path,
        ) from e
    return manifest_path


def clean_project(target_dir: Path) -> bool:
    """Remove a build output directory.

    Args:
        target_dir: Directory to remove.

    Returns:
        True if removed, False if it did not exist.

    Raises:
        ProjectError: If removal fails.
    """
    if not target_dir.exists():
        return False

    logger.info("Removing %s", target_dir)
    try:
        shutil.rmtree(target_dir)
    except OSError as e:
        raise ProjectError(
            f"could not delete `{target_dir}`: {e}",
            code="clean_failed",
            path=target_dir,
        ) from e
    return True


__all__ = ["ProjectError", "clean_project", "new_project"]
