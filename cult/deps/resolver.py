"""Dependency resolver.

Maps every declared dependency to exactly one local archive, fetching
remote artifacts that are not cached yet. Resolution is fail-fast: the
first entry that cannot be resolved aborts the whole run.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from cult.config import Settings
from cult.deps.models import DependencySet, ResolveContext, ResolvedArtifact

logger = logging.getLogger(__name__)


def resolve_dependencies(
    dependencies: DependencySet,
    context: ResolveContext,
) -> list[ResolvedArtifact]:
    """Resolve each declared dependency to a local artifact.

    Args:
        dependencies: Declared coordinates and their targets.
        context: Resolution context (cache dir, repository, HTTP client).

    Returns:
        One ResolvedArtifact per declaration, in declaration order.

    Raises:
        ResolutionError: On the first declaration that cannot be resolved
            or fetched.
    """
    resolved: list[ResolvedArtifact] = []
    if len(dependencies):
        context.lib_dir.mkdir(parents=True, exist_ok=True)

    for coordinate, target in dependencies:
        path = target.resolve(coordinate, context)
        if path.is_file():
            logger.debug("Using cached %s at %s", coordinate, path)
            resolved.append(ResolvedArtifact(coordinate, path, fresh=False))
            continue

        logger.debug("Fetching %s into %s", coordinate, path)
        target.fetch(coordinate, path, context)
        resolved.append(ResolvedArtifact(coordinate, path, fresh=True))

    logger.info("Resolved %d dependencies", len(resolved))
    return resolved


def resolve_project_dependencies(
    dependencies: DependencySet,
    target_dir: Path,
    settings: Settings,
    client: httpx.Client | None = None,
) -> list[ResolvedArtifact]:
    """Resolve dependencies for a project using application settings.

    Args:
        dependencies: Declared coordinates and their targets.
        target_dir: The project's build output directory.
        settings: Application settings.
        client: Optional HTTP client; one is created for the run if None.

    Returns:
        Resolved artifacts in declaration order.
    """
    if client is None:
        with httpx.Client(follow_redirects=True) as own_client:
            return resolve_project_dependencies(
                dependencies, target_dir, settings, client=own_client
            )

    context = ResolveContext(
        lib_dir=target_dir / "lib",
        repository_url=settings.repository_url,
        target_dir_name=str(settings.target_dir),
        manifest_name=settings.manifest_name,
        client=client,
        timeout=settings.download_timeout,
    )
    return resolve_dependencies(dependencies, context)


__all__ = ["resolve_dependencies", "resolve_project_dependencies"]
