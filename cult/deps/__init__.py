"""Dependency resolution module.

This module handles:
- Dependency coordinates and targets (remote version or local project)
- Fetching remote artifacts into the local cache
- Resolving every declaration to exactly one archive
"""

from cult.deps.models import (
    DependencySet,
    DependencyTarget,
    LocalProject,
    ModuleCoordinate,
    RemoteVersion,
    ResolvedArtifact,
)

__all__ = [
    "DependencySet",
    "DependencyTarget",
    "LocalProject",
    "ModuleCoordinate",
    "RemoteVersion",
    "ResolvedArtifact",
]
