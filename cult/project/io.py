"""Manifest loading.

This module reads ``Cult.toml`` from a project root and turns it into a
``ProjectDescriptor`` plus an immutable ``DependencySet``.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cult.deps.models import (
    DependencySet,
    DependencyTarget,
    LocalProject,
    ModuleCoordinate,
    RemoteVersion,
)
from cult.errors import ManifestError
from cult.project.models import ProjectDescriptor, Version
from cult.project.schema import ManifestSchema, PackageSchema, PathDependencySchema

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAME = "Cult.toml"


@dataclass(frozen=True)
class ProjectManifest:
    """Parsed manifest for a project root."""

    root: Path
    descriptor: ProjectDescriptor
    dependencies: DependencySet


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dict.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content.

    Raises:
        ManifestError: If the file is missing or is not valid TOML.
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        raise ManifestError(
            f"could not find `{path.name}` in `{path.parent}`",
            code="manifest_not_found",
            path=path.parent,
        ) from None
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(
            f"invalid TOML in `{path}`: {e}",
            code="manifest_syntax",
            path=path,
        ) from e
    except OSError as e:
        raise ManifestError(
            f"could not read `{path}`: {e}",
            code="manifest_unreadable",
            path=path,
        ) from e


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_dependency(
    key: str,
    value: str | PathDependencySchema,
    root: Path,
) -> tuple[ModuleCoordinate, DependencyTarget]:
    """Turn one ``[dependencies]`` entry into a coordinate and target.

    Args:
        key: Declaration key, ``{organization}_{name}``.
        value: Version string or path table.
        root: Root of the declaring project; path targets are relative to it.

    Returns:
        Tuple of (coordinate, target).

    Raises:
        ManifestError: If the key or value is malformed.
    """
    coordinate = ModuleCoordinate.parse(key)
    if isinstance(value, str):
        return coordinate, RemoteVersion(Version.parse(value))
    if isinstance(value, PathDependencySchema):
        return coordinate, LocalProject((root / value.path).resolve())
    raise ManifestError(
        f"unsupported dependency value for `{key}`: {value!r}",
        code="invalid_dependency",
    )


def parse_manifest(data: dict[str, Any], root: Path) -> ProjectManifest:
    """Validate raw manifest data.

    Every dependency key is checked before anything touches the network
    or the filesystem.

    Args:
        data: Parsed TOML data.
        root: Project root the manifest belongs to.

    Returns:
        ProjectManifest.

    Raises:
        ManifestError: If the data does not match the manifest schema.
    """
    try:
        schema = ManifestSchema.model_validate(data)
    except ValidationError as e:
        raise ManifestError(
            f"invalid manifest in `{root}`: {_format_validation_error(e)}",
            code="manifest_invalid",
            path=root,
        ) from None

    descriptor = ProjectDescriptor(
        name=schema.package.name,
        version=Version.parse(schema.package.version),
    )
    dependencies = DependencySet(
        parse_dependency(key, value, root)
        for key, value in schema.dependencies.items()
    )
    return ProjectManifest(root=root, descriptor=descriptor, dependencies=dependencies)


def read_manifest(
    root: Path,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
) -> ProjectManifest:
    """Read and validate the manifest in a project root."""
    data = load_toml(root / manifest_name)
    manifest = parse_manifest(data, root)
    logger.debug(
        "Loaded %s v%s with %d dependencies",
        manifest.descriptor.name,
        manifest.descriptor.semver,
        len(manifest.dependencies),
    )
    return manifest


def read_descriptor(
    root: Path,
    manifest_name: str = DEFAULT_MANIFEST_NAME,
) -> ProjectDescriptor:
    """Read only the project identity from a root.

    Dependency declarations are ignored, so a sibling project with its own
    dependencies can still be identified.

    Raises:
        ManifestError: If the manifest or its ``[package]`` table is
            missing or invalid.
    """
    data = load_toml(root / manifest_name)
    try:
        package = PackageSchema.model_validate(data.get("package"))
    except ValidationError as e:
        raise ManifestError(
            f"no project identity in `{root}`: {_format_validation_error(e)}",
            code="manifest_invalid",
            path=root,
        ) from None
    return ProjectDescriptor(name=package.name, version=Version.parse(package.version))


__all__ = [
    "DEFAULT_MANIFEST_NAME",
    "ProjectManifest",
    "load_toml",
    "parse_dependency",
    "parse_manifest",
    "read_descriptor",
    "read_manifest",
]
