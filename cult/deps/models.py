"""Dependency declaration and resolution models.

A dependency is declared as a ``ModuleCoordinate`` paired with a
``DependencyTarget``. Targets come in exactly two kinds:

- ``RemoteVersion``: a pinned version fetched from the remote repository
  into ``target/lib``.
- ``LocalProject``: a sibling project on disk, resolved against its own
  prior build output and never fetched.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from cult.errors import ManifestError, ResolutionError
from cult.project.models import Version

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

COORDINATE_SEPARATOR = "_"


@dataclass(frozen=True)
class ModuleCoordinate:
    """Organization and artifact name identifying a dependency."""

    organization: str
    name: str

    @classmethod
    def parse(cls, key: str) -> ModuleCoordinate:
        """Split a ``{organization}_{name}`` declaration key.

        Args:
            key: Declaration key from the manifest.

        Returns:
            Parsed ModuleCoordinate.

        Raises:
            ManifestError: If the key does not contain exactly one
                separator or either half is empty.
        """
        parts = key.strip().split(COORDINATE_SEPARATOR)
        if len(parts) != 2 or not all(parts):
            raise ManifestError(
                f"expecting single '{COORDINATE_SEPARATOR}' in dependency key, "
                f"but it was: {key}",
                code="invalid_coordinate",
            )
        return cls(organization=parts[0], name=parts[1])

    @property
    def organization_path(self) -> str:
        """Organization with dots turned into URL path segments."""
        return "/".join(self.organization.split("."))

    def jar_name(self, version: Version) -> str:
        return f"{self.name}-{version.semver}.jar"

    def __str__(self) -> str:
        return f"{self.organization}{COORDINATE_SEPARATOR}{self.name}"


@dataclass(frozen=True)
class ResolveContext:
    """Everything a target needs to resolve or fetch an artifact.

    Attributes:
        lib_dir: Directory where remote artifacts are cached.
        repository_url: Base URL of the remote repository.
        target_dir_name: Build output directory name inside sibling projects.
        manifest_name: Manifest file name inside sibling projects.
        client: HTTP client used for remote fetches.
        timeout: Download timeout in seconds.
    """

    lib_dir: Path
    repository_url: str
    target_dir_name: str = "target"
    manifest_name: str = "Cult.toml"
    client: httpx.Client | None = None
    timeout: float = 300


class DependencyTarget(abc.ABC):
    """Strategy for turning a coordinate into a local artifact path."""

    @abc.abstractmethod
    def resolve(self, coordinate: ModuleCoordinate, context: ResolveContext) -> Path:
        """Return the candidate artifact path for a coordinate.

        The path may not exist yet; the resolver fetches it in that case.

        Raises:
            ResolutionError: If no candidate path can be produced.
        """

    @abc.abstractmethod
    def fetch(
        self,
        coordinate: ModuleCoordinate,
        destination: Path,
        context: ResolveContext,
    ) -> None:
        """Materialize the artifact at ``destination``.

        Raises:
            ResolutionError: If the artifact cannot be materialized.
        """


@dataclass(frozen=True)
class RemoteVersion(DependencyTarget):
    """A dependency pinned to a version in the remote repository."""

    version: Version

    def artifact_url(self, coordinate: ModuleCoordinate, base_url: str) -> str:
        """Build the repository URL for this coordinate and version."""
        semver = self.version.semver
        return (
            f"{base_url.rstrip('/')}/{coordinate.organization_path}/"
            f"{coordinate.name}/{semver}/{coordinate.jar_name(self.version)}"
        )

    def resolve(self, coordinate: ModuleCoordinate, context: ResolveContext) -> Path:
        return context.lib_dir / coordinate.jar_name(self.version)

    def fetch(
        self,
        coordinate: ModuleCoordinate,
        destination: Path,
        context: ResolveContext,
    ) -> None:
        from cult.deps.fetch import download_artifact

        url = self.artifact_url(coordinate, context.repository_url)
        download_artifact(url, destination, client=context.client, timeout=context.timeout)


@dataclass(frozen=True)
class LocalProject(DependencyTarget):
    """A dependency on a sibling project built from its own root."""

    root: Path

    def resolve(self, coordinate: ModuleCoordinate, context: ResolveContext) -> Path:
        from cult.project.io import read_descriptor

        if not (self.root / context.manifest_name).is_file():
            raise ResolutionError(
                f"no `{context.manifest_name}` found in local project `{self.root}`",
                code="local_project_missing",
                path=self.root,
            )
        descriptor = read_descriptor(self.root, manifest_name=context.manifest_name)
        jar_dir = self.root / context.target_dir_name / "jar"

        # The sibling's library artifact is preferred; its main artifact is
        # the fallback for projects without library sources.
        lib_jar = jar_dir / descriptor.lib_jar_name
        main_jar = jar_dir / descriptor.main_jar_name
        if not lib_jar.exists() and main_jar.exists():
            return main_jar
        return lib_jar

    def fetch(
        self,
        coordinate: ModuleCoordinate,
        destination: Path,
        context: ResolveContext,
    ) -> None:
        raise ResolutionError(
            f"local project `{self.root}` for `{coordinate}` has not been built "
            f"(missing `{destination}`)",
            code="local_project_unbuilt",
            path=destination,
        )


@dataclass(frozen=True)
class ResolvedArtifact:
    """A usable archive on disk for one declared coordinate.

    Attributes:
        coordinate: The coordinate this artifact satisfies.
        path: Path to the archive.
        fresh: True when the archive was materialized during this run,
            which makes it eligible for unpacking into fat artifacts.
    """

    coordinate: ModuleCoordinate
    path: Path
    fresh: bool = False


class DependencySet:
    """Immutable, ordered set of dependency declarations.

    Built once per invocation from the manifest and passed by value to the
    resolver.
    """

    __slots__ = ("_entries",)

    def __init__(
        self,
        entries: Iterable[tuple[ModuleCoordinate, DependencyTarget]] = (),
    ) -> None:
        seen: dict[ModuleCoordinate, DependencyTarget] = {}
        for coordinate, target in entries:
            if coordinate in seen:
                raise ManifestError(
                    f"dependency `{coordinate}` declared more than once",
                    code="duplicate_dependency",
                )
            seen[coordinate] = target
        self._entries: tuple[tuple[ModuleCoordinate, DependencyTarget], ...] = tuple(
            seen.items()
        )

    def __iter__(self) -> Iterator[tuple[ModuleCoordinate, DependencyTarget]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, coordinate: object) -> bool:
        return any(c == coordinate for c, _ in self._entries)

    def __repr__(self) -> str:
        inner = ", ".join(f"{c}={t!r}" for c, t in self._entries)
        return f"DependencySet({inner})"


__all__ = [
    "COORDINATE_SEPARATOR",
    "DependencySet",
    "DependencyTarget",
    "LocalProject",
    "ModuleCoordinate",
    "RemoteVersion",
    "ResolveContext",
    "ResolvedArtifact",
]
