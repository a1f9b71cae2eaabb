"""Project identity models.

A project is identified by its name and a three-component semantic
version. Artifact file names are derived deterministically from both.
"""

from __future__ import annotations

from dataclasses import dataclass

from cult.errors import ManifestError


@dataclass(frozen=True, order=True)
class Version:
    """Semantic version; missing components default to 0."""

    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a dotted version string such as ``2.3`` or ``1.0.4``.

        Args:
            text: Version string with one to three numeric components.

        Returns:
            Parsed Version.

        Raises:
            ManifestError: If the string is empty, has more than three
                components, or a component is not a non-negative integer.
        """
        parts = text.strip().split(".")
        if len(parts) > 3 or not all(p.isdigit() for p in parts):
            raise ManifestError(
                f"invalid version `{text}`: expected up to three numeric components",
                code="invalid_version",
            )
        numbers = [int(p) for p in parts] + [0] * (3 - len(parts))
        return cls(*numbers)

    @property
    def semver(self) -> str:
        """Return the full ``major.minor.patch`` form."""
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        return self.semver


@dataclass(frozen=True)
class ProjectDescriptor:
    """Name and version of a project, as declared in its manifest."""

    name: str
    version: Version

    @property
    def semver(self) -> str:
        return self.version.semver

    @property
    def main_jar_name(self) -> str:
        """File name of the main artifact."""
        return f"{self.name}-{self.semver}.jar"

    @property
    def lib_jar_name(self) -> str:
        """File name of the library artifact."""
        return f"{self.name}-lib-{self.semver}.jar"

    def bin_jar_name(self, binary: str) -> str:
        """File name of the artifact for an auxiliary binary."""
        return f"{self.name}-{binary}-{self.semver}.jar"


__all__ = ["ProjectDescriptor", "Version"]
