"""Pydantic models for validating ``Cult.toml`` contents.

The manifest has a ``[package]`` table with the project identity and an
optional ``[dependencies]`` table mapping ``{organization}_{name}`` keys to
either a version string or a ``{ path = "..." }`` table.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cult.errors import ManifestError
from cult.project.models import Version


class PackageSchema(BaseModel):
    """Schema for the ``[package]`` table.

    Attributes:
        name: Project name, used in artifact file names.
        version: Dotted version string with up to three components.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1, description="Project name")
    version: str = Field(description="Project version")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the name is usable inside a file name."""
        v = v.strip()
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"invalid package name '{v}'")
        return v

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate the version parses."""
        try:
            Version.parse(v)
        except ManifestError as e:
            raise ValueError(e.message) from None
        return v


class PathDependencySchema(BaseModel):
    """Schema for a local sibling project dependency."""

    model_config = ConfigDict(extra="forbid")

    path: str = Field(min_length=1, description="Path to the sibling project root")


class ManifestSchema(BaseModel):
    """Complete manifest schema."""

    model_config = ConfigDict(extra="allow")

    package: PackageSchema
    dependencies: dict[str, str | PathDependencySchema] = Field(default_factory=dict)


__all__ = ["ManifestSchema", "PackageSchema", "PathDependencySchema"]
