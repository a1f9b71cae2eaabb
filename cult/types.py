"""Shared type definitions for cult.

This module contains enums and small dataclasses shared across
subpackages to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class PackagingMode(str, Enum):
    """How a compiled bundle is turned into an archive."""

    THIN = "thin"
    FAT = "fat"
    NATIVE = "native"

    @property
    def embeds_dependencies(self) -> bool:
        """Whether dependency contents are unpacked into the archive."""
        return self is not PackagingMode.THIN


class BundleKind(str, Enum):
    """Kind of source group compiled together."""

    LIBRARY = "library"
    BINARY = "binary"
    MAIN = "main"


class BuildStage(str, Enum):
    """Stages of a build, in execution order."""

    MANIFEST = "manifest"
    RESOLVE = "resolve"
    COMPILE = "compile"
    PACKAGE = "package"
    NATIVE = "native"
    RUN = "run"


@dataclass
class BuildOutcome:
    """Result of a build (or build-and-run) invocation."""

    success: bool
    duration: float
    stage: BuildStage | None = None
    message: str | None = None
    code: str | None = None
    artifacts: list[Path] = field(default_factory=list)
    exit_code: int = 0


__all__ = [
    "BuildOutcome",
    "BuildStage",
    "BundleKind",
    "PackagingMode",
]
