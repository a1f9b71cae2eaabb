"""Compile bundle models and bundle planning.

A bundle is a group of sources compiled together into one output
directory. A project yields up to three kinds of bundle, planned in a
fixed order:

1. library: every source outside ``Main.java`` and ``bin/``
2. binaries: one bundle per ``bin/*.java`` file
3. main: ``Main.java``

Binaries and main see the compiled library on their classpath; the
library never sees them.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from cult.deps.models import ResolvedArtifact
from cult.errors import CompileError
from cult.project.models import ProjectDescriptor
from cult.types import BundleKind

MAIN_SOURCE = "Main.java"
MAIN_CLASS = "Main"
BIN_DIR = "bin"
SOURCE_SUFFIX = ".java"

# Binary names whose outputs would collide with the library bundle
RESERVED_BINARY_NAMES = frozenset({"lib"})

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileBundle:
    """A named, versioned group of sources compiled together.

    Attributes:
        name: Bundle name (``lib``, ``main``, or the binary's file stem).
        kind: Bundle kind.
        version: Project semantic version the bundle belongs to.
        sources: Source files; empty means nothing to compile.
        classpath: Path-list-separated compile classpath.
        output_dir: Stage-scoped directory for compiled classes.
        jar_name: File name of the archive built from this bundle.
        class_dirs: Directories merged into the archive, in order.
        main_class: Entry point written to the manifest, if any.
    """

    name: str
    kind: BundleKind
    version: str
    sources: tuple[Path, ...]
    classpath: str
    output_dir: Path
    jar_name: str
    class_dirs: tuple[Path, ...] = ()
    main_class: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.sources


@dataclass(frozen=True)
class SourceLayout:
    """Sources discovered under a project's source directory."""

    library: tuple[Path, ...] = ()
    binaries: dict[str, Path] = field(default_factory=dict)
    main: Path | None = None


def discover_sources(source_dir: Path) -> SourceLayout:
    """Sort the sources under ``source_dir`` into library, binaries, main.

    Args:
        source_dir: Project source directory.

    Returns:
        SourceLayout with sorted, deterministic file lists.
    """
    if not source_dir.is_dir():
        return SourceLayout()

    main_path = source_dir / MAIN_SOURCE
    bin_dir = source_dir / BIN_DIR

    binaries = {
        path.stem: path
        for path in sorted(bin_dir.glob(f"*{SOURCE_SUFFIX}"))
        if path.is_file()
    }
    library = tuple(
        path
        for path in sorted(source_dir.rglob(f"*{SOURCE_SUFFIX}"))
        if path.is_file()
        and path != main_path
        and bin_dir not in path.parents
    )
    nested = sorted(
        path
        for path in bin_dir.rglob(f"*{SOURCE_SUFFIX}")
        if path.is_file() and path.parent != bin_dir
    )
    for path in nested:
        logger.warning("Ignoring %s: binaries must be directly under %s", path, bin_dir)
    return SourceLayout(
        library=library,
        binaries=binaries,
        main=main_path if main_path.is_file() else None,
    )


def build_classpath(
    dependencies: Sequence[ResolvedArtifact],
    extra: Sequence[Path] = (),
) -> str:
    """Join dependency archives and extra directories into a classpath.

    Args:
        dependencies: Resolved dependency archives.
        extra: Additional classpath entries appended after the archives.

    Returns:
        Entries joined with the platform path-list separator.
    """
    entries = [str(dep.path) for dep in dependencies]
    entries.extend(str(path) for path in extra)
    return os.pathsep.join(entries)


def plan_bundles(
    descriptor: ProjectDescriptor,
    layout: SourceLayout,
    dependencies: Sequence[ResolvedArtifact],
    target_dir: Path,
) -> list[CompileBundle]:
    """Plan the bundles to compile, in compile order.

    The library bundle is always planned first so its output directory
    can go on the classpath of later bundles; it is a no-op when there are
    no library sources. Binaries follow in name order, then main.

    Args:
        descriptor: Project identity.
        layout: Discovered sources.
        dependencies: Resolved dependency archives.
        target_dir: Project build output directory.

    Returns:
        Bundles in compile order.

    Raises:
        CompileError: If a binary name collides with the library bundle.
    """
    for name, source in layout.binaries.items():
        if name in RESERVED_BINARY_NAMES:
            raise CompileError(
                f"binary `{source}` uses the reserved name `{name}`",
                code="reserved_binary_name",
                path=source,
            )

    semver = descriptor.semver
    lib_classes = target_dir / "lib-classes"
    has_library = bool(layout.library)
    lib_dirs = (lib_classes,) if has_library else ()

    bundles = [
        CompileBundle(
            name="lib",
            kind=BundleKind.LIBRARY,
            version=semver,
            sources=layout.library,
            classpath=build_classpath(dependencies),
            output_dir=lib_classes,
            jar_name=descriptor.lib_jar_name,
            class_dirs=(lib_classes,),
        )
    ]

    downstream_classpath = build_classpath(dependencies, extra=lib_dirs)
    for name, source in layout.binaries.items():
        output_dir = target_dir / f"{name}-classes"
        bundles.append(
            CompileBundle(
                name=name,
                kind=BundleKind.BINARY,
                version=semver,
                sources=(source,),
                classpath=downstream_classpath,
                output_dir=output_dir,
                jar_name=descriptor.bin_jar_name(name),
                class_dirs=(*lib_dirs, output_dir),
                main_class=name,
            )
        )

    main_classes = target_dir / "classes"
    bundles.append(
        CompileBundle(
            name="main",
            kind=BundleKind.MAIN,
            version=semver,
            sources=(layout.main,) if layout.main else (),
            classpath=downstream_classpath,
            output_dir=main_classes,
            jar_name=descriptor.main_jar_name,
            class_dirs=(*lib_dirs, main_classes),
            main_class=MAIN_CLASS,
        )
    )
    return bundles


__all__ = [
    "BIN_DIR",
    "MAIN_CLASS",
    "MAIN_SOURCE",
    "RESERVED_BINARY_NAMES",
    "CompileBundle",
    "SourceLayout",
    "build_classpath",
    "discover_sources",
    "plan_bundles",
]
