"""Artifact packager.

This module handles:
- Generating JAR manifests (main attributes, 72-byte line wrapping)
- Unpacking freshly fetched dependencies beside compiled output (fat mode)
- Archiving one or more compiled-output trees into a JAR

Archive member names are always relative to the walked root, and
bookkeeping entries (the manifest, ``module.properties``) are never copied
from compiled trees or dependencies into packaged output.
"""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath
from urllib.parse import quote

from cult import __version__
from cult.build.models import CompileBundle
from cult.deps.models import ResolvedArtifact
from cult.errors import PackagingError
from cult.project.models import ProjectDescriptor
from cult.types import BundleKind, PackagingMode

logger = logging.getLogger(__name__)

MANIFEST_PATH = "META-INF/MANIFEST.MF"
MODULE_PROPERTIES = "module.properties"
SKIPPED_ENTRIES = frozenset({MANIFEST_PATH, MODULE_PROPERTIES})

# Files that commonly collide between dependencies
DISAMBIGUATED_NAMES = ("LICENSE", "NOTICE")

MANIFEST_LINE_LIMIT = 72
CREATED_BY = f"Cult {__version__}"

# Copy chunk size (bytes)
COPY_CHUNK_SIZE = 64 * 1024


def manifest_attributes(
    display_name: str,
    main_class: str | None = None,
    class_path: Sequence[str] | None = None,
) -> dict[str, str]:
    """Build the main manifest attributes, in the order they are written.

    Args:
        display_name: Package display name (``Name`` attribute).
        main_class: Entry point class, if the archive is executable.
        class_path: Relative dependency archive paths (thin archives only).

    Returns:
        Ordered attribute mapping.
    """
    attributes = {
        "Manifest-Version": "1.0",
        "Created-By": CREATED_BY,
    }
    if main_class:
        attributes["Main-Class"] = main_class
    attributes["Name"] = display_name
    if class_path:
        attributes["Class-Path"] = " ".join(class_path)
    return attributes


def _wrap_manifest_line(line: bytes) -> list[bytes]:
    if len(line) <= MANIFEST_LINE_LIMIT:
        return [line]
    lines = [line[:MANIFEST_LINE_LIMIT]]
    rest = line[MANIFEST_LINE_LIMIT:]
    # Continuation lines start with a space, which counts toward the limit.
    step = MANIFEST_LINE_LIMIT - 1
    while rest:
        lines.append(b" " + rest[:step])
        rest = rest[step:]
    return lines


def encode_manifest(attributes: dict[str, str]) -> bytes:
    """Encode manifest attributes in JAR manifest format.

    Lines end with CRLF, are wrapped at 72 bytes with single-space
    continuation lines, and the section ends with a blank line.
    """
    out: list[bytes] = []
    for key, value in attributes.items():
        out.extend(_wrap_manifest_line(f"{key}: {value}".encode()))
    out.append(b"")
    return b"\r\n".join(out) + b"\r\n"


def relative_class_path(
    dependencies: Iterable[ResolvedArtifact],
    jar_dir: Path,
) -> list[str]:
    """Express dependency archive paths relative to the archive directory.

    Returns:
        Relative URL paths suitable for the ``Class-Path`` attribute.
    """
    entries = []
    for dep in dependencies:
        relative = os.path.relpath(dep.path.resolve(), jar_dir.resolve())
        entries.append(quote(Path(relative).as_posix(), safe="/.-_~"))
    return entries


def _unpacked_name(entry_name: str, archive: Path) -> str:
    """Return the destination name for an entry of a dependency archive."""
    base = PurePosixPath(entry_name).name
    if base.endswith(DISAMBIGUATED_NAMES) or PurePosixPath(base).stem in DISAMBIGUATED_NAMES:
        return f"{entry_name}_{archive.name}"
    return entry_name


def _safe_destination(dest_dir: Path, name: str, archive: Path) -> Path:
    member = PurePosixPath(name)
    if member.is_absolute() or ".." in member.parts:
        raise PackagingError(
            f"refusing to unpack `{name}` from `{archive}`: path traversal detected",
            code="path_traversal",
            path=archive,
        )
    return dest_dir.joinpath(*member.parts)


def unpack_dependency(archive: Path, dest_dir: Path) -> int:
    """Unpack one dependency archive into a compiled-output tree.

    The dependency's own manifest and module marker are skipped, and
    ``LICENSE``/``NOTICE`` files get the archive's file name appended so
    dependencies do not overwrite each other's notices.

    Args:
        archive: Dependency archive.
        dest_dir: Compiled-output directory to unpack into.

    Returns:
        Number of files written.

    Raises:
        PackagingError: If the archive is malformed or a file cannot be written.
    """
    written = 0
    try:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                if info.filename in SKIPPED_ENTRIES:
                    continue
                if info.is_dir():
                    _safe_destination(dest_dir, info.filename, archive).mkdir(
                        parents=True, exist_ok=True
                    )
                    continue
                destination = _safe_destination(
                    dest_dir, _unpacked_name(info.filename, archive), archive
                )
                destination.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, destination.open("wb") as dst:
                    shutil.copyfileobj(src, dst, COPY_CHUNK_SIZE)
                written += 1
    except zipfile.BadZipFile as e:
        raise PackagingError(
            f"could not unpack jar file `{archive}`: {e}",
            code="bad_archive",
            path=archive,
        ) from e
    except OSError as e:
        raise PackagingError(
            f"could not unpack jar file `{archive}`: {e}",
            code="unpack_failed",
            path=archive,
        ) from e

    logger.debug("Unpacked %d files from %s into %s", written, archive.name, dest_dir)
    return written


def unpack_dependencies(
    dependencies: Iterable[ResolvedArtifact],
    dest_dir: Path,
) -> int:
    """Unpack every freshly materialized dependency into ``dest_dir``.

    ``dest_dir`` is emptied first so archives from earlier runs never leak
    into the result. Dependencies that were already present are skipped
    with a warning: they are neither embedded nor referenced.

    Returns:
        Total number of files written.
    """
    try:
        if dest_dir.exists():
            shutil.rmtree(dest_dir)
        dest_dir.mkdir(parents=True)
    except OSError as e:
        raise PackagingError(
            f"could not prepare `{dest_dir}`: {e}",
            code="unpack_failed",
            path=dest_dir,
        ) from e

    total = 0
    for dep in dependencies:
        if not dep.fresh:
            logger.warning(
                "%s was not fetched in this run and is not embedded; "
                "run `cult clean` to rebuild with it",
                dep.path.name,
            )
            continue
        total += unpack_dependency(dep.path, dest_dir)
    return total


def _walk_files(root: Path) -> list[Path]:
    if not root.is_dir():
        raise PackagingError(
            f"could not walk directory `{root}`",
            code="walk_failed",
            path=root,
        )
    try:
        return sorted(path for path in root.rglob("*") if path.is_file())
    except OSError as e:
        raise PackagingError(
            f"could not walk directory `{root}`: {e}",
            code="walk_failed",
            path=root,
        ) from e


def write_archive(
    jar_path: Path,
    manifest: bytes,
    class_dirs: Sequence[Path],
) -> int:
    """Write a JAR from one or more compiled-output directories.

    The manifest is the first entry. Directories are walked in the given
    order; when two directories contain the same relative path, the first
    one wins.

    Args:
        jar_path: Archive to create (overwritten if present).
        manifest: Encoded manifest.
        class_dirs: Directories whose files become archive entries.

    Returns:
        Number of entries written, excluding the manifest.

    Raises:
        PackagingError: If a directory cannot be walked or an entry cannot
            be written. The partial archive is removed.
    """
    jar_path.parent.mkdir(parents=True, exist_ok=True)
    names: set[str] = set()
    current: Path | None = None

    try:
        with zipfile.ZipFile(jar_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(MANIFEST_PATH, manifest)
            names.add(MANIFEST_PATH)
            for root in class_dirs:
                for current in _walk_files(root):
                    name = current.relative_to(root).as_posix()
                    if name in SKIPPED_ENTRIES:
                        continue
                    if name in names:
                        logger.debug("Skipping duplicate entry %s from %s", name, root)
                        continue
                    zf.write(current, arcname=name)
                    names.add(name)
    except PackagingError:
        jar_path.unlink(missing_ok=True)
        raise
    except OSError as e:
        jar_path.unlink(missing_ok=True)
        offending = current if current is not None else jar_path
        raise PackagingError(
            f"could not add entry `{offending}` to jar `{jar_path}`: {e}",
            code="write_failed",
            path=offending,
        ) from e

    logger.info("Wrote %s (%d entries)", jar_path, len(names) - 1)
    return len(names) - 1


def embedded_classes_dir(bundle: CompileBundle) -> Path:
    """Directory holding dependency contents unpacked for ``bundle``."""
    return bundle.output_dir.with_name(f"{bundle.output_dir.name}-deps")


def package_bundle(
    bundle: CompileBundle,
    descriptor: ProjectDescriptor,
    dependencies: Sequence[ResolvedArtifact],
    jar_dir: Path,
    mode: PackagingMode = PackagingMode.THIN,
) -> Path:
    """Produce the archive for a compiled bundle.

    Thin archives reference dependencies through ``Class-Path``. Fat and
    native archives embed freshly fetched dependencies and carry no
    ``Class-Path``; the dependencies are unpacked next to the compiled
    output, never into it, so a later thin archive stays thin. Library
    archives are always thin so that consumers do not receive duplicated
    dependency classes.

    Args:
        bundle: Compiled bundle.
        descriptor: Project identity.
        dependencies: Resolved dependency archives.
        jar_dir: Directory for produced archives.
        mode: Packaging mode.

    Returns:
        Path to the written archive.
    """
    embed = mode.embeds_dependencies and bundle.kind is not BundleKind.LIBRARY

    class_dirs = bundle.class_dirs
    class_path: list[str] | None = None
    if embed:
        deps_dir = embedded_classes_dir(bundle)
        unpack_dependencies(dependencies, deps_dir)
        class_dirs = (*class_dirs, deps_dir)
    else:
        class_path = relative_class_path(dependencies, jar_dir)

    manifest = encode_manifest(
        manifest_attributes(
            descriptor.name,
            main_class=bundle.main_class,
            class_path=class_path,
        )
    )
    jar_path = jar_dir / bundle.jar_name
    write_archive(jar_path, manifest, class_dirs)
    return jar_path


__all__ = [
    "CREATED_BY",
    "MANIFEST_PATH",
    "MODULE_PROPERTIES",
    "SKIPPED_ENTRIES",
    "embedded_classes_dir",
    "encode_manifest",
    "manifest_attributes",
    "package_bundle",
    "relative_class_path",
    "unpack_dependencies",
    "unpack_dependency",
    "write_archive",
]
