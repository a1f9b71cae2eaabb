"""Build service module.

This module provides the high-level build API:
- build_project(): manifest -> resolve -> compile -> package -> native
- run_main_artifact(): launch the main artifact with relayed streams
- run_project(): thin build, then run_main_artifact()

Stages run strictly in sequence and the first failing stage ends the
build; later stages are never attempted and nothing is retried. Failures
are reported through the returned BuildOutcome rather than raised.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

import httpx

from cult.build.compiler import compile_bundles
from cult.build.models import discover_sources, plan_bundles
from cult.build.native import build_native_image
from cult.build.packager import package_bundle
from cult.config import Settings, get_settings
from cult.deps.resolver import resolve_project_dependencies
from cult.errors import CompileError, CultError, PackagingError
from cult.process.runner import run_process
from cult.project.io import read_manifest
from cult.types import BuildOutcome, BuildStage, BundleKind, PackagingMode

logger = logging.getLogger(__name__)

# Receives (status, detail) for user-facing progress lines
ProgressCallback = Callable[[str, str], None]

# Receives the build outcome before anything is launched
BuildCallback = Callable[[BuildOutcome], None]


def _log_progress(status: str, detail: str) -> None:
    logger.info("%s %s", status, detail)


def _failure(stage: BuildStage, error: CultError, started: float) -> BuildOutcome:
    logger.debug("Stage %s failed: %s", stage.value, error.message)
    return BuildOutcome(
        success=False,
        duration=time.monotonic() - started,
        stage=stage,
        message=error.message,
        code=error.code,
        exit_code=1,
    )


def build_project(
    root: Path,
    mode: PackagingMode = PackagingMode.THIN,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
    progress: ProgressCallback | None = None,
) -> BuildOutcome:
    """Build a project rooted at ``root``.

    Args:
        root: Project root containing the manifest.
        mode: Packaging mode for executable artifacts.
        settings: Application settings (loaded from the environment if None).
        client: Optional HTTP client for dependency downloads.
        progress: Callback for user-facing progress lines.

    Returns:
        BuildOutcome. On failure, ``stage`` names the failing stage.
    """
    settings = settings or get_settings()
    report = progress or _log_progress
    started = time.monotonic()
    root = root.resolve()
    target_dir = root / settings.target_dir
    jar_dir = target_dir / "jar"

    stage = BuildStage.MANIFEST
    try:
        manifest = read_manifest(root, manifest_name=settings.manifest_name)
        descriptor = manifest.descriptor

        stage = BuildStage.RESOLVE
        dependencies = resolve_project_dependencies(
            manifest.dependencies, target_dir, settings, client=client
        )

        stage = BuildStage.COMPILE
        report("Compiling", f"{descriptor.name} v{descriptor.semver} ({root})")
        layout = discover_sources(root / settings.source_dir)
        bundles = plan_bundles(descriptor, layout, dependencies, target_dir)
        compiled = compile_bundles(bundles, settings, cwd=root)
        if not compiled:
            raise CompileError(
                f"no sources found in `{root / settings.source_dir}`",
                code="no_sources",
                path=root / settings.source_dir,
            )

        stage = BuildStage.PACKAGE
        artifacts: list[Path] = []
        executables: list[Path] = []
        for bundle in compiled:
            report("Packaging", f"{bundle.jar_name} ({mode.value})")
            jar_path = package_bundle(bundle, descriptor, dependencies, jar_dir, mode)
            artifacts.append(jar_path)
            if bundle.kind is not BundleKind.LIBRARY:
                executables.append(jar_path)

        if mode is PackagingMode.NATIVE:
            stage = BuildStage.NATIVE
            if not executables:
                raise PackagingError(
                    "no executable artifact to build a native image from",
                    code="no_executable",
                    path=jar_dir,
                )
            for jar_path in executables:
                report("Building", f"native image for {jar_path.name}")
                build_native_image(jar_path, settings)

    except CultError as e:
        return _failure(stage, e, started)

    return BuildOutcome(
        success=True,
        duration=time.monotonic() - started,
        artifacts=artifacts,
    )


def run_main_artifact(
    root: Path,
    args: Sequence[str] = (),
    settings: Settings | None = None,
    progress: ProgressCallback | None = None,
) -> BuildOutcome:
    """Launch a project's main artifact with its streams relayed.

    The outcome's ``exit_code`` is the program's exit status; a non-zero
    status is a failure of the run stage.

    Args:
        root: Project root containing the manifest.
        args: Arguments passed to the program.
        settings: Application settings (loaded from the environment if None).
        progress: Callback for user-facing progress lines.
    """
    settings = settings or get_settings()
    report = progress or _log_progress
    started = time.monotonic()
    root = root.resolve()
    try:
        descriptor = read_manifest(root, manifest_name=settings.manifest_name).descriptor
        jar_path = root / settings.target_dir / "jar" / descriptor.main_jar_name
        if not jar_path.is_file():
            raise PackagingError(
                f"could not find jar file at `{jar_path}`",
                code="missing_artifact",
                path=jar_path,
            )

        cmd = [settings.java]
        if settings.enable_preview:
            cmd.append("--enable-preview")
        cmd.extend(["-jar", str(jar_path), *args])

        report("Running", f"`{jar_path}`")
        result = run_process(
            cmd,
            cwd=root,
            relay_stdin=True,
            poll_interval=settings.stdin_poll_interval,
        )
    except CultError as e:
        return _failure(BuildStage.RUN, e, started)

    if not result.success:
        return BuildOutcome(
            success=False,
            duration=time.monotonic() - started,
            stage=BuildStage.RUN,
            message=f"`{jar_path.name}` exited with {result.exit_code}",
            code="nonzero_exit",
            artifacts=[jar_path],
            exit_code=result.exit_code,
        )
    return BuildOutcome(
        success=True,
        duration=time.monotonic() - started,
        artifacts=[jar_path],
    )


def run_project(
    root: Path,
    args: Sequence[str] = (),
    settings: Settings | None = None,
    client: httpx.Client | None = None,
    progress: ProgressCallback | None = None,
    on_built: BuildCallback | None = None,
) -> BuildOutcome:
    """Build a project (thin) and run its main artifact.

    Args:
        root: Project root containing the manifest.
        args: Arguments passed to the program.
        settings: Application settings (loaded from the environment if None).
        client: Optional HTTP client for dependency downloads.
        progress: Callback for user-facing progress lines.
        on_built: Called with the build outcome, whether or not it succeeded.

    Returns:
        The build outcome if the build failed, otherwise the run outcome.
    """
    settings = settings or get_settings()
    outcome = build_project(
        root, PackagingMode.THIN, settings=settings, client=client, progress=progress
    )
    if on_built is not None:
        on_built(outcome)
    if not outcome.success:
        return outcome
    return run_main_artifact(root, args, settings=settings, progress=progress)


__all__ = [
    "BuildCallback",
    "ProgressCallback",
    "build_project",
    "run_main_artifact",
    "run_project",
]
