"""Compiler stage.

This module handles:
- Composing ``javac`` commands from compile bundles
- Compiling bundles in order, stopping at the first failure
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from cult.build.models import CompileBundle
from cult.config import Settings
from cult.errors import CompileError, ProcessError
from cult.process.runner import run_process

logger = logging.getLogger(__name__)


def compose_compile_command(
    bundle: CompileBundle,
    javac: str = "javac",
    source_level: str = "22",
    enable_preview: bool = True,
) -> list[str]:
    """Compose the compiler command for a bundle.

    Args:
        bundle: Bundle to compile.
        javac: Compiler executable.
        source_level: Java source level.
        enable_preview: Whether to enable preview language features.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [javac]
    if enable_preview:
        cmd.append("--enable-preview")
    cmd.extend(["--source", source_level])
    if bundle.classpath:
        cmd.extend(["-cp", bundle.classpath])
    cmd.extend(["-d", str(bundle.output_dir)])
    cmd.extend(str(source) for source in bundle.sources)
    return cmd


def compile_bundle(
    bundle: CompileBundle,
    settings: Settings,
    cwd: Path | None = None,
) -> bool:
    """Compile one bundle.

    Args:
        bundle: Bundle to compile.
        settings: Application settings (compiler, source level, stderr policy).
        cwd: Working directory for the compiler.

    Returns:
        True if the compiler ran, False if the bundle had no sources.

    Raises:
        CompileError: If the compiler cannot be run or exits non-zero.
    """
    if bundle.is_empty:
        logger.debug("Bundle %s has no sources, skipping", bundle.name)
        return False

    cmd = compose_compile_command(
        bundle,
        javac=settings.javac,
        source_level=settings.source_level,
        enable_preview=settings.enable_preview,
    )
    try:
        bundle.output_dir.mkdir(parents=True, exist_ok=True)
        result = run_process(cmd, cwd=cwd, hide_stderr=settings.hide_compiler_stderr)
    except ProcessError as e:
        raise CompileError(
            f"failed to compile `{bundle.name}`: {e.message}",
            code="compiler_unavailable",
            path=bundle.output_dir,
        ) from e
    except OSError as e:
        raise CompileError(
            f"could not create `{bundle.output_dir}`: {e}",
            code="output_dir_error",
            path=bundle.output_dir,
        ) from e

    if not result.success:
        raise CompileError(
            f"failed to compile `{bundle.name}` (exit code {result.exit_code})",
            code="compiler_failed",
            path=bundle.output_dir,
            exit_code=result.exit_code,
        )
    return True


def compile_bundles(
    bundles: Iterable[CompileBundle],
    settings: Settings,
    cwd: Path | None = None,
) -> list[CompileBundle]:
    """Compile bundles in order; the first failure aborts the rest.

    Returns:
        Bundles that were actually compiled.
    """
    compiled = []
    for bundle in bundles:
        if compile_bundle(bundle, settings, cwd=cwd):
            compiled.append(bundle)
    return compiled


__all__ = ["compile_bundle", "compile_bundles", "compose_compile_command"]
