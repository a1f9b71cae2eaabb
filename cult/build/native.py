"""Native image stage.

Runs the ahead-of-time image builder against a packaged archive. The
image is written next to the archive.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cult.config import Settings
from cult.errors import PackagingError, ProcessError
from cult.process.runner import run_process

logger = logging.getLogger(__name__)


def compose_native_command(
    jar_path: Path,
    native_image: str = "native-image",
    enable_preview: bool = True,
) -> list[str]:
    """Compose the image builder command for an archive."""
    cmd = [native_image]
    if enable_preview:
        cmd.append("--enable-preview")
    cmd.extend(["-jar", str(jar_path)])
    return cmd


def build_native_image(jar_path: Path, settings: Settings) -> Path:
    """Build a native image from ``jar_path``.

    Args:
        jar_path: Packaged archive.
        settings: Application settings.

    Returns:
        Directory the image builder wrote into.

    Raises:
        PackagingError: If the image builder cannot run or exits non-zero.
    """
    cmd = compose_native_command(
        jar_path.resolve(),
        native_image=settings.native_image,
        enable_preview=settings.enable_preview,
    )
    try:
        result = run_process(cmd, cwd=jar_path.parent)
    except ProcessError as e:
        raise PackagingError(
            f"could not build native image for `{jar_path}`: {e.message}",
            code="native_image_unavailable",
            path=jar_path,
        ) from e

    if not result.success:
        raise PackagingError(
            f"native image build for `{jar_path}` failed (exit code {result.exit_code})",
            code="native_image_failed",
            path=jar_path,
            exit_code=result.exit_code,
        )
    logger.info("Built native image for %s", jar_path.name)
    return jar_path.parent


__all__ = ["build_native_image", "compose_native_command"]
