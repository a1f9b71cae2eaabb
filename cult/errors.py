"""Error taxonomy for cult.

Every stage of a build raises one of these. Each error carries a short
machine-readable ``code`` next to the human-readable message, and the
offending path or identifier where one exists.
"""

from __future__ import annotations

from pathlib import Path


class CultError(Exception):
    """Base class for all build stage failures."""

    def __init__(
        self,
        message: str,
        code: str = "cult_error",
        path: Path | str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.path = path


class ResolutionError(CultError):
    """Raised when a dependency cannot be resolved or fetched."""

    def __init__(
        self,
        message: str,
        code: str = "resolution_error",
        path: Path | str | None = None,
    ) -> None:
        super().__init__(message, code=code, path=path)


class ManifestError(ResolutionError):
    """Raised when a project descriptor or dependency declaration is malformed."""

    def __init__(
        self,
        message: str,
        code: str = "manifest_error",
        path: Path | str | None = None,
    ) -> None:
        super().__init__(message, code=code, path=path)


class CompileError(CultError):
    """Raised when the compiler exits non-zero or cannot be invoked."""

    def __init__(
        self,
        message: str,
        code: str = "compile_error",
        path: Path | str | None = None,
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message, code=code, path=path)
        self.exit_code = exit_code


class PackagingError(CultError):
    """Raised when an archive cannot be assembled."""

    def __init__(
        self,
        message: str,
        code: str = "packaging_error",
        path: Path | str | None = None,
        exit_code: int | None = None,
    ) -> None:
        super().__init__(message, code=code, path=path)
        self.exit_code = exit_code


class ProcessError(CultError):
    """Raised when an external tool cannot be spawned or relayed."""

    def __init__(
        self,
        message: str,
        code: str = "process_error",
        path: Path | str | None = None,
    ) -> None:
        super().__init__(message, code=code, path=path)


__all__ = [
    "CompileError",
    "CultError",
    "ManifestError",
    "PackagingError",
    "ProcessError",
    "ResolutionError",
]
