"""Thin CLI wrapper for cult.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from cult import __version__
from cult.config import get_settings, print_settings_json
from cult.types import BuildOutcome, BuildStage, PackagingMode

app = typer.Typer(
    name="cult",
    help="Cult - a simple Java package manager",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"cult version {__version__}")
        raise typer.Exit()


def _progress(status: str, detail: str) -> None:
    console.print(f"[bold green]{status:>12}[/bold green] {escape(detail)}")


def _report_failure(outcome: BuildOutcome) -> None:
    stage = outcome.stage.value if outcome.stage else "build"
    err_console.print(f"[bold red]error[/bold red]: {stage}: {escape(outcome.message or '')}")


def _report_build(outcome: BuildOutcome) -> None:
    if outcome.success:
        _progress("Finished", f"build in {outcome.duration:.2f}s")
        return
    _report_failure(outcome)
    _progress("Finished", f"build with errors in {outcome.duration:.2f}s")


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Cult - a simple Java package manager."""
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
        return

    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Repository:[/bold]")
    console.print(f"  Repository URL:      {settings.repository_url}")
    console.print(f"  Download timeout:    {settings.download_timeout}")
    console.print()
    console.print("[bold]Layout:[/bold]")
    console.print(f"  Manifest:            {settings.manifest_name}")
    console.print(f"  Source directory:    {settings.source_dir}")
    console.print(f"  Target directory:    {settings.target_dir}")
    console.print()
    console.print("[bold]Tools:[/bold]")
    console.print(f"  Compiler:            {settings.javac}")
    console.print(f"  Launcher:            {settings.java}")
    console.print(f"  Native image:        {settings.native_image}")
    console.print(f"  Source level:        {settings.source_level}")
    console.print(f"  Preview features:    {settings.enable_preview}")
    console.print()
    console.print("[bold]Operational:[/bold]")
    console.print(f"  Log level:           {settings.log_level}")
    console.print(f"  Hide compiler stderr: {settings.hide_compiler_stderr}")
    console.print(f"  Stdin poll interval: {settings.stdin_poll_interval}")


@app.command("new")
def new(
    path: Annotated[Path, typer.Argument(help="Directory for the new project")],
) -> None:
    """Create a new project."""
    from cult.project.service import ProjectError, new_project

    settings = get_settings()
    _progress("Creating", f"`{path.resolve().name}` project")
    try:
        new_project(
            path,
            manifest_name=settings.manifest_name,
            source_dir=settings.source_dir,
        )
    except ProjectError as e:
        err_console.print(f"[bold red]error[/bold red]: {escape(e.message)}")
        raise typer.Exit(code=1) from None


@app.command()
def clean() -> None:
    """Remove the build output directory."""
    from cult.project.service import ProjectError, clean_project

    settings = get_settings()
    try:
        removed = clean_project(Path.cwd() / settings.target_dir)
    except ProjectError as e:
        err_console.print(f"[bold red]error[/bold red]: {escape(e.message)}")
        raise typer.Exit(code=1) from None
    if removed:
        _progress("Removed", str(settings.target_dir))


def _packaging_mode(fat: bool, native: bool) -> PackagingMode:
    if fat and native:
        err_console.print("[bold red]error[/bold red]: --fat and --native are exclusive")
        raise typer.Exit(code=2)
    if native:
        return PackagingMode.NATIVE
    if fat:
        return PackagingMode.FAT
    return PackagingMode.THIN


@app.command()
def build(
    fat: Annotated[
        bool,
        typer.Option("--fat", "-f", help="Embed dependencies in the artifact"),
    ] = False,
    native: Annotated[
        bool,
        typer.Option("--native", "-n", help="Build a fat artifact and a native image"),
    ] = False,
) -> None:
    """Build the project in the current directory."""
    from cult.build.service import build_project

    mode = _packaging_mode(fat, native)
    settings = get_settings()
    outcome = build_project(Path.cwd(), mode, settings=settings, progress=_progress)
    _report_build(outcome)
    if not outcome.success:
        raise typer.Exit(code=1)


@app.command(context_settings={"ignore_unknown_options": True})
def run(
    args: Annotated[
        list[str] | None,
        typer.Argument(help="Arguments passed to the program"),
    ] = None,
) -> None:
    """Build the project and run its main artifact."""
    from cult.build.service import run_project

    settings = get_settings()
    outcome = run_project(
        Path.cwd(),
        args or [],
        settings=settings,
        progress=_progress,
        on_built=_report_build,
    )
    if outcome.success:
        return
    if outcome.stage is not BuildStage.RUN:
        # Already reported by _report_build
        raise typer.Exit(code=1)
    if outcome.code != "nonzero_exit":
        _report_failure(outcome)
    raise typer.Exit(code=outcome.exit_code)


if __name__ == "__main__":
    app()
