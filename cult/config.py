"""Configuration settings for cult.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAVEN_CENTRAL = "https://repo1.maven.org/maven2"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the CULT_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="CULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote repository
    repository_url: str = Field(
        default=MAVEN_CENTRAL,
        description="Base URL of the remote artifact repository",
    )
    download_timeout: int = Field(
        default=300,
        ge=1,
        description="Timeout for a single dependency download (seconds)",
    )

    # Project layout
    manifest_name: str = Field(
        default="Cult.toml",
        description="File name of the project descriptor",
    )
    source_dir: Path = Field(
        default=Path("src"),
        description="Source directory, relative to the project root",
    )
    target_dir: Path = Field(
        default=Path("target"),
        description="Build output directory, relative to the project root",
    )

    # External tools
    javac: str = Field(default="javac", description="Java compiler executable")
    java: str = Field(default="java", description="Java launcher executable")
    native_image: str = Field(
        default="native-image",
        description="Ahead-of-time image builder executable",
    )
    source_level: str = Field(
        default="22",
        description="Java source level passed to the compiler",
    )
    enable_preview: bool = Field(
        default=True,
        description="Pass --enable-preview to every Java tool",
    )
    hide_compiler_stderr: bool = Field(
        default=False,
        description="Discard compiler diagnostics instead of relaying them",
    )

    # Process relay
    stdin_poll_interval: float = Field(
        default=0.05,
        gt=0,
        description="How often the stdin relay checks whether the child exited",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["MAVEN_CENTRAL", "Settings", "get_settings", "print_settings_json"]
