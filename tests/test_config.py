"""Tests for configuration module."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from cult.config import MAVEN_CENTRAL, Settings, get_settings, print_settings_json


class TestSettings:
    """Test Settings class."""

    def test_default_settings(self) -> None:
        """Settings should have sensible defaults."""
        settings = Settings()

        assert settings.repository_url == MAVEN_CENTRAL
        assert settings.manifest_name == "Cult.toml"
        assert settings.source_dir == Path("src")
        assert settings.target_dir == Path("target")
        assert settings.javac == "javac"
        assert settings.java == "java"
        assert settings.native_image == "native-image"
        assert settings.source_level == "22"
        assert settings.enable_preview is True
        assert settings.hide_compiler_stderr is False
        assert settings.stdin_poll_interval > 0

    def test_settings_from_env(self) -> None:
        """Settings should be loadable from environment variables."""
        with patch.dict(
            os.environ,
            {
                "CULT_REPOSITORY_URL": "https://mirror.example.com/maven2",
                "CULT_LOG_LEVEL": "DEBUG",
                "CULT_HIDE_COMPILER_STDERR": "true",
                "CULT_DOWNLOAD_TIMEOUT": "30",
            },
        ):
            settings = Settings()
            assert settings.repository_url == "https://mirror.example.com/maven2"
            assert settings.log_level == "DEBUG"
            assert settings.hide_compiler_stderr is True
            assert settings.download_timeout == 30

    def test_target_dir_from_env(self) -> None:
        """Target dir should be configurable via env."""
        with patch.dict(os.environ, {"CULT_TARGET_DIR": "out"}):
            settings = Settings()
            assert settings.target_dir == Path("out")

    def test_rejects_non_positive_poll_interval(self) -> None:
        """The stdin poll interval must be positive."""
        with pytest.raises(ValidationError):
            Settings(stdin_poll_interval=0)


class TestGetSettings:
    """Test get_settings function."""

    def test_get_settings_returns_settings(self) -> None:
        """get_settings should return a Settings instance."""
        settings = get_settings()
        assert isinstance(settings, Settings)


class TestPrintSettingsJson:
    """Test print_settings_json function."""

    def test_print_settings_json(self) -> None:
        """print_settings_json should return valid JSON."""
        settings = Settings()
        parsed = json.loads(print_settings_json(settings))

        assert "repository_url" in parsed
        assert "target_dir" in parsed
        assert "javac" in parsed

    def test_print_settings_json_default(self) -> None:
        """print_settings_json without args should use default settings."""
        parsed = json.loads(print_settings_json())
        assert "repository_url" in parsed
