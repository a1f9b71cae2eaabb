"""Tests for build/native.py module."""

from unittest.mock import patch

import pytest

from cult.build.native import build_native_image, compose_native_command
from cult.config import Settings
from cult.errors import PackagingError, ProcessError
from cult.process.runner import ProcessResult


class TestComposeNativeCommand:
    """Tests for compose_native_command function."""

    def test_defaults(self, tmp_path):
        """Should build from the archive with preview features enabled."""
        jar = tmp_path / "hail-0.1.0.jar"

        assert compose_native_command(jar) == [
            "native-image",
            "--enable-preview",
            "-jar",
            str(jar),
        ]

    def test_without_preview(self, tmp_path):
        """Should omit the preview flag when disabled."""
        cmd = compose_native_command(tmp_path / "a.jar", native_image="ni", enable_preview=False)

        assert cmd == ["ni", "-jar", str(tmp_path / "a.jar")]


class TestBuildNativeImage:
    """Tests for build_native_image function."""

    def test_runs_next_to_archive(self, tmp_path):
        """Should run the image builder in the archive's directory."""
        jar = tmp_path / "jar" / "hail-0.1.0.jar"
        ok = ProcessResult(command=["native-image"], exit_code=0, duration=0.0)

        with patch("cult.build.native.run_process", return_value=ok) as mock_run:
            out_dir = build_native_image(jar, Settings())

        assert out_dir == jar.parent
        assert mock_run.call_args.kwargs["cwd"] == jar.parent
        assert mock_run.call_args.args[0][-1] == str(jar.resolve())

    def test_failure(self, tmp_path):
        """Should raise PackagingError on a non-zero exit."""
        failed = ProcessResult(command=["native-image"], exit_code=5, duration=0.0)

        with patch("cult.build.native.run_process", return_value=failed):
            with pytest.raises(PackagingError) as exc_info:
                build_native_image(tmp_path / "a.jar", Settings())

        assert exc_info.value.code == "native_image_failed"
        assert exc_info.value.exit_code == 5

    def test_unavailable(self, tmp_path):
        """Should raise PackagingError when the tool cannot be started."""
        error = ProcessError("could not start", code="spawn_failed")

        with patch("cult.build.native.run_process", side_effect=error):
            with pytest.raises(PackagingError) as exc_info:
                build_native_image(tmp_path / "a.jar", Settings())

        assert exc_info.value.code == "native_image_unavailable"
