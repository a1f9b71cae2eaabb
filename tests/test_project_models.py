"""Tests for project/models.py module."""

import pytest

from cult.errors import ManifestError
from cult.project.models import ProjectDescriptor, Version


class TestVersionParse:
    """Tests for Version.parse."""

    def test_full_version(self):
        """Should parse three components."""
        assert Version.parse("1.2.3") == Version(1, 2, 3)

    def test_missing_patch_defaults_to_zero(self):
        """Should default a missing patch component to 0."""
        assert Version.parse("2.3") == Version(2, 3, 0)

    def test_major_only(self):
        """Should default missing minor and patch to 0."""
        assert Version.parse("7") == Version(7, 0, 0)

    def test_strips_whitespace(self):
        """Should ignore surrounding whitespace."""
        assert Version.parse(" 1.0.0 ") == Version(1, 0, 0)

    @pytest.mark.parametrize("text", ["", "1.2.3.4", "1.x", "a", "1..2", "-1"])
    def test_invalid(self, text):
        """Should reject malformed versions."""
        with pytest.raises(ManifestError) as exc_info:
            Version.parse(text)
        assert exc_info.value.code == "invalid_version"


class TestVersionFormat:
    """Tests for Version formatting."""

    def test_semver(self):
        """Should render major.minor.patch."""
        assert Version(2, 3).semver == "2.3.0"
        assert str(Version(1, 0, 4)) == "1.0.4"

    def test_ordering(self):
        """Should order by components."""
        assert Version(1, 2, 0) < Version(1, 10, 0)


class TestProjectDescriptor:
    """Tests for ProjectDescriptor artifact names."""

    def test_jar_names(self):
        """Should derive deterministic artifact file names."""
        descriptor = ProjectDescriptor("demo", Version.parse("1.0"))

        assert descriptor.main_jar_name == "demo-1.0.0.jar"
        assert descriptor.lib_jar_name == "demo-lib-1.0.0.jar"
        assert descriptor.bin_jar_name("Tester") == "demo-Tester-1.0.0.jar"
