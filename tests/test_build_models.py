"""Tests for build/models.py module.

Tests source discovery and bundle planning.
"""

import logging
import os
from pathlib import Path

import pytest

from cult.build.models import (
    CompileBundle,
    SourceLayout,
    build_classpath,
    discover_sources,
    plan_bundles,
)
from cult.deps.models import ModuleCoordinate, ResolvedArtifact
from cult.errors import CompileError
from cult.project.models import ProjectDescriptor, Version
from cult.types import BundleKind


def _touch(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def descriptor() -> ProjectDescriptor:
    """Create a project identity."""
    return ProjectDescriptor(name="hail", version=Version(1, 2, 3))


@pytest.fixture
def dependency(tmp_path) -> ResolvedArtifact:
    """Create a resolved dependency archive reference."""
    return ResolvedArtifact(
        coordinate=ModuleCoordinate("org.example", "lib"),
        path=tmp_path / "target" / "lib" / "lib-2.3.0.jar",
    )


class TestDiscoverSources:
    """Tests for discover_sources function."""

    def test_missing_directory(self, tmp_path):
        """Should return an empty layout when the directory is missing."""
        layout = discover_sources(tmp_path / "src")

        assert layout == SourceLayout()

    def test_sorts_sources(self, tmp_path):
        """Should separate main, binaries, and library sources."""
        src = tmp_path / "src"
        main = _touch(src / "Main.java")
        tool = _touch(src / "bin" / "Tool.java")
        util = _touch(src / "util" / "Strings.java")
        helper = _touch(src / "Helper.java")
        _touch(src / "README.md")

        layout = discover_sources(src)

        assert layout.main == main
        assert layout.binaries == {"Tool": tool}
        assert layout.library == (helper, util)

    def test_nested_bin_sources_are_not_library(self, tmp_path):
        """Should not treat anything under bin/ as library source."""
        src = tmp_path / "src"
        _touch(src / "bin" / "nested" / "Deep.java")

        layout = discover_sources(src)

        assert layout.library == ()
        assert layout.binaries == {}

    def test_nested_bin_sources_are_reported(self, tmp_path, caplog):
        """Should warn about sources nested below bin/."""
        src = tmp_path / "src"
        _touch(src / "bin" / "nested" / "Deep.java")

        with caplog.at_level(logging.WARNING, logger="cult.build.models"):
            discover_sources(src)

        assert "Deep.java" in caplog.text

    def test_nested_main_is_library(self, tmp_path):
        """Should only treat the top-level Main.java as main."""
        src = tmp_path / "src"
        nested = _touch(src / "pkg" / "Main.java")

        layout = discover_sources(src)

        assert layout.main is None
        assert layout.library == (nested,)


class TestBuildClasspath:
    """Tests for build_classpath function."""

    def test_empty(self):
        """Should return an empty string with no entries."""
        assert build_classpath([]) == ""

    def test_joins_with_path_separator(self, dependency, tmp_path):
        """Should join archives then extra entries."""
        extra = tmp_path / "target" / "lib-classes"

        assert build_classpath([dependency], extra=[extra]) == os.pathsep.join(
            [str(dependency.path), str(extra)]
        )


class TestPlanBundles:
    """Tests for plan_bundles function."""

    def test_main_only(self, descriptor, tmp_path):
        """Should plan an empty library and a main bundle."""
        target = tmp_path / "target"
        layout = SourceLayout(main=tmp_path / "src" / "Main.java")

        bundles = plan_bundles(descriptor, layout, [], target)

        assert [b.kind for b in bundles] == [BundleKind.LIBRARY, BundleKind.MAIN]
        lib, main = bundles
        assert lib.is_empty
        assert main.sources == (layout.main,)
        assert main.output_dir == target / "classes"
        assert main.class_dirs == (target / "classes",)
        assert main.classpath == ""
        assert main.main_class == "Main"
        assert main.jar_name == "hail-1.2.3.jar"

    def test_full_layout(self, descriptor, dependency, tmp_path):
        """Should plan library, binaries, then main with shared classpath."""
        target = tmp_path / "target"
        src = tmp_path / "src"
        layout = SourceLayout(
            library=(src / "Util.java",),
            binaries={"Tool": src / "bin" / "Tool.java"},
            main=src / "Main.java",
        )

        bundles = plan_bundles(descriptor, layout, [dependency], target)

        assert [b.name for b in bundles] == ["lib", "Tool", "main"]
        lib, tool, main = bundles
        lib_classes = target / "lib-classes"

        assert lib.kind is BundleKind.LIBRARY
        assert lib.classpath == str(dependency.path)
        assert lib.output_dir == lib_classes
        assert lib.jar_name == "hail-lib-1.2.3.jar"
        assert lib.main_class is None

        expected_cp = os.pathsep.join([str(dependency.path), str(lib_classes)])
        assert tool.kind is BundleKind.BINARY
        assert tool.classpath == expected_cp
        assert tool.output_dir == target / "Tool-classes"
        assert tool.class_dirs == (lib_classes, target / "Tool-classes")
        assert tool.jar_name == "hail-Tool-1.2.3.jar"
        assert tool.main_class == "Tool"

        assert main.classpath == expected_cp
        assert main.class_dirs == (lib_classes, target / "classes")

    def test_library_only(self, descriptor, tmp_path):
        """Should plan an empty main bundle when there is no Main.java."""
        layout = SourceLayout(library=(tmp_path / "src" / "Util.java",))

        bundles = plan_bundles(descriptor, layout, [], tmp_path / "target")

        assert not bundles[0].is_empty
        assert bundles[-1].is_empty

    def test_rejects_binary_named_lib(self, descriptor, tmp_path):
        """Should refuse a binary whose outputs would replace the library's."""
        src = tmp_path / "src"
        layout = SourceLayout(
            library=(src / "Util.java",),
            binaries={"lib": src / "bin" / "lib.java"},
        )

        with pytest.raises(CompileError) as exc_info:
            plan_bundles(descriptor, layout, [], tmp_path / "target")

        assert exc_info.value.code == "reserved_binary_name"

    def test_binary_outputs_are_distinct(self, descriptor, tmp_path):
        """Should give every bundle its own output directory and archive."""
        src = tmp_path / "src"
        layout = SourceLayout(
            library=(src / "Util.java",),
            binaries={"Main": src / "bin" / "Main.java", "Tool": src / "bin" / "Tool.java"},
            main=src / "Main.java",
        )

        bundles = plan_bundles(descriptor, layout, [], tmp_path / "target")

        assert len({b.output_dir for b in bundles}) == len(bundles)
        assert len({b.jar_name for b in bundles}) == len(bundles)

    def test_bundle_version(self, descriptor, tmp_path):
        """Should stamp each bundle with the project version."""
        bundles = plan_bundles(descriptor, SourceLayout(), [], tmp_path)

        assert all(isinstance(b, CompileBundle) for b in bundles)
        assert {b.version for b in bundles} == {"1.2.3"}
