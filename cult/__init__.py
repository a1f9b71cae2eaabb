"""Cult - a minimal package manager and build tool for Java projects.

This package resolves declared dependencies, compiles source bundles with
the JDK compiler, and assembles thin, fat, or native distributable archives.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
