"""Build orchestration module.

This module handles:
- Source discovery and compile bundle planning
- Running the compiler for each bundle
- Packaging thin, fat, and native artifacts
- The end-to-end build and run pipeline
"""

from cult.build.models import CompileBundle

__all__ = ["CompileBundle"]

# Submodules are imported directly to keep import order acyclic.
# Access via cult.build.service, cult.build.packager, etc.
