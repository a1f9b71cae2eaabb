"""Project identity, manifest loading, and scaffolding.

Manifest loading lives in cult.project.io and scaffolding in
cult.project.service; only the identity models are imported here because
the dependency models depend on them.
"""

from cult.project.models import ProjectDescriptor, Version

__all__ = ["ProjectDescriptor", "Version"]
