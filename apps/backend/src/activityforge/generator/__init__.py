"""Template engine: requirements in, complete activity file tree out.

Generation is pure and deterministic; the same requirements always yield
byte-identical files.
"""

from __future__ import annotations

from ..requirements.schema import Requirements
from .artifact import FileEntry, GeneratedArtifact, Stack
from .base import ActivityTemplate
from .decision import DecisionSplitTemplate
from .standard import StandardActivityTemplate

SUPPORTED_STACKS = ("node",)


class UnsupportedStackError(ValueError):
    """Raised for stacks that are reserved but have no template yet."""


def select_template(requirements: Requirements) -> ActivityTemplate:
    if requirements.is_decision_split:
        return DecisionSplitTemplate(requirements)
    return StandardActivityTemplate(requirements)


def generate(requirements: Requirements, stack: Stack = "node") -> GeneratedArtifact:
    """Render every file for ``requirements`` and parse the resulting descriptor."""
    if stack not in SUPPORTED_STACKS:
        raise UnsupportedStackError(f"Stack '{stack}' is not supported yet; use one of {SUPPORTED_STACKS}")
    files = select_template(requirements).render()
    return GeneratedArtifact.from_files(files, stack=stack)


__all__ = [
    "ActivityTemplate",
    "DecisionSplitTemplate",
    "FileEntry",
    "GeneratedArtifact",
    "StandardActivityTemplate",
    "Stack",
    "UnsupportedStackError",
    "generate",
    "select_template",
]
