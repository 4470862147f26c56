"""Artifact validator: the gate every generated activity passes before export.

All rule categories run on every call so callers get the complete list of
problems at once.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Optional

from . import rules
from .result import Issue, ValidationResult

if TYPE_CHECKING:
    from ..generator.artifact import FileEntry, GeneratedArtifact


def _find(tree: list[FileEntry], *candidates: str) -> Optional[FileEntry]:
    for candidate in candidates:
        for entry in tree:
            if entry.path == candidate:
                return entry
    return None


def _descriptor_file(tree: list[FileEntry]) -> Optional[FileEntry]:
    exact = _find(tree, "public/config.json", "config.json")
    if exact is not None:
        return exact
    return next((e for e in tree if e.path.endswith("/config.json")), None)


def server_code(tree: list[FileEntry]) -> Optional[str]:
    """Server entry followed by every route module, or None without an entry point."""
    entry = _find(tree, *rules.SERVER_ENTRY_PATHS)
    if entry is None:
        return None
    routes = [
        e.content
        for e in tree
        if e.path.endswith(".js") and (e.path.startswith("routes/") or "/routes/" in e.path)
    ]
    return "\n".join([entry.content, *routes])


def client_code(tree: list[FileEntry]) -> Optional[str]:
    entry = next((e for e in tree if e.path.endswith("customActivity.js")), None)
    return entry.content if entry is not None else None


def _parsed_descriptor(entry: FileEntry) -> Any:
    """Parse the shipped file; a separately supplied descriptor may be stale."""
    try:
        return json.loads(entry.content)
    except json.JSONDecodeError:
        return None


def validate_artifact(
    artifact: GeneratedArtifact,
    is_decision_split: bool = False,
    expected_outcome_labels: Optional[list[str]] = None,
) -> ValidationResult:
    """Check a generated artifact against the structural contract.

    ``is_valid`` on the result is true exactly when no errors were found;
    warnings are advisory.
    """
    tree = list(artifact.file_tree)
    result = ValidationResult()

    result.extend(rules.check_required_files([e.path for e in tree], artifact.stack))

    descriptor_entry = _descriptor_file(tree)
    if descriptor_entry is None:
        result.error("NO_CONFIG_JSON", "config.json not found in file tree")
    else:
        result.extend(
            rules.check_descriptor(
                _parsed_descriptor(descriptor_entry),
                is_decision_split,
                expected_outcome_labels,
            )
        )

    if artifact.stack == "node":
        code = server_code(tree)
        if code is not None:
            result.extend(rules.check_server_code(code))

    code = client_code(tree)
    if code is not None:
        result.extend(rules.check_client_code(code))

    if artifact.stack == "node":
        manifest = _find(tree, "package.json")
        if manifest is not None:
            result.extend(rules.check_manifest(manifest.content))

    return result


def validate_field_usage(
    field_names: list[str],
    server_code: str,
    client_code: str,
) -> ValidationResult:
    """Separate advisory check: are configuration fields used by the code? Warnings only."""
    return rules.check_field_usage(field_names, server_code, client_code)


__all__ = [
    "Issue",
    "ValidationResult",
    "client_code",
    "server_code",
    "validate_artifact",
    "validate_field_usage",
]
