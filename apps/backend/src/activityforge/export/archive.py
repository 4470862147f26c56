"""Zip packaging for validated activities.

Nothing is written unless the artifact passes the validator; archives are
byte-reproducible for the same file tree.
"""

from __future__ import annotations

import io
import logging
import zipfile
from typing import Callable

from pydantic import BaseModel

from ..generator import select_template
from ..generator.artifact import GeneratedArtifact, is_safe_path
from ..generator.scaffolding import GITIGNORE, env_example, package_json, readme
from ..generator.text import slugify
from ..requirements.schema import Requirements
from ..validator import validate_artifact
from ..validator.result import ValidationResult

logger = logging.getLogger(__name__)

# Fixed timestamp so identical trees produce identical archives
ZIP_DATE_TIME = (2024, 1, 1, 0, 0, 0)


class ExportBlockedError(Exception):
    """Raised when an artifact with validation errors is submitted for export."""

    def __init__(self, validation: ValidationResult):
        self.validation = validation
        super().__init__(f"Export blocked by validation: {validation.summary()}")


class ExportBundle(BaseModel):
    file_name: str
    content: bytes
    validation: ValidationResult


def _auxiliary_files(requirements: Requirements) -> dict[str, Callable[[], str]]:
    def _readme() -> str:
        return readme(requirements, select_template(requirements).outcomes)

    return {
        "package.json": lambda: package_json(requirements),
        "README.md": _readme,
        ".env.example": lambda: env_example(requirements),
        ".gitignore": lambda: GITIGNORE,
    }


def bundle_files(artifact: GeneratedArtifact, requirements: Requirements) -> dict[str, str]:
    """The artifact's files plus any auxiliary file it lacks, in archive order.

    Paths that are absolute or escape the project root are left out.
    """
    files = {}
    for path, content in artifact.files.items():
        if is_safe_path(path):
            files[path] = content
        else:
            logger.warning("Leaving unsafe path %r out of the archive", path)
    for path, render in _auxiliary_files(requirements).items():
        if path not in files:
            files[path] = render()
    return files


def write_zip(files: dict[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path, content in files.items():
            info = zipfile.ZipInfo(path, date_time=ZIP_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            zf.writestr(info, content.encode("utf-8"))
    return buffer.getvalue()


def export_activity(artifact: GeneratedArtifact, requirements: Requirements) -> ExportBundle:
    """Validate ``artifact`` and package it as ``<slug>.zip``.

    Raises:
        ExportBlockedError: the artifact has validation errors; no archive is built.
    """
    validation = validate_artifact(
        artifact,
        is_decision_split=requirements.is_decision_split,
        expected_outcome_labels=(
            [o.label for o in requirements.outcomes or []]
            if requirements.is_decision_split
            else None
        ),
    )
    if not validation.is_valid:
        logger.warning(
            "Export of '%s' blocked: %d validation error(s)",
            requirements.activity_name,
            len(validation.errors),
        )
        raise ExportBlockedError(validation)

    files = bundle_files(artifact, requirements)
    file_name = f"{slugify(requirements.activity_name)}.zip"
    logger.info("Exporting '%s' as %s (%d files)", requirements.activity_name, file_name, len(files))
    return ExportBundle(file_name=file_name, content=write_zip(files), validation=validation)
