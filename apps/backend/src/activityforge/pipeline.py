"""Activity generation pipeline: requirements → template → (customize) → validate."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from .generator import generate
from .generator.artifact import GeneratedArtifact, Stack
from .prompts import (
    Prompt,
    ReviewReport,
    build_customization_prompt,
    build_extraction_prompt,
    build_review_prompt,
    parse_customization_output,
    parse_extraction_output,
    parse_review_output,
)
from .requirements import Requirements, RequirementsResult, parse_requirements
from .validator import validate_artifact

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    async def complete(self, prompt: Prompt) -> str: ...


def _validate(artifact: GeneratedArtifact, requirements: Requirements) -> GeneratedArtifact:
    labels = [o.label for o in requirements.outcomes or []] if requirements.is_decision_split else None
    validation = validate_artifact(artifact, requirements.is_decision_split, labels)
    logger.info(
        "Validated '%s': %d error(s), %d warning(s)",
        requirements.activity_name,
        len(validation.errors),
        len(validation.warnings),
    )
    return artifact.model_copy(update={"validation": validation})


def build_activity(data: Any, stack: Stack = "node") -> GeneratedArtifact:
    """Schema gate, template engine, then validator; the result carries its validation.

    Raises:
        RequirementsError: ``data`` does not conform to the requirements schema.
        UnsupportedStackError: ``stack`` has no template.
    """
    requirements = parse_requirements(data)
    logger.info("Generating '%s' (stack=%s, decision_split=%s)",
                requirements.activity_name, stack, requirements.is_decision_split)
    return _validate(generate(requirements, stack), requirements)


async def extract_requirements(
    description: str,
    activity_name: Optional[str] = None,
    *,
    client: CompletionClient,
) -> RequirementsResult:
    """Ask the generation service to turn a description into validated requirements."""
    text = await client.complete(build_extraction_prompt(description, activity_name))
    result = parse_extraction_output(text)
    if not result.ok:
        logger.warning("Extracted requirements failed validation with %d error(s)", len(result.errors))
    return result


async def customize_activity(
    requirements: Requirements,
    stack: Stack,
    client: CompletionClient,
) -> GeneratedArtifact:
    """Let the generation service customize the template, then re-validate the merged tree.

    The template is always the starting point: files the service does not
    return keep their generated content.
    """
    requirements = parse_requirements(requirements)
    files = generate(requirements, stack).files
    text = await client.complete(build_customization_prompt(requirements, stack, files))
    changes = parse_customization_output(text)
    logger.info("Customization changed %d file(s): %s", len(changes), ", ".join(sorted(changes)))

    merged = {**files, **changes}
    return _validate(GeneratedArtifact.from_files(merged, stack=stack), requirements)


async def review_activity(
    artifact: GeneratedArtifact,
    requirements: Requirements,
    client: CompletionClient,
) -> ReviewReport:
    """Second-opinion review from the generation service; advisory only."""
    text = await client.complete(build_review_prompt(artifact.files, requirements))
    return parse_review_output(text)
