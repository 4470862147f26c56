"""Parsing and lenient repair of generation service output.

The service is untrusted free-form output. The repair pass here only runs on
that path; the repaired object still goes through strict requirements
validation before anything is generated from it.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..generator.artifact import is_safe_path
from ..requirements.schema import CATEGORIES, DEFAULT_OUTCOMES
from ..requirements.validation import RequirementsResult, validate_requirements

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 500

# Fences only count at line starts, so fences inside JSON string values never match
_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*[ \t]*\n(.*?)\n?```[ \t]*$", re.DOTALL | re.MULTILINE)


class GenerationOutputError(ValueError):
    """The generation service returned something that is not the expected JSON."""

    def __init__(self, message: str, raw: str = ""):
        self.excerpt = raw[:EXCERPT_LENGTH]
        super().__init__(message)


class ReviewReport(BaseModel):
    """Second-opinion review returned by the generation service."""

    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(default=False, alias="isValid")
    errors: list[str] = []
    warnings: list[str] = []


def strip_code_fences(text: str) -> str:
    """Return the body of the first line-anchored fenced block, or the trimmed text."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def parse_generation_output(text: str) -> Any:
    """Decode the service's JSON answer, raising ``GenerationOutputError`` when impossible."""
    if not text or not text.strip():
        raise GenerationOutputError("unparseable generation output: empty response", text or "")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        raise GenerationOutputError(f"unparseable generation output: {exc}", text) from exc


def snake_key(value: Any) -> str:
    """Lowercase snake_case outcome key; empty when nothing usable remains."""
    if not isinstance(value, str):
        return ""
    key = re.sub(r"\s+", "_", value.strip().lower())
    key = re.sub(r"[^a-z0-9_]", "", key)
    if key and not key[0].isalpha():
        key = f"outcome_{key.lstrip('_')}"
    return key


def _repair_outcomes(outcomes: Any) -> list[dict[str, Any]]:
    repaired: list[dict[str, Any]] = []
    used: set[str] = set()
    for item in outcomes if isinstance(outcomes, list) else []:
        if not isinstance(item, dict):
            continue
        fixed = dict(item)
        key = snake_key(item.get("key")) or snake_key(item.get("label")) or "outcome"
        base, n = key, 2
        while key in used:
            key = f"{base}_{n}"
            n += 1
        used.add(key)
        fixed["key"] = key
        if not isinstance(fixed.get("label"), str) or not fixed["label"].strip():
            fixed["label"] = key.replace("_", " ").title()
        repaired.append(fixed)

    for key, label, condition in DEFAULT_OUTCOMES:
        if len(repaired) >= 2:
            break
        if key not in used:
            repaired.append({"key": key, "label": label, "condition": condition})
            used.add(key)
    return repaired


def repair_requirements(data: dict[str, Any]) -> dict[str, Any]:
    """Best-effort normalization of extracted requirements; ``data`` is not mutated."""
    fixed = copy.deepcopy(data)

    if fixed.get("category") not in CATEGORIES:
        logger.info("Repairing category %r -> 'custom'", fixed.get("category"))
        fixed["category"] = "custom"

    in_args = fixed.get("inArguments")
    if isinstance(in_args, list):
        fixed["inArguments"] = [
            {
                **arg,
                "source": arg.get("source") or f"Contact.Attribute.{arg.get('name')}",
                "type": arg.get("type") or "string",
                "required": arg.get("required", True),
            }
            if isinstance(arg, dict)
            else arg
            for arg in in_args
        ]
    elif in_args is not None:
        fixed["inArguments"] = []

    for key in ("outArguments", "externalAPIs", "configurationSteps", "executionSteps"):
        if key in fixed and not isinstance(fixed[key], list):
            fixed[key] = []
    fixed.setdefault("configurationSteps", [])
    fixed.setdefault("executionSteps", [])

    if fixed.get("isDecisionSplit") is True:
        outcomes = fixed.get("outcomes")
        if not isinstance(outcomes, list) or len(outcomes) < 2:
            logger.info("Decision split had %s outcome(s); adding defaults",
                        len(outcomes) if isinstance(outcomes, list) else 0)
        fixed["outcomes"] = _repair_outcomes(outcomes)
    elif isinstance(fixed.get("outcomes"), list):
        fixed["outcomes"] = _repair_outcomes(fixed["outcomes"]) if fixed["outcomes"] else []

    return fixed


def parse_extraction_output(text: str) -> RequirementsResult:
    """Parse, repair and strictly validate an extraction answer."""
    data = parse_generation_output(text)
    if not isinstance(data, dict):
        raise GenerationOutputError(
            f"unparseable generation output: expected a JSON object, got {type(data).__name__}",
            text,
        )
    return validate_requirements(repair_requirements(data))


def parse_customization_output(text: str) -> dict[str, str]:
    """Parse a path -> content mapping.

    Non-string entries and paths outside the project root are dropped.
    """
    data = parse_generation_output(text)
    if not isinstance(data, dict):
        raise GenerationOutputError(
            "unparseable generation output: expected a JSON object of files", text
        )
    files = {path: content for path, content in data.items() if isinstance(content, str)}
    dropped = len(data) - len(files)
    if dropped:
        logger.warning("Dropped %d non-text file entries from customization output", dropped)
    unsafe = [path for path in files if not is_safe_path(path)]
    for path in unsafe:
        logger.warning("Dropped unsafe path %r from customization output", path)
        del files[path]
    return files


def parse_review_output(text: str) -> ReviewReport:
    data = parse_generation_output(text)
    if not isinstance(data, dict):
        raise GenerationOutputError("unparseable generation output: expected a review object", text)
    try:
        return ReviewReport.model_validate(data)
    except ValidationError as exc:
        raise GenerationOutputError(f"unparseable generation output: {exc}", text) from exc
