"""API models for ActivityForge."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .generator.artifact import GeneratedArtifact, Stack
from .requirements.validation import FieldError


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractRequest(_CamelModel):
    """Free-text description to turn into structured requirements."""

    description: str = Field(..., min_length=1, description="What the activity should do")
    activity_name: Optional[str] = Field(None, description="Suggested activity name")


class GenerateRequest(_CamelModel):
    """Requirements to render; validated strictly by the pipeline, not by this model."""

    requirements: dict[str, Any]
    stack: Optional[Stack] = None  # defaults to Settings.default_stack


class ValidateArtifactRequest(_CamelModel):
    artifact: GeneratedArtifact
    is_decision_split: bool = False
    expected_outcome_labels: Optional[list[str]] = None


class FieldUsageRequest(_CamelModel):
    field_names: list[str]
    server_code: str = ""
    client_code: str = ""


class ExportRequest(_CamelModel):
    artifact: GeneratedArtifact
    requirements: dict[str, Any]


class RequirementsValidationResponse(BaseModel):
    valid: bool
    errors: list[FieldError] = []


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str = "ActivityForge Backend"
