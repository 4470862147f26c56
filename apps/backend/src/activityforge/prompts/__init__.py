from .builder import (
    Prompt,
    build_customization_prompt,
    build_extraction_prompt,
    build_review_prompt,
)
from .client import GenerationClient, GenerationServiceError
from .parsing import (
    GenerationOutputError,
    ReviewReport,
    parse_customization_output,
    parse_extraction_output,
    parse_generation_output,
    parse_review_output,
    repair_requirements,
    strip_code_fences,
)

__all__ = [
    "GenerationClient",
    "GenerationOutputError",
    "GenerationServiceError",
    "Prompt",
    "ReviewReport",
    "build_customization_prompt",
    "build_extraction_prompt",
    "build_review_prompt",
    "parse_customization_output",
    "parse_extraction_output",
    "parse_generation_output",
    "parse_review_output",
    "repair_requirements",
    "strip_code_fences",
]
