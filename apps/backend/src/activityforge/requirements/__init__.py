from .schema import (
    DEFAULT_OUTCOMES,
    ConfigField,
    ConfigStep,
    ExecutionStep,
    ExternalAPI,
    InArgument,
    Outcome,
    OutArgument,
    Requirements,
)
from .validation import (
    FieldError,
    RequirementsError,
    RequirementsParseError,
    RequirementsResult,
    parse_requirements,
    validate_requirements,
)

__all__ = [
    "DEFAULT_OUTCOMES",
    "ConfigField",
    "ConfigStep",
    "ExecutionStep",
    "ExternalAPI",
    "FieldError",
    "InArgument",
    "Outcome",
    "OutArgument",
    "Requirements",
    "RequirementsError",
    "RequirementsParseError",
    "RequirementsResult",
    "parse_requirements",
    "validate_requirements",
]
