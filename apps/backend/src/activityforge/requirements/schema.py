"""Pydantic models defining the requirements of a custom activity."""

import re
from typing import Annotated, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

IDENTIFIER_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9_]*$")
OUTCOME_KEY_RE = re.compile(r"^[a-z][a-z0-9_]*$")

Category = Literal["message", "customer", "flow", "custom"]
ArgumentType = Literal["string", "number", "boolean"]
AuthMethod = Literal["none", "api-key", "oauth", "webhook", "bearer"]
FieldType = Literal["text", "textarea", "select", "checkbox", "number", "url"]

CATEGORIES: tuple[str, ...] = ("message", "customer", "flow", "custom")

# (key, label, condition) used whenever a decision split needs outcomes it was not given
DEFAULT_OUTCOMES: tuple[tuple[str, str, str], ...] = (
    ("outcome_yes", "Yes", "When the condition is met"),
    ("outcome_no", "No", "When the condition is not met"),
)


def _check_identifier(value: str) -> str:
    if not IDENTIFIER_RE.match(value):
        raise ValueError(
            f"'{value}' must be a valid identifier (letter first, then letters, digits or _)"
        )
    return value


Identifier = Annotated[str, AfterValidator(_check_identifier)]


class _Model(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class InArgument(_Model):
    """A value bound from the journey into the execute call."""

    name: Identifier
    type: ArgumentType = "string"
    source: Optional[str] = None  # e.g. "Contact.Attribute.EmailAddress"
    required: bool = True
    description: Optional[str] = None


class OutArgument(_Model):
    """A value returned from the execute call back into the journey."""

    name: Identifier
    type: ArgumentType = "string"
    description: str = ""


class ExternalAPI(_Model):
    """A third-party API the activity talks to."""

    name: str = Field(min_length=1)
    base_url: Optional[str] = None
    authentication: AuthMethod = "none"
    env_var_name: Optional[str] = None  # e.g. "SLACK"


class SelectOption(_Model):
    value: str
    label: str


class ConfigField(_Model):
    """A single control rendered in the configuration modal."""

    name: Identifier
    type: FieldType = "text"
    label: str = Field(min_length=1)
    placeholder: str = ""
    required: bool = False
    options: Optional[list[SelectOption]] = None  # select only
    default_value: Optional[Union[str, int, float, bool]] = None


class ConfigStep(_Model):
    """A labelled group of configuration fields."""

    label: str = Field(min_length=1)
    description: Optional[str] = None
    fields: list[ConfigField] = Field(min_length=1)


class Outcome(_Model):
    """One branch of a decision split."""

    key: str
    label: str = Field(min_length=1)
    condition: str = ""

    @field_validator("key")
    @classmethod
    def _key_is_snake_case(cls, value: str) -> str:
        if not OUTCOME_KEY_RE.match(value):
            raise ValueError(f"'{value}' must be a lowercase snake_case identifier")
        return value


class ExecutionStep(_Model):
    """Descriptive step of what the activity does at run time."""

    order: int
    action: str
    details: str = ""


class Requirements(_Model):
    """Everything the template engine needs to build an activity.

    Cross-field invariants (unique names, outcome count for decision splits)
    are enforced by ``validate_requirements``; build instances through it.
    """

    activity_name: str = Field(min_length=1, max_length=100)
    activity_description: str = ""
    category: Category = "custom"
    in_arguments: list[InArgument] = []
    out_arguments: list[OutArgument] = []
    external_apis: list[ExternalAPI] = Field(default=[], alias="externalAPIs")
    configuration_steps: list[ConfigStep] = []
    is_decision_split: bool = False
    outcomes: Optional[list[Outcome]] = None
    execution_steps: list[ExecutionStep] = []

    @property
    def config_fields(self) -> list[ConfigField]:
        """All configuration fields across steps, in declaration order."""
        return [f for step in self.configuration_steps for f in step.fields]

    @property
    def primary_api(self) -> Optional[ExternalAPI]:
        """The only external API wired into generated call logic."""
        return self.external_apis[0] if self.external_apis else None
