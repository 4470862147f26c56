"""System and user prompts for the external generation service."""

from __future__ import annotations

import json
from typing import Optional

from pydantic import BaseModel

from ..requirements.schema import Requirements

ACTIVITY_RULES = """\
## Journey Builder Custom Activity Rules (MANDATORY)

You MUST follow these rules exactly. Violations cause the activity to fail.

### config.json
1. workflowApiVersion MUST be "1.1"
2. type MUST be "REST" for standard activities or "RestDecision" for decision splits
3. All URLs MUST use the {{BASE_URL}} placeholder
4. arguments.execute.inArguments MUST use Journey Builder binding syntax: \
{{Contact.Attribute.FieldName}} or {{Event.EventName.FieldName}}
5. outcomes are REQUIRED for RestDecision and MUST contain at least 2 entries
6. Each outcome MUST have: key (lowercase_snake_case), metaData.label and arguments.branchResult

### Server (Node.js)
1. The Express server MUST implement POST /execute, /save, /publish and /validate
2. /execute MUST return JSON with the output arguments or { branchResult }
3. For RestDecision, /execute MUST return { branchResult: "<outcome_key>" } and fall back \
to the first outcome on any error
4. NEVER hardcode API keys or webhook URLs - read them from environment variables

### Client (customActivity.js)
1. MUST use Postmonger for Journey Builder communication
2. MUST handle initActivity, clickedNext and clickedBack
3. MUST call connection.trigger('updateActivity', payload) to save
4. MUST set metaData.isConfigured = true when configuration is complete

### DO NOT
- Invent field names that are not in the requirements
- Hardcode credentials
- Return HTTP errors from /execute of a decision split
"""

REQUIREMENTS_SCHEMA = """\
## Required Output Schema

Return a JSON object with this EXACT structure:

```json
{
  "activityName": "string (max 100 chars)",
  "activityDescription": "string",
  "category": "message | customer | flow | custom",
  "inArguments": [
    {"name": "identifier", "type": "string | number | boolean",
     "source": "Contact.Attribute.FieldName", "required": true, "description": "string"}
  ],
  "outArguments": [
    {"name": "identifier", "type": "string | number | boolean", "description": "string"}
  ],
  "externalAPIs": [
    {"name": "string", "baseUrl": "string (optional)",
     "authentication": "none | api-key | oauth | webhook | bearer",
     "envVarName": "UPPERCASE_PREFIX"}
  ],
  "configurationSteps": [
    {"label": "string", "description": "string (optional)",
     "fields": [
       {"name": "identifier", "type": "text | textarea | select | checkbox | number | url",
        "label": "string", "placeholder": "string", "required": false,
        "options": [{"value": "string", "label": "string"}]}
     ]}
  ],
  "isDecisionSplit": false,
  "outcomes": [
    {"key": "lowercase_snake_case", "label": "Human Readable Label",
     "condition": "When this outcome applies"}
  ],
  "executionSteps": [
    {"order": 1, "action": "string", "details": "string"}
  ]
}
```

Identifiers match ^[a-zA-Z][a-zA-Z0-9_]*$. `outcomes` is required (at least 2) when \
isDecisionSplit is true; `options` only appears on select fields.
"""


class Prompt(BaseModel):
    """A system/user message pair for one generation request."""

    system: str
    user: str

    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def build_extraction_prompt(description: str, activity_name: Optional[str] = None) -> Prompt:
    """Prompt that turns a free-text description into a requirements object."""
    system = (
        "You are an expert Salesforce Marketing Cloud Custom Activity architect.\n"
        "Analyze the user's description and extract precise, structured requirements.\n\n"
        f"{ACTIVITY_RULES}\n{REQUIREMENTS_SCHEMA}\n"
        "## Critical Instructions\n"
        "- Return ONLY valid JSON, no markdown, no explanations\n"
        "- Use the exact field names and types of the schema\n"
        "- If the user mentions a decision, split or multiple paths, set isDecisionSplit "
        "to true and define at least 2 outcomes\n"
        "- Every configuration field shown in the UI must be saved to the payload\n"
        "- Configuration field names are camelCase identifiers"
    )

    user = f"<user_request>\n{description}\n</user_request>"
    if activity_name:
        user += f"\n\nSuggested activity name: {activity_name}"
    user += "\n\nReturn ONLY the structured requirements JSON."
    return Prompt(system=system, user=user)


def _render_files(files: dict[str, str]) -> str:
    return "\n\n".join(f"### {path}\n```\n{content}\n```" for path, content in files.items())


def build_customization_prompt(
    requirements: Requirements,
    stack: str,
    files: dict[str, str],
) -> Prompt:
    """Prompt asking the service to customize template files, not write them from scratch."""
    system = (
        "You are an expert Journey Builder Custom Activity developer.\n"
        "You will MODIFY the provided template based on the requirements. Do NOT start from scratch.\n\n"
        f"{ACTIVITY_RULES}\n"
        "## Task\n"
        "1. Use the provided template files as the base\n"
        "2. Modify ONLY the parts that need customization (business logic, decision conditions)\n"
        "3. Keep all boilerplate, routes, middleware and file paths intact\n"
        "4. Return ONLY the files you changed\n\n"
        "## Return Format\n"
        "A JSON object whose keys are file paths (e.g. \"routes/execute.js\") and whose values "
        "are the complete file contents as strings. No markdown, no explanations."
    )
    user = (
        "Requirements:\n"
        f"{requirements.model_dump_json(by_alias=True, indent=2)}\n\n"
        f"Stack: {stack}\n\n"
        "Base template files:\n\n"
        f"{_render_files(files)}\n\n"
        "Modify the template to implement these requirements and return the changed files as JSON."
    )
    return Prompt(system=system, user=user)


def build_review_prompt(files: dict[str, str], requirements: Requirements) -> Prompt:
    """Prompt asking the service for a second-opinion review of a generated activity."""
    system = (
        "You review Journey Builder custom activities for correctness.\n\n"
        f"{ACTIVITY_RULES}"
    )
    user = (
        "Requirements:\n"
        f"{requirements.model_dump_json(by_alias=True, indent=2)}\n\n"
        "Generated files:\n"
        f"{json.dumps(files, indent=2)}\n\n"
        "Check that:\n"
        "1. All required endpoints are implemented\n"
        "2. All inArguments are used by the execute logic\n"
        "3. All configuration fields are present in the UI\n"
        "4. config.json is structurally valid\n"
        "5. Outcomes match the requirements for decision splits\n\n"
        'Return JSON: {"isValid": true|false, "errors": ["..."], "warnings": ["..."]}'
    )
    return Prompt(system=system, user=user)
