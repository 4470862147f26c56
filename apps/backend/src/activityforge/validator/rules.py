"""Individual validation rules.

Each rule inspects one part of an artifact and returns its own
``ValidationResult``; rules never raise for well-formed-but-wrong input.
Code checks are conservative text/pattern matches, nothing is executed.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from .result import ValidationResult

REQUIRED_FILES: dict[str, list[str]] = {
    "node": [
        "package.json",
        "server.js",
        "public/config.json",
        "public/index.html",
        "public/customActivity.js",
    ],
    "ssjs": [
        "config.json",
        "index.html",
        "customActivity.js",
        "execute.ssjs",
    ],
}

EXPECTED_WORKFLOW_API_VERSION = "1.1"
CALLBACK_ROUTES = ("execute", "save", "publish", "validate")
LIFECYCLE_EVENTS = ("initActivity", "ready", "requestedInteraction")
SERVER_ENTRY_PATHS = ("server.js", "src/server.js", "index.js")


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def check_required_files(paths: list[str], stack: str) -> ValidationResult:
    result = ValidationResult()
    for required in REQUIRED_FILES.get(stack, REQUIRED_FILES["node"]):
        if not any(p == required or p.endswith("/" + required) for p in paths):
            result.error("MISSING_FILE", f"Required file missing: {required}", required)
    return result


def check_descriptor(
    descriptor: Any,
    is_decision_split: bool,
    expected_outcome_labels: Optional[list[str]] = None,
) -> ValidationResult:
    """Structural rules for the parsed config.json."""
    result = ValidationResult()
    if not isinstance(descriptor, dict):
        result.error("INVALID_CONFIG", "config.json is not a valid JSON object", "config.json")
        return result

    version = descriptor.get("workflowApiVersion")
    if not version:
        result.error(
            "MISSING_WORKFLOW_VERSION",
            "config.json must have workflowApiVersion",
            "workflowApiVersion",
        )
    elif version != EXPECTED_WORKFLOW_API_VERSION:
        result.warn(
            "OLD_WORKFLOW_VERSION",
            f'workflowApiVersion should be "{EXPECTED_WORKFLOW_API_VERSION}", got "{version}"',
            "workflowApiVersion",
        )

    if not descriptor.get("metaData"):
        result.error("MISSING_METADATA", "config.json must have a metaData section", "metaData")

    activity_type = descriptor.get("type")
    if is_decision_split:
        if activity_type != "RestDecision":
            result.error(
                "INVALID_TYPE_FOR_DECISION",
                f'Decision split must have type "RestDecision", got "{activity_type}"',
                "type",
            )
        outcomes = descriptor.get("outcomes")
        if not isinstance(outcomes, list) or len(outcomes) < 2:
            result.error("MISSING_OUTCOMES", "Decision split must have at least 2 outcomes", "outcomes")
        elif expected_outcome_labels:
            configured = set()
            for outcome in outcomes:
                for value in (_dig(outcome, "metaData", "label"), _dig(outcome, "key")):
                    if isinstance(value, str):
                        configured.add(value.lower())
            for expected in expected_outcome_labels:
                if expected.lower() not in configured:
                    result.warn(
                        "MISSING_EXPECTED_OUTCOME",
                        f'Expected outcome "{expected}" not found in config.json',
                        "outcomes",
                    )
    elif activity_type != "REST":
        result.warn(
            "UNEXPECTED_TYPE",
            f'Standard activity should have type "REST", got "{activity_type}"',
            "type",
        )

    if not _dig(descriptor, "arguments", "execute", "url"):
        result.error(
            "MISSING_EXECUTE_URL",
            "config.json must have arguments.execute.url",
            "arguments.execute.url",
        )
    if not _dig(descriptor, "configurationArguments", "save", "url"):
        result.warn(
            "MISSING_SAVE_URL",
            "config.json should have configurationArguments.save.url",
            "configurationArguments.save.url",
        )
    if not _dig(descriptor, "userInterfaces", "configModal", "url"):
        result.error(
            "MISSING_CONFIG_MODAL",
            "config.json must have userInterfaces.configModal.url",
            "userInterfaces.configModal.url",
        )
    if not _dig(descriptor, "lang", "en-US", "name"):
        result.warn("MISSING_LANG_NAME", "config.json should have lang.en-US.name", "lang.en-US.name")

    return result


def _has_route(code: str, name: str) -> bool:
    return re.search(rf"""['"`]/{name}['"`]""", code) is not None


def check_server_code(code: str, path: str = "server.js") -> ValidationResult:
    result = ValidationResult()
    for name in CALLBACK_ROUTES:
        if not _has_route(code, name):
            result.error(
                f"MISSING_{name.upper()}_ENDPOINT",
                f"Server must implement the POST /{name} endpoint",
                path,
            )

    if "express" not in code:
        result.error("NO_EXPRESS", "Server must use the Express framework", path)

    if not any(marker in code for marker in ("body-parser", "bodyParser", "express.json")):
        result.warn(
            "NO_BODY_PARSER",
            "Server should use body-parser or express.json to parse POST bodies",
            path,
        )

    lowered = code.lower()
    if "cors" not in lowered and "access-control-allow-origin" not in lowered:
        result.warn("NO_CORS", "Server should handle CORS for cross-origin requests", path)

    return result


def check_client_code(code: str, path: str = "public/customActivity.js") -> ValidationResult:
    result = ValidationResult()
    if "postmonger" not in code.lower():
        result.error(
            "NO_POSTMONGER",
            "Client must use Postmonger for Journey Builder communication",
            path,
        )
    for event in LIFECYCLE_EVENTS:
        if event not in code:
            result.warn("MISSING_EVENT_HANDLER", f'Client should handle the "{event}" event', path)
    if "updateActivity" not in code:
        result.warn(
            "NO_UPDATE_ACTIVITY",
            "Client should trigger updateActivity to save the configuration",
            path,
        )
    return result


def check_manifest(content: str, path: str = "package.json") -> ValidationResult:
    result = ValidationResult()
    try:
        manifest = json.loads(content)
    except json.JSONDecodeError:
        manifest = None
    if not isinstance(manifest, dict):
        result.error("INVALID_PACKAGE_JSON", "package.json is not a valid JSON object", path)
        return result

    deps: dict[str, Any] = {}
    for section in ("dependencies", "devDependencies"):
        if isinstance(manifest.get(section), dict):
            deps.update(manifest[section])
    if "express" not in deps:
        result.error("MISSING_DEPENDENCY", "package.json must include the express dependency", path)

    if not _dig(manifest, "scripts", "start"):
        result.error("NO_START_SCRIPT", "package.json must have a start script", path)

    if not manifest.get("main"):
        result.warn("NO_MAIN_ENTRY", "package.json should specify its main entry point", path)

    return result


def _mentions(code: str, name: str) -> bool:
    return re.search(rf"\b{re.escape(name)}\b", code) is not None


def check_field_usage(field_names: list[str], server_code: str, client_code: str) -> ValidationResult:
    """Advisory cross-check that configuration fields reach the code."""
    result = ValidationResult()
    for name in field_names:
        in_server = _mentions(server_code, name)
        in_client = _mentions(client_code, name)
        if not in_server and not in_client:
            result.warn("UNUSED_CONFIG_FIELD", f'Configuration field "{name}" is not used in any code', name)
        elif not in_server:
            result.warn(
                "FIELD_NOT_IN_SERVER",
                f'Configuration field "{name}" is collected by the client but never read by the server',
                name,
            )
    return result
