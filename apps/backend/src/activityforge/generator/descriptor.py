"""Builds the config.json descriptor Journey Builder uses to register an activity."""

from __future__ import annotations

from typing import Any, Optional

from ..requirements.schema import Outcome, Requirements
from .text import binding_expression

WORKFLOW_API_VERSION = "1.1"
BASE_URL = "{{BASE_URL}}"  # substituted by deployment tooling, never here
ICON_PATH = "images/icon.png"

EXECUTE_TIMEOUT_MS = 90000
EXECUTE_RETRY_COUNT = 1
EXECUTE_RETRY_DELAY_MS = 1000
MODAL_HEIGHT = 600
MODAL_WIDTH = 800

_DATA_TYPES = {"string": "Text", "number": "Number", "boolean": "Boolean"}


def data_type(arg_type: str) -> str:
    return _DATA_TYPES.get(arg_type, "Text")


def build_descriptor(
    req: Requirements,
    *,
    activity_type: str,
    out_arguments: list[dict[str, Any]],
    out_schema: list[dict[str, Any]],
    outcomes: Optional[list[Outcome]] = None,
) -> dict[str, Any]:
    """Return the descriptor structure, key order matching the platform's documentation."""
    descriptor: dict[str, Any] = {
        "workflowApiVersion": WORKFLOW_API_VERSION,
        "metaData": {
            "icon": ICON_PATH,
            "category": req.category,
            "isConfigured": True,
        },
        "type": activity_type,
        "lang": {
            "en-US": {
                "name": req.activity_name,
                "description": req.activity_description or f"Custom Activity: {req.activity_name}",
            }
        },
        "arguments": {
            "execute": {
                "inArguments": [
                    {arg.name: binding_expression(arg.source, arg.name)} for arg in req.in_arguments
                ],
                "outArguments": out_arguments,
                "timeout": EXECUTE_TIMEOUT_MS,
                "retryCount": EXECUTE_RETRY_COUNT,
                "retryDelay": EXECUTE_RETRY_DELAY_MS,
                "url": f"{BASE_URL}/execute",
            }
        },
        "configurationArguments": {
            "save": {"url": f"{BASE_URL}/save"},
            "publish": {"url": f"{BASE_URL}/publish"},
            "validate": {"url": f"{BASE_URL}/validate"},
        },
        "userInterfaces": {
            "configModal": {
                "height": MODAL_HEIGHT,
                "width": MODAL_WIDTH,
                "url": f"{BASE_URL}/index.html",
            }
        },
        "schema": {
            "arguments": {
                "execute": {
                    "inArguments": [
                        {
                            arg.name: {
                                "dataType": data_type(arg.type),
                                "isNullable": not arg.required,
                                "direction": "in",
                            }
                        }
                        for arg in req.in_arguments
                    ],
                    "outArguments": out_schema,
                }
            }
        },
    }

    if outcomes is not None:
        descriptor["outcomes"] = [
            {
                "key": outcome.key,
                "metaData": {"label": outcome.label},
                "arguments": {"branchResult": outcome.key},
            }
            for outcome in outcomes
        ]

    return descriptor
