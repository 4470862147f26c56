"""Shared skeleton for the standard and decision-split activity templates."""

from __future__ import annotations

import json
from typing import Any, Optional

from ..requirements.schema import Outcome, Requirements
from . import client, scaffolding, server
from .descriptor import build_descriptor


class ActivityTemplate:
    """Renders a complete Node.js activity from requirements.

    Subclasses choose the descriptor ``activity_type``, the declared output
    arguments and the execute route; every other file is shared.
    """

    activity_type = "REST"

    def __init__(self, requirements: Requirements):
        self.requirements = requirements

    # ------------------------------------------------------------------
    # Strategy hooks
    # ------------------------------------------------------------------

    @property
    def outcomes(self) -> Optional[list[Outcome]]:
        return None

    def out_arguments(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """(descriptor outArguments, schema outArguments)."""
        raise NotImplementedError

    def execute_route(self) -> str:
        raise NotImplementedError

    def execute_fallback(self) -> Optional[dict[str, Any]]:
        """Body the server answers on /execute when an error escapes the route."""
        return None

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def descriptor(self) -> dict[str, Any]:
        out_arguments, out_schema = self.out_arguments()
        return build_descriptor(
            self.requirements,
            activity_type=self.activity_type,
            out_arguments=out_arguments,
            out_schema=out_schema,
            outcomes=self.outcomes,
        )

    def render(self) -> dict[str, str]:
        """Return path -> content for every file of the activity, in a fixed order."""
        req = self.requirements
        return {
            "package.json": scaffolding.package_json(req),
            "server.js": server.server_entry(req, self.execute_fallback()),
            "routes/execute.js": self.execute_route(),
            "routes/save.js": server.lifecycle_route("save"),
            "routes/publish.js": server.lifecycle_route("publish"),
            "routes/validate.js": server.lifecycle_route("validate"),
            "public/config.json": json.dumps(self.descriptor(), indent=2) + "\n",
            "public/index.html": client.index_html(req),
            "public/customActivity.js": client.custom_activity_js(req),
            ".env.example": scaffolding.env_example(req),
            "README.md": scaffolding.readme(req, self.outcomes),
            ".gitignore": scaffolding.GITIGNORE,
        }
