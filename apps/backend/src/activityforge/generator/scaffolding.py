"""Static project files: package.json, README.md, .env.example and .gitignore."""

from __future__ import annotations

import json
from typing import Optional

from ..requirements.schema import Outcome, Requirements
from .text import env_prefix, slugify

GITIGNORE = "node_modules/\n.env\n.DS_Store\n*.log\n"

DEPENDENCIES = {
    "axios": "^1.6.0",
    "body-parser": "^1.20.2",
    "cors": "^2.8.5",
    "dotenv": "^16.3.1",
    "express": "^4.18.2",
}


def package_json(req: Requirements) -> str:
    manifest = {
        "name": slugify(req.activity_name),
        "version": "1.0.0",
        "description": req.activity_description or f"Custom Activity: {req.activity_name}",
        "main": "server.js",
        "scripts": {
            "start": "node server.js",
            "dev": "nodemon server.js",
            "test": 'echo "No tests configured" && exit 0',
        },
        "dependencies": dict(DEPENDENCIES),
        "devDependencies": {"nodemon": "^3.0.2"},
        "engines": {"node": ">=18.0.0"},
    }
    return json.dumps(manifest, indent=2) + "\n"


def env_variables(req: Requirements) -> list[tuple[str, str]]:
    """(name, example value) for every environment variable the activity reads.

    APIs whose prefixes collide share one set of variables; the first API wins.
    """
    variables: dict[str, str] = {}
    for api in req.external_apis:
        prefix = env_prefix(api)
        if api.authentication == "webhook":
            variables.setdefault(f"{prefix}_URL", "https://your-webhook-url.com/hook")
            continue
        variables.setdefault(f"{prefix}_URL", api.base_url or "https://api.example.com")
        if api.authentication != "none":
            variables.setdefault(f"{prefix}_KEY", "your_api_key_here")
    return list(variables.items())


def env_example(req: Requirements) -> str:
    lines = [
        "# Server Configuration",
        "PORT=3000",
        "NODE_ENV=development",
    ]
    variables = env_variables(req)
    if variables:
        lines += ["", "# External API Configuration"]
        lines += [f"{name}={value}" for name, value in variables]
    return "\n".join(lines) + "\n"


def _bullets(items: list[str], empty: str = "None configured") -> str:
    return "\n".join(items) if items else empty


def readme(req: Requirements, outcomes: Optional[list[Outcome]] = None) -> str:
    """Human-readable setup guide; also records the APIs not wired into code."""
    in_args = [
        f"- `{a.name}` ({a.type}){' - Required' if a.required else ''}"
        + (f": {a.description}" if a.description else "")
        for a in req.in_arguments
    ]
    out_args = [
        f"- `{a.name}` ({a.type})" + (f": {a.description}" if a.description else "")
        for a in req.out_arguments
    ]
    fields = [
        f"- `{f.name}` ({f.type}) {f.label}{' - Required' if f.required else ''}"
        for f in req.config_fields
    ]

    apis = []
    for index, api in enumerate(req.external_apis):
        role = "called from `/execute`" if index == 0 else "informational, not wired into code"
        apis.append(
            f"- **{api.name}** ({api.authentication}, env prefix `{env_prefix(api)}`): {role}"
            + (f" - {api.base_url}" if api.base_url else "")
        )

    env_lines = [f"- `{name}`" for name, _ in env_variables(req)]
    steps = [f"{s.order}. **{s.action}** - {s.details}" for s in sorted(req.execution_steps, key=lambda s: s.order)]

    sections = [
        f"# {req.activity_name}",
        "",
        req.activity_description or "A Journey Builder custom activity.",
        "",
        "## Quick Start",
        "",
        "```bash",
        "npm install",
        "cp .env.example .env",
        "npm start",
        "```",
        "",
        "The server listens on `http://localhost:3000` unless `PORT` is set.",
        "",
        "## Endpoints",
        "",
        "| Endpoint | Method | Description |",
        "|----------|--------|-------------|",
        "| `/execute` | POST | Called for each contact |",
        "| `/save` | POST | Called when the configuration is saved |",
        "| `/publish` | POST | Called when the journey is published |",
        "| `/validate` | POST | Called when the activity is validated |",
        "| `/health` | GET | Health check |",
        "",
        "## Input Arguments",
        "",
        _bullets(in_args),
        "",
        "## Output Arguments",
        "",
        _bullets(out_args) if outcomes is None else "- `branchResult`: key of the selected outcome",
        "",
    ]

    if outcomes is not None:
        sections += ["## Decision Outcomes", ""]
        for index, outcome in enumerate(outcomes):
            default = " (default)" if index == 0 else ""
            sections.append(
                f"- **{outcome.label}** (`{outcome.key}`){default}: "
                f"{outcome.condition or 'No condition specified'}"
            )
        sections += [
            "",
            "Implement the conditions in `resolveOutcome` in `routes/execute.js`. Errors,",
            "missing arguments and unknown results always resolve to the default outcome.",
            "",
        ]

    sections += [
        "## Configuration Fields",
        "",
        _bullets(fields),
        "",
        "## External APIs",
        "",
        _bullets(apis),
        "",
        "## Environment Variables",
        "",
        _bullets(env_lines, "Only `PORT` and `NODE_ENV`."),
        "",
    ]

    if steps:
        sections += ["## Execution Steps", "", *steps, ""]

    sections += [
        "## Journey Builder Setup",
        "",
        "1. Deploy the server to any Node.js host (Vercel, Railway, Render, ...).",
        "2. Replace every `{{BASE_URL}}` in `public/config.json` with the deployed URL.",
        "3. Register the activity in Marketing Cloud and add it to a journey.",
        "",
        "## Files",
        "",
        "```",
        "├── package.json",
        "├── server.js              # Express server",
        "├── routes/",
        "│   ├── execute.js         # Execute endpoint",
        "│   ├── save.js",
        "│   ├── publish.js",
        "│   └── validate.js",
        "├── public/",
        "│   ├── config.json        # Activity descriptor",
        "│   ├── index.html         # Configuration UI",
        "│   └── customActivity.js  # Postmonger client",
        "└── .env.example",
        "```",
        "",
    ]
    return "\n".join(sections)
