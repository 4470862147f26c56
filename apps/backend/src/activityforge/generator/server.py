"""Server-side code: the Express entry point and one module per callback route."""

from __future__ import annotations

from typing import Optional

from ..requirements.schema import ExternalAPI, Requirements
from .text import env_prefix, indent, js_comment, js_literal

API_TIMEOUT_MS = 20000

LIFECYCLE_ROUTES: dict[str, str] = {
    "save": "called when the activity configuration is saved",
    "publish": "called when the journey is published",
    "validate": "called when Journey Builder validates the activity",
}


def server_entry(req: Requirements, execute_fallback: Optional[dict] = None) -> str:
    """server.js: middleware, route mounting, health check and error handling.

    ``execute_fallback`` is the JSON body answered with HTTP 200 when an error
    escapes into the middleware on ``/execute``; ``None`` keeps the 500 response.
    """
    if execute_fallback is not None:
        fallback = (
            "  if (req.path === '/execute') {\n"
            f"    return res.status(200).json({js_literal(execute_fallback)});\n"
            "  }\n"
        )
    else:
        fallback = ""

    return f"""/**
 * {js_comment(req.activity_name)} - Journey Builder Custom Activity
 * {js_comment(req.activity_description)}
 */

'use strict';

require('dotenv').config();
const express = require('express');
const bodyParser = require('body-parser');
const cors = require('cors');
const path = require('path');

const ACTIVITY_NAME = {js_literal(req.activity_name)};

const app = express();
const PORT = process.env.PORT || 3000;

// Middleware
app.use(cors());
app.use(bodyParser.json());
app.use(bodyParser.urlencoded({{ extended: true }}));
app.use(express.static(path.join(__dirname, 'public')));

// Journey Builder callbacks
app.use('/', require('./routes/execute'));
app.use('/', require('./routes/save'));
app.use('/', require('./routes/publish'));
app.use('/', require('./routes/validate'));

app.get('/health', (req, res) => {{
  res.json({{
    status: 'ok',
    activity: ACTIVITY_NAME,
    timestamp: new Date().toISOString()
  }});
}});

// Error handling
app.use((err, req, res, next) => {{
  console.error('[ERROR]', err);
{fallback}  return res.status(500).json({{
    success: false,
    error: err.message || 'Internal server error'
  }});
}});

if (require.main === module) {{
  app.listen(PORT, () => {{
    console.log(`${{ACTIVITY_NAME}} custom activity listening on port ${{PORT}}`);
  }});
}}

module.exports = app;
"""


def lifecycle_route(name: str) -> str:
    """routes/<name>.js for save/publish/validate: log the payload and acknowledge."""
    tag = name.upper()
    return f"""/**
 * {name.capitalize()} endpoint - {LIFECYCLE_ROUTES[name]}
 */

'use strict';

const express = require('express');

const router = express.Router();

router.post('/{name}', (req, res) => {{
  console.log('[{tag}] Payload:', JSON.stringify(req.body));
  return res.status(200).json({{ success: true }});
}});

module.exports = router;
"""


def payload_fields(req: Requirements) -> list[str]:
    """Argument and configuration field names forwarded to the external API."""
    names: list[str] = []
    for name in [a.name for a in req.in_arguments] + [f.name for f in req.config_fields]:
        if name not in names:
            names.append(name)
    return names


def route_preamble(req: Requirements, title: str) -> str:
    """Module header shared by both execute strategies: imports and helpers."""
    required = [a.name for a in req.in_arguments if a.required]
    axios = "const axios = require('axios');\n" if req.primary_api else ""
    return f"""/**
 * Execute endpoint for {js_comment(req.activity_name)}{title}
 * Called by Journey Builder once per contact
 */

'use strict';

const express = require('express');
{axios}
const router = express.Router();

const REQUIRED_ARGUMENTS = {js_literal(required)};
const PAYLOAD_FIELDS = {js_literal(payload_fields(req))};
const API_TIMEOUT_MS = {API_TIMEOUT_MS};

function isMissing(value) {{
  return value === undefined || value === null || value === '';
}}

function asObject(value) {{
  return value !== null && typeof value === 'object' ? value : {{}};
}}

function buildPayload(args) {{
  const payload = {{}};
  PAYLOAD_FIELDS.forEach((name) => {{
    if (args[name] !== undefined) {{
      payload[name] = args[name];
    }}
  }});
  return payload;
}}
"""


def request_context() -> str:
    """Statements unpacking the execute request body into ``args``."""
    return """const body = req.body || {};
const { journeyId, activityId, activityInstanceId } = body;
const args = (body.inArguments || [])[0] || {};

console.log(`[EXECUTE] Journey: ${journeyId}, Activity: ${activityId}, Instance: ${activityInstanceId}`);
console.log('[EXECUTE] Input arguments:', JSON.stringify(args));

const missing = REQUIRED_ARGUMENTS.filter((name) => isMissing(args[name]));"""


def api_call(api: Optional[ExternalAPI]) -> str:
    """Statements calling the first configured API and assigning ``apiResult``.

    Secrets are only ever read from the environment. Without an API the
    block is empty and ``apiResult`` keeps its initial value.
    """
    if api is None:
        return ""

    prefix = env_prefix(api)
    url_var = f"{prefix}_URL"
    key_var = f"{prefix}_KEY"

    if api.authentication == "webhook":
        return f"""// {js_comment(api.name)} webhook
const webhookUrl = process.env.{url_var};
if (!webhookUrl) {{
  throw new Error({js_literal(f"{url_var} is not configured")});
}}
const response = await axios.post(webhookUrl, buildPayload(args), {{ timeout: API_TIMEOUT_MS }});
apiResult = asObject(response.data);"""

    if api.authentication == "none":
        return f"""// {js_comment(api.name)} API
const apiUrl = process.env.{url_var} || {js_literal(api.base_url or "")};
if (!apiUrl) {{
  throw new Error({js_literal(f"{url_var} is not configured")});
}}
const response = await axios.post(apiUrl, buildPayload(args), {{ timeout: API_TIMEOUT_MS }});
apiResult = asObject(response.data);"""

    scheme = "Api-Key" if api.authentication == "api-key" else "Bearer"
    return f"""// {js_comment(api.name)} API ({api.authentication})
const apiUrl = process.env.{url_var} || {js_literal(api.base_url or "")};
const apiKey = process.env.{key_var};
if (!apiUrl || !apiKey) {{
  throw new Error({js_literal(f"{url_var} and {key_var} must be configured")});
}}
const response = await axios.post(apiUrl, buildPayload(args), {{
  timeout: API_TIMEOUT_MS,
  headers: {{
    Authorization: `{scheme} ${{apiKey}}`,
    'Content-Type': 'application/json'
  }}
}});
apiResult = asObject(response.data);"""


def block(code: str, spaces: int) -> str:
    """Indent a statement block, dropping it entirely when empty."""
    return indent(code, spaces) + "\n" if code else ""
