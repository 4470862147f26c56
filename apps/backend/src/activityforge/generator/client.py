"""Configuration modal: index.html form plus the Postmonger client script."""

from __future__ import annotations

from ..requirements.schema import ConfigField, ConfigStep, Requirements
from .text import html_text, js_comment, js_literal

POSTMONGER_CDN = "https://cdn.jsdelivr.net/npm/postmonger@1.1.0/postmonger.min.js"

_INPUT_TYPES = {"text": "text", "number": "number", "url": "url"}

_STYLE = """    * { box-sizing: border-box; margin: 0; padding: 0; }
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #f5f7fa; color: #333; line-height: 1.6; }
    .container { max-width: 600px; margin: 0 auto; padding: 24px; }
    .header { margin-bottom: 24px; }
    .header h1 { font-size: 24px; font-weight: 600; color: #1a1a1a; margin-bottom: 8px; }
    .header p { color: #666; font-size: 14px; }
    fieldset { border: none; margin-bottom: 16px; }
    legend { font-size: 16px; font-weight: 600; margin-bottom: 12px; }
    .step-description { color: #666; font-size: 13px; margin-bottom: 12px; }
    .form-group { margin-bottom: 20px; }
    .form-group label { display: block; font-size: 14px; font-weight: 500; color: #374151; margin-bottom: 6px; }
    .form-group input, .form-group textarea, .form-group select { width: 100%; padding: 10px 12px; border: 1px solid #d1d5db; border-radius: 6px; font-size: 14px; }
    .form-group textarea { min-height: 100px; resize: vertical; }
    .form-group.checkbox label { display: flex; align-items: center; gap: 8px; cursor: pointer; }
    .form-group.checkbox input { width: auto; }
    .error-message { background: #fef2f2; border: 1px solid #fecaca; color: #dc2626; padding: 12px; border-radius: 6px; margin-bottom: 20px; font-size: 14px; display: none; }"""


def _label(field: ConfigField) -> str:
    marker = " *" if field.required else ""
    return f'<label for="{html_text(field.name)}">{html_text(field.label)}{marker}</label>'


def _control(field: ConfigField) -> str:
    """One form group; the control type follows the field type."""
    name = html_text(field.name)
    required = " required" if field.required else ""
    default = "" if field.default_value is None else str(field.default_value)

    if field.type == "checkbox":
        checked = " checked" if field.default_value in (True, "true") else ""
        return (
            '        <div class="form-group checkbox">\n'
            f'          <label><input type="checkbox" id="{name}" name="{name}"{checked} /> '
            f"{html_text(field.label)}</label>\n"
            "        </div>"
        )

    if field.type == "select":
        options = ['            <option value="">Select...</option>']
        for opt in field.options or []:
            selected = " selected" if default and opt.value == default else ""
            options.append(
                f'            <option value="{html_text(opt.value)}"{selected}>{html_text(opt.label)}</option>'
            )
        return (
            '        <div class="form-group">\n'
            f"          {_label(field)}\n"
            f'          <select id="{name}" name="{name}"{required}>\n'
            + "\n".join(options)
            + "\n          </select>\n"
            "        </div>"
        )

    placeholder = html_text(field.placeholder)
    if field.type == "textarea":
        control = (
            f'<textarea id="{name}" name="{name}" placeholder="{placeholder}"{required}>'
            f"{html_text(default)}</textarea>"
        )
    else:
        value = f' value="{html_text(default)}"' if default else ""
        control = (
            f'<input type="{_INPUT_TYPES[field.type]}" id="{name}" name="{name}" '
            f'placeholder="{placeholder}"{value}{required} />'
        )
    return (
        '        <div class="form-group">\n'
        f"          {_label(field)}\n"
        f"          {control}\n"
        "        </div>"
    )


def _step(step: ConfigStep) -> str:
    parts = ["      <fieldset>", f"        <legend>{html_text(step.label)}</legend>"]
    if step.description:
        parts.append(f'        <p class="step-description">{html_text(step.description)}</p>')
    parts.extend(_control(field) for field in step.fields)
    parts.append("      </fieldset>")
    return "\n".join(parts)


def index_html(req: Requirements) -> str:
    """Configuration form with one control per configured field."""
    if req.configuration_steps:
        form = "\n".join(_step(step) for step in req.configuration_steps)
    else:
        form = '      <p class="step-description">This activity needs no configuration.</p>'

    title = html_text(req.activity_name)
    intro = html_text(req.activity_description or "Configure your custom activity settings below.")
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
{_STYLE}
  </style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>{title}</h1>
      <p>{intro}</p>
    </div>
    <div id="error-message" class="error-message"></div>
    <form id="config-form">
{form}
    </form>
  </div>
  <script src="{POSTMONGER_CDN}"></script>
  <script src="customActivity.js"></script>
</body>
</html>
"""


def _field_specs(req: Requirements) -> list[dict]:
    specs = []
    for field in req.config_fields:
        spec = {
            "name": field.name,
            "type": field.type,
            "label": field.label,
            "required": field.required,
        }
        if field.default_value is not None:
            spec["defaultValue"] = field.default_value
        specs.append(spec)
    return specs


def custom_activity_js(req: Requirements) -> str:
    """Postmonger client: populate, validate, serialize and save the configuration."""
    fields = js_literal(_field_specs(req))
    return f"""/**
 * {js_comment(req.activity_name)} - configuration modal client
 * Talks to Journey Builder through Postmonger
 */

'use strict';

var FIELDS = {fields};

var connection = new Postmonger.Session();
var payload = {{}};
var savedArguments = {{}};

document.addEventListener('DOMContentLoaded', function () {{
  connection.trigger('ready');
  connection.trigger('requestInteraction');
}});

connection.on('initActivity', function (data) {{
  if (data) {{
    payload = data;
  }}

  // Merge every inArguments entry so data bindings survive the save
  var execute = (payload.arguments || {{}}).execute || {{}};
  savedArguments = {{}};
  (execute.inArguments || []).forEach(function (entry) {{
    Object.keys(entry || {{}}).forEach(function (key) {{
      savedArguments[key] = entry[key];
    }});
  }});

  FIELDS.forEach(function (field) {{
    var value = savedArguments[field.name];
    if (value === undefined || value === null) {{
      value = field.defaultValue;
    }}
    writeField(field, value);
  }});
}});

connection.on('requestedInteraction', function (interaction) {{
  console.log('[INTERACTION] Requested:', interaction);
}});

connection.on('clickedNext', function () {{
  var missing = FIELDS.filter(function (field) {{
    return field.required && isEmpty(readField(field));
  }});
  if (missing.length > 0) {{
    showError(missing[0].label + ' is required');
    connection.trigger('ready');
    return;
  }}
  hideError();

  var args = {{}};
  Object.keys(savedArguments).forEach(function (key) {{
    args[key] = savedArguments[key];
  }});
  FIELDS.forEach(function (field) {{
    args[field.name] = readField(field);
  }});

  payload.arguments = payload.arguments || {{}};
  payload.arguments.execute = payload.arguments.execute || {{}};
  payload.arguments.execute.inArguments = [args];

  payload.metaData = payload.metaData || {{}};
  payload.metaData.isConfigured = true;

  connection.trigger('updateActivity', payload);
}});

connection.on('clickedBack', function () {{
  connection.trigger('prevStep');
}});

connection.on('gotoStep', function (step) {{
  console.log('[GOTO] Step:', step);
}});

function readField(field) {{
  var el = document.getElementById(field.name);
  if (!el) {{
    return undefined;
  }}
  if (field.type === 'checkbox') {{
    return el.checked;
  }}
  if (field.type === 'number' && el.value !== '') {{
    return Number(el.value);
  }}
  return el.value;
}}

function writeField(field, value) {{
  var el = document.getElementById(field.name);
  if (!el || value === undefined || value === null) {{
    return;
  }}
  if (field.type === 'checkbox') {{
    el.checked = value === true || value === 'true';
  }} else {{
    el.value = value;
  }}
}}

function isEmpty(value) {{
  return value === undefined || value === null || value === '' || value === false;
}}

function showError(message) {{
  var el = document.getElementById('error-message');
  if (el) {{
    el.textContent = message;
    el.style.display = 'block';
  }}
}}

function hideError() {{
  var el = document.getElementById('error-message');
  if (el) {{
    el.style.display = 'none';
  }}
}}
"""
