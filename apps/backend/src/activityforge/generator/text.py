"""Escaping and naming helpers shared by the file generators."""

from __future__ import annotations

import html
import json
import re
from typing import Any

from ..requirements.schema import ExternalAPI


def js_literal(value: Any) -> str:
    """Render ``value`` as a JavaScript literal (JSON is a JS subset once ASCII-escaped)."""
    return json.dumps(value, ensure_ascii=True)


def js_comment(text: str) -> str:
    """Flatten ``text`` so it is safe inside a // or /* */ comment."""
    return " ".join(text.replace("*/", "* /").split())


def html_text(text: str) -> str:
    return html.escape(text, quote=True)


def slugify(name: str, fallback: str = "custom-activity") -> str:
    """Lowercase, dash-separated package name."""
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or fallback


def env_prefix(api: ExternalAPI) -> str:
    """UPPER_SNAKE prefix for an API's environment variables (``<PREFIX>_URL`` etc.)."""
    raw = api.env_var_name or api.name
    prefix = re.sub(r"[^A-Z0-9]+", "_", raw.upper()).strip("_")
    if not prefix:
        return "API"
    if prefix[0].isdigit():
        return f"API_{prefix}"
    return prefix


def binding_expression(source: str | None, name: str) -> str:
    """Journey Builder data binding for an in-argument, e.g. ``{{Contact.Attribute.email}}``."""
    expr = (source or "").strip()
    if expr.startswith("{{") and expr.endswith("}}"):
        expr = expr[2:-2].strip()
    if not expr:
        expr = f"Contact.Attribute.{name}"
    return "{{" + expr + "}}"


def indent(block: str, spaces: int) -> str:
    pad = " " * spaces
    return "\n".join(pad + line if line else line for line in block.split("\n"))
