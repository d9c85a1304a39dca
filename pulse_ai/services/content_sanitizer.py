"""Turn model output into plain text an employee can read.

Models do not always honour "plain text only": they wrap answers in code
fences or reply with JSON. ``sanitize_content`` undoes both.
"""

from __future__ import annotations

import json
from typing import Any

_FENCE = "```"
_TEXT_FIELDS = ("content", "text", "message")


def _strip_code_fence(text: str) -> str:
    if not text.startswith(_FENCE):
        return text
    first_newline = text.find("\n")
    if first_newline != -1:
        text = text[first_newline + 1:]
    if text.endswith(_FENCE):
        text = text[: -len(_FENCE)]
    return text.strip()


def _looks_like_json(text: str) -> bool:
    return (text.startswith("{") and text.endswith("}")) or (
        text.startswith("[") and text.endswith("]")
    )


def _is_script_line(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and bool(item.get("speaker") or item.get("role"))
        and bool(item.get("line") or item.get("text"))
    )


def _flatten_script(items: list) -> str:
    lines = []
    for item in items:
        if not isinstance(item, dict):
            continue
        speaker = item.get("speaker") or item.get("role") or "Speaker"
        line = item.get("line") or item.get("text") or ""
        rendered = f"{speaker}: {line}".strip()
        if rendered:
            lines.append(rendered)
    return "\n".join(lines)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _outline(value: Any, depth: int = 0) -> list[str]:
    indent = "  " * depth
    lines: list[str] = []
    if isinstance(value, dict):
        for key, item in value.items():
            if item is None or item == "":
                continue
            if isinstance(item, (dict, list)):
                nested = _outline(item, depth + 1)
                if nested:
                    lines.append(f"{indent}{key}:")
                    lines.extend(nested)
            else:
                lines.append(f"{indent}{key}: {_scalar(item)}")
    elif isinstance(value, list):
        for item in value:
            if item is None:
                continue
            if isinstance(item, (dict, list)):
                nested = _outline(item, depth + 1)
                if nested:
                    lines.append(f"{indent}- {nested[0].lstrip()}")
                    lines.extend(nested[1:])
            else:
                lines.append(f"{indent}- {_scalar(item)}")
    elif value is not None:
        lines.append(f"{indent}{_scalar(value)}")
    return lines


def _from_json(obj: Any) -> str | None:
    if isinstance(obj, dict):
        for field in _TEXT_FIELDS:
            candidate = obj.get(field)
            if isinstance(candidate, (str, int, float)) and not isinstance(candidate, bool):
                candidate = str(candidate).strip()
                if candidate:
                    return candidate
        script = obj.get("script")
        if isinstance(script, list):
            flattened = _flatten_script(script)
            if flattened:
                return flattened
    if isinstance(obj, list) and obj and all(_is_script_line(item) for item in obj):
        flattened = _flatten_script(obj)
        if flattened:
            return flattened
    outlined = "\n".join(_outline(obj)).strip()
    return outlined or None


def sanitize_content(raw: Any) -> str:
    text = _strip_code_fence(str(raw if raw is not None else "").strip())
    if not _looks_like_json(text):
        return text
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return text
    return _from_json(obj) or text
