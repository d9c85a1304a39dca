from __future__ import annotations

from typing import Any


class ValidationError(ValueError):
    """Raised when required input fields are missing or invalid."""


def _require_non_empty_str(value: Any, field_name: str, line_no: int) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"line {line_no}: missing/invalid '{field_name}'")
    return value.strip()


def validate_resource_row(row: dict[str, Any], line_no: int) -> tuple[str, str, str]:
    category = _require_non_empty_str(row.get("category"), "category", line_no)
    title = _require_non_empty_str(row.get("title"), "title", line_no)
    content = _require_non_empty_str(row.get("content"), "content", line_no)
    return category, title, content
