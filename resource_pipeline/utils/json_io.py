from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator


class JsonIoError(ValueError):
    """Raised when a JSONL line is not a JSON object."""


def iter_jsonl(path: Path) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield ``(line_no, object)`` pairs; blank lines and ``#`` comments are skipped.

    Files exported from spreadsheets often start with a BOM, hence utf-8-sig.
    """
    with path.open("r", encoding="utf-8-sig") as handle:
        for line_no, raw in enumerate(handle, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                raise JsonIoError(f"{path.name}:{line_no}: invalid JSON ({exc.msg})") from exc
            if not isinstance(payload, dict):
                raise JsonIoError(f"{path.name}:{line_no}: expected an object, got {type(payload).__name__}")
            yield line_no, payload


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
