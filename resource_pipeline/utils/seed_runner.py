from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pulse_ai.core.errors import ResourceStoreError
from pulse_ai.services.resource_store import ResourceStore
from resource_pipeline.utils.json_io import JsonIoError, iter_jsonl
from resource_pipeline.utils.validators import ValidationError, validate_resource_row

logger = logging.getLogger(__name__)


def _build_failure_example(
    *, line_no: int, title: str | None, error: str
) -> dict[str, Any]:
    return {"line": line_no, "title": title, "error": error}


async def run_seeding(*, input_path: Path, store: ResourceStore) -> dict[str, Any]:
    """Upsert every valid JSONL row into the store by title."""
    input_rows = 0
    created_rows = 0
    updated_rows = 0
    failed_rows = 0
    failed_examples: list[dict[str, Any]] = []

    try:
        for line_no, row in iter_jsonl(input_path):
            input_rows += 1
            raw_title = row.get("title")
            title = raw_title if isinstance(raw_title, str) else None
            try:
                category, title, content = validate_resource_row(row, line_no)
                _, created = await store.upsert_by_title(category, title, content)
            except (ValidationError, ResourceStoreError) as exc:
                failed_rows += 1
                failed_examples.append(
                    _build_failure_example(line_no=line_no, title=title, error=str(exc))
                )
                continue

            if created:
                created_rows += 1
            else:
                updated_rows += 1
            logger.info("[Seed] line=%d title=%s created=%s", line_no, title, created)
    except JsonIoError as exc:
        raise RuntimeError(f"JSONL read failed: {exc}") from exc

    return {
        "input_rows": input_rows,
        "created_rows": created_rows,
        "updated_rows": updated_rows,
        "failed_rows": failed_rows,
        "failed_examples": failed_examples[:100],
    }
