from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

load_dotenv()

from pulse_ai.core.config import settings  # noqa: E402
from pulse_ai.services.redis_service import close_redis_client  # noqa: E402
from pulse_ai.services.resource_store import build_resource_store  # noqa: E402
from resource_pipeline.utils.json_io import write_json  # noqa: E402
from resource_pipeline.utils.seed_runner import run_seeding  # noqa: E402


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load knowledge-base resources from JSONL")
    parser.add_argument(
        "--input",
        default="data/resources.jsonl",
        help="Path to a JSONL file of {category, title, content} rows",
    )
    parser.add_argument(
        "--report",
        default="data/seeding_report.json",
        help="Path to seeding_report.json",
    )
    parser.add_argument(
        "--backend",
        choices=["redis", "memory"],
        default=None,
        help="Resource store backend (defaults to RESOURCE_STORE_BACKEND); memory is a dry run",
    )
    return parser.parse_args(argv)


async def _seed(input_path: Path, backend: str) -> dict:
    store = build_resource_store(backend)
    try:
        return await run_seeding(input_path=input_path, store=store)
    finally:
        if store.backend == "redis":
            await close_redis_client()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s [%(name)s] %(message)s")

    input_path = Path(args.input).resolve()
    report_path = Path(args.report).resolve()
    backend = args.backend or settings.RESOURCE_STORE_BACKEND
    started_at = _utc_now_iso()

    if not input_path.exists():
        raise SystemExit(f"[error] input file not found: {input_path}")

    result = asyncio.run(_seed(input_path, backend))

    report = {
        "backend": backend,
        "collection": settings.RESOURCES_COLLECTION,
        "started_at": started_at,
        "finished_at": _utc_now_iso(),
        **result,
    }
    write_json(report_path, report)

    print(f"[backend] {backend}")
    print(f"[collection] {settings.RESOURCES_COLLECTION}")
    print(f"[input_rows] {report['input_rows']}")
    print(f"[created_rows] {report['created_rows']}")
    print(f"[updated_rows] {report['updated_rows']}")
    print(f"[failed_rows] {report['failed_rows']}")
    print(f"[report] {report_path}")

    if report["failed_rows"] > 0:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
