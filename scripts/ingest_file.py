#!/usr/bin/env python3
"""
Run the ingestion pipeline on a local file.

Uses an in-memory repository and the Ollama model from settings, then
prints the final status and extracted schedule items as JSON.

Usage:
    python scripts/ingest_file.py syllabus.pdf
    python scripts/ingest_file.py notes.txt --content-type text/plain
    python scripts/ingest_file.py schedule.xlsx --text-only
"""

import argparse
import asyncio
import json
import mimetypes
import sys
from pathlib import Path
from uuid import uuid4

from schedule_ingest.config.settings import get_settings
from schedule_ingest.ingest.format_router import FormatRouter
from schedule_ingest.ingest.text_normalizer import normalize_text
from schedule_ingest.schemas.domain import UploadedFile
from schedule_ingest.services.ingestion_pipeline import IngestionPipeline
from schedule_ingest.services.repository import InMemoryFileRepository
from schedule_ingest.utils.errors import ScheduleIngestError
from schedule_ingest.utils.logger import configure_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract schedule items from a local file",
    )
    parser.add_argument("path", type=Path, help="File to ingest")
    parser.add_argument(
        "--content-type",
        help="Declared content type (guessed from the file name if omitted)",
    )
    parser.add_argument(
        "--text-only",
        action="store_true",
        help="Only print the normalized text, skip schedule extraction",
    )
    return parser.parse_args()


async def extract_text_only(path: Path, content_type: str) -> int:
    strategy = FormatRouter().select(content_type)
    print(normalize_text(await strategy.extract(path)))
    return 0


async def ingest(path: Path, content_type: str) -> int:
    repository = InMemoryFileRepository()
    file = UploadedFile(
        id=uuid4(),
        user_id=uuid4(),
        original_name=path.name,
        storage_path=str(path),
        size_bytes=path.stat().st_size,
        content_type=content_type,
    )
    repository.add_file(file)

    pipeline = IngestionPipeline.from_settings(repository)
    result = await pipeline.run(file)

    output = {
        "result": result.model_dump(mode="json"),
        "items": [item.model_dump(mode="json") for item in repository.get_items(file.id)],
    }
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0 if result.succeeded else 1


def main() -> int:
    args = parse_args()
    configure_logging(get_settings())

    if not args.path.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return 2

    content_type = args.content_type or mimetypes.guess_type(args.path.name)[0]
    if content_type is None:
        print("Cannot guess content type, pass --content-type", file=sys.stderr)
        return 2

    try:
        if args.text_only:
            return asyncio.run(extract_text_only(args.path, content_type))
        return asyncio.run(ingest(args.path, content_type))
    except ScheduleIngestError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
