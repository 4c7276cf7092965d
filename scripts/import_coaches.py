"""CLI entry point for coach CSV imports.

Usage:
    python -m scripts.import_coaches --db-url sqlite:///coaches.db [--file coaches.csv]
        [--batch-size 1000] [--start-index 0 | --resume] [--limit N]
        [--no-clear-existing] [--best-effort]

Fresh import (clears the table and restarts ids at 1):
    python -m scripts.import_coaches --file coaches.csv
Resume an interrupted run from its checkpoint:
    python -m scripts.import_coaches --file coaches.csv --resume

The database URL falls back to $DATABASE_URL.
"""

import argparse
import logging
import os
import sys
from importlib import resources

from coachdb import create_service
from ingestion.errors import CoachImportError
from ingestion.loader import DEFAULT_BATCH_SIZE, FailurePolicy, ImportCursor
from ingestion.pipeline import resolve_start_index, run_import

DEFAULT_CSV_PATH = resources.files("ingestion") / "data" / "coaches.csv"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import coach records from a CSV file")
    parser.add_argument(
        "--db-url",
        default=os.environ.get("DATABASE_URL"),
        help="Database URL (sqlite:/// or postgresql://); defaults to $DATABASE_URL",
    )
    parser.add_argument("--file", default=str(DEFAULT_CSV_PATH), help="Path to coach CSV file")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help="Rows per INSERT/transaction",
    )
    start = parser.add_mutually_exclusive_group()
    start.add_argument(
        "--start-index", type=int, default=0, help="Skip this many records of the file"
    )
    start.add_argument(
        "--resume",
        action="store_true",
        help="Continue from the stored checkpoint (or current row count); implies --no-clear-existing",
    )
    parser.add_argument("--limit", type=int, default=None, help="Import at most this many records")
    parser.add_argument(
        "--clear-existing",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Delete existing coaches and restart ids at 1 before importing",
    )
    parser.add_argument(
        "--best-effort",
        action="store_true",
        help="Skip failed batches instead of aborting (the total may undercount)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    if not args.db_url:
        logger.error("No database URL. Pass --db-url or set DATABASE_URL.")
        return 1

    service = create_service(args.db_url)
    try:
        service.connect()
        start_index = args.start_index
        clear_existing = args.clear_existing
        if args.resume:
            start_index = resolve_start_index(service, args.file)
            clear_existing = False

        cursor = ImportCursor(
            file_path=args.file,
            batch_size=args.batch_size,
            start_index=start_index,
            clear_existing=clear_existing,
            limit=args.limit,
            failure_policy=(
                FailurePolicy.BEST_EFFORT if args.best_effort else FailurePolicy.FAIL_FAST
            ),
        )
        result = run_import(service, cursor)
        logger.info("Done. %d coaches imported.", result.total_imported)
        return 0
    except (CoachImportError, FileNotFoundError, ValueError, service.error_class) as e:
        logger.error("Import failed: %s", e)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
