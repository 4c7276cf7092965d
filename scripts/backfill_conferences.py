"""CLI entry point for backfilling coach conferences.

Usage:
    python -m scripts.backfill_conferences --db-url sqlite:///coaches.db --file coaches.csv [--match-on school]
"""

import argparse
import logging
import os
import sys

from coachdb import create_service
from ingestion.conferences import MATCH_COLUMNS, backfill_conferences
from ingestion.errors import CoachImportError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Update coach conferences from a CSV file")
    parser.add_argument(
        "--db-url",
        default=os.environ.get("DATABASE_URL"),
        help="Database URL; defaults to $DATABASE_URL",
    )
    parser.add_argument("--file", required=True, help="Path to coach CSV file")
    parser.add_argument(
        "--match-on",
        choices=sorted(MATCH_COLUMNS),
        default="email",
        help="Coach column used to find rows to update",
    )
    args = parser.parse_args(argv)

    if not args.db_url:
        logger.error("No database URL. Pass --db-url or set DATABASE_URL.")
        return 1

    service = create_service(args.db_url)
    try:
        service.connect()
        updated = backfill_conferences(service, args.file, args.match_on)
        logger.info("Done. %d coaches updated.", updated)
        return 0
    except (CoachImportError, FileNotFoundError, service.error_class) as e:
        logger.error("Backfill failed: %s", e)
        return 1
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
