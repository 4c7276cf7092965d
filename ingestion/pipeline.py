"""Read → normalize → load, as one parameterized import run."""

import logging
from pathlib import Path

from coachdb import DatabaseService
from ingestion.checkpoint import file_fingerprint, load_checkpoint, source_key
from ingestion.errors import CheckpointMismatchError
from ingestion.loader import (
    DEFAULT_BATCH_SIZE,
    FailurePolicy,
    ImportCursor,
    ImportResult,
    load_coaches,
)
from ingestion.normalize import normalize_rows
from ingestion.reader import read_rows
from ingestion.schema import COACHES_TABLE, REQUIRED_CSV_COLUMNS, ensure_schema

logger = logging.getLogger(__name__)


def run_import(service: DatabaseService, cursor: ImportCursor) -> ImportResult:
    """Import a coach CSV file according to cursor.

    The file is read and normalized in full before any transaction is opened,
    so FileNotFoundError and ParseError leave the database untouched.
    """
    cursor.validate()
    logger.info("Reading coaches from %s", cursor.file_path)
    records = normalize_rows(read_rows(cursor.file_path, REQUIRED_CSV_COLUMNS))
    fingerprint = file_fingerprint(cursor.file_path)

    ensure_schema(service)
    return load_coaches(service, records, cursor, fingerprint=fingerprint)


def resolve_start_index(service: DatabaseService, file_path: str | Path) -> int:
    """Work out where an interrupted import of file_path should continue.

    Uses the stored checkpoint when there is one, refusing to resume if the
    file content changed since it was written. Without a checkpoint, falls
    back to the number of coaches already stored.
    """
    ensure_schema(service)
    source = source_key(file_path)
    with service.transaction():
        checkpoint = load_checkpoint(service, source)
        existing = service.count_rows(COACHES_TABLE)

    if checkpoint is None:
        logger.info("No checkpoint for %s; resuming from row count %d", source, existing)
        return existing

    current = file_fingerprint(file_path)
    if checkpoint.fingerprint != current:
        raise CheckpointMismatchError(source, checkpoint.fingerprint, current)
    logger.info(
        "Resuming %s from checkpoint index %d (updated %s)",
        source,
        checkpoint.next_index,
        checkpoint.updated_at,
    )
    return checkpoint.next_index


def resume_import(
    service: DatabaseService,
    file_path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
    limit: int | None = None,
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST,
) -> ImportResult:
    """Continue importing file_path from where the last run stopped, appending only."""
    start_index = resolve_start_index(service, file_path)
    cursor = ImportCursor(
        file_path=file_path,
        batch_size=batch_size,
        start_index=start_index,
        clear_existing=False,
        limit=limit,
        failure_policy=failure_policy,
    )
    return run_import(service, cursor)
