"""Batched, transactional loading of coach records into the coaches table."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Iterator, Sequence

from coachdb import DatabaseService
from ingestion.checkpoint import (
    ImportCheckpoint,
    clear_checkpoints,
    file_fingerprint,
    load_checkpoint,
    save_checkpoint,
    source_key,
)
from ingestion.errors import PartialBatchError, TransactionError
from ingestion.normalize import CoachRecord
from ingestion.schema import COACH_COLUMNS, COACHES_TABLE

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


class FailurePolicy(Enum):
    """What the loader does when a batch fails to commit."""

    FAIL_FAST = "fail_fast"
    # Skips failed batches and keeps going; the returned total may undercount the file.
    BEST_EFFORT = "best_effort"


@dataclass(frozen=True)
class ImportCursor:
    """Parameters for a single import run."""

    file_path: str | Path
    batch_size: int = DEFAULT_BATCH_SIZE
    start_index: int = 0
    clear_existing: bool = True
    limit: int | None = None
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST

    def validate(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.start_index < 0:
            raise ValueError(f"start_index must not be negative, got {self.start_index}")
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must not be negative, got {self.limit}")


@dataclass
class ImportResult:
    total_imported: int = 0
    batches_committed: int = 0
    # Index of the first source record after the last committed or skipped batch
    next_index: int = 0
    failed_batches: list[PartialBatchError] = field(default_factory=list)


def iter_batches(records: Sequence, batch_size: int) -> Iterator[tuple[int, Sequence]]:
    """Yield (offset, batch) pairs of consecutive slices, preserving order."""
    for offset in range(0, len(records), batch_size):
        yield offset, records[offset : offset + batch_size]


def clear_coaches(service: DatabaseService) -> None:
    """Empty the coaches table, restart its id sequence and drop checkpoints, atomically."""
    with service.transaction():
        service.reset_table(COACHES_TABLE)
        clear_checkpoints(service)
    logger.info("Cleared existing coaches and reset id sequence")


def load_coaches(
    service: DatabaseService,
    records: Sequence[CoachRecord],
    cursor: ImportCursor,
    fingerprint: str | None = None,
) -> ImportResult:
    """Insert records into the coaches table in batches.

    Each batch is one multi-row INSERT plus a checkpoint update inside its own
    transaction. Under FAIL_FAST the first failing batch is rolled back and a
    TransactionError is raised; earlier batches stay committed. Under
    BEST_EFFORT the failing batch is rolled back, recorded in
    ImportResult.failed_batches, and loading continues.

    Args:
        service: Connected database service; the schema must already exist.
        records: The full normalized sequence for cursor.file_path, in file order.
        cursor: Run parameters. start_index and limit select the slice to load.
        fingerprint: Content hash recorded with the checkpoint. Computed from
            cursor.file_path when omitted.

    Returns:
        ImportResult with the number of records committed by this run.
    """
    cursor.validate()
    source = source_key(cursor.file_path)
    if fingerprint is None:
        fingerprint = file_fingerprint(cursor.file_path)

    base_total = 0
    if cursor.clear_existing:
        clear_coaches(service)
    else:
        with service.transaction():
            previous = load_checkpoint(service, source)
        if previous is not None:
            base_total = previous.total_imported
        logger.info("Appending to existing coaches from index %d", cursor.start_index)

    pending = records[cursor.start_index :]
    if cursor.limit is not None:
        pending = pending[: cursor.limit]

    result = ImportResult(next_index=cursor.start_index)
    logger.info(
        "Importing %d of %d coaches in batches of %d",
        len(pending),
        len(records),
        cursor.batch_size,
    )

    for batch_number, (offset, batch) in enumerate(
        iter_batches(pending, cursor.batch_size), start=1
    ):
        start_row = cursor.start_index + offset
        end_row = start_row + len(batch)
        checkpoint = ImportCheckpoint(
            source=source,
            next_index=end_row,
            total_imported=base_total + result.total_imported + len(batch),
            fingerprint=fingerprint,
        )
        try:
            with service.transaction():
                service.batch_insert(COACHES_TABLE, COACH_COLUMNS, list(batch))
                save_checkpoint(service, checkpoint)
        except service.error_class as e:
            details = service.error_details(e)
            if cursor.failure_policy is FailurePolicy.FAIL_FAST:
                logger.error(
                    "Batch %d (records %d-%d) rolled back: %s [constraint=%s, table=%s]",
                    batch_number,
                    start_row,
                    end_row - 1,
                    details.get("message"),
                    details.get("constraint"),
                    details.get("table"),
                )
                raise TransactionError(batch_number, start_row, len(batch), details) from e

            failure = PartialBatchError(batch_number, start_row, len(batch), details)
            result.failed_batches.append(failure)
            logger.warning("Skipping batch: %s", failure)
            # Skipped batches are never retried by a resume
            with service.transaction():
                save_checkpoint(
                    service,
                    replace(checkpoint, total_imported=base_total + result.total_imported),
                )
            result.next_index = end_row
            continue

        result.total_imported += len(batch)
        result.batches_committed += 1
        result.next_index = end_row
        logger.info(
            "Batch %d: imported %d coaches (total: %d/%d)",
            batch_number,
            len(batch),
            result.total_imported,
            len(pending),
        )

    if result.failed_batches:
        logger.warning(
            "Import finished with %d failed batches; %d of %d coaches imported",
            len(result.failed_batches),
            result.total_imported,
            len(pending),
        )
    else:
        logger.info("Import complete: %d coaches imported", result.total_imported)
    return result
