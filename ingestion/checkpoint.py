"""Durable import progress, one row per source file."""

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from coachdb import DatabaseService
from ingestion.schema import (
    CHECKPOINT_COLUMNS,
    CHECKPOINT_CONFLICT_COLUMNS,
    CHECKPOINTS_TABLE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportCheckpoint:
    source: str
    next_index: int
    total_imported: int
    fingerprint: str
    updated_at: str | None = None


def source_key(file_path: str | Path) -> str:
    """Identify a source file by its resolved absolute path."""
    return str(Path(file_path).resolve())


def file_fingerprint(file_path: str | Path) -> str:
    """SHA-256 of the file content, used to detect a changed source."""
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as f:
        for block in iter(lambda: f.read(65536), b""):
            sha256.update(block)
    return sha256.hexdigest()


def load_checkpoint(service: DatabaseService, source: str) -> ImportCheckpoint | None:
    """Fetch the checkpoint for a source. Must be called inside a transaction."""
    p = service.placeholder
    rows = service.execute(
        f"SELECT {', '.join(CHECKPOINT_COLUMNS)} FROM {CHECKPOINTS_TABLE} WHERE source = {p}",
        (source,),
    )
    if not rows:
        return None
    row = rows[0]
    return ImportCheckpoint(
        source=row["source"],
        next_index=int(row["next_index"]),
        total_imported=int(row["total_imported"]),
        fingerprint=row["fingerprint"],
        updated_at=str(row["updated_at"]) if row["updated_at"] is not None else None,
    )


def save_checkpoint(service: DatabaseService, checkpoint: ImportCheckpoint) -> None:
    """Upsert a checkpoint inside the caller's transaction.

    Written alongside each batch insert so the checkpoint commits or rolls
    back together with the rows it describes.
    """
    updated_at = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    row = (
        checkpoint.source,
        checkpoint.next_index,
        checkpoint.total_imported,
        checkpoint.fingerprint,
        updated_at,
    )
    service.upsert(CHECKPOINTS_TABLE, CHECKPOINT_COLUMNS, [row], CHECKPOINT_CONFLICT_COLUMNS)


def clear_checkpoints(service: DatabaseService) -> None:
    """Delete every checkpoint. Must be called inside a transaction.

    Clearing the coaches table invalidates progress for all sources, not
    just the one being re-imported.
    """
    service.execute(f"DELETE FROM {CHECKPOINTS_TABLE}")
    logger.debug("Cleared import checkpoints")
