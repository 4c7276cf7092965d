"""Coach CSV import: reader, normalizer, batched loader and checkpoints."""

from ingestion.errors import (
    CheckpointMismatchError,
    CoachImportError,
    ParseError,
    PartialBatchError,
    TransactionError,
)
from ingestion.loader import FailurePolicy, ImportCursor, ImportResult, load_coaches
from ingestion.normalize import CoachRecord, normalize_row, split_coach_name
from ingestion.pipeline import resolve_start_index, resume_import, run_import
from ingestion.reader import read_rows

__all__ = [
    "CheckpointMismatchError",
    "CoachImportError",
    "CoachRecord",
    "FailurePolicy",
    "ImportCursor",
    "ImportResult",
    "ParseError",
    "PartialBatchError",
    "TransactionError",
    "load_coaches",
    "normalize_row",
    "read_rows",
    "resolve_start_index",
    "resume_import",
    "run_import",
    "split_coach_name",
]
