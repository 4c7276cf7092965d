"""Exceptions raised by the coach import pipeline."""

from pathlib import Path

from coachdb import ErrorDetails


class CoachImportError(Exception):
    """Base class for import pipeline errors."""


class ParseError(CoachImportError):
    """The source file cannot be decoded as delimited text with a header row."""

    def __init__(self, path: str | Path, message: str, line: int | None = None):
        self.path = str(path)
        self.line = line
        location = f"{self.path}:{line}" if line is not None else self.path
        super().__init__(f"{location}: {message}")


class BatchError(CoachImportError):
    """A batch could not be applied; its transaction was rolled back."""

    def __init__(self, batch_number: int, start_row: int, size: int, details: ErrorDetails):
        self.batch_number = batch_number
        self.start_row = start_row
        self.size = size
        self.details = details
        self.constraint = details.get("constraint")
        self.table = details.get("table")
        super().__init__(
            f"Batch {batch_number} (records {start_row}-{start_row + size - 1}) failed: "
            f"{details.get('message')}"
        )


class TransactionError(BatchError):
    """Raised by the fail-fast loader; aborts the run."""


class PartialBatchError(BatchError):
    """Recorded (not raised) by the best-effort loader for a skipped batch."""


class CheckpointMismatchError(CoachImportError):
    """The stored checkpoint was written for different file content."""

    def __init__(self, source: str, expected: str, actual: str):
        self.source = source
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Checkpoint for {source} was recorded against fingerprint {expected[:12]}, "
            f"but the file now hashes to {actual[:12]}. Re-run with --clear-existing "
            "or pass --start-index explicitly."
        )
