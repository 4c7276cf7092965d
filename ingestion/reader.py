"""CSV source reader for coach exports."""

import csv
import logging
from pathlib import Path

from ingestion.errors import ParseError

logger = logging.getLogger(__name__)

RawCSVRow = dict[str, str]


def read_rows(
    file_path: str | Path,
    required_columns: list[str] | None = None,
) -> list[RawCSVRow]:
    """Read a header-first CSV file into a list of dicts, in file order.

    The whole file is parsed before anything is returned, so a malformed row
    anywhere in the file fails the read instead of being dropped.

    Raises:
        FileNotFoundError: if file_path does not exist.
        ParseError: on undecodable content, a missing header row or required
            column, a row whose field count differs from the header, or
            invalid quoting.
    """
    path = Path(file_path)
    rows: list[RawCSVRow] = []

    # utf-8-sig tolerates the BOM spreadsheet exports like to add
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f, strict=True)
        try:
            header = next(reader, None)
            if header is None or all(cell.strip() == "" for cell in header):
                raise ParseError(path, "missing header row", line=1)
            fieldnames = [name.strip() for name in header]

            missing = [c for c in required_columns or [] if c not in fieldnames]
            if missing:
                raise ParseError(path, f"missing required columns: {', '.join(missing)}", line=1)

            for row in reader:
                if not row or all(cell.strip() == "" for cell in row):
                    continue
                if len(row) != len(fieldnames):
                    raise ParseError(
                        path,
                        f"expected {len(fieldnames)} fields, got {len(row)}",
                        line=reader.line_num,
                    )
                rows.append(dict(zip(fieldnames, row)))
        except csv.Error as e:
            raise ParseError(path, str(e), line=reader.line_num) from e
        except UnicodeDecodeError as e:
            raise ParseError(path, f"not valid UTF-8 text ({e.reason})") from e

    logger.info("Read %d rows from %s", len(rows), path)
    return rows
