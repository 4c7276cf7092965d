"""Backfill coach conferences from a coach CSV export."""

import logging
from pathlib import Path

from coachdb import DatabaseService
from ingestion.reader import read_rows
from ingestion.schema import COACHES_TABLE

logger = logging.getLogger(__name__)

MATCH_COLUMNS = {
    "email": "Email",
    "school": "School",
}


def build_conference_map(file_path: str | Path, match_on: str = "email") -> dict[str, str]:
    """Map each email (or school) in the file to its conference.

    Rows with a blank key or conference are ignored; later rows win.
    """
    if match_on not in MATCH_COLUMNS:
        raise ValueError(f"match_on must be one of {sorted(MATCH_COLUMNS)}, got {match_on!r}")
    key_column = MATCH_COLUMNS[match_on]

    mapping: dict[str, str] = {}
    for row in read_rows(file_path, [key_column, "Conference"]):
        key = (row.get(key_column) or "").strip()
        conference = (row.get("Conference") or "").strip()
        if key and conference:
            mapping[key] = conference
    return mapping


def backfill_conferences(
    service: DatabaseService,
    file_path: str | Path,
    match_on: str = "email",
) -> int:
    """Set coaches.conference from the file where it is missing or different.

    Returns the number of coach rows updated.
    """
    mapping = build_conference_map(file_path, match_on)
    logger.info("Built %d %s-to-conference entries from %s", len(mapping), match_on, file_path)
    if not mapping:
        return 0

    p = service.placeholder
    sql = (
        f"UPDATE {COACHES_TABLE} SET conference = {p} "
        f"WHERE {match_on} = {p} AND (conference IS NULL OR conference <> {p})"
    )
    params = [(conference, key, conference) for key, conference in mapping.items()]
    with service.transaction():
        updated = service.execute_many(sql, params)

    logger.info("Updated conference for %d coaches", updated)
    return updated
