"""Map raw CSV rows onto the canonical coach record."""

from typing import Iterable, NamedTuple

from ingestion.reader import RawCSVRow


class CoachRecord(NamedTuple):
    """A coach row ready for insertion; field order matches COACH_COLUMNS.

    Required fields are always strings (possibly empty); optional fields are
    None when the source has no value for them.
    """

    first_name: str
    last_name: str
    email: str
    phone: str | None
    school: str
    sport: str
    position: str | None
    division: str | None
    conference: str | None
    state: str | None
    region: str | None


def split_coach_name(full_name: str | None) -> tuple[str, str]:
    """Split "Coach Name" into (first, last).

    "Mary Jane Watson" -> ("Mary", "Jane Watson"); a single token is a first name.
    """
    parts = (full_name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def _required(row: RawCSVRow, column: str) -> str:
    return (row.get(column) or "").strip()


def _optional(row: RawCSVRow, *columns: str) -> str | None:
    """First non-blank value among columns, or None."""
    for column in columns:
        value = (row.get(column) or "").strip()
        if value:
            return value
    return None


def normalize_row(row: RawCSVRow) -> CoachRecord:
    first_name, last_name = split_coach_name(row.get("Coach Name"))
    return CoachRecord(
        first_name=first_name,
        last_name=last_name,
        email=_required(row, "Email"),
        phone=_optional(row, "Phone"),
        school=_required(row, "School"),
        sport=_required(row, "Sport"),
        position=_optional(row, "Position", "Coach Role"),
        division=_optional(row, "Division"),
        conference=_optional(row, "Conference"),
        state=_optional(row, "State"),
        region=_optional(row, "Region"),
    )


def normalize_rows(rows: Iterable[RawCSVRow]) -> list[CoachRecord]:
    return [normalize_row(row) for row in rows]
