"""Shared test fixtures."""

import csv
from pathlib import Path

import pytest

from coachdb import create_service
from ingestion.schema import ensure_schema

DATA_CSV = Path(__file__).parent.parent / "ingestion" / "data" / "coaches.csv"

CSV_HEADER = [
    "Sport",
    "School",
    "Conference",
    "Division",
    "State",
    "Coach Name",
    "Coach Role",
    "Email",
    "Phone",
    "Region",
]


@pytest.fixture
def db_service(tmp_path):
    """Provide a fresh SQLite DatabaseService for each test."""
    db_path = tmp_path / "test.db"
    service = create_service(f"sqlite:///{db_path}")
    service.connect()
    yield service
    service.close()


@pytest.fixture
def coach_db(db_service):
    """A DatabaseService with the coaches and checkpoint tables created."""
    ensure_schema(db_service)
    return db_service


@pytest.fixture
def write_csv(tmp_path):
    """Write rows under CSV_HEADER (or a given header) to a file and return its path."""

    def _write(rows: list[list[str]], name: str = "coaches.csv", header=CSV_HEADER) -> Path:
        csv_file = tmp_path / name
        with open(csv_file, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return csv_file

    return _write


def fetch_coaches(service) -> list[dict]:
    with service.transaction():
        return service.execute("SELECT * FROM coaches ORDER BY id")
