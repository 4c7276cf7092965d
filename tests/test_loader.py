"""Tests for the batched coach loader."""

import pytest

from conftest import fetch_coaches
from ingestion.checkpoint import load_checkpoint, source_key
from ingestion.errors import PartialBatchError, TransactionError
from ingestion.loader import FailurePolicy, ImportCursor, iter_batches, load_coaches
from ingestion.normalize import CoachRecord

FINGERPRINT = "0" * 64


def make_records(n: int, prefix: str = "Coach") -> list[CoachRecord]:
    return [
        CoachRecord(
            first_name=f"{prefix}{i}",
            last_name="Smith",
            email=f"{prefix.lower()}{i}@school.edu",
            phone=None,
            school="Akron",
            sport="Baseball",
            position="Head Coach",
            division="D1",
            conference=None,
            state="OH",
            region=None,
        )
        for i in range(n)
    ]


def poison(records: list[CoachRecord], index: int) -> list[CoachRecord]:
    """Return a copy with a NOT NULL violation at index."""
    records = list(records)
    records[index] = records[index]._replace(first_name=None)
    return records


@pytest.fixture
def cursor_for(tmp_path):
    def _cursor(**kwargs) -> ImportCursor:
        return ImportCursor(file_path=tmp_path / "coaches.csv", **kwargs)

    return _cursor


class TestIterBatches:
    def test_partitions_in_order(self):
        batches = list(iter_batches(list(range(25)), 10))
        assert [offset for offset, _ in batches] == [0, 10, 20]
        assert [len(batch) for _, batch in batches] == [10, 10, 5]
        assert batches[2][1] == [20, 21, 22, 23, 24]

    def test_empty(self):
        assert list(iter_batches([], 10)) == []


class TestLoadCoaches:
    def test_ids_follow_file_order(self, coach_db, cursor_for):
        records = make_records(25)
        result = load_coaches(coach_db, records, cursor_for(batch_size=10), FINGERPRINT)

        assert result.total_imported == 25
        assert result.batches_committed == 3
        assert result.next_index == 25
        rows = fetch_coaches(coach_db)
        assert [r["id"] for r in rows] == list(range(1, 26))
        assert [r["first_name"] for r in rows] == [r.first_name for r in records]

    def test_clear_existing_is_idempotent(self, coach_db, cursor_for):
        records = make_records(12)
        load_coaches(coach_db, records, cursor_for(batch_size=5), FINGERPRINT)
        load_coaches(coach_db, records, cursor_for(batch_size=5), FINGERPRINT)

        rows = fetch_coaches(coach_db)
        assert len(rows) == 12
        assert [r["id"] for r in rows] == list(range(1, 13))

    def test_append_keeps_existing_rows_and_sequence(self, coach_db, cursor_for):
        load_coaches(coach_db, make_records(5, "Old"), cursor_for(), FINGERPRINT)
        result = load_coaches(
            coach_db, make_records(3, "New"), cursor_for(clear_existing=False), FINGERPRINT
        )

        assert result.total_imported == 3
        rows = fetch_coaches(coach_db)
        assert [r["id"] for r in rows] == list(range(1, 9))
        assert rows[0]["first_name"] == "Old0"
        assert rows[5]["first_name"] == "New0"

    def test_limit_then_resume_matches_full_run(self, coach_db, cursor_for):
        records = make_records(23)
        first = load_coaches(coach_db, records, cursor_for(batch_size=4, limit=10), FINGERPRINT)
        assert first.total_imported == 10
        assert first.next_index == 10

        second = load_coaches(
            coach_db,
            records,
            cursor_for(batch_size=4, start_index=10, clear_existing=False),
            FINGERPRINT,
        )
        assert second.total_imported == 13
        resumed = fetch_coaches(coach_db)

        load_coaches(coach_db, records, cursor_for(batch_size=4), FINGERPRINT)
        assert fetch_coaches(coach_db) == resumed

    def test_start_index_past_end_imports_nothing(self, coach_db, cursor_for):
        result = load_coaches(
            coach_db, make_records(5), cursor_for(start_index=7), FINGERPRINT
        )
        assert result.total_imported == 0
        assert fetch_coaches(coach_db) == []

    def test_checkpoint_tracks_committed_batches(self, coach_db, cursor_for):
        cursor = cursor_for(batch_size=10, limit=15)
        load_coaches(coach_db, make_records(25), cursor, FINGERPRINT)

        with coach_db.transaction():
            checkpoint = load_checkpoint(coach_db, source_key(cursor.file_path))
        assert checkpoint.next_index == 15
        assert checkpoint.total_imported == 15
        assert checkpoint.fingerprint == FINGERPRINT

    def test_checkpoint_total_accumulates_across_runs(self, coach_db, cursor_for):
        records = make_records(10)
        load_coaches(coach_db, records, cursor_for(limit=6), FINGERPRINT)
        cursor = cursor_for(start_index=6, clear_existing=False)
        load_coaches(coach_db, records, cursor, FINGERPRINT)

        with coach_db.transaction():
            checkpoint = load_checkpoint(coach_db, source_key(cursor.file_path))
        assert checkpoint.next_index == 10
        assert checkpoint.total_imported == 10

    def test_clear_existing_drops_checkpoint(self, coach_db, cursor_for):
        cursor = cursor_for(limit=5)
        load_coaches(coach_db, make_records(10), cursor, FINGERPRINT)
        load_coaches(coach_db, [], cursor_for(), FINGERPRINT)

        with coach_db.transaction():
            assert load_checkpoint(coach_db, source_key(cursor.file_path)) is None
            assert coach_db.count_rows("coaches") == 0

    @pytest.mark.parametrize(
        "kwargs",
        [{"batch_size": 0}, {"start_index": -1}, {"limit": -5}],
    )
    def test_invalid_cursor(self, coach_db, cursor_for, kwargs):
        load_coaches(coach_db, make_records(3), cursor_for(), FINGERPRINT)
        with pytest.raises(ValueError):
            load_coaches(coach_db, make_records(3), cursor_for(**kwargs), FINGERPRINT)
        # Nothing cleared
        assert len(fetch_coaches(coach_db)) == 3


class TestFailurePolicy:
    def test_fail_fast_keeps_prior_batches_and_stops(self, coach_db, cursor_for):
        records = poison(make_records(25), 12)
        cursor = cursor_for(batch_size=5)

        with pytest.raises(TransactionError) as exc_info:
            load_coaches(coach_db, records, cursor, FINGERPRINT)

        err = exc_info.value
        assert err.batch_number == 3
        assert err.start_row == 10
        assert err.size == 5
        assert err.table == "coaches"
        assert "first_name" in err.constraint
        assert isinstance(err.__cause__, coach_db.error_class)

        rows = fetch_coaches(coach_db)
        assert [r["id"] for r in rows] == list(range(1, 11))
        with coach_db.transaction():
            checkpoint = load_checkpoint(coach_db, source_key(cursor.file_path))
        assert checkpoint.next_index == 10

    def test_fail_fast_first_batch(self, coach_db, cursor_for):
        with pytest.raises(TransactionError):
            load_coaches(coach_db, poison(make_records(3), 0), cursor_for(), FINGERPRINT)
        assert fetch_coaches(coach_db) == []

    def test_best_effort_skips_failed_batch(self, coach_db, cursor_for):
        records = poison(make_records(25), 12)
        cursor = cursor_for(batch_size=5, failure_policy=FailurePolicy.BEST_EFFORT)

        result = load_coaches(coach_db, records, cursor, FINGERPRINT)

        assert result.total_imported == 20
        assert result.batches_committed == 4
        assert result.next_index == 25
        assert len(result.failed_batches) == 1
        failure = result.failed_batches[0]
        assert isinstance(failure, PartialBatchError)
        assert failure.batch_number == 3
        assert failure.start_row == 10

        names = [r["first_name"] for r in fetch_coaches(coach_db)]
        assert len(names) == 20
        assert "Coach10" not in names
        assert "Coach15" in names

    def test_best_effort_checkpoint_moves_past_skipped_batches(self, coach_db, cursor_for):
        records = poison(poison(make_records(15), 0), 12)
        cursor = cursor_for(batch_size=5, failure_policy=FailurePolicy.BEST_EFFORT)

        result = load_coaches(coach_db, records, cursor, FINGERPRINT)

        assert result.total_imported == 5
        assert [f.batch_number for f in result.failed_batches] == [1, 3]
        with coach_db.transaction():
            checkpoint = load_checkpoint(coach_db, source_key(cursor.file_path))
        assert checkpoint.next_index == 15
        assert checkpoint.total_imported == 5

    def test_best_effort_only_batch_fails(self, coach_db, cursor_for):
        cursor = cursor_for(failure_policy=FailurePolicy.BEST_EFFORT)

        result = load_coaches(coach_db, poison(make_records(3), 1), cursor, FINGERPRINT)

        assert result.total_imported == 0
        assert result.next_index == 3
        with coach_db.transaction():
            checkpoint = load_checkpoint(coach_db, source_key(cursor.file_path))
        assert checkpoint.next_index == 3
        assert checkpoint.total_imported == 0

    def test_best_effort_failed_last_batch_is_not_retried_on_resume(self, coach_db, cursor_for):
        records = poison(make_records(15), 12)
        cursor = cursor_for(batch_size=5, failure_policy=FailurePolicy.BEST_EFFORT)

        result = load_coaches(coach_db, records, cursor, FINGERPRINT)

        assert result.total_imported == 10
        assert [f.batch_number for f in result.failed_batches] == [3]
        with coach_db.transaction():
            checkpoint = load_checkpoint(coach_db, source_key(cursor.file_path))
        assert checkpoint.next_index == 15
        assert checkpoint.total_imported == 10

        resumed = load_coaches(
            coach_db,
            records,
            cursor_for(batch_size=5, start_index=checkpoint.next_index, clear_existing=False),
            FINGERPRINT,
        )
        assert resumed.total_imported == 0
        assert len(fetch_coaches(coach_db)) == 10
