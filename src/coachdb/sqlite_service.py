"""SQLite implementation of DatabaseService."""

import re
import sqlite3
import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Iterator

from coachdb.service import DatabaseService
from coachdb.types import ErrorDetails, Params, ParamsList, Row

# SQLITE_MAX_VARIABLE_NUMBER default, raised from 999 in 3.32.0
MAX_VARIABLES = 32766 if sqlite3.sqlite_version_info >= (3, 32, 0) else 999

_CONSTRAINT_RE = re.compile(r"(?P<kind>[A-Z ]+) constraint failed: (?P<target>[\w.]+)")


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3.

    Thread-safe via a connection pool (Queue). Each transaction() call
    acquires a dedicated connection and returns it on exit.
    """

    placeholder = "?"
    identity_column = "INTEGER PRIMARY KEY AUTOINCREMENT"
    error_class = sqlite3.Error

    def __init__(self, db_path: str, pool_size: int = 4):
        self._db_path = db_path
        self._pool_size = pool_size
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            self._pool.put(conn)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self) -> sqlite3.Connection:
        return self._pool.get(timeout=30)

    def _release(self, conn: sqlite3.Connection) -> None:
        self._pool.put(conn)

    def _get_conn(self) -> sqlite3.Connection:
        """Get the connection bound to the current transaction."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._acquire()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self._release(conn)

    def execute(self, sql: str, params: Params | None = None) -> list[Row]:
        conn = self._get_conn()
        cursor = conn.execute(sql, params or ())
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_many(self, sql: str, params_list: ParamsList) -> int:
        conn = self._get_conn()
        cursor = conn.executemany(sql, params_list)
        return max(cursor.rowcount, 0)

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            conn.executescript(sql)
            conn.commit()
        finally:
            self._release(conn)

    def batch_insert(self, table: str, columns: list[str], rows: list[tuple]) -> None:
        if not rows:
            return
        conn = self._get_conn()
        cols = ", ".join(columns)
        row_placeholder = "(" + ", ".join("?" for _ in columns) + ")"
        # Statements over the variable limit are split; the caller's
        # transaction still covers every piece.
        rows_per_statement = max(MAX_VARIABLES // len(columns), 1)
        for start in range(0, len(rows), rows_per_statement):
            part = rows[start : start + rows_per_statement]
            values = ", ".join(row_placeholder for _ in part)
            sql = f"INSERT INTO {table} ({cols}) VALUES {values}"
            conn.execute(sql, [value for row in part for value in row])

    def upsert(
        self,
        table: str,
        columns: list[str],
        rows: list[tuple],
        conflict_columns: list[str],
    ) -> None:
        if not rows:
            return
        cols = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        conflict_cols = ", ".join(conflict_columns)
        update_cols = [c for c in columns if c not in conflict_columns]
        update_clause = ", ".join(f"{c} = excluded.{c}" for c in update_cols)

        if update_cols:
            sql = (
                f"INSERT INTO {table} ({cols}) VALUES ({placeholders}) "
                f"ON CONFLICT ({conflict_cols}) DO UPDATE SET {update_clause}"
            )
        else:
            sql = (
                f"INSERT INTO {table} ({cols}) VALUES ({placeholders}) "
                f"ON CONFLICT ({conflict_cols}) DO NOTHING"
            )
        self.execute_many(sql, rows)

    def reset_table(self, table: str) -> None:
        conn = self._get_conn()
        conn.execute(f"DELETE FROM {table}")
        # sqlite_sequence only exists once an AUTOINCREMENT table has been created
        has_sequence = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_sequence'"
        ).fetchone()
        if has_sequence:
            conn.execute("DELETE FROM sqlite_sequence WHERE name = ?", (table,))

    def error_details(self, exc: BaseException) -> ErrorDetails:
        message = str(exc)
        details: ErrorDetails = {"message": message, "constraint": None, "table": None}
        match = _CONSTRAINT_RE.search(message)
        if match:
            target = match.group("target")
            details["constraint"] = f"{match.group('kind').strip()} {target}"
            if "." in target:
                details["table"] = target.split(".", 1)[0]
        return details
