"""Abstract DatabaseService interface."""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator

from coachdb.types import ErrorDetails, Params, ParamsList, Row


class DatabaseService(ABC):
    """Database-agnostic interface for all DB operations.

    Design principles:
    - Stateless: no mutable state beyond the connection pool
    - Thread-safe: each transaction() acquires its own connection
    - DB-agnostic: callers program against this ABC, never a concrete backend

    Backends also describe their SQL dialect through class attributes so that
    callers can build statements and DDL without knowing which one they hold.
    """

    #: Parameter marker for ``execute()`` statements.
    placeholder: str = "?"
    #: Column definition for an auto-incrementing integer primary key.
    identity_column: str = "INTEGER PRIMARY KEY"
    #: Base class of every error raised by the driver.
    error_class: type[Exception] = Exception

    @abstractmethod
    def connect(self) -> None:
        """Initialize the connection pool."""

    @abstractmethod
    def close(self) -> None:
        """Close all connections and release resources."""

    @abstractmethod
    def execute(self, sql: str, params: Params | None = None) -> list[Row]:
        """Execute a single SQL statement and return rows as dicts."""

    @abstractmethod
    def execute_many(self, sql: str, params_list: ParamsList) -> int:
        """Execute a SQL statement for each parameter set.

        Returns the total number of rows affected.
        """

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Context manager: acquires a connection, commits on success, rolls back on error."""

    @abstractmethod
    def execute_ddl(self, sql: str) -> None:
        """Execute DDL statements (CREATE TABLE, CREATE INDEX, etc.)."""

    @abstractmethod
    def batch_insert(self, table: str, columns: list[str], rows: list[tuple]) -> None:
        """Insert rows with a single multi-row INSERT statement."""

    @abstractmethod
    def upsert(
        self,
        table: str,
        columns: list[str],
        rows: list[tuple],
        conflict_columns: list[str],
    ) -> None:
        """Insert rows, updating on conflict with the specified columns."""

    @abstractmethod
    def reset_table(self, table: str) -> None:
        """Delete every row of a table and restart its identity sequence at 1.

        Must be called inside a transaction.
        """

    @abstractmethod
    def error_details(self, exc: BaseException) -> ErrorDetails:
        """Extract diagnostic fields (constraint, table, message) from a driver error."""

    def count_rows(self, table: str) -> int:
        """Return the number of rows in a table. Must be called inside a transaction."""
        rows = self.execute(f"SELECT COUNT(*) AS cnt FROM {table}")
        return int(rows[0]["cnt"])
