"""
SQLite data source.

Uses stdlib sqlite3 with no ORM. DSNs follow the familiar URL form:

    sqlite:///reports.db          relative path
    sqlite:////var/data/sales.db  absolute path
    sqlite:///:memory:            private in-memory database (also "sqlite://")

File databases are opened read-write but never created, so a mistyped path
fails at connect time instead of producing an empty database.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Optional

from excalibur.application.context import RunContext
from excalibur.application.report.ports import FetchedRow
from excalibur.domain.errors import (
    DataSourceClosedError,
    DataSourceError,
    MultipleRowsError,
    NoRowsError,
)
from excalibur.infrastructure.datasource.coercion import row_to_dict
from excalibur.infrastructure.logging_config import ContextLogger, get_logger

SQLITE_SCHEME = "sqlite://"
MEMORY_DATABASE = ":memory:"

# Virtual machine instructions between cancellation checks
_PROGRESS_INTERVAL = 1000


def is_sqlite_dsn(dsn: str) -> bool:
    return dsn.strip().lower().startswith(SQLITE_SCHEME)


def parse_sqlite_dsn(dsn: str) -> str:
    """
    Extract the database path from a sqlite:// DSN.

    Returns:
        The file path, or ":memory:"

    Raises:
        ValueError: If the DSN is not a sqlite:// URL
    """
    text = dsn.strip()
    if not is_sqlite_dsn(text):
        raise ValueError(f"not a sqlite DSN: {text!r}")

    rest = text[len(SQLITE_SCHEME):]
    if not rest or rest == "/":
        return MEMORY_DATABASE
    if not rest.startswith("/"):
        raise ValueError(f"sqlite DSN must look like sqlite:///path, got: {text!r}")

    path = rest[1:]
    return path or MEMORY_DATABASE


class SqliteDataSource:
    """
    Data source backed by one SQLite connection.

    Usage:
        source = SqliteDataSource.connect("sqlite:///sales.db")
        row = source.fetch(ctx, "SELECT COUNT(*) AS Orders FROM orders")
        source.close()
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        logger: logging.Logger | ContextLogger | None = None,
    ) -> None:
        self._connection = connection
        self._closed = False
        self._lock = threading.Lock()
        self.log = get_logger(logger, __name__, component="SqliteDataSource")

    @classmethod
    def connect(
        cls,
        dsn: str,
        *,
        connect_timeout: int = 30,
        logger: logging.Logger | ContextLogger | None = None,
    ) -> "SqliteDataSource":
        """
        Open the database named by a sqlite:// DSN.

        Args:
            dsn: sqlite:// URL
            connect_timeout: Seconds to wait on a locked database
            logger: Logger to use

        Raises:
            DataSourceError: If the DSN is malformed or the database cannot be opened
        """
        log = get_logger(logger, __name__, component="SqliteDataSource")
        try:
            database = parse_sqlite_dsn(dsn)
        except ValueError as e:
            raise DataSourceError(f"parse DSN: {e}") from e

        log.info("Initializing SQLite data source...")
        log.debug("Opening database %s", database)
        try:
            if database == MEMORY_DATABASE:
                connection = sqlite3.connect(
                    MEMORY_DATABASE,
                    timeout=connect_timeout,
                    detect_types=sqlite3.PARSE_DECLTYPES,
                )
            else:
                uri = Path(database).expanduser().absolute().as_uri() + "?mode=rw"
                connection = sqlite3.connect(
                    uri,
                    uri=True,
                    timeout=connect_timeout,
                    detect_types=sqlite3.PARSE_DECLTYPES,
                )
            connection.execute("SELECT 1").fetchall()
        except sqlite3.Error as e:
            log.error("Failed to open database: %s", e)
            raise DataSourceError(f"open database {database!r}: {e}") from e

        log.info("Database connection established successfully.")
        return cls(connection, logger=log)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    @property
    def closed(self) -> bool:
        return self._closed

    def fetch(self, ctx: RunContext, query: str) -> FetchedRow:
        """
        Run a query that must produce exactly one row.

        A running statement is interrupted as soon as the context is done.

        Raises:
            DataSourceClosedError: If close() was called
            NoRowsError: If the query produced no rows
            MultipleRowsError: If the query produced more than one row
            DataSourceError: If the context is done or the query fails
        """
        if self._closed:
            self.log.warning("Attempted to fetch data on a closed data source")
            raise DataSourceClosedError()

        query = query.strip()
        if not query:
            raise DataSourceError("query must not be empty")
        if ctx.done:
            raise DataSourceError("run context is done, query not executed")

        self.log.debug("Executing query: %s", query)
        with self._lock:
            self._connection.set_progress_handler(lambda: 1 if ctx.done else 0, _PROGRESS_INTERVAL)
            try:
                cursor = self._connection.execute(query)
                try:
                    if cursor.description is None:
                        raise DataSourceError("query did not return a result set")
                    columns = [column[0] for column in cursor.description]
                    rows = cursor.fetchmany(2)
                finally:
                    cursor.close()
            except (sqlite3.Error, ValueError) as e:
                # ValueError: a declared-type converter rejected a stored value
                self.log.error("Failed to execute query: %s", e)
                raise DataSourceError(f"execute query: {e}") from e
            finally:
                self._connection.set_progress_handler(None, 0)

        if not rows:
            self.log.warning("Query returned no rows")
            raise NoRowsError()
        if len(rows) > 1:
            self.log.warning("Query returned multiple rows, expected one")
            raise MultipleRowsError()

        self.log.debug("Query returned one row successfully")
        return row_to_dict(columns, rows[0])

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        with self._lock:
            if self._closed:
                self.log.debug("Close called on already closed data source.")
                return
            self._closed = True
            self._connection.close()
        self.log.info("Database connection closed.")
