"""
ODBC data source (pyodbc).

Handles:
- Connecting with an ODBC connection string and pinging the server
- Per-query timeouts bounded by the run context
- Single-row result contract (no rows / multiple rows)
- Driver value coercion
"""

from __future__ import annotations

import logging
import math
import threading
from types import ModuleType
from typing import Any, Optional

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
from excalibur.utils.dsn import mask_dsn_password

PING_QUERY = "SELECT 1"


def _load_pyodbc() -> ModuleType:
    # Imported on first use: pyodbc needs the system ODBC manager to load
    try:
        import pyodbc  # pylint: disable=import-outside-toplevel
    except ImportError as e:
        raise DataSourceError(f"load ODBC driver (pyodbc): {e}") from e
    return pyodbc


class OdbcDataSource:
    """
    Data source backed by a single ODBC connection.

    Usage:
        source = OdbcDataSource.connect(
            "DRIVER={ODBC Driver 18 for SQL Server};SERVER=db;DATABASE=sales;UID=app;PWD=...",
            connect_timeout=30,
        )
        row = source.fetch(ctx, "SELECT SUM(total) AS Total FROM orders")
        source.close()
    """

    def __init__(
        self,
        connection: Any,
        driver: ModuleType,
        logger: logging.Logger | ContextLogger | None = None,
    ) -> None:
        """
        Args:
            connection: Open DB-API connection
            driver: Module the connection came from (provides `Error`)
            logger: Logger to use
        """
        self._connection = connection
        self._driver = driver
        self._closed = False
        self._lock = threading.Lock()
        self.log = get_logger(logger, __name__, component="OdbcDataSource")

    @classmethod
    def connect(
        cls,
        dsn: str,
        *,
        connect_timeout: int = 30,
        logger: logging.Logger | ContextLogger | None = None,
        driver: Optional[ModuleType] = None,
    ) -> "OdbcDataSource":
        """
        Open a connection and verify it with a ping.

        Args:
            dsn: ODBC connection string
            connect_timeout: Login timeout in seconds
            logger: Logger to use
            driver: DB-API module with pyodbc's connect()/Error interface (defaults to pyodbc)

        Raises:
            DataSourceError: If the driver cannot be loaded, or connecting or pinging fails
        """
        log = get_logger(logger, __name__, component="OdbcDataSource")
        driver = driver or _load_pyodbc()

        log.info("Initializing ODBC data source...")
        log.debug("Connecting with DSN %s", mask_dsn_password(dsn))
        try:
            connection = driver.connect(dsn, timeout=connect_timeout, autocommit=True)
        except driver.Error as e:
            log.error("Failed to connect to database: %s", e)
            raise DataSourceError(f"connect to database: {e}") from e

        log.info("Pinging database...")
        try:
            cursor = connection.cursor()
            try:
                cursor.execute(PING_QUERY)
                cursor.fetchall()
            finally:
                cursor.close()
        except driver.Error as e:
            log.error("Failed to ping database: %s", e)
            connection.close()
            raise DataSourceError(f"ping database: {e}") from e

        log.info("Database connection established successfully.")
        return cls(connection, driver, logger=log)

    @property
    def closed(self) -> bool:
        return self._closed

    def _apply_timeout(self, ctx: RunContext) -> None:
        remaining = ctx.remaining()
        # pyodbc: 0 disables the query timeout; round up so a short remainder is not "no limit"
        self._connection.timeout = 0 if remaining is None else max(1, math.ceil(remaining))

    def fetch(self, ctx: RunContext, query: str) -> FetchedRow:
        """
        Run a query that must produce exactly one row.

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
            self._apply_timeout(ctx)
            try:
                cursor = self._connection.cursor()
                try:
                    cursor.execute(query)
                    if cursor.description is None:
                        raise DataSourceError("query did not return a result set")
                    columns = [column[0] for column in cursor.description]
                    rows = cursor.fetchmany(2)
                finally:
                    cursor.close()
            except self._driver.Error as e:
                self.log.error("Failed to execute query: %s", e)
                raise DataSourceError(f"execute query: {e}") from e

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
            try:
                self._connection.close()
            except self._driver.Error as e:
                raise DataSourceError(f"close connection: {e}") from e
        self.log.info("Database connection closed.")
