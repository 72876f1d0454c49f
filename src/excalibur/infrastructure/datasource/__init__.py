"""
Data source implementations.

Usage:
    from excalibur.infrastructure.datasource import open_data_source

    source = open_data_source(config.datasource, logger)
    try:
        ...
    finally:
        source.close()
"""

from __future__ import annotations

import logging

from excalibur.application.report.ports import DataSource
from excalibur.domain.config import DataSourceConfig
from excalibur.infrastructure.datasource.coercion import coerce_value
from excalibur.infrastructure.datasource.odbc import OdbcDataSource
from excalibur.infrastructure.datasource.postgres import PostgresDataSource, is_postgres_dsn
from excalibur.infrastructure.datasource.sqlite import SqliteDataSource, is_sqlite_dsn
from excalibur.infrastructure.logging_config import ContextLogger


def open_data_source(
    config: DataSourceConfig,
    logger: logging.Logger | ContextLogger | None = None,
) -> DataSource:
    """
    Connect to the data source named by the configured DSN.

    sqlite:// URLs open a SQLite database, postgres:// and postgresql:// URLs a
    PostgreSQL pool; anything else is an ODBC connection string.

    Raises:
        DataSourceError: If the connection cannot be established
    """
    dsn = config.get_dsn()
    if is_sqlite_dsn(dsn):
        return SqliteDataSource.connect(dsn, connect_timeout=config.connect_timeout, logger=logger)
    if is_postgres_dsn(dsn):
        return PostgresDataSource.connect(dsn, connect_timeout=config.connect_timeout, logger=logger)

    return OdbcDataSource.connect(dsn, connect_timeout=config.connect_timeout, logger=logger)


__all__ = [
    "OdbcDataSource",
    "PostgresDataSource",
    "SqliteDataSource",
    "coerce_value",
    "is_postgres_dsn",
    "is_sqlite_dsn",
    "open_data_source",
]
