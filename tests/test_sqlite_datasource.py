"""
Tests for the SQLite data source.
"""

import sqlite3

import pytest

from excalibur.application.context import RunContext
from excalibur.domain.config import DataSourceConfig
from excalibur.domain.errors import (
    DataSourceClosedError,
    DataSourceError,
    MultipleRowsError,
    NoRowsError,
)
from excalibur.infrastructure.datasource import SqliteDataSource, is_sqlite_dsn, open_data_source
from excalibur.infrastructure.datasource.sqlite import MEMORY_DATABASE, parse_sqlite_dsn


@pytest.fixture
def database(tmp_path):
    path = tmp_path / "sales.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE orders (id INTEGER PRIMARY KEY, customer TEXT, total REAL, note TEXT);
        INSERT INTO orders (customer, total, note) VALUES ('Acme', 120.5, NULL);
        INSERT INTO orders (customer, total, note) VALUES ('Globex', 80.0, 'late');
        """
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def source(database):
    source = SqliteDataSource.connect(f"sqlite:///{database}")
    yield source
    source.close()


class TestDsnParsing:
    @pytest.mark.parametrize(
        "dsn,expected",
        [
            ("sqlite://", MEMORY_DATABASE),
            ("sqlite:///", MEMORY_DATABASE),
            ("sqlite:///:memory:", MEMORY_DATABASE),
            ("sqlite:///reports.db", "reports.db"),
            ("sqlite:////var/data/sales.db", "/var/data/sales.db"),
            ("  SQLITE:///x.db  ", "x.db"),
        ],
    )
    def test_parse(self, dsn, expected):
        assert parse_sqlite_dsn(dsn) == expected

    def test_relative_without_slash_is_rejected(self):
        with pytest.raises(ValueError, match="sqlite:///path"):
            parse_sqlite_dsn("sqlite://reports.db")

    @pytest.mark.parametrize(
        "dsn,expected",
        [
            ("sqlite:///x.db", True),
            ("DRIVER={SQLite3};Database=x.db", False),
            ("postgres://db/x", False),
        ],
    )
    def test_is_sqlite_dsn(self, dsn, expected):
        assert is_sqlite_dsn(dsn) is expected


class TestSqliteDataSource:
    """Test cases for SqliteDataSource."""

    def test_fetch_single_row(self, source, ctx):
        row = source.fetch(ctx, "SELECT customer AS Customer, total AS Total, note AS Note FROM orders WHERE id = 1")
        assert row == {"Customer": "Acme", "Total": 120.5, "Note": None}

    def test_no_rows(self, source, ctx):
        with pytest.raises(NoRowsError):
            source.fetch(ctx, "SELECT customer FROM orders WHERE id = 99")

    def test_multiple_rows(self, source, ctx):
        with pytest.raises(MultipleRowsError):
            source.fetch(ctx, "SELECT customer FROM orders")

    def test_empty_query(self, source, ctx):
        with pytest.raises(DataSourceError, match="must not be empty"):
            source.fetch(ctx, "  \n ")

    def test_syntax_error(self, source, ctx):
        with pytest.raises(DataSourceError, match="execute query"):
            source.fetch(ctx, "SELEC nonsense")

    def test_statement_without_result_set(self, source, ctx):
        with pytest.raises(DataSourceError, match="did not return a result set"):
            source.fetch(ctx, "UPDATE orders SET note = 'x' WHERE id = 99")

    def test_done_context_is_refused(self, source):
        ctx = RunContext()
        ctx.cancel()
        with pytest.raises(DataSourceError, match="run context is done"):
            source.fetch(ctx, "SELECT 1")

    def test_running_query_is_interrupted(self, source):
        ticks = iter([0.0, 0.5])
        ctx = RunContext(timeout=1, clock=lambda: next(ticks, 5.0))
        query = (
            "WITH RECURSIVE c(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM c WHERE x < 100000000) "
            "SELECT count(*) FROM c"
        )
        with pytest.raises(DataSourceError, match="interrupted"):
            source.fetch(ctx, query)

    def test_closed(self, source, ctx):
        source.close()
        source.close()
        assert source.closed
        with pytest.raises(DataSourceClosedError):
            source.fetch(ctx, "SELECT 1")

    def test_missing_database_is_not_created(self, tmp_path):
        path = tmp_path / "missing.db"
        with pytest.raises(DataSourceError, match="open database"):
            SqliteDataSource.connect(f"sqlite:///{path}")
        assert not path.exists()

    def test_malformed_dsn(self):
        with pytest.raises(DataSourceError, match="parse DSN"):
            SqliteDataSource.connect("sqlite://reports.db")

    def test_memory_database(self, ctx):
        source = SqliteDataSource.connect("sqlite://")
        try:
            assert source.fetch(ctx, "SELECT 1 AS One, 'x' AS Name") == {"One": 1, "Name": "x"}
        finally:
            source.close()


def test_open_data_source_picks_sqlite(database, ctx):
    source = open_data_source(DataSourceConfig(dsn=f"sqlite:///{database}"))
    try:
        assert isinstance(source, SqliteDataSource)
        assert source.fetch(ctx, "SELECT COUNT(*) AS Orders FROM orders") == {"Orders": 2}
    finally:
        source.close()
