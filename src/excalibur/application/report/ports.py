"""
Capabilities the report engine consumes.

The engine never talks to a database driver or to openpyxl directly; it only
sees these protocols. Infrastructure provides the implementations.
"""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from excalibur.application.context import RunContext

# A fetched row: field name -> str | int | float | bool | Decimal | date/time
# value | "infinity"/"-infinity" marker | bytes | dict/list | None
FetchedRow = Dict[str, Any]


class DataSource(Protocol):
    """Executes one query and returns its single result row."""

    def fetch(self, ctx: RunContext, query: str) -> FetchedRow:
        """
        Run a query expected to produce exactly one row.

        Raises:
            NoRowsError: The query produced no rows
            MultipleRowsError: The query produced more than one row
            DataSourceClosedError: The data source was closed
            DataSourceError: Any other failure
        """
        ...

    def close(self) -> None:
        """Release resources. Later fetch() calls raise DataSourceClosedError."""
        ...


class Spreadsheet(Protocol):
    """In-place editable workbook."""

    def sheet_names(self) -> List[str]:
        ...

    def get_rows(self, sheet: str) -> List[List[str]]:
        """All rows of a sheet as ragged lists of cell text (row 1 first)."""
        ...

    def set_cell_value(self, sheet: str, address: str, value: Any) -> None:
        """Write a scalar (or None to clear) to a cell such as "C7"."""
        ...

    def refresh_linked_values(self) -> None:
        """Ask the spreadsheet engine to recompute formulas and links."""
        ...

    def save(self) -> None:
        ...

    def close(self) -> None:
        ...
