"""
Test helpers: an in-memory data source and workbook builders/readers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from openpyxl import Workbook, load_workbook

from excalibur.application.context import RunContext
from excalibur.domain.errors import DataSourceClosedError


class FakeDataSource:
    """
    In-memory data source keyed by query text.

    Values are either a row mapping or an exception instance to raise.
    Unknown queries raise KeyError so a test never passes by accident.
    """

    def __init__(self, results: Optional[Mapping[str, Any]] = None) -> None:
        self.results: Dict[str, Any] = dict(results or {})
        self.queries: List[str] = []
        self.closed = False
        self.on_fetch = None  # optional hook(ctx, query) run before answering

    def fetch(self, ctx: RunContext, query: str) -> Dict[str, Any]:
        if self.closed:
            raise DataSourceClosedError()
        self.queries.append(query)
        if self.on_fetch is not None:
            self.on_fetch(ctx, query)
        result = self.results[query]
        if isinstance(result, BaseException):
            raise result
        return dict(result)

    def close(self) -> None:
        self.closed = True


def build_workbook(path: Path, sheets: Mapping[str, Sequence[Sequence[Any]]]) -> Path:
    """Write a workbook whose sheets hold the given rows (row 1 first)."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row_index, row in enumerate(rows, start=1):
            for col_index, value in enumerate(row, start=1):
                if value is not None:
                    ws.cell(row=row_index, column=col_index, value=value)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


def _trim(row: Sequence[Any]) -> List[Any]:
    values = list(row)
    while values and values[-1] is None:
        values.pop()
    return values


def read_values(path: Path, sheet: str) -> List[List[Any]]:
    """Cell values of a sheet, row by row, with trailing empty cells dropped."""
    wb = load_workbook(path)
    try:
        return [_trim(row) for row in wb[sheet].iter_rows(values_only=True)]
    finally:
        wb.close()


def read_cell(path: Path, sheet: str, address: str) -> Any:
    wb = load_workbook(path)
    try:
        return wb[sheet][address].value
    finally:
        wb.close()


class MemorySpreadsheet:
    """
    In-memory Spreadsheet recording every write.

    `fail_on` maps a cell address to the exception set_cell_value raises for it.
    """

    def __init__(self, sheets: Mapping[str, List[List[str]]]) -> None:
        self.sheets = {name: [list(row) for row in rows] for name, rows in sheets.items()}
        self.writes: List[tuple] = []
        self.fail_on: Dict[str, BaseException] = {}
        self.refreshed = False
        self.saved = False
        self.closed = False

    def sheet_names(self) -> List[str]:
        return list(self.sheets)

    def get_rows(self, sheet: str) -> List[List[str]]:
        return [list(row) for row in self.sheets[sheet]]

    def set_cell_value(self, sheet: str, address: str, value: Any) -> None:
        if address in self.fail_on:
            raise self.fail_on[address]
        self.writes.append((sheet, address, value))

    def written(self, sheet: str) -> Dict[str, Any]:
        return {address: value for name, address, value in self.writes if name == sheet}

    def refresh_linked_values(self) -> None:
        self.refreshed = True

    def save(self) -> None:
        self.saved = True

    def close(self) -> None:
        self.closed = True
