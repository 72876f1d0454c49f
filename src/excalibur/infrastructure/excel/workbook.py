"""
openpyxl-backed spreadsheet adapter.

Opens an existing workbook for in-place editing and exposes the small set of
operations the report engine needs. All openpyxl and I/O failures are
re-raised as SpreadsheetError.
"""

from __future__ import annotations

import logging
import zipfile
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, List

from openpyxl import load_workbook
from openpyxl.cell.cell import TYPE_STRING
from openpyxl.utils import column_index_from_string, get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError, InvalidFileException
from openpyxl.workbook import Workbook

from excalibur.domain.errors import SpreadsheetError

logger = logging.getLogger(__name__)

_MACRO_SUFFIXES = {".xlsm", ".xltm"}

# Sheet limits of the .xlsx format
MAX_COLUMN = 16384
MAX_ROW = 1048576


def column_letter_to_number(letter: str) -> int:
    """
    Convert a column letter to its 1-based number ("A" -> 1, "AA" -> 27).

    Raises:
        ValueError: If the letter is not a valid column name
    """
    if not letter or not letter.isalpha() or not letter.isascii():
        raise ValueError(f"invalid column name {letter!r}")
    number = column_index_from_string(letter.upper())
    if number > MAX_COLUMN:
        raise ValueError(f"column {letter!r} is beyond the last column XFD")
    return number


def coordinates_to_address(column: int, row: int) -> str:
    """
    Convert 1-based column/row numbers to an address ("C", 7 -> "C7").

    Raises:
        ValueError: If either coordinate is out of range
    """
    if not 1 <= column <= MAX_COLUMN:
        raise ValueError(f"invalid column number {column}")
    if not 1 <= row <= MAX_ROW:
        raise ValueError(f"invalid row number {row}")
    return f"{get_column_letter(column)}{row}"


def cell_text(value: Any) -> str:
    """Text of a stored cell value as the engine sees it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class ExcelWorkbook:
    """
    Workbook opened from (and saved back to) a single path.

    Usage:
        with ExcelWorkbook.open(Path("report.xlsx")) as wb:
            for sheet in wb.sheet_names():
                rows = wb.get_rows(sheet)
            wb.set_cell_value("Summary", "C7", 42)
            wb.save()
    """

    def __init__(self, path: Path, workbook: Workbook) -> None:
        self.path = Path(path)
        self._wb = workbook

    @classmethod
    def open(cls, path: Path | str) -> "ExcelWorkbook":
        """
        Open an existing workbook for editing.

        Raises:
            SpreadsheetError: If the file is missing, unreadable or not a workbook
        """
        path = Path(path)
        try:
            workbook = load_workbook(path, keep_vba=path.suffix.lower() in _MACRO_SUFFIXES)
        except (OSError, zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as e:
            raise SpreadsheetError(f"open workbook {path}: {e}") from e
        logger.debug("Opened workbook %s (%d sheets)", path, len(workbook.sheetnames))
        return cls(path, workbook)

    @property
    def workbook(self) -> Workbook:
        return self._wb

    def sheet_names(self) -> List[str]:
        return list(self._wb.sheetnames)

    def _sheet(self, sheet: str):
        try:
            return self._wb[sheet]
        except KeyError as e:
            raise SpreadsheetError(f"sheet {sheet!r} does not exist") from e

    def get_rows(self, sheet: str) -> List[List[str]]:
        """
        Read every row of a sheet as text.

        Row i of the result is sheet row i + 1. Trailing empty cells of each
        row and trailing empty rows are dropped, so rows are ragged.
        """
        ws = self._sheet(sheet)
        rows: List[List[str]] = []
        for values in ws.iter_rows(min_row=1, min_col=1, values_only=True):
            cells = [cell_text(value) for value in values]
            while cells and cells[-1] == "":
                cells.pop()
            rows.append(cells)

        while rows and not rows[-1]:
            rows.pop()
        return rows

    def set_cell_value(self, sheet: str, address: str, value: Any) -> None:
        """
        Write a value to a cell; None clears it.

        Strings starting with "=" are stored as text so fetched data can never
        turn into a formula.

        Raises:
            SpreadsheetError: If the sheet/address is invalid or the value is not storable
        """
        ws = self._sheet(sheet)
        try:
            cell = ws[address]
            cell.value = value
            if isinstance(value, str) and value.startswith("="):
                cell.data_type = TYPE_STRING
        except (AttributeError, IllegalCharacterError, KeyError, TypeError, ValueError) as e:
            raise SpreadsheetError(f"set cell {sheet}!{address}: {e}") from e

    def refresh_linked_values(self) -> None:
        """
        Mark formulas for recalculation.

        openpyxl does not evaluate formulas; instead the workbook is flagged so
        Excel/LibreOffice recompute every formula when the report is opened.
        """
        try:
            self._wb.calculation.fullCalcOnLoad = True
        except AttributeError as e:
            raise SpreadsheetError(f"update linked values: {e}") from e

    def save(self) -> None:
        """
        Raises:
            SpreadsheetError: If the workbook cannot be written
        """
        try:
            self._wb.save(self.path)
        except (OSError, TypeError, ValueError) as e:
            raise SpreadsheetError(f"save workbook {self.path}: {e}") from e
        logger.debug("Saved workbook %s", self.path)

    def close(self) -> None:
        self._wb.close()

    def __enter__(self) -> "ExcelWorkbook":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
