"""
Exception hierarchy for Excalibur.

Failures are grouped by where they happen:
- Configuration problems (raised before any work starts)
- Data source failures (query execution and result-shape contracts)
- Report failures (template, workbook, query files, cell encoding)
- Interruptions (cancellation and timeouts)

Report errors carry the sheet, row, cell and file path they relate to so the
offending template cell can be located from the message alone.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional


class ExcaliburError(Exception):
    """Base exception for all Excalibur errors."""


class ConfigurationError(ExcaliburError):
    """Configuration could not be loaded or failed validation."""

    def __init__(self, message: str, problems: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.problems = dict(problems or {})


# ============================================================================
# Data Source Errors
# ============================================================================


class DataSourceError(ExcaliburError):
    """Generic data source failure (connection, execution, driver errors)."""


class NoRowsError(DataSourceError):
    """A query expected to return exactly one row returned none."""

    def __init__(self, message: str = "query returned no rows"):
        super().__init__(message)


class MultipleRowsError(DataSourceError):
    """A query expected to return exactly one row returned more."""

    def __init__(self, message: str = "query returned multiple rows"):
        super().__init__(message)


class DataSourceClosedError(DataSourceError):
    """An operation was attempted on a closed data source."""

    def __init__(self, message: str = "data source is closed"):
        super().__init__(message)


class SpreadsheetError(ExcaliburError):
    """Low-level workbook I/O failure raised by the spreadsheet adapter."""


# ============================================================================
# Report Errors
# ============================================================================


class ReportError(ExcaliburError):
    """
    Base class for report generation failures.

    Attributes:
        message: Description of the failure without location prefix
        sheet: Sheet name the failure happened on
        row: 1-based row number
        cell: Cell address (e.g. "C7")
        path: File involved (template, output or query file)
    """

    def __init__(
        self,
        message: str,
        *,
        sheet: str | None = None,
        row: int | None = None,
        cell: str | None = None,
        path: Path | str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.sheet = sheet
        self.row = row
        self.cell = cell
        self.path = Path(path) if path is not None else None

    def locate(self, *, sheet: str | None = None, row: int | None = None) -> "ReportError":
        """Fill in sheet/row if not already known. Returns self for re-raising."""
        if self.sheet is None:
            self.sheet = sheet
        if self.row is None:
            self.row = row
        return self

    @property
    def location(self) -> str:
        parts = []
        if self.sheet is not None:
            parts.append(f"sheet {self.sheet!r}")
        if self.row is not None:
            parts.append(f"row {self.row}")
        if self.cell is not None:
            parts.append(f"cell {self.cell}")
        return ", ".join(parts)

    def __str__(self) -> str:
        location = self.location
        if location:
            return f"{location}: {self.message}"
        return self.message


class TemplateCopyError(ReportError):
    """Template could not be copied to the output location."""


class WorkbookOpenError(ReportError):
    """Copied output file could not be opened as a workbook."""


class EmptyWorkbookError(ReportError):
    """Workbook contains no sheets."""


class InvalidReferenceColumnError(ReportError):
    """Reference column letter could not be converted to an index."""


class SheetReadError(ReportError):
    """Rows of a sheet could not be read."""


class QueryFileNotFoundError(ReportError):
    """A row references a query file that does not exist."""


class QueryFileReadError(ReportError):
    """A referenced query file exists but could not be read."""


class QueryExecutionError(ReportError):
    """The data source failed for a row's query (including multiple rows)."""


class ValueEncodingError(ReportError):
    """A fetched value could not be encoded for a spreadsheet cell."""


class WorkbookSaveError(ReportError):
    """The generated workbook could not be saved."""


class PlaceholderError(ExcaliburError):
    """A cell's placeholder expression could not be evaluated. Never fatal."""


# ============================================================================
# Interruptions
# ============================================================================


class GenerationInterrupted(ReportError):
    """Generation stopped before completion because its run context ended."""


class GenerationCancelled(GenerationInterrupted):
    """Generation was cancelled (signal or caller request)."""


class GenerationTimedOut(GenerationInterrupted):
    """Generation exceeded its deadline."""
