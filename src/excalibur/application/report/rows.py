"""
Row processing: one query reference -> one fetched row -> cell substitutions.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from excalibur.application.context import RunContext
from excalibur.application.report.encoder import encode_value, text_form
from excalibur.application.report.placeholders import PlaceholderResolver, has_placeholder
from excalibur.application.report.ports import DataSource, FetchedRow, Spreadsheet
from excalibur.application.report.stats import ReportStats
from excalibur.domain.config import FetchErrorPolicy
from excalibur.domain.errors import (
    DataSourceError,
    NoRowsError,
    PlaceholderError,
    QueryExecutionError,
    QueryFileNotFoundError,
    QueryFileReadError,
    SpreadsheetError,
    ValueEncodingError,
)
from excalibur.infrastructure.excel import coordinates_to_address
from excalibur.infrastructure.logging_config import ContextLogger, get_logger


def resolve_query_path(queries_dir: Path, reference: str) -> Path:
    """
    Join a row reference onto the queries directory and clean the result.

    The reference is always treated as relative, even with a leading
    separator; "." and ".." segments are collapsed.
    """
    relative = reference.lstrip("/\\")
    return Path(os.path.normpath(os.path.join(str(queries_dir), relative)))


class RowProcessor:
    """
    Processes a single template row.

    A row takes part in generation only if its reference-column cell names a
    query file. The reference cell is always cleared, the query is run, and
    every other cell containing a placeholder is rewritten from the result.
    """

    def __init__(
        self,
        data_source: DataSource,
        *,
        resolver: Optional[PlaceholderResolver] = None,
        fetch_error_policy: FetchErrorPolicy = FetchErrorPolicy.FAIL,
        stats: Optional[ReportStats] = None,
        logger: logging.Logger | ContextLogger | None = None,
    ) -> None:
        self.data_source = data_source
        self.resolver = resolver or PlaceholderResolver()
        self.fetch_error_policy = FetchErrorPolicy(fetch_error_policy)
        self.stats = stats if stats is not None else ReportStats()
        self.log = get_logger(logger, __name__)

    def process_row(
        self,
        ctx: RunContext,
        workbook: Spreadsheet,
        sheet_name: str,
        row_number: int,
        row_cells: List[str],
        ref_index: int,
        queries_dir: Path,
        log: Optional[ContextLogger] = None,
    ) -> None:
        """
        Process one row.

        Args:
            ctx: Run context (consulted by the data source and on fetch failure)
            workbook: Workbook being edited
            sheet_name: Sheet the row belongs to
            row_number: 1-based row number
            row_cells: Cell texts of the row (ragged)
            ref_index: 0-based index of the reference column
            queries_dir: Absolute base directory for query files
            log: Logger already bound to sheet/row context

        Raises:
            QueryFileNotFoundError: Referenced query file does not exist
            QueryFileReadError: Referenced query file could not be read
            QueryExecutionError: Fetch failed and the policy is FAIL
            ValueEncodingError: A resolved value could not be encoded
            GenerationInterrupted: The run context ended while fetching
        """
        log = log or self.log.bind(sheet=sheet_name, row=row_number)

        # 1. Reference present?
        if len(row_cells) <= ref_index:
            return
        reference = row_cells[ref_index].strip()
        if not reference:
            return

        self.stats.references_found += 1

        # 2. Resolve the query file path
        query_path = resolve_query_path(queries_dir, reference)
        log = log.bind(sql_file_relative=reference, sql_file_absolute=str(query_path))
        log.info("Found SQL reference, processing row")

        # 3. Clear the reference cell; losing the marker is cosmetic so failures only warn
        self._clear_reference_cell(workbook, sheet_name, row_number, ref_index, log)

        # 4. Read the query file
        query = self._read_query(query_path, log).strip()
        if not query:
            log.warning("Skipping data fetch and replacement: SQL file is empty or contains only whitespace")
            self.stats.rows_skipped += 1
            return
        log.debug("SQL query read successfully: %s", query)

        # 5. Fetch the row
        fields = self._fetch(ctx, query, query_path, sheet_name, row_number, log)
        if fields is None:
            self.stats.rows_skipped += 1
            return
        if not fields:
            log.warning("Skipping marker replacement: fetched row has no fields")
            self.stats.rows_skipped += 1
            return
        log.debug("Data fetched successfully (fields: %s)", ", ".join(fields))

        # 6. Replace placeholders
        self._replace_placeholders(workbook, sheet_name, row_number, row_cells, ref_index, fields, log)
        log.info("Finished processing row")

    def _clear_reference_cell(
        self,
        workbook: Spreadsheet,
        sheet_name: str,
        row_number: int,
        ref_index: int,
        log: ContextLogger,
    ) -> None:
        try:
            address = coordinates_to_address(ref_index + 1, row_number)
        except ValueError as e:
            log.error("Internal error: failed to calculate SQL reference cell coordinates: %s", e)
            return

        log.debug("Clearing SQL reference cell %s", address)
        try:
            workbook.set_cell_value(sheet_name, address, None)
        except SpreadsheetError as e:
            log.warning("Failed to clear SQL reference cell %s (continuing processing): %s", address, e)

    def _read_query(self, query_path: Path, log: ContextLogger) -> str:
        log.debug("Reading SQL query file")
        try:
            return query_path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as e:
            log.error("Referenced SQL file not found")
            raise QueryFileNotFoundError(
                f"referenced SQL file not found at {str(query_path)!r}", path=query_path
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            log.error("Failed to read SQL file: %s", e)
            raise QueryFileReadError(f"read SQL file {str(query_path)!r}: {e}", path=query_path) from e

    def _fetch(
        self,
        ctx: RunContext,
        query: str,
        query_path: Path,
        sheet_name: str,
        row_number: int,
        log: ContextLogger,
    ) -> Optional[FetchedRow]:
        """Run the query. Returns None when the row should be skipped."""
        log.debug("Fetching data from data source")
        self.stats.queries_executed += 1
        try:
            return self.data_source.fetch(ctx, query)
        except NoRowsError:
            log.warning("SQL query returned no rows, skipping replacements for this row")
            return None
        except DataSourceError as e:
            # A fetch that failed because the run ended is reported as the interruption
            ctx.check(
                f"fetch data using query from {str(query_path)!r} interrupted",
                sheet=sheet_name,
                row=row_number,
            )
            if self.fetch_error_policy is FetchErrorPolicy.SKIP:
                log.warning("Failed to fetch data from data source, skipping row: %s", e)
                return None
            log.error("Failed to fetch data from data source: %s", e)
            raise QueryExecutionError(
                f"fetch data using query from {str(query_path)!r}: {e}", path=query_path
            ) from e

    def _replace_placeholders(
        self,
        workbook: Spreadsheet,
        sheet_name: str,
        row_number: int,
        row_cells: List[str],
        ref_index: int,
        fields: FetchedRow,
        log: ContextLogger,
    ) -> None:
        log.debug("Scanning row cells for placeholders")
        for cell_index, original in enumerate(row_cells):
            if cell_index == ref_index or not has_placeholder(original):
                continue

            address = coordinates_to_address(cell_index + 1, row_number)
            cell_log = log.bind(cell=address)
            cell_log.debug("Found potential template, processing cell content: %r", original)

            try:
                resolved = self.resolver.resolve(original, fields)
            except PlaceholderError as e:
                cell_log.warning("Failed to process cell content template (leaving original value): %s", e)
                self.stats.cells_failed += 1
                continue

            try:
                final_value = encode_value(resolved)
            except ValueEncodingError as e:
                cell_log.error("Failed to encode data type for cell: %s", e)
                e.sheet, e.row, e.cell = sheet_name, row_number, address
                raise

            if text_form(final_value) == original:
                cell_log.debug("Skipping cell update: processed value is same as original")
                self.stats.cells_unchanged += 1
                continue

            cell_log.debug("Setting processed cell value: %r", final_value)
            try:
                workbook.set_cell_value(sheet_name, address, final_value)
            except SpreadsheetError as e:
                cell_log.warning("Failed to set processed cell value: %s", e)
                self.stats.cells_failed += 1
                continue
            self.stats.cells_updated += 1
