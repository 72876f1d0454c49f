"""
Sheet processing: walk the rows of one sheet and hand them to the row processor.
"""

from __future__ import annotations

import logging
from pathlib import Path

from excalibur.application.context import RunContext
from excalibur.application.report.ports import Spreadsheet
from excalibur.application.report.rows import RowProcessor
from excalibur.domain.errors import ReportError, SheetReadError, SpreadsheetError
from excalibur.infrastructure.logging_config import ContextLogger, get_logger


class SheetProcessor:
    """Reads a sheet eagerly and processes it row by row."""

    def __init__(
        self,
        row_processor: RowProcessor,
        logger: logging.Logger | ContextLogger | None = None,
    ) -> None:
        self.row_processor = row_processor
        self.log = get_logger(logger, __name__)

    def process_sheet(
        self,
        ctx: RunContext,
        workbook: Spreadsheet,
        sheet_name: str,
        ref_index: int,
        queries_dir: Path,
    ) -> None:
        """
        Process every row of a sheet.

        Cancellation is checked before each row; the first row error aborts
        the sheet.

        Raises:
            SheetReadError: If the rows cannot be read
            GenerationInterrupted: If the context ends between rows
            ReportError: Any fatal row error, located at sheet and row
        """
        log = self.log.bind(sheet=sheet_name)
        log.info("Processing sheet")

        try:
            rows = workbook.get_rows(sheet_name)
        except SpreadsheetError as e:
            log.error("Failed to get rows from sheet: %s", e)
            raise SheetReadError(f"get rows from sheet: {e}", sheet=sheet_name) from e

        if not rows:
            log.info("Sheet is empty, skipping")
            return

        stats = self.row_processor.stats
        for index, row_cells in enumerate(rows):
            row_number = index + 1
            ctx.check("processing interrupted", sheet=sheet_name, row=row_number)

            stats.rows_scanned += 1
            row_log = log.bind(row=row_number)
            try:
                self.row_processor.process_row(
                    ctx,
                    workbook,
                    sheet_name,
                    row_number,
                    row_cells,
                    ref_index,
                    queries_dir,
                    log=row_log,
                )
            except ReportError as e:
                raise e.locate(sheet=sheet_name, row=row_number)

        stats.sheets_processed += 1
        log.info("Finished processing sheet (%d rows)", len(rows))
