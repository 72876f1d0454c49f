"""
Report Generator.

Top-level entry point of the engine:

1. Copy the template to the output path
2. Open the copy for in-place editing
3. Resolve the reference column once
4. Process every sheet (rows -> query -> placeholder substitution)
5. Flag formulas for recalculation (best effort)
6. Save, always closing the workbook

Usage:
    generator = ReportGenerator(data_source, config.report, logger=logger)
    result = generator.generate(RunContext(config.report.timeout))
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from excalibur.application.context import RunContext
from excalibur.application.report.placeholders import PlaceholderResolver
from excalibur.application.report.ports import DataSource, Spreadsheet
from excalibur.application.report.rows import RowProcessor
from excalibur.application.report.sheets import SheetProcessor
from excalibur.application.report.stats import GenerationResult, ReportStats
from excalibur.domain.config import ReportConfig
from excalibur.domain.errors import (
    EmptyWorkbookError,
    InvalidReferenceColumnError,
    SpreadsheetError,
    TemplateCopyError,
    WorkbookOpenError,
    WorkbookSaveError,
)
from excalibur.infrastructure.excel import ExcelWorkbook, column_letter_to_number
from excalibur.infrastructure.files import copy_file
from excalibur.infrastructure.logging_config import ContextLogger, get_logger

WorkbookOpener = Callable[[Path], Spreadsheet]


class ReportGenerator:
    """
    Generates one report from a template and a data source.

    The generator owns the output workbook for the duration of generate();
    the data source is borrowed and is not closed here.
    """

    def __init__(
        self,
        data_source: DataSource,
        config: ReportConfig,
        logger: logging.Logger | ContextLogger | None = None,
        workbook_opener: WorkbookOpener = ExcelWorkbook.open,
        resolver: Optional[PlaceholderResolver] = None,
    ) -> None:
        """
        Args:
            data_source: Executes the row queries
            config: Validated report configuration with absolute paths
            logger: Logger to use (defaults to this module's logger)
            workbook_opener: Opens the copied output file
            resolver: Placeholder resolver shared by all rows

        Raises:
            ValueError: If a configured path is missing or relative
        """
        for name in ("template_path", "output_path", "queries_dir"):
            value = getattr(config, name)
            if value is None or not Path(value).is_absolute():
                raise ValueError(f"report {name} must be an absolute path, got: {value}")

        self.data_source = data_source
        self.config = config
        self.workbook_opener = workbook_opener
        self.resolver = resolver or PlaceholderResolver()
        self.log = get_logger(logger, __name__, component="ReportGenerator")

    def generate(self, ctx: Optional[RunContext] = None) -> GenerationResult:
        """
        Generate the report.

        Args:
            ctx: Run context; defaults to one bounded by the configured timeout

        Returns:
            GenerationResult with the output path, elapsed time and counters

        Raises:
            TemplateCopyError, WorkbookOpenError, EmptyWorkbookError,
            InvalidReferenceColumnError, SheetReadError, QueryFileNotFoundError,
            QueryFileReadError, QueryExecutionError, ValueEncodingError,
            WorkbookSaveError, GenerationCancelled, GenerationTimedOut
        """
        ctx = ctx or RunContext(self.config.timeout)
        template_path = Path(self.config.template_path)
        output_path = Path(self.config.output_path)
        queries_dir = Path(self.config.queries_dir)

        log = self.log.bind(template=str(template_path), output=str(output_path))
        log.info("Starting report generation")
        started = time.perf_counter()
        stats = ReportStats()

        # 1. Copy template to output
        log.debug("Copying template file to output path")
        try:
            copy_file(template_path, output_path)
        except (OSError, ValueError) as e:
            log.error("Failed to copy template file: %s", e)
            raise TemplateCopyError(
                f"copy template {str(template_path)!r} to {str(output_path)!r}: {e}",
                path=output_path,
            ) from e

        # 2. Open the copy
        log.debug("Opening output file for processing")
        try:
            workbook = self.workbook_opener(output_path)
        except SpreadsheetError as e:
            log.error("Failed to open output file: %s", e)
            raise WorkbookOpenError(f"open output file {str(output_path)!r}: {e}", path=output_path) from e

        try:
            self._process_workbook(ctx, workbook, queries_dir, stats, log)

            # 5. Refresh formulas; a stale value is preferable to losing the report
            log.debug("Updating linked values")
            try:
                workbook.refresh_linked_values()
            except SpreadsheetError as e:
                log.warning("Failed to update linked values: %s", e)

            # 6. Save
            log.debug("Saving output file")
            try:
                workbook.save()
            except SpreadsheetError as e:
                log.error("Failed to save output file: %s", e)
                raise WorkbookSaveError(f"save output file {str(output_path)!r}: {e}", path=output_path) from e
        finally:
            try:
                workbook.close()
            except SpreadsheetError as e:
                log.warning("Failed to close output file: %s", e)

        duration = time.perf_counter() - started
        log.info("Report generation completed successfully in %.3fs", duration)
        return GenerationResult(output_path=output_path, duration_seconds=duration, stats=stats)

    def _process_workbook(
        self,
        ctx: RunContext,
        workbook: Spreadsheet,
        queries_dir: Path,
        stats: ReportStats,
        log: ContextLogger,
    ) -> None:
        # 3. Sheets
        sheets = workbook.sheet_names()
        if not sheets:
            log.error("No sheets found in the workbook")
            raise EmptyWorkbookError("no sheets found in the workbook", path=self.config.output_path)

        # 4. Reference column, once for all sheets
        try:
            ref_index = column_letter_to_number(self.config.ref_column) - 1
        except ValueError as e:
            log.error("Invalid reference column name %r: %s", self.config.ref_column, e)
            raise InvalidReferenceColumnError(
                f"invalid reference column name {self.config.ref_column!r}: {e}"
            ) from e
        log.debug("Using reference column %s (index %d)", self.config.ref_column, ref_index)

        row_processor = RowProcessor(
            self.data_source,
            resolver=self.resolver,
            fetch_error_policy=self.config.on_fetch_error,
            stats=stats,
            logger=log,
        )
        sheet_processor = SheetProcessor(row_processor, logger=log)

        for sheet_name in sheets:
            sheet_processor.process_sheet(ctx, workbook, sheet_name, ref_index, queries_dir)
            ctx.check(f"processing interrupted after sheet {sheet_name!r}")
