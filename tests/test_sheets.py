"""
Tests for SheetProcessor.
"""

import pytest

from excalibur.application.context import RunContext
from excalibur.application.report.rows import RowProcessor
from excalibur.application.report.sheets import SheetProcessor
from excalibur.domain.errors import GenerationCancelled, QueryFileNotFoundError, SheetReadError, SpreadsheetError

from shared.helpers import MemorySpreadsheet


class BrokenSpreadsheet(MemorySpreadsheet):
    def get_rows(self, sheet):
        raise SpreadsheetError("corrupt sheet")


class TestSheetProcessor:
    """Test cases for SheetProcessor."""

    def make(self, fake_source):
        return SheetProcessor(RowProcessor(fake_source))

    def test_empty_sheet_is_noop(self, fake_source, queries_dir, ctx):
        sheet = MemorySpreadsheet({"Empty": []})
        self.make(fake_source).process_sheet(ctx, sheet, "Empty", 2, queries_dir)
        assert sheet.writes == []

    def test_rows_are_numbered_from_one(self, fake_source, queries_dir, write_query, ctx):
        write_query("q.sql", "SELECT 1")
        fake_source.results["SELECT 1"] = {"Value": 7}
        sheet = MemorySpreadsheet({"Data": [["Header", "", ""], ["{{ .Value }}", "", "q.sql"]]})

        processor = self.make(fake_source)
        processor.process_sheet(ctx, sheet, "Data", 2, queries_dir)

        assert sheet.written("Data") == {"C2": None, "A2": 7}
        assert processor.row_processor.stats.rows_scanned == 2
        assert processor.row_processor.stats.sheets_processed == 1

    def test_row_error_is_located(self, fake_source, queries_dir, ctx):
        sheet = MemorySpreadsheet({"Data": [[], ["", "", "nope.sql"]]})
        with pytest.raises(QueryFileNotFoundError) as exc_info:
            self.make(fake_source).process_sheet(ctx, sheet, "Data", 2, queries_dir)

        assert exc_info.value.sheet == "Data"
        assert exc_info.value.row == 2
        assert str(exc_info.value).startswith("sheet 'Data', row 2: referenced SQL file not found")

    def test_read_failure(self, fake_source, queries_dir, ctx):
        sheet = BrokenSpreadsheet({"Data": []})
        with pytest.raises(SheetReadError, match="corrupt sheet"):
            self.make(fake_source).process_sheet(ctx, sheet, "Data", 2, queries_dir)

    def test_cancellation_between_rows(self, fake_source, queries_dir, write_query):
        write_query("q.sql", "SELECT 1")
        run_ctx = RunContext()
        fake_source.results["SELECT 1"] = {"Value": 1}
        fake_source.on_fetch = lambda ctx, query: ctx.cancel()
        sheet = MemorySpreadsheet({"Data": [["{{ .Value }}", "", "q.sql"], ["{{ .Value }}", "", "q.sql"]]})

        with pytest.raises(GenerationCancelled) as exc_info:
            self.make(fake_source).process_sheet(run_ctx, sheet, "Data", 2, queries_dir)

        # First row completes, second row is never started
        assert fake_source.queries == ["SELECT 1"]
        assert sheet.written("Data") == {"C1": None, "A1": 1}
        assert exc_info.value.row == 2
