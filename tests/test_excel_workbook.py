"""
Tests for the openpyxl spreadsheet adapter.
"""

from datetime import datetime

import pytest
from openpyxl import Workbook, load_workbook

from excalibur.domain.errors import SpreadsheetError
from excalibur.infrastructure.excel import (
    ExcelWorkbook,
    cell_text,
    column_letter_to_number,
    coordinates_to_address,
)

from shared.helpers import build_workbook


class TestCoordinateHelpers:
    @pytest.mark.parametrize("letter,number", [("A", 1), ("R", 18), ("Z", 26), ("AA", 27), ("XFD", 16384), ("r", 18)])
    def test_column_letter_to_number(self, letter, number):
        assert column_letter_to_number(letter) == number

    @pytest.mark.parametrize("letter", ["", "R2", "1", "A-B", "XFE", "Ä"])
    def test_invalid_column_letters(self, letter):
        with pytest.raises(ValueError):
            column_letter_to_number(letter)

    def test_coordinates_to_address(self):
        assert coordinates_to_address(3, 7) == "C7"
        assert coordinates_to_address(18, 2) == "R2"

    @pytest.mark.parametrize("column,row", [(0, 1), (1, 0), (16385, 1)])
    def test_invalid_coordinates(self, column, row):
        with pytest.raises(ValueError):
            coordinates_to_address(column, row)

    def test_cell_text(self):
        assert cell_text(None) == ""
        assert cell_text(True) == "TRUE"
        assert cell_text(12) == "12"
        assert cell_text(datetime(2024, 1, 2, 3, 4)) == "2024-01-02T03:04:00"


class TestExcelWorkbook:
    """Test cases for ExcelWorkbook."""

    def test_open_missing_file(self, tmp_path):
        with pytest.raises(SpreadsheetError):
            ExcelWorkbook.open(tmp_path / "missing.xlsx")

    def test_get_rows_is_ragged_and_trimmed(self, tmp_path):
        path = build_workbook(
            tmp_path / "t.xlsx",
            {"Data": [["a", None, "c"], [None], ["x"], [None, None], [None]]},
        )
        with ExcelWorkbook.open(path) as wb:
            assert wb.sheet_names() == ["Data"]
            assert wb.get_rows("Data") == [["a", "", "c"], [], ["x"]]

    def test_get_rows_converts_values_to_text(self, tmp_path):
        path = build_workbook(tmp_path / "t.xlsx", {"Data": [[1, 2.5, True, "{{ .X }}"]]})
        with ExcelWorkbook.open(path) as wb:
            assert wb.get_rows("Data") == [["1", "2.5", "TRUE", "{{ .X }}"]]

    def test_unknown_sheet(self, tmp_path):
        path = build_workbook(tmp_path / "t.xlsx", {"Data": [["a"]]})
        with ExcelWorkbook.open(path) as wb:
            with pytest.raises(SpreadsheetError, match="does not exist"):
                wb.get_rows("Other")

    def test_set_save_roundtrip(self, tmp_path):
        path = build_workbook(tmp_path / "t.xlsx", {"Data": [["a", "b"]]})
        with ExcelWorkbook.open(path) as wb:
            wb.set_cell_value("Data", "A1", 42)
            wb.set_cell_value("Data", "B1", None)
            wb.set_cell_value("Data", "C1", "=1+1")
            wb.refresh_linked_values()
            wb.save()

        check = load_workbook(path)
        ws = check["Data"]
        assert ws["A1"].value == 42
        assert ws["B1"].value is None
        assert ws["C1"].value == "=1+1"
        assert ws["C1"].data_type == "s"
        assert check.calculation.fullCalcOnLoad is True
        check.close()

    def test_set_invalid_address(self, tmp_path):
        path = build_workbook(tmp_path / "t.xlsx", {"Data": [["a"]]})
        with ExcelWorkbook.open(path) as wb:
            with pytest.raises(SpreadsheetError):
                wb.set_cell_value("Data", "not-an-address", 1)

    def test_set_illegal_characters(self, tmp_path):
        path = build_workbook(tmp_path / "t.xlsx", {"Data": [["a"]]})
        with ExcelWorkbook.open(path) as wb:
            with pytest.raises(SpreadsheetError):
                wb.set_cell_value("Data", "A1", "bad\x00value")

    def test_save_to_missing_directory_fails(self, tmp_path):
        wb = Workbook()
        adapter = ExcelWorkbook(tmp_path / "missing" / "dir" / "out.xlsx", wb)
        with pytest.raises(SpreadsheetError):
            adapter.save()
