"""
Excel infrastructure package.

Usage:
    from excalibur.infrastructure.excel import ExcelWorkbook

    with ExcelWorkbook.open("report.xlsx") as wb:
        wb.set_cell_value("Summary", "B2", 42)
        wb.save()
"""

from excalibur.infrastructure.excel.workbook import (
    ExcelWorkbook,
    cell_text,
    column_letter_to_number,
    coordinates_to_address,
)

__all__ = [
    "ExcelWorkbook",
    "cell_text",
    "column_letter_to_number",
    "coordinates_to_address",
]
