"""
Report generation engine.

Usage:
    from excalibur.application.report import ReportGenerator

    result = ReportGenerator(data_source, config.report).generate(ctx)
"""

from excalibur.application.report.encoder import encode_value, text_form
from excalibur.application.report.generator import ReportGenerator
from excalibur.application.report.placeholders import (
    FieldReferenceStrategy,
    PlaceholderResolver,
    PlaceholderStrategy,
    TemplateStrategy,
    has_placeholder,
)
from excalibur.application.report.ports import DataSource, FetchedRow, Spreadsheet
from excalibur.application.report.rows import RowProcessor
from excalibur.application.report.sheets import SheetProcessor
from excalibur.application.report.stats import GenerationResult, ReportStats

__all__ = [
    "DataSource",
    "FetchedRow",
    "FieldReferenceStrategy",
    "GenerationResult",
    "PlaceholderResolver",
    "PlaceholderStrategy",
    "ReportGenerator",
    "ReportStats",
    "RowProcessor",
    "SheetProcessor",
    "Spreadsheet",
    "TemplateStrategy",
    "encode_value",
    "has_placeholder",
    "text_form",
]
