"""
CLI formatters for generation results and configuration summaries.
"""

from __future__ import annotations

from typing import Mapping

from rich.console import Console
from rich.table import Table

from excalibur.application.report import GenerationResult
from excalibur.domain.config import AppConfig, format_duration
from excalibur.utils.dsn import mask_dsn_password


def display_generation_summary(console: Console, result: GenerationResult) -> None:
    """Print the counters of a finished run."""
    stats = result.stats
    table = Table(title="Report Generation Summary")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", justify="right")

    table.add_row("Output", str(result.output_path))
    table.add_row("Duration", f"{result.duration_seconds:.2f}s")
    table.add_row("Sheets processed", str(stats.sheets_processed))
    table.add_row("Rows scanned", str(stats.rows_scanned))
    table.add_row("Query references", str(stats.references_found))
    table.add_row("Queries executed", str(stats.queries_executed))
    table.add_row("Rows skipped", str(stats.rows_skipped))
    table.add_row("Cells updated", str(stats.cells_updated))
    table.add_row("Cells unchanged", str(stats.cells_unchanged))
    failed = f"[yellow]{stats.cells_failed}[/yellow]" if stats.cells_failed else "0"
    table.add_row("Cells failed", failed)

    console.print(table)


def display_config_summary(console: Console, config: AppConfig) -> None:
    """Print the effective configuration (password masked)."""
    report = config.report
    table = Table(title="Effective Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="blue")

    table.add_row("DSN", mask_dsn_password(config.datasource.get_dsn()))
    table.add_row("Template", str(report.template_path))
    table.add_row("Output", str(report.output_path))
    table.add_row("Queries directory", str(report.queries_dir))
    table.add_row("Reference column", report.ref_column)
    table.add_row("Timeout", format_duration(report.timeout))
    table.add_row("On fetch error", report.on_fetch_error.value)

    console.print(table)


def display_problems(console: Console, problems: Mapping[str, str]) -> None:
    """Print configuration problems as a table."""
    table = Table(title="Configuration Problems")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Problem", style="red")
    for key in sorted(problems):
        table.add_row(key, problems[key])
    console.print(table)
