"""
Counters and result record for a generation run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ReportStats:
    """What a generation run did, accumulated row by row."""

    sheets_processed: int = 0
    rows_scanned: int = 0
    references_found: int = 0
    queries_executed: int = 0
    rows_skipped: int = 0  # reference present but no substitutions (empty query/no rows/skipped error)
    cells_updated: int = 0
    cells_unchanged: int = 0  # resolved to the same text as the template
    cells_failed: int = 0  # resolution or write failure, template text kept


@dataclass
class GenerationResult:
    """Outcome of a successful ReportGenerator.generate() call."""

    output_path: Path
    duration_seconds: float
    stats: ReportStats = field(default_factory=ReportStats)
