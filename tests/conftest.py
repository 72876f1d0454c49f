"""
Shared fixtures for the Excalibur test suite.

Provides template workbooks, query directories, report configurations and an
in-memory data source.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

import pytest

from excalibur.application.context import RunContext
from excalibur.domain.config import ReportConfig

from shared.helpers import FakeDataSource, build_workbook


@pytest.fixture
def fake_source() -> FakeDataSource:
    return FakeDataSource()


@pytest.fixture
def queries_dir(tmp_path: Path) -> Path:
    path = tmp_path / "queries"
    path.mkdir()
    return path


@pytest.fixture
def write_query(queries_dir: Path):
    """Create a query file under the queries directory: write_query("a/b.sql", "SELECT 1")."""

    def _write(relative: str, text: str) -> Path:
        path = queries_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def template_factory(tmp_path: Path):
    """Build a template workbook: template_factory({"Sheet": [[...], ...]})."""

    def _make(sheets: Mapping[str, Sequence[Sequence[Any]]], name: str = "template.xlsx") -> Path:
        return build_workbook(tmp_path / name, sheets)

    return _make


@pytest.fixture
def report_config(tmp_path: Path, queries_dir: Path):
    """ReportConfig factory with absolute paths inside tmp_path."""

    def _make(template: Path, **overrides: Any) -> ReportConfig:
        values: Dict[str, Any] = {
            "template_path": template,
            "output_path": tmp_path / "out" / "report.xlsx",
            "queries_dir": queries_dir,
            "ref_column": "C",
            "timeout": "1m",
        }
        values.update(overrides)
        return ReportConfig(**values)

    return _make


@pytest.fixture
def ctx() -> RunContext:
    return RunContext(timeout=60)


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Undo configure_logging() so later tests see propagating records again."""
    yield
    logger = logging.getLogger("excalibur")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
