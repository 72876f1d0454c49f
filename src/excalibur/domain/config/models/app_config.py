"""
Application configuration domain model.

Bundles the data source and report settings and validates them together.
"""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from .datasource_config import DataSourceConfig
from .report_config import ReportConfig


class AppConfig(BaseModel):
    """Complete configuration for one Excalibur invocation."""

    model_config = ConfigDict(frozen=True)

    datasource: DataSourceConfig = Field(default_factory=DataSourceConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    def normalized(self) -> "AppConfig":
        """Return a copy with report paths made absolute."""
        return self.model_copy(update={"report": self.report.normalized()})

    def problems(self) -> Dict[str, str]:
        """Collect problems from all sections, keyed "section.field"."""
        problems: Dict[str, str] = {}
        for key, problem in self.datasource.problems().items():
            problems[f"datasource.{key}"] = problem
        for key, problem in self.report.problems().items():
            problems[f"report.{key}"] = problem
        return problems
