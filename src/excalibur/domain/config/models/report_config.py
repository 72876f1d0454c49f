"""
Report configuration domain model.

Describes one report run: which template to fill, where to write the result,
where query files live, which column holds the query references and how long
the whole run may take.
"""

from __future__ import annotations

import re
from datetime import timedelta
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..duration import parse_duration
from .enums import FetchErrorPolicy

DEFAULT_REPORT_TIMEOUT = timedelta(minutes=5)
DEFAULT_REF_COLUMN = "R"
DEFAULT_QUERIES_DIR = Path("queries")
DEFAULT_OUTPUT_PATH = Path("excalibur_report.xlsx")

# Column names A..XFD; XFD (16384) is the last column of an .xlsx sheet.
_COLUMN_NAME_RE = re.compile(r"^[A-Z]+$")
MAX_COLUMN_NUMBER = 16384


def column_name_to_number(column: str) -> int:
    """Convert "A" -> 1, "R" -> 18, "AA" -> 27. Assumes upper-case letters."""
    number = 0
    for char in column:
        number = number * 26 + (ord(char) - ord("A") + 1)
    return number


def is_valid_column_name(column: str) -> bool:
    """Check a column name is upper-case letters within the sheet limit."""
    if not _COLUMN_NAME_RE.match(column):
        return False
    return column_name_to_number(column) <= MAX_COLUMN_NUMBER


class ReportConfig(BaseModel):
    """
    Domain model for a report run.

    Field values are normalized (column upper-cased, durations parsed) but not
    checked against the filesystem; use problems() for that.
    """

    model_config = ConfigDict(frozen=True)

    template_path: Optional[Path] = Field(None, description="Excel template file (.xlsx)")
    output_path: Optional[Path] = Field(DEFAULT_OUTPUT_PATH, description="Where the generated report is written")
    queries_dir: Optional[Path] = Field(DEFAULT_QUERIES_DIR, description="Base directory for query file references")
    ref_column: str = Field(DEFAULT_REF_COLUMN, description="Column letter holding query file references")
    timeout: timedelta = Field(DEFAULT_REPORT_TIMEOUT, description="Maximum duration of the whole generation")
    on_fetch_error: FetchErrorPolicy = Field(
        FetchErrorPolicy.FAIL,
        description="Whether a failing row query aborts the run or is skipped",
    )

    @field_validator("ref_column", mode="before")
    @classmethod
    def normalize_ref_column(cls, v):
        """Upper-case and strip the column letter."""
        if v is None:
            return ""
        return str(v).strip().upper()

    @field_validator("timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v):
        """Accept "5m"-style strings in addition to timedelta/seconds."""
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_validator("template_path", "output_path", "queries_dir", mode="before")
    @classmethod
    def empty_path_to_none(cls, v):
        """Treat blank strings as missing rather than as the current directory."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("on_fetch_error", mode="before")
    @classmethod
    def normalize_policy(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def timeout_seconds(self) -> float:
        return self.timeout.total_seconds()

    def normalized(self) -> "ReportConfig":
        """Return a copy with all paths made absolute against the working directory."""
        updates = {}
        for name in ("template_path", "output_path", "queries_dir"):
            value: Optional[Path] = getattr(self, name)
            if value is not None:
                updates[name] = Path(value).expanduser().absolute()
        return self.model_copy(update=updates)

    def problems(self) -> Dict[str, str]:
        """
        Check the configuration against the filesystem and value rules.

        Returns:
            Mapping of field name to problem description (empty if valid)
        """
        problems: Dict[str, str] = {}

        if self.template_path is None:
            problems["template_path"] = "must not be empty"
        elif not self.template_path.is_absolute():
            problems["template_path"] = "path must be absolute (normalization likely failed)"
        elif not self.template_path.exists():
            problems["template_path"] = f"path does not exist: {self.template_path}"
        elif self.template_path.is_dir():
            problems["template_path"] = "path must be a file, not a directory"

        if not self.ref_column:
            problems["ref_column"] = "must not be empty"
        elif not is_valid_column_name(self.ref_column):
            problems["ref_column"] = (
                f"must be a valid Excel column name (A-XFD), got: {self.ref_column}"
            )

        if self.queries_dir is None:
            problems["queries_dir"] = "must not be empty"
        elif not self.queries_dir.is_absolute():
            problems["queries_dir"] = "path must be absolute (normalization likely failed)"
        elif not self.queries_dir.exists():
            problems["queries_dir"] = f"path does not exist: {self.queries_dir}"
        elif not self.queries_dir.is_dir():
            problems["queries_dir"] = "path must be a directory, not a file"

        if self.output_path is None:
            problems["output_path"] = "must not be empty"
        elif not self.output_path.is_absolute():
            problems["output_path"] = "path must be absolute (normalization likely failed)"
        elif self.template_path is not None and self.output_path == self.template_path:
            problems["output_path"] = "must differ from the template path"

        if self.timeout <= timedelta(0):
            problems["timeout"] = "must be greater than 0"

        return problems
