"""
Configuration domain models package.
"""

from .app_config import AppConfig
from .datasource_config import DataSourceConfig
from .enums import FetchErrorPolicy
from .report_config import (
    DEFAULT_OUTPUT_PATH,
    DEFAULT_QUERIES_DIR,
    DEFAULT_REF_COLUMN,
    DEFAULT_REPORT_TIMEOUT,
    ReportConfig,
    is_valid_column_name,
)

__all__ = [
    "AppConfig",
    "DEFAULT_OUTPUT_PATH",
    "DEFAULT_QUERIES_DIR",
    "DEFAULT_REF_COLUMN",
    "DEFAULT_REPORT_TIMEOUT",
    "DataSourceConfig",
    "FetchErrorPolicy",
    "ReportConfig",
    "is_valid_column_name",
]
