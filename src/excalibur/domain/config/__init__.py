"""
Configuration domain package.

This package contains the domain layer for configuration management.
"""

from .duration import format_duration, parse_duration
from .models import (
    AppConfig,
    DataSourceConfig,
    FetchErrorPolicy,
    ReportConfig,
    is_valid_column_name,
)

__all__ = [
    "AppConfig",
    "DataSourceConfig",
    "FetchErrorPolicy",
    "ReportConfig",
    "format_duration",
    "is_valid_column_name",
    "parse_duration",
]
