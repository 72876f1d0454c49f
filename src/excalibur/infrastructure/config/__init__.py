"""
Configuration infrastructure package.

Usage:
    from excalibur.infrastructure.config import load_config

    config = load_config({"report": {"ref_column": "R"}}, config_file="excalibur.jsonc")
"""

from excalibur.infrastructure.config.loader import (
    ENV_VARS,
    build_config,
    environment_overrides,
    format_problems,
    load_config,
    normalize_config,
    validate_config,
)
from excalibur.infrastructure.config.repository import ConfigRepository, strip_comments

__all__ = [
    "ENV_VARS",
    "ConfigRepository",
    "build_config",
    "environment_overrides",
    "format_problems",
    "load_config",
    "normalize_config",
    "strip_comments",
    "validate_config",
]
