"""
Configuration loading.

Builds an AppConfig from up to four sources, highest precedence first:

1. Explicit overrides (CLI flags)
2. EXCALIBUR_* environment variables
3. A JSON/JSONC config file
4. Model defaults

then normalizes paths and validates the result.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import ValidationError

from excalibur.domain.config import AppConfig
from excalibur.domain.errors import ConfigurationError
from excalibur.infrastructure.config.repository import ConfigRepository

logger = logging.getLogger(__name__)

# Environment variable -> (section, field)
ENV_VARS: Dict[str, Tuple[str, str]] = {
    "EXCALIBUR_DSN": ("datasource", "dsn"),
    "EXCALIBUR_DATASOURCE_CONNECT_TIMEOUT": ("datasource", "connect_timeout"),
    "EXCALIBUR_REPORT_TEMPLATE_PATH": ("report", "template_path"),
    "EXCALIBUR_REPORT_DATASOURCE_REF_COL": ("report", "ref_column"),
    "EXCALIBUR_REPORT_QUERIES_DIR": ("report", "queries_dir"),
    "EXCALIBUR_REPORT_OUTPUT_PATH": ("report", "output_path"),
    "EXCALIBUR_REPORT_TIMEOUT": ("report", "timeout"),
    "EXCALIBUR_REPORT_ON_FETCH_ERROR": ("report", "on_fetch_error"),
}

SECTIONS = ("datasource", "report")

Sections = Dict[str, Dict[str, Any]]


def _merge(target: Sections, source: Mapping[str, Mapping[str, Any]], origin: str) -> None:
    for section, values in source.items():
        if section not in SECTIONS:
            logger.warning("Ignoring unknown configuration section %r from %s", section, origin)
            continue
        if not isinstance(values, Mapping):
            raise ConfigurationError(
                f"invalid configuration: section {section!r} from {origin} must be an object",
                {section: "must be an object"},
            )
        for key, value in values.items():
            if value is None:
                continue
            target[section][key] = value


def environment_overrides(environ: Optional[Mapping[str, str]] = None) -> Sections:
    """Collect configuration values from EXCALIBUR_* variables (empty values are ignored)."""
    environ = os.environ if environ is None else environ
    values: Sections = {section: {} for section in SECTIONS}
    for name, (section, key) in ENV_VARS.items():
        value = environ.get(name)
        if value is not None and value.strip():
            values[section][key] = value
    return values


def format_problems(problems: Mapping[str, str]) -> str:
    """Render problems as the multi-line "invalid configuration" message."""
    lines = ["invalid configuration:"]
    for key in sorted(problems):
        lines.append(f" - {key}: {problems[key]}")
    return "\n".join(lines)


def build_config(
    overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    *,
    config_file: Path | str | None = None,
    environ: Optional[Mapping[str, str]] = None,
    repository: Optional[ConfigRepository] = None,
) -> AppConfig:
    """
    Merge all configuration sources into an AppConfig.

    Args:
        overrides: {"datasource": {...}, "report": {...}}; None values are ignored
        config_file: Optional .json/.jsonc file
        environ: Environment mapping (defaults to os.environ)
        repository: Config file reader

    Raises:
        ConfigurationError: If the config file cannot be loaded or a value has the wrong type
    """
    data: Sections = {section: {} for section in SECTIONS}

    if config_file is not None:
        repository = repository or ConfigRepository()
        try:
            file_data = repository.load_json_file(config_file)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"load config file: {e}", {"config": str(e)}) from e
        _merge(data, file_data, str(config_file))

    _merge(data, environment_overrides(environ), "environment")

    if overrides:
        _merge(data, overrides, "command line")

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        problems = {".".join(str(part) for part in error["loc"]): error["msg"] for error in e.errors()}
        raise ConfigurationError(format_problems(problems), problems) from e


def normalize_config(config: AppConfig) -> AppConfig:
    """Make all report paths absolute against the working directory."""
    return config.normalized()


def validate_config(config: AppConfig) -> AppConfig:
    """
    Check a normalized configuration.

    Returns:
        The same config, for chaining

    Raises:
        ConfigurationError: Listing every problem found
    """
    problems = config.problems()
    if problems:
        raise ConfigurationError(format_problems(problems), problems)
    return config


def load_config(
    overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    *,
    config_file: Path | str | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Build, normalize and validate the configuration in one step."""
    config = build_config(overrides, config_file=config_file, environ=environ)
    config = normalize_config(config)
    validate_config(config)
    logger.debug("Configuration loaded and validated")
    return config
