"""
Configuration repository for loading config files.

Config files are JSON, or JSONC (JSON with `//` and `/* */` comments):

    {
      // Connection
      "datasource": {"dsn": "sqlite:///sales.db"},
      "report": {
        "template_path": "templates/monthly.xlsx",
        "ref_column": "R",
        "timeout": "5m"
      }
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".json", ".jsonc")


def strip_comments(jsonc_content: str) -> str:
    """
    Strip `//` line comments and `/* */` block comments from JSONC content.

    String literals are left untouched, so URLs such as "sqlite:///x.db" or
    "http://host" survive. Newlines inside comments are kept so parse errors
    still point at the right line.
    """
    out = []
    i = 0
    length = len(jsonc_content)
    in_string = False

    while i < length:
        char = jsonc_content[i]
        nxt = jsonc_content[i + 1] if i + 1 < length else ""

        if in_string:
            out.append(char)
            if char == "\\" and nxt:
                out.append(nxt)
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif char == "/" and nxt == "/":
            end = jsonc_content.find("\n", i)
            i = length if end == -1 else end
        elif char == "/" and nxt == "*":
            end = jsonc_content.find("*/", i + 2)
            if end == -1:
                raise ValueError("unterminated block comment")
            out.append("\n" * jsonc_content.count("\n", i, end))
            i = end + 2
        else:
            out.append(char)
            i += 1

    return "".join(out)


class ConfigRepository:
    """
    Repository for configuration file operations.

    Usage:
        data = ConfigRepository().load_json_file(Path("excalibur.jsonc"))
        config = AppConfig.model_validate(data)
    """

    def load_json_file(self, path: Path | str) -> Dict[str, Any]:
        """
        Load a JSON or JSONC file.

        Args:
            path: Path to a .json or .jsonc file

        Returns:
            Parsed JSON object

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file has an unsupported suffix, cannot be
                parsed or is not a JSON object
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise ValueError(f"unsupported config file type {path.suffix!r} (expected .json or .jsonc)")

        if not path.is_file():
            raise FileNotFoundError(f"config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        try:
            if suffix == ".jsonc":
                content = strip_comments(content)
            data = json.loads(content)
        except ValueError as e:
            logger.error("Failed to parse config file %s: %s", path, e)
            raise ValueError(f"invalid {suffix[1:].upper()} in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"config file {path} must contain a JSON object")

        logger.debug("Loaded config file %s", path)
        return data
