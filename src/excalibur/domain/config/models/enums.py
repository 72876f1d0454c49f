"""
Domain enums for configuration system.
"""

from enum import Enum


class FetchErrorPolicy(str, Enum):
    """What to do when a row's query fails or returns more than one row."""

    FAIL = "fail"  # abort the whole run (default)
    SKIP = "skip"  # log, leave the row's placeholders untouched, continue
