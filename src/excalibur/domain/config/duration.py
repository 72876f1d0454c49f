"""
Duration parsing and formatting.

Timeouts are written the way operators already know from the environment
variables: "90s", "5m", "1h30m", "1.5h", "250ms".
"""

from __future__ import annotations

import re
from datetime import timedelta

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string such as "5m" or "1h30m10s".

    A bare "0" is accepted. Negative durations keep their sign so that
    validation can report them instead of silently flipping them.

    Raises:
        ValueError: If the string is not a valid duration
    """
    original = text
    text = text.strip()
    if not text:
        raise ValueError("invalid duration format: empty string")

    sign = 1.0
    if text[0] in "+-":
        if text[0] == "-":
            sign = -1.0
        text = text[1:]

    if text == "0":
        return timedelta(0)

    total = 0.0
    position = 0
    while position < len(text):
        match = _COMPONENT_RE.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration format: {original!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position == 0:
        raise ValueError(f"invalid duration format: {original!r}")

    return timedelta(seconds=sign * total)


def format_duration(value: timedelta) -> str:
    """Render a timedelta as "1h30m0s" / "5m0s" / "250ms"."""
    total = value.total_seconds()
    if total == 0:
        return "0s"

    sign = "-" if total < 0 else ""
    total = abs(total)

    if total < 1:
        return f"{sign}{total * 1000:g}ms"

    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{seconds:g}s")
    return sign + "".join(parts)
