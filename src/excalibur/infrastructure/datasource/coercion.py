"""
Driver value coercion.

Database drivers return a few types a spreadsheet cell cannot hold as-is.
Each fetched value passes through coerce_value() before reaching the engine.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Sequence, Union
from uuid import UUID

POSITIVE_INFINITY = "infinity"
NEGATIVE_INFINITY = "-infinity"


def _infinity_marker(negative: bool) -> str:
    return NEGATIVE_INFINITY if negative else POSITIVE_INFINITY


def infinity_marker(text: Union[str, bytes, memoryview]) -> Optional[str]:
    """
    Map a database's textual infinity ("infinity", "-infinity") to its marker.

    Date and timestamp columns can hold infinities that no Python date can
    represent; drivers hand over the raw text and this decides the marker.
    Returns None for any finite value.
    """
    if not isinstance(text, str):
        text = bytes(text).decode("ascii", errors="replace")
    text = text.strip().lower()
    if text in ("infinity", "+infinity"):
        return POSITIVE_INFINITY
    if text == "-infinity":
        return NEGATIVE_INFINITY
    return None


def coerce_value(value: Any) -> Any:
    """
    Convert a driver value into a cell-friendly scalar.

    - Decimal -> float; +/-Infinity -> "infinity"/"-infinity"; NaN -> None
    - float +/-inf -> "infinity"/"-infinity"
    - timezone-aware datetime -> naive UTC datetime (cells have no zone)
    - UUID -> canonical string
    - anything else unchanged
    """
    if isinstance(value, bool) or value is None:
        return value

    if isinstance(value, Decimal):
        if value.is_nan():
            return None
        if value.is_infinite():
            return _infinity_marker(value < 0)
        return float(value)

    if isinstance(value, float) and math.isinf(value):
        return _infinity_marker(value < 0)

    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    if isinstance(value, UUID):
        return str(value)

    return value


def row_to_dict(columns: Sequence[str], values: Iterable[Any]) -> Dict[str, Any]:
    """Zip column names with coerced values. Later duplicate names win."""
    return {column: coerce_value(value) for column, value in zip(columns, values)}
