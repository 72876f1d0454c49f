"""
Value encoding for spreadsheet cells.

Scalars are handed to the spreadsheet unchanged so numbers, booleans and
dates keep their native cell type. Bytes become text, structured values
(mappings and sequences) become compact JSON.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from excalibur.domain.errors import ValueEncodingError

_BYTES_TYPES = (bytes, bytearray, memoryview)
_STRUCTURED_TYPES = (dict, list, tuple)


def _decode_bytes(value: bytes | bytearray | memoryview) -> str:
    return bytes(value).decode("utf-8", errors="replace")


def _json_default(value: Any) -> Any:
    """Serialize nested values json does not know natively."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, _BYTES_TYPES):
        return _decode_bytes(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_value(value: Any) -> Any:
    """
    Convert a fetched value into something a cell can hold.

    Args:
        value: Value produced by placeholder resolution

    Returns:
        None (clears the cell), a scalar, or a JSON/text string

    Raises:
        ValueEncodingError: If a structured value cannot be serialized
    """
    if value is None:
        return None

    if isinstance(value, _BYTES_TYPES):
        return _decode_bytes(value)

    if isinstance(value, _STRUCTURED_TYPES):
        try:
            return json.dumps(
                value,
                default=_json_default,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except (TypeError, ValueError) as e:
            raise ValueEncodingError(
                f"marshal {type(value).__name__} to JSON: {e}"
            ) from e

    return value


def text_form(value: Any) -> str:
    """Textual form of an encoded value, used to detect unchanged cells."""
    if value is None:
        return ""
    return str(value)
