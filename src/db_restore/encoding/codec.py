"""Lossless JSON encoding of column values.

JSON has no native representation for binary data, timestamps, integers
wider than a double's mantissa, or a way to tell a structured column value
apart from a plain string.  Such values are wrapped in a tagged object::

    {"__type": "datetime", "value": "2024-05-01T12:30:00.000Z"}

Everything JSON can already carry is passed through untouched, so dump files
stay readable.

Usage:
    from db_restore.encoding.codec import encode_row, decode_row

    encoded = encode_row({"id": 1, "avatar": b"\\x89PNG"})
    row = decode_row(encoded)
"""

import base64
from datetime import datetime, timezone
from enum import Enum
from typing import Any

TYPE_KEY = "__type"
VALUE_KEY = "value"

# Largest integer a JSON consumer parsing numbers as doubles reads exactly
MAX_SAFE_INTEGER = 2**53 - 1


class ValueKind(str, Enum):
    """Tag of a wrapped value.  A value with no wrapper is "plain"."""

    BYTES = "bytes"
    BIGINT = "bigint"
    DATETIME = "datetime"
    DECIMAL = "decimal"
    JSON = "json"


def _wrap(kind: ValueKind, value: Any) -> dict[str, Any]:
    return {TYPE_KEY: kind.value, VALUE_KEY: value}


def _format_datetime(value: datetime) -> str:
    """Render an instant as ISO-8601 UTC with a ``Z`` suffix.

    Millisecond precision is used whenever it is exact; otherwise the
    microseconds are kept so the instant survives the round trip.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc).replace(tzinfo=None)
    timespec = "milliseconds" if utc.microsecond % 1000 == 0 else "microseconds"
    return utc.isoformat(timespec=timespec) + "Z"


def _parse_datetime(text: str) -> datetime:
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def encode_value(value: Any) -> Any:
    """Encode a single column value into its JSON-safe form.

    Args:
        value: Native value as returned by a provider.

    Returns:
        The value itself when JSON can carry it, otherwise a type wrapper.

    Examples:
        >>> encode_value(2**64)
        {'__type': 'bigint', 'value': '18446744073709551616'}
        >>> encode_value(b"hi")
        {'__type': 'bytes', 'value': 'aGk='}
        >>> encode_value([1, 2])
        [1, 2]
    """
    if value is None or isinstance(value, bool):
        return value

    if isinstance(value, int):
        if abs(value) > MAX_SAFE_INTEGER:
            return _wrap(ValueKind.BIGINT, str(value))
        return value

    if isinstance(value, datetime):
        return _wrap(ValueKind.DATETIME, _format_datetime(value))

    if isinstance(value, (bytes, bytearray, memoryview)):
        return _wrap(ValueKind.BYTES, base64.b64encode(bytes(value)).decode("ascii"))

    # Structured column values are wrapped once, not walked
    if isinstance(value, dict):
        return _wrap(ValueKind.JSON, value)

    return value


def _is_wrapper(value: Any) -> bool:
    return isinstance(value, dict) and TYPE_KEY in value and VALUE_KEY in value


def decode_value(value: Any) -> Any:
    """Decode a value produced by :func:`encode_value`.

    Unknown ``__type`` tags decode to their raw payload so that dumps written
    by newer versions still restore.

    Examples:
        >>> decode_value({"__type": "bigint", "value": "18446744073709551616"})
        18446744073709551616
        >>> decode_value({"__type": "decimal", "value": "10.50"})
        '10.50'
        >>> decode_value({"__type": "future-kind", "value": 7})
        7
    """
    if not _is_wrapper(value):
        return value

    payload = value[VALUE_KEY]
    try:
        kind = ValueKind(value[TYPE_KEY])
    except ValueError:
        return payload

    if kind is ValueKind.BYTES:
        return base64.b64decode(payload)
    if kind is ValueKind.BIGINT:
        return int(payload)
    if kind is ValueKind.DATETIME:
        return _parse_datetime(payload)
    # DECIMAL stays a string to keep its exact digits; JSON is the payload
    return payload


def encode_row(row: dict[str, Any]) -> dict[str, Any]:
    """Encode every value of a row, keeping key order."""
    return {key: encode_value(value) for key, value in row.items()}


def decode_row(row: dict[str, Any]) -> dict[str, Any]:
    """Decode every value of a row, keeping key order."""
    return {key: decode_value(value) for key, value in row.items()}
