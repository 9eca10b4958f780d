"""Value codec: lossless JSON representation of column values.

Usage:
    from db_restore.encoding import encode_row, decode_row
"""

from db_restore.encoding.codec import (
    ValueKind,
    decode_row,
    decode_value,
    encode_row,
    encode_value,
)

__all__ = [
    "ValueKind",
    "encode_value",
    "decode_value",
    "encode_row",
    "decode_row",
]
