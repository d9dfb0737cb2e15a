"""Lookups of single top-level values in JSON text."""

from __future__ import annotations

import json
import struct
from typing import Any

_INT_MAX = 2**31 - 1
_INT_MIN = -(2**31)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"unsupported JSON constant {name}")


_DECODER = json.JSONDecoder(object_pairs_hook=list, parse_constant=_reject_constant)


def _lookup(key: str, target_json: str | None) -> Any:
    """Return the first top-level member whose name matches ``key`` ignoring case."""
    if target_json is None:
        return None
    try:
        document, _ = _DECODER.raw_decode(target_json.lstrip())
    except ValueError:
        return None
    if not isinstance(document, list):
        return None
    wanted = key.casefold()
    for pair in document:
        if isinstance(pair, tuple) and pair[0].casefold() == wanted:
            return pair[1]
    return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_float_value_from_json(key: str, target_json: str | None) -> float | None:
    """Return the numeric member ``key`` as a single-precision float, or None."""
    value = _lookup(key, target_json)
    if not _is_number(value):
        return None
    try:
        return struct.unpack("f", struct.pack("f", float(value)))[0]
    except (OverflowError, struct.error):
        return float("inf") if value > 0 else float("-inf")


def get_int_value_from_json(key: str, target_json: str | None) -> int | None:
    """Return the numeric member ``key`` truncated to a 32-bit int, or None."""
    value = _lookup(key, target_json)
    if not _is_number(value):
        return None
    if value >= _INT_MAX:
        return _INT_MAX
    if value <= _INT_MIN:
        return _INT_MIN
    return int(value)


def get_string_value_from_json(key: str, target_json: str | None) -> str | None:
    """Return the string member ``key``, or None when absent or not a string."""
    value = _lookup(key, target_json)
    return value if isinstance(value, str) else None