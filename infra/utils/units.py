"""Chuẩn hoá đơn vị tài nguyên (memory/time) mà judge trả về.

Judge0 trả memory dạng số KB và time dạng chuỗi giây ("0.012").
- `format_memory` / `format_seconds`: chuỗi hiển thị.
- `to_kb` / `parse_seconds`: đọc ngược chuỗi hiển thị để cộng dồn, lỗi thì coi là 0.
"""

from __future__ import annotations

import math
import re
from typing import Optional, Union

Number = Union[int, float, str, None]

_MEMORY_RE = re.compile(r"^\s*([-+]?\d*\.?\d+)\s*(KB|MB|GB)?\s*$", re.IGNORECASE)
_SECONDS_RE = re.compile(r"^\s*([-+]?\d*\.?\d+)\s*(ms|s)?\s*$", re.IGNORECASE)

_KB_PER_UNIT = {
    "KB": 1,
    "MB": 1024,
    "GB": 1024 * 1024,
}


def _as_float(value: Number) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def format_memory(value_in_kb: Number) -> Optional[str]:
    """Format a KB amount as "512.00 KB" or "1.50 MB".

    Returns None when there is no usable value, so callers can tell
    "no data" apart from zero.
    """
    kb = _as_float(value_in_kb)
    if kb is None:
        return None

    if kb >= 1024:
        return f"{kb / 1024:.2f} MB"
    return f"{kb:.2f} KB"


def to_kb(display: Optional[str]) -> float:
    """Parse "<number> (KB|MB|GB)?" back into KB; unit defaults to KB, junk gives 0."""
    if display is None:
        return 0.0

    match = _MEMORY_RE.match(str(display))
    if not match:
        return 0.0

    unit = (match.group(2) or "KB").upper()
    return float(match.group(1)) * _KB_PER_UNIT[unit]


def format_seconds(value: Number) -> Optional[str]:
    seconds = _as_float(value)
    if seconds is None:
        return None
    return f"{seconds:.3f} s"


def parse_seconds(display: Optional[str]) -> float:
    """Parse "0.012", "0.012 s" or "12 ms" into seconds; junk gives 0."""
    if display is None:
        return 0.0

    match = _SECONDS_RE.match(str(display))
    if not match:
        return 0.0

    seconds = float(match.group(1))
    if (match.group(2) or "s").lower() == "ms":
        seconds /= 1000
    return seconds


__all__ = ["format_memory", "to_kb", "format_seconds", "parse_seconds"]
