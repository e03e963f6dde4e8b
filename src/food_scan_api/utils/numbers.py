"""Numeric helpers shared by the validation and scaling code."""

import math
from typing import Any


def to_number(value: Any, default: float = 0.0) -> float:
    """
    Coerce an untrusted value to a finite float.

    Booleans, None, NaN, infinities and unparseable strings map to default.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def clamp(value: Any, lo: float, hi: float, default: float = 0.0) -> float:
    """Clamp a value into [lo, hi], treating non-numbers as default."""
    return min(max(to_number(value, default), lo), hi)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero for positives (2.5 -> 3, 0.25 -> 0.3)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
