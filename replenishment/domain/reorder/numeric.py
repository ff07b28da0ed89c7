"""Numeric coercion and rounding shared by the reorder domain.

Upstream rows come from a hosted database that returns ``numeric`` columns
as strings, so every value is coerced before arithmetic. NO DATA ACCESS -
pure functions only.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any


def to_number(value: Any) -> float:
    """Coerce a row value to float.

    Missing values (None, empty string) count as 0. Anything that cannot be
    read as a number becomes NaN, which every downstream check treats as
    "not a positive number".

    Examples:
        >>> to_number("12.5")
        12.5
        >>> to_number(None)
        0.0
        >>> math.isnan(to_number("abc"))
        True
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def is_positive_number(value: Any) -> bool:
    """True when value coerces to a finite number strictly greater than zero."""
    n = to_number(value)
    return math.isfinite(n) and n > 0


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to ``digits`` places with halves rounded toward +inf.

    Python's round() uses banker's rounding; quantities shown to users must
    round 0.125 to 0.13, not 0.12.

    Examples:
        >>> round_half_up(0.125, 2)
        0.13
        >>> round_half_up(2.5, 0)
        3.0
    """
    if not math.isfinite(value):
        return value
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor
