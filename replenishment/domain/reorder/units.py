"""Unit-of-measure classification and reorder quantity normalization."""

from __future__ import annotations

import math
from typing import Any

from replenishment.domain.reorder.numeric import is_positive_number, to_number

# Units that can only be ordered in whole numbers
DISCRETE_UNITS: frozenset[str] = frozenset(
    {
        "pcs",
        "stk",
        "stk.",
        "piece",
        "pieces",
        "unit",
        "stueck",
        "stück",
    }
)

# Subtracted before rounding continuous quantities up to cents, so a value
# like 9.3 stored as 9.300000000000001 stays 9.3 instead of 9.31.
CONTINUOUS_ROUNDING_TOLERANCE = 1e-9


def normalize_unit(unit: Any) -> str:
    """Trimmed, lower-cased unit label ('' when missing)."""
    if unit is None:
        return ""
    return str(unit).strip().lower()


def is_discrete_unit(unit: Any) -> bool:
    """True for piece-like units that cannot be split."""
    return normalize_unit(unit) in DISCRETE_UNITS


def ceil_to_cents(value: float) -> float:
    """Round a positive quantity up to 2 decimal places, tolerating float noise."""
    return math.ceil((value - CONTINUOUS_ROUNDING_TOLERANCE) * 100) / 100


def normalize_reorder_qty(value: Any, unit: Any) -> float:
    """Turn a raw reorder quantity into an orderable one.

    Discrete units round up to a whole unit, continuous units round up to
    cents. Anything that is not a finite positive number means "order
    nothing" and returns 0.

    Examples:
        >>> normalize_reorder_qty(15.2, "pcs")
        16
        >>> normalize_reorder_qty(9.3, "kg")
        9.3
        >>> normalize_reorder_qty(-1.6, "pcs")
        0
    """
    if not is_positive_number(value):
        return 0
    qty = to_number(value)
    if is_discrete_unit(unit):
        return math.ceil(qty)
    return ceil_to_cents(qty)
