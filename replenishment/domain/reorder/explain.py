"""Explainability for reorder suggestions."""

from __future__ import annotations

import hashlib
import math
from typing import Any

from replenishment.domain.reorder.numeric import round_half_up, to_number
from replenishment.domain.reorder.planner import ReorderSuggestion
from replenishment.domain.reorder.units import is_discrete_unit

DEFAULT_UNIT_LABEL = "pcs"
THOUSANDS_SEPARATOR = "’"


def format_quantity(value: Any, unit: Any) -> str:
    """Format a quantity the way Swiss users read it.

    Discrete units show no decimals, everything else exactly two. Halves
    round away from zero.

    Examples:
        >>> format_quantity(1234.5, "kg")
        '1’234.50'
        >>> format_quantity(16, "pcs")
        '16'
        >>> format_quantity(2.5, "pcs")
        '3'
    """
    n = to_number(value)
    if not math.isfinite(n):
        n = 0.0
    digits = 0 if is_discrete_unit(unit) else 2
    rounded = round_half_up(abs(n), digits)
    n = -rounded if n < 0 and rounded else rounded
    return f"{n:,.{digits}f}".replace(",", THOUSANDS_SEPARATOR)


def unit_label(unit: Any) -> str:
    return str(unit) if unit else DEFAULT_UNIT_LABEL


def build_task_title(suggestion: ReorderSuggestion, prefix: str) -> str:
    """Task title, e.g. 'Nachbestellung empfohlen: ART-100'."""
    label = suggestion.item.get("item_no") or suggestion.item.get("name") or "Artikel"
    return f"{prefix} {label}"


def generate_explanation(suggestion: ReorderSuggestion, lookback_days: float) -> str:
    """Generate human-readable explanation for a reorder suggestion.

    Args:
        suggestion: Reorder suggestion
        lookback_days: Demand window the suggestion was computed over

    Returns:
        Explanation string

    """
    unit = suggestion.unit
    label = unit_label(unit)
    days = f"{lookback_days:g}"

    stock_display = f"Bestand {format_quantity(suggestion.current_stock, unit)} {label}"
    demand_display = f"Ø Nachfrage {format_quantity(suggestion.avg_daily_demand, unit)} {label}/Tag"
    rec_display = f"empfohlene Menge {format_quantity(suggestion.reorder_qty, unit)} {label}"

    return f"Systemvorschlag ({days} Tage): {stock_display}, {demand_display}, {rec_display}."


def generate_hash(suggestion: ReorderSuggestion) -> str:
    """Generate deterministic hash for suggestion rationale.

    Hash based on: item_id, net demand, avg daily demand, current stock,
    reorder_qty, urgency

    Args:
        suggestion: Reorder suggestion

    Returns:
        SHA256 hex digest

    """
    rationale_str = (
        f"{suggestion.item_id}|{suggestion.net_demand_qty:.2f}|"
        f"{suggestion.avg_daily_demand:.4f}|{suggestion.current_stock:.2f}|"
        f"{suggestion.reorder_qty:.2f}|{suggestion.urgency.value}"
    )

    return hashlib.sha256(rationale_str.encode()).hexdigest()
