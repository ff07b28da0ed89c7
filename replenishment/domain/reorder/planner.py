"""Reorder planner: turns item stock and recent demand into suggestions."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from replenishment.domain.reorder.demand import EMPTY_DEMAND, DemandStats, aggregate_demand
from replenishment.domain.reorder.numeric import is_positive_number, round_half_up, to_number
from replenishment.domain.reorder.units import normalize_reorder_qty

DEFAULT_LOOKBACK_DAYS = 30
DEFAULT_LEAD_TIME_DAYS = 14
DEFAULT_SAFETY_DAYS = 7


class Urgency(str, Enum):
    OK = "ok"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _URGENCY_RANK[self]


_URGENCY_RANK = {
    Urgency.OK: 0,
    Urgency.MEDIUM: 1,
    Urgency.HIGH: 2,
    Urgency.CRITICAL: 3,
}


def _positive_or(value: Any, default: float) -> float:
    return to_number(value) if is_positive_number(value) else float(default)


@dataclass(frozen=True)
class ReorderPolicy:
    """Planning horizon parameters, all in days."""

    lookback_days: float = DEFAULT_LOOKBACK_DAYS
    lead_time_days: float = DEFAULT_LEAD_TIME_DAYS
    safety_days: float = DEFAULT_SAFETY_DAYS

    @classmethod
    def from_values(
        cls,
        lookback_days: Any = DEFAULT_LOOKBACK_DAYS,
        lead_time_days: Any = DEFAULT_LEAD_TIME_DAYS,
        safety_days: Any = DEFAULT_SAFETY_DAYS,
    ) -> ReorderPolicy:
        """Build a policy, replacing anything not finite and positive by its default."""
        return cls(
            lookback_days=_positive_or(lookback_days, DEFAULT_LOOKBACK_DAYS),
            lead_time_days=_positive_or(lead_time_days, DEFAULT_LEAD_TIME_DAYS),
            safety_days=_positive_or(safety_days, DEFAULT_SAFETY_DAYS),
        )

    @property
    def target_coverage_days(self) -> float:
        return self.lead_time_days + self.safety_days


@dataclass(frozen=True)
class ReorderSuggestion:
    """Reorder recommendation for one item.

    ``item`` is the untouched upstream row; the remaining fields are derived.
    """

    item: Mapping[str, Any]
    sold_qty: float
    reversed_qty: float
    net_demand_qty: float
    avg_daily_demand: float
    target_stock: float
    reorder_qty: float
    coverage_days: float | None
    urgency: Urgency

    @property
    def item_id(self) -> Any:
        return self.item.get("id")

    @property
    def name(self) -> str:
        return str(self.item.get("name") or "")

    @property
    def unit(self) -> Any:
        return self.item.get("unit")

    @property
    def current_stock(self) -> float:
        return to_number(self.item.get("current_stock"))

    def to_dict(self) -> dict[str, Any]:
        """Flat row: item fields plus the computed reorder figures."""
        return {
            **self.item,
            "sold_qty": self.sold_qty,
            "reversed_qty": self.reversed_qty,
            "net_demand_qty": self.net_demand_qty,
            "avg_daily_demand": self.avg_daily_demand,
            "target_stock": self.target_stock,
            "reorder_qty": self.reorder_qty,
            "coverage_days": self.coverage_days,
            "urgency": self.urgency.value,
        }


def coverage_days(current_stock: float, avg_daily_demand: float) -> float | None:
    """Days current stock lasts at the average demand rate.

    None when there is no demand rate or no stock to measure against.

    Examples:
        >>> coverage_days(5, 1.0)
        5.0
        >>> coverage_days(5, 0.0) is None
        True
    """
    if not is_positive_number(avg_daily_demand) or not current_stock > 0:
        return None
    return round_half_up(current_stock / avg_daily_demand, 1)


def classify_urgency(
    *,
    current_stock: float,
    avg_daily_demand: float,
    lead_time_days: float,
    reorder_qty: float,
) -> Urgency:
    """Classify how urgently an item must be reordered.

    Precedence:
    1. nothing to order -> ok
    2. stock at or below zero -> critical (even without demand history)
    3. no demand rate -> medium
    4. stock runs out within the lead time -> high, otherwise medium
    """
    if not is_positive_number(reorder_qty):
        return Urgency.OK
    if current_stock <= 0:
        return Urgency.CRITICAL
    if not is_positive_number(avg_daily_demand):
        return Urgency.MEDIUM
    if current_stock / avg_daily_demand <= lead_time_days:
        return Urgency.HIGH
    return Urgency.MEDIUM


def suggest_for_item(
    item: Mapping[str, Any], stats: DemandStats, policy: ReorderPolicy
) -> ReorderSuggestion:
    """Compute the reorder figures for one item, whether or not it needs action."""
    current_stock = to_number(item.get("current_stock"))
    avg_daily_demand = stats.net_demand_qty / policy.lookback_days
    target_stock = avg_daily_demand * policy.target_coverage_days
    reorder_qty = normalize_reorder_qty(target_stock - current_stock, item.get("unit"))

    return ReorderSuggestion(
        item=item,
        sold_qty=stats.sold_qty,
        reversed_qty=stats.reversed_qty,
        net_demand_qty=stats.net_demand_qty,
        avg_daily_demand=round_half_up(avg_daily_demand, 4),
        target_stock=round_half_up(target_stock, 2),
        reorder_qty=reorder_qty,
        coverage_days=coverage_days(current_stock, avg_daily_demand),
        urgency=classify_urgency(
            current_stock=current_stock,
            avg_daily_demand=avg_daily_demand,
            lead_time_days=policy.lead_time_days,
            reorder_qty=reorder_qty,
        ),
    )


def _sort_key(suggestion: ReorderSuggestion) -> tuple[int, float, str]:
    return (-suggestion.urgency.rank, -suggestion.reorder_qty, suggestion.name)


def build_reorder_suggestions(
    items: Iterable[Mapping[str, Any]] | None,
    movements: Iterable[Mapping[str, Any]] | None,
    lookback_days: Any = DEFAULT_LOOKBACK_DAYS,
    lead_time_days: Any = DEFAULT_LEAD_TIME_DAYS,
    safety_days: Any = DEFAULT_SAFETY_DAYS,
) -> list[ReorderSuggestion]:
    """Build the ranked reorder suggestion list.

    Algorithm:
    1. Aggregate movements into net demand per item
    2. avg daily demand = net demand / lookback days
    3. target stock = avg daily demand × (lead time + safety days)
    4. reorder qty = target stock - current stock, rounded up per unit
    5. Keep items with a positive reorder qty
    6. Sort by urgency desc, reorder qty desc, name asc

    Policy parameters that are not finite positive numbers fall back to
    30/14/7 days. Items without an ``id`` are ignored.

    Args:
        items: Item rows with ``id``, ``current_stock``, ``unit``, ``name``
        movements: Movement rows with ``item_id``, ``qty``, ``reason_code``
        lookback_days: Window the movements cover
        lead_time_days: Days until a new order arrives
        safety_days: Extra coverage beyond the lead time

    Returns:
        Suggestions that require action, most urgent first

    """
    policy = ReorderPolicy.from_values(lookback_days, lead_time_days, safety_days)
    demand_by_item = aggregate_demand(movements)

    suggestions = [
        suggest_for_item(item, demand_by_item.get(item["id"], EMPTY_DEMAND), policy)
        for item in items or ()
        if item.get("id")
    ]
    actionable = [
        s
        for s in suggestions
        if math.isfinite(s.reorder_qty) and s.reorder_qty > 0
    ]
    return sorted(actionable, key=_sort_key)
