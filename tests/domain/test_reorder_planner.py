"""Tests for the reorder planner."""

from __future__ import annotations

import pytest

from replenishment.domain.reorder.demand import DemandStats
from replenishment.domain.reorder.planner import (
    ReorderPolicy,
    Urgency,
    build_reorder_suggestions,
    classify_urgency,
    coverage_days,
    suggest_for_item,
)


def _item(item_id="i-1", name="Kabel", unit="pcs", current_stock=5, **extra):
    return {"id": item_id, "name": name, "unit": unit, "current_stock": current_stock, **extra}


def _sale(item_id, qty, reason="sale"):
    return {"item_id": item_id, "reason_code": reason, "qty": qty}


def test_insufficient_stock_creates_high_urgency_suggestion():
    """pcs item, stock 5, 30 sold in 30 days -> order 16, high urgency."""
    rows = build_reorder_suggestions(
        items=[_item()],
        movements=[_sale("i-1", 30)],
        lookback_days=30,
        lead_time_days=14,
        safety_days=7,
    )

    assert len(rows) == 1
    row = rows[0]
    assert row.avg_daily_demand == 1
    assert row.target_stock == 21
    assert row.reorder_qty == 16
    assert row.coverage_days == 5
    assert row.urgency is Urgency.HIGH


def test_continuous_unit_keeps_decimal_quantity():
    """kg item: 10.5 target - 1.2 stock orders exactly 9.3."""
    rows = build_reorder_suggestions(
        items=[_item(name="Granulat", unit="kg", current_stock=1.2)],
        movements=[_sale("i-1", 15)],
    )

    assert len(rows) == 1
    assert rows[0].avg_daily_demand == 0.5
    assert rows[0].target_stock == 10.5
    assert rows[0].reorder_qty == 9.3


def test_negative_stock_is_critical_without_demand():
    rows = build_reorder_suggestions(
        items=[_item(name="Adapter", current_stock=-2)],
        movements=[],
    )

    assert len(rows) == 1
    assert rows[0].reorder_qty == 2
    assert rows[0].urgency is Urgency.CRITICAL
    assert rows[0].coverage_days is None


def test_no_suggestion_when_net_demand_is_covered():
    """sale 20, return 5, cancel 3, stock 10 -> target 8.4, nothing to order."""
    rows = build_reorder_suggestions(
        items=[_item(name="Maus", current_stock=10)],
        movements=[
            _sale("i-1", 20),
            _sale("i-1", 5, "return"),
            _sale("i-1", 3, "cancel"),
        ],
    )

    assert rows == []


def test_items_without_id_are_ignored():
    rows = build_reorder_suggestions(
        items=[_item(item_id=None, current_stock=-5), {"name": "no id", "current_stock": -1}],
        movements=None,
    )

    assert rows == []


def test_empty_inputs():
    assert build_reorder_suggestions(None, None) == []
    assert build_reorder_suggestions([], []) == []


@pytest.mark.parametrize("bad", [0, -5, None, "abc", float("nan"), float("inf")])
def test_invalid_policy_parameters_fall_back_to_defaults(bad):
    expected = build_reorder_suggestions([_item()], [_sale("i-1", 30)])

    rows = build_reorder_suggestions(
        [_item()],
        [_sale("i-1", 30)],
        lookback_days=bad,
        lead_time_days=bad,
        safety_days=bad,
    )

    assert rows == expected


def test_policy_parameters_are_applied():
    """Shorter lookback doubles the rate; longer horizon raises the target."""
    rows = build_reorder_suggestions(
        [_item(current_stock=0)],
        [_sale("i-1", 30)],
        lookback_days=15,
        lead_time_days=10,
        safety_days=5,
    )

    assert rows[0].avg_daily_demand == 2
    assert rows[0].target_stock == 30
    assert rows[0].reorder_qty == 30


def test_numeric_string_policy_parameters_are_accepted():
    rows = build_reorder_suggestions(
        [_item(current_stock=0)], [_sale("i-1", 30)], lookback_days="15"
    )

    assert rows[0].avg_daily_demand == 2


def test_ordering_by_urgency_then_quantity_then_name():
    items = [
        _item("a", name="Beta", current_stock=20),  # medium, qty 1
        _item("b", name="Alpha", current_stock=20),  # medium, qty 1
        _item("c", name="Zeta", current_stock=-1),  # critical
        _item("d", name="Gamma", current_stock=5),  # high, qty 16
        _item("e", name="Delta", current_stock=2),  # high, qty 19
    ]
    movements = [_sale(i, 30) for i in ("a", "b", "d", "e")]

    rows = build_reorder_suggestions(items, movements)

    assert [r.name for r in rows] == ["Zeta", "Delta", "Gamma", "Alpha", "Beta"]
    assert [r.urgency for r in rows] == [
        Urgency.CRITICAL,
        Urgency.HIGH,
        Urgency.HIGH,
        Urgency.MEDIUM,
        Urgency.MEDIUM,
    ]


def test_name_tie_break_is_case_sensitive_and_handles_missing_names():
    items = [
        _item("a", name="beta", current_stock=-1),
        _item("b", name="Beta", current_stock=-1),
        _item("c", name=None, current_stock=-1),
    ]

    rows = build_reorder_suggestions(items, [])

    assert [r.item_id for r in rows] == ["c", "b", "a"]


def test_discrete_quantities_are_integers():
    rows = build_reorder_suggestions(
        [_item(current_stock=0.5)], [_sale("i-1", 7)]
    )

    assert rows[0].reorder_qty == 5
    assert isinstance(rows[0].reorder_qty, int)


def test_suggestion_carries_item_fields():
    rows = build_reorder_suggestions(
        [_item(item_no="ART-1", supplier_id="s-1")], [_sale("i-1", 30)]
    )

    payload = rows[0].to_dict()
    assert payload["id"] == "i-1"
    assert payload["item_no"] == "ART-1"
    assert payload["supplier_id"] == "s-1"
    assert payload["sold_qty"] == 30
    assert payload["reversed_qty"] == 0
    assert payload["net_demand_qty"] == 30
    assert payload["reorder_qty"] == 16
    assert payload["urgency"] == "high"


def test_planner_is_idempotent():
    items = [_item(), _item("i-2", name="Granulat", unit="kg", current_stock=1.2)]
    movements = [_sale("i-1", 30), _sale("i-2", 15)]

    assert build_reorder_suggestions(items, movements) == build_reorder_suggestions(
        items, movements
    )


def test_inputs_are_not_mutated():
    item = _item()
    movements = [_sale("i-1", 30)]

    build_reorder_suggestions([item], movements)

    assert item == _item()
    assert movements == [_sale("i-1", 30)]


def test_suggest_for_item_with_enough_stock_is_ok():
    suggestion = suggest_for_item(
        _item(current_stock=100),
        DemandStats(sold_qty=30, reversed_qty=0, net_demand_qty=30),
        ReorderPolicy(),
    )

    assert suggestion.reorder_qty == 0
    assert suggestion.urgency is Urgency.OK
    assert suggestion.coverage_days == 100


def test_policy_from_values_defaults():
    policy = ReorderPolicy.from_values(None, -1, "x")

    assert policy == ReorderPolicy(lookback_days=30, lead_time_days=14, safety_days=7)
    assert policy.target_coverage_days == 21


class TestClassifyUrgency:
    def test_nothing_to_order_is_ok_even_with_negative_stock(self):
        assert (
            classify_urgency(current_stock=-5, avg_daily_demand=1, lead_time_days=14, reorder_qty=0)
            is Urgency.OK
        )

    def test_zero_stock_is_critical(self):
        assert (
            classify_urgency(current_stock=0, avg_daily_demand=0, lead_time_days=14, reorder_qty=3)
            is Urgency.CRITICAL
        )

    def test_no_demand_rate_is_medium(self):
        assert (
            classify_urgency(current_stock=2, avg_daily_demand=0, lead_time_days=14, reorder_qty=3)
            is Urgency.MEDIUM
        )

    def test_coverage_within_lead_time_is_high(self):
        assert (
            classify_urgency(current_stock=14, avg_daily_demand=1, lead_time_days=14, reorder_qty=7)
            is Urgency.HIGH
        )

    def test_coverage_beyond_lead_time_is_medium(self):
        assert (
            classify_urgency(current_stock=15, avg_daily_demand=1, lead_time_days=14, reorder_qty=6)
            is Urgency.MEDIUM
        )


def test_urgency_rank_order():
    assert Urgency.CRITICAL.rank > Urgency.HIGH.rank > Urgency.MEDIUM.rank > Urgency.OK.rank


def test_coverage_days():
    assert coverage_days(5, 1.0) == 5.0
    assert coverage_days(10, 3.0) == 3.3
    assert coverage_days(0, 1.0) is None
    assert coverage_days(-2, 1.0) is None
    assert coverage_days(5, 0.0) is None
