"""Demand aggregation from stock movements for reorder planning.

Reduces raw movement rows (``item_id``, ``qty``, ``reason_code``) into net
demand per item: sales minus returns and cancellations. Inventory
adjustments and other reasons never count as demand.

NO DATA ACCESS - pure functions only. Fetching movements for the lookback
window happens in the services layer.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from replenishment.domain.reorder.numeric import round_half_up, to_number

logger = logging.getLogger(__name__)


class ReasonCode(str, Enum):
    """Movement reason as far as demand is concerned."""

    SALE = "sale"
    RETURN = "return"
    CANCEL = "cancel"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Any) -> ReasonCode:
        """Map a raw reason string (any case) onto the closed set."""
        text = "" if raw is None else str(raw).lower()
        try:
            return cls(text)
        except ValueError:
            return cls.OTHER

    @property
    def is_reversal(self) -> bool:
        return self in (ReasonCode.RETURN, ReasonCode.CANCEL)


@dataclass(frozen=True)
class StockMovement:
    """Demand-relevant view of a stock movement row."""

    item_id: Any
    qty: float
    reason: ReasonCode

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> StockMovement:
        return cls(
            item_id=row.get("item_id"),
            qty=to_number(row.get("qty")),
            reason=ReasonCode.parse(row.get("reason_code")),
        )

    @property
    def counts_as_demand(self) -> bool:
        """True when the movement contributes to demand statistics."""
        if not self.item_id:
            return False
        if not (math.isfinite(self.qty) and self.qty > 0):
            return False
        return self.reason is not ReasonCode.OTHER


@dataclass(frozen=True)
class DemandStats:
    """Per-item demand over the lookback window."""

    sold_qty: float = 0.0
    reversed_qty: float = 0.0
    net_demand_qty: float = 0.0


EMPTY_DEMAND = DemandStats()


def aggregate_demand(
    movements: Iterable[Mapping[str, Any]] | None,
) -> Mapping[Any, DemandStats]:
    """Aggregate movement rows into demand statistics per item.

    Sales add to sold and net demand; returns and cancellations add to the
    reversed quantity and are netted out. Net demand is clamped at zero and
    all figures are rounded to 2 decimals.

    Args:
        movements: Movement rows with ``item_id``, ``qty`` and ``reason_code``.
            None is treated as no movements.

    Returns:
        Read-only mapping item_id -> DemandStats. Items without any counted
        movement are absent.

    """
    sold: dict[Any, float] = {}
    reversed_: dict[Any, float] = {}
    skipped = 0

    for row in movements or ():
        movement = StockMovement.from_row(row)
        if not movement.counts_as_demand:
            skipped += 1
            continue

        sold.setdefault(movement.item_id, 0.0)
        reversed_.setdefault(movement.item_id, 0.0)
        if movement.reason.is_reversal:
            reversed_[movement.item_id] += movement.qty
        else:
            sold[movement.item_id] += movement.qty

    if skipped:
        logger.debug("Ignored %d movements without demand relevance", skipped)

    stats = {
        item_id: DemandStats(
            sold_qty=round_half_up(sold[item_id], 2),
            reversed_qty=round_half_up(reversed_[item_id], 2),
            net_demand_qty=round_half_up(max(0.0, sold[item_id] - reversed_[item_id]), 2),
        )
        for item_id in sold
    }
    return MappingProxyType(stats)
