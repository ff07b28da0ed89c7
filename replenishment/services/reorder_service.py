"""Reorder planning service facade.

Sits between the data store (which hands over already-fetched item,
movement and task rows) and the pure planner in
``replenishment.domain.reorder``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any

from pydantic import TypeAdapter, ValidationError

from replenishment.core.config import Settings, get_settings
from replenishment.core.logging import set_run_id
from replenishment.core.metrics import record_run
from replenishment.domain.reorder.explain import (
    build_task_title,
    generate_explanation,
    generate_hash,
)
from replenishment.domain.reorder.planner import (
    ReorderPolicy,
    ReorderSuggestion,
    build_reorder_suggestions,
)

logger = logging.getLogger(__name__)

OPEN_TASK_STATUSES = frozenset({"open", "in_progress"})

_timestamp_adapter = TypeAdapter(datetime)


@dataclass(frozen=True)
class ReorderTask:
    """Draft of a follow-up task asking someone to place a reorder."""

    title: str
    description: str
    due_date: date
    item_id: Any
    supplier_id: Any = None
    status: str = "open"
    rationale_hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["due_date"] = self.due_date.isoformat()
        return payload


def movement_window_start(now: datetime, lookback_days: float) -> datetime:
    """Start of the demand window: local midnight of ``now`` minus lookback days."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=lookback_days)


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if isinstance(value, str):
        try:
            return _timestamp_adapter.validate_python(value.strip())
        except ValidationError:
            return None
    return None


def filter_recent_movements(
    movements: Iterable[Mapping[str, Any]] | None, since: datetime
) -> list[Mapping[str, Any]]:
    """Keep movements created at or after ``since``.

    Rows without ``created_at`` are kept (the caller already scoped them);
    rows with an unreadable timestamp are dropped. Naive timestamps are read
    in the timezone of ``since``, or local time when ``since`` is naive.
    """
    window_start = since if since.tzinfo else since.astimezone()
    recent: list[Mapping[str, Any]] = []
    unreadable = 0

    for row in movements or ():
        raw = row.get("created_at")
        if raw in (None, ""):
            recent.append(row)
            continue
        created_at = _parse_timestamp(raw)
        if created_at is None:
            unreadable += 1
            continue
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=window_start.tzinfo)
        if created_at >= window_start:
            recent.append(row)

    if unreadable:
        logger.debug("Dropped %d movements with unreadable created_at", unreadable)

    return recent


def active_items(items: Iterable[Mapping[str, Any]] | None) -> list[Mapping[str, Any]]:
    """Items whose status is 'active' (missing status counts as active)."""
    return [item for item in items or () if (item.get("status") or "active") == "active"]


def generate_reorder_plan(
    items: Iterable[Mapping[str, Any]] | None,
    movements: Iterable[Mapping[str, Any]] | None,
    *,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> list[ReorderSuggestion]:
    """Generate reorder suggestions for the active assortment.

    Args:
        items: Item rows as fetched from the data store
        movements: Movement rows, optionally with ``created_at``
        now: Reference time for the lookback window (default: local now)
        settings: Application settings (default: cached settings)

    Returns:
        Most urgent suggestions first, capped at ``reorder_max_rows``

    """
    settings = settings or get_settings()
    now = now or datetime.now().astimezone()
    set_run_id()
    started = time.perf_counter()

    candidates = active_items(items)
    if not candidates:
        record_run([], time.perf_counter() - started)
        logger.info("No active items, skipping reorder planning")
        return []

    policy = ReorderPolicy.from_values(
        settings.reorder_lookback_days,
        settings.reorder_lead_time_days,
        settings.reorder_safety_days,
    )
    since = movement_window_start(now, policy.lookback_days)
    recent = filter_recent_movements(movements, since)

    suggestions = build_reorder_suggestions(
        candidates,
        recent,
        lookback_days=policy.lookback_days,
        lead_time_days=policy.lead_time_days,
        safety_days=policy.safety_days,
    )
    if settings.reorder_max_rows:
        suggestions = suggestions[: settings.reorder_max_rows]

    record_run([s.urgency.value for s in suggestions], time.perf_counter() - started)
    logger.info(
        "Reorder plan generated: %d suggestions for %d active items",
        len(suggestions),
        len(candidates),
        extra={"movements": len(recent), "since": since},
    )
    return suggestions


def _has_open_reorder_task(
    open_tasks: Iterable[Mapping[str, Any]], item_id: Any, prefix: str
) -> bool:
    wanted = prefix.casefold()
    for task in open_tasks:
        if task.get("item_id") != item_id:
            continue
        if (task.get("status") or "") not in OPEN_TASK_STATUSES:
            continue
        if str(task.get("title") or "").casefold().startswith(wanted):
            return True
    return False


def draft_reorder_task(
    suggestion: ReorderSuggestion,
    open_tasks: Iterable[Mapping[str, Any]] = (),
    *,
    today: date | None = None,
    settings: Settings | None = None,
) -> ReorderTask | None:
    """Draft a reorder task for a suggestion.

    Args:
        suggestion: Suggestion the task is about
        open_tasks: Existing task rows (``item_id``, ``status``, ``title``)
        today: Reference date for the due date (default: today)
        settings: Application settings (default: cached settings)

    Returns:
        Task draft, or None when an open reorder task already exists for the item

    """
    settings = settings or get_settings()
    prefix = settings.reorder_task_title_prefix

    if _has_open_reorder_task(open_tasks, suggestion.item_id, prefix):
        logger.info(
            "Open reorder task already exists for item %s", suggestion.item_id
        )
        return None

    today = today or date.today()
    return ReorderTask(
        title=build_task_title(suggestion, prefix),
        description=generate_explanation(suggestion, settings.reorder_lookback_days),
        due_date=today + timedelta(days=settings.reorder_task_due_days),
        item_id=suggestion.item_id,
        supplier_id=suggestion.item.get("supplier_id"),
        rationale_hash=generate_hash(suggestion),
    )
