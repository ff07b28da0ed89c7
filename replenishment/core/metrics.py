"""Prometheus metrics for monitoring."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# Reorder planning metrics
reorder_runs_total = Counter(
    "reorder_runs_total",
    "Total reorder planning runs",
)

reorder_suggestions_total = Counter(
    "reorder_suggestions_total",
    "Total reorder suggestions emitted",
    ["urgency"],  # urgency: critical, high, medium
)

reorder_run_duration_seconds = Histogram(
    "reorder_run_duration_seconds",
    "Reorder planning run duration in seconds",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)


def record_run(urgencies: list[str], duration_seconds: float) -> None:
    """Record metrics for a completed planning run."""
    reorder_runs_total.inc()
    reorder_run_duration_seconds.observe(duration_seconds)
    for urgency in urgencies:
        reorder_suggestions_total.labels(urgency=urgency).inc()


__all__ = [
    "reorder_runs_total",
    "reorder_suggestions_total",
    "reorder_run_duration_seconds",
    "record_run",
]
