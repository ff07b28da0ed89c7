"""Shared pytest fixtures and configuration."""

from __future__ import annotations

import pytest

from replenishment.core.config import get_settings

SETTINGS_ENV_VARS = [
    "REORDER_LOOKBACK_DAYS",
    "REORDER_LEAD_TIME_DAYS",
    "REORDER_SAFETY_DAYS",
    "REORDER_MAX_ROWS",
    "REORDER_TASK_DUE_DAYS",
    "REORDER_TASK_TITLE_PREFIX",
    "LOG_LEVEL",
    "LOG_FILE_PATH",
]


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Run every test against default settings, ignoring the host environment."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
