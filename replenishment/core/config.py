"""Configuration management with pydantic-settings.

Provides type-safe reorder policy and logging configuration with environment
variable validation.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Reorder policy ===
    reorder_lookback_days: float = Field(
        30, gt=0, le=3650, allow_inf_nan=False, description="Demand lookback window in days"
    )
    reorder_lead_time_days: float = Field(
        14, gt=0, allow_inf_nan=False, description="Supplier lead time in days"
    )
    reorder_safety_days: float = Field(
        7, gt=0, allow_inf_nan=False, description="Safety buffer beyond lead time in days"
    )
    reorder_max_rows: int = Field(8, ge=0, description="Max suggestions returned (0=unlimited)")

    # === Reorder tasks ===
    reorder_task_due_days: int = Field(1, ge=0, description="Days until a reorder task is due")
    reorder_task_title_prefix: str = Field(
        "Nachbestellung empfohlen:",
        description="Title prefix of reorder tasks, used for duplicate detection",
    )

    # === Logging ===
    log_level: str = Field("INFO", description="Root log level")
    log_file_path: str | None = Field(None, description="JSON log file (None = stdout only)")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        RuntimeError: If an environment variable holds an invalid value.

    """
    try:
        return Settings()
    except ValidationError as e:
        invalid_fields = [str(error["loc"][0]).upper() for error in e.errors() if error["loc"]]

        error_msg = (
            f"Configuration error: Invalid environment variables: "
            f"{', '.join(invalid_fields)}\n"
            f"Please fix them in .env file or in the exported environment."
        )
        raise RuntimeError(error_msg) from e


__all__ = ["Settings", "get_settings"]
