"""
Flow daemon configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-109)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings


class EngineSettings(BaseSettings):
    """Configuration for the energy-flow refresh daemon.

    Attributes:
        snapshot_path: JSON file holding the site snapshot (buildings, meters,
            readings) the dashboard's data layer writes for each interval.
        refresh_interval_min: Wall-clock boundary spacing in minutes.  Must
            divide 60 so boundaries line up with the metering grid
            (default 15: minutes 0, 15, 30 and 45).
        refresh_on_start: Run one refresh immediately at startup instead of
            waiting for the first boundary.
        log_level: Root log level name.
    """

    snapshot_path: str
    refresh_interval_min: int = 15
    refresh_on_start: bool = True
    log_level: str = "INFO"

    @field_validator("refresh_interval_min")
    @classmethod
    def refresh_interval_must_divide_hour(cls, v: int) -> int:
        """Validate that refresh boundaries repeat every hour."""
        if v < 1 or v > 60 or 60 % v != 0:
            raise ValueError(
                "REFRESH_INTERVAL_MIN must be a divisor of 60 (e.g. 5, 15, 30)"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate and upper-case the log level name."""
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL '{v}' is not a known logging level")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
