"""
Shared test fixtures for energy-flow tests.

Provides environment variable fixtures for EngineSettings configuration tests
and small builders for readings and sites.  All engine env vars are cleaned
before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

import pytest
from energyflow.src.models import MeterReading

# All EngineSettings environment variable names, used for cleanup.
_ALL_ENGINE_ENV_VARS = (
    "SNAPSHOT_PATH",
    "REFRESH_INTERVAL_MIN",
    "REFRESH_ON_START",
    "LOG_LEVEL",
)

_TS = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _clean_engine_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all engine env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_ENGINE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all environment variables for EngineSettings."""
    env = {
        "SNAPSHOT_PATH": "/data/site.json",
        "REFRESH_INTERVAL_MIN": "30",
        "REFRESH_ON_START": "false",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def reading() -> Callable[..., MeterReading]:
    """Factory for MeterReading with sensible defaults."""

    def _make(
        role: str,
        power_w: float,
        source_tag: str = "",
        *,
        meter_id: str = "m-1",
        building_id: str = "b-1",
        timestamp: datetime | None = _TS,
    ) -> MeterReading:
        return MeterReading(
            meter_id=meter_id,
            building_id=building_id,
            role=role,
            power_w=power_w,
            source_tag=source_tag,
            timestamp=timestamp,
        )

    return _make
