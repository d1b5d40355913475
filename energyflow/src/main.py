"""
Energy-flow refresh daemon.

Loads the site snapshot from a SnapshotSource at every wall-clock aligned
boundary (minutes 0, 15, 30, 45 by default), runs the site pass, and logs one
structured summary line per building.

A failing refresh is logged and does not stop the loop.  Graceful shutdown on
SIGTERM/SIGINT sets a shared asyncio.Event that releases the pending wait.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-112)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from energyflow.src.engine import compute_site
from energyflow.src.scheduler import run_aligned_loop

if TYPE_CHECKING:
    from energyflow.src.config import EngineSettings
    from energyflow.src.models import BuildingFlowReport
    from energyflow.src.source import SnapshotSource

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_config_summary(settings: EngineSettings) -> None:
    """Log a config summary at startup."""
    logger.info(
        "Flow daemon starting with config: "
        "snapshot_path=%s, refresh_interval_min=%s, refresh_on_start=%s, "
        "log_level=%s",
        settings.snapshot_path,
        settings.refresh_interval_min,
        settings.refresh_on_start,
        settings.log_level,
    )


def _log_report(report: BuildingFlowReport) -> None:
    """Log one building's flow, plus its sharing estimate when present."""
    flow = report.flow
    logger.info(
        "Building %s: regime=%s house=%.3fkW solar_to_house=%.3fkW "
        "solar_to_grid=%.3fkW grid_to_house=%.3fkW charging=%.3fkW",
        report.building_id,
        flow.regime.value,
        flow.actual_house_consumption_kw,
        flow.solar_to_house_kw,
        flow.solar_to_grid_kw,
        flow.grid_to_house_kw,
        flow.charging_kw,
    )
    if report.sharing is not None:
        sharing = report.sharing
        logger.info(
            "Building %s: complex solar could cover %.0f%% of grid import "
            "(%.2fkW of %.2fkW) from %s",
            report.building_id,
            sharing.solar_share_pct,
            sharing.potential_shared_kw,
            sharing.grid_net_kw,
            ", ".join(
                f"{c.building_id} ({c.contributed_kw:.2f}kW)"
                for c in sharing.contributors
            ),
        )


# ---------------------------------------------------------------------------
# Single refresh (easily testable)
# ---------------------------------------------------------------------------


async def refresh_site(source: SnapshotSource) -> dict[str, BuildingFlowReport]:
    """Load the current snapshot, compute every building, log the results.

    Errors from the source propagate; the refresh loop logs them.
    """
    site = await source.load()
    reports = compute_site(site)
    for report in reports.values():
        _log_report(report)
    logger.info("Refresh complete: %d buildings", len(reports))
    return reports


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build the source, run the loop.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    from energyflow.src.config import EngineSettings
    from energyflow.src.source import JsonFileSource

    settings = EngineSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    source = JsonFileSource(settings.snapshot_path)

    async def _refresh() -> None:
        await refresh_site(source)

    await run_aligned_loop(
        refresh=_refresh,
        shutdown_event=shutdown_event,
        interval_min=settings.refresh_interval_min,
        run_immediately=settings.refresh_on_start,
    )
    logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the flow daemon."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
