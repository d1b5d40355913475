"""
Wall-clock aligned refresh loop.

Upstream metering produces quarter-hour values, so the dashboard refreshes at
minutes 0, 15, 30 and 45 rather than every 15 minutes from startup.  After
each refresh the delay to the following boundary is recomputed from the
actual current time, so a slow refresh or a late wake-up never accumulates
drift across cycles.

Boundaries are local wall-clock minutes, as on the dashboard.  In zones with
a half- or quarter-hour UTC offset a 30 or 60 minute interval therefore
fires on local half-hours and hours, not UTC ones.

The timeout of ``asyncio.wait_for`` runs on the monotonic clock, which can
drift a few milliseconds from the wall clock.  A wait that ends before the
wall-clock boundary is extended by the remainder, so a boundary is never
refreshed early or twice.

The loop waits on a shutdown ``asyncio.Event`` with a timeout.  Setting the
event (or calling :meth:`RefreshScheduler.stop`) releases the pending wait
immediately so no refresh runs after the consumer is torn down.

CHANGELOG:
- 2026-10-19: Use local wall clock; wait out early wake-ups (STORY-114)
- 2026-10-19: Initial creation (STORY-110)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
RefreshFn = Callable[[], Awaitable[None]]


def _local_now() -> datetime:
    return datetime.now().astimezone()

# ---------------------------------------------------------------------------
# Boundary arithmetic
# ---------------------------------------------------------------------------


def next_boundary(now: datetime, interval_min: int = 15) -> datetime:
    """Return the first aligned boundary strictly after ``now``.

    Boundaries fall on minutes divisible by ``interval_min`` with zero
    seconds.  A ``now`` exactly on a boundary yields the next one.
    """
    if interval_min < 1 or 60 % interval_min != 0:
        raise ValueError("interval_min must be a divisor of 60")
    floor = now.replace(
        minute=now.minute - now.minute % interval_min, second=0, microsecond=0
    )
    return floor + timedelta(minutes=interval_min)


def seconds_until_next_boundary(now: datetime, interval_min: int = 15) -> float:
    """Seconds from ``now`` until the next aligned boundary (always > 0)."""
    return (next_boundary(now, interval_min) - now).total_seconds()


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------


async def _refresh_once(refresh: RefreshFn) -> bool:
    """Run one refresh, logging instead of raising.

    Returns:
        True if the refresh completed, False if it raised.
    """
    try:
        await refresh()
        return True
    except Exception:
        logger.error("Refresh cycle error", exc_info=True)
        return False


async def run_aligned_loop(
    *,
    refresh: RefreshFn,
    shutdown_event: asyncio.Event,
    interval_min: int = 15,
    run_immediately: bool = False,
    clock: Clock = _local_now,
) -> None:
    """Call ``refresh`` at every aligned boundary until shutdown.

    Args:
        refresh: Async callable performing one data refresh.
        shutdown_event: Event to signal shutdown; checked between refreshes
            and interrupts the wait for the next boundary.
        interval_min: Boundary spacing in minutes (divisor of 60).
        run_immediately: Refresh once before waiting for the first boundary.
        clock: Returns the current time.  Injected for tests.
    """
    logger.info("Refresh loop started (interval=%smin)", interval_min)
    if run_immediately and not shutdown_event.is_set():
        await _refresh_once(refresh)

    while not shutdown_event.is_set():
        now = clock()
        target = next_boundary(now, interval_min)
        logger.debug(
            "Next refresh in %.1fs", seconds_until_next_boundary(now, interval_min)
        )
        if not await _wait_until(target, now, shutdown_event, clock):
            break
        await _refresh_once(refresh)
    logger.info("Refresh loop stopped")


async def _wait_until(
    target: datetime,
    now: datetime,
    shutdown_event: asyncio.Event,
    clock: Clock,
) -> bool:
    """Wait until the wall clock reaches ``target``.

    Returns:
        True once ``target`` is reached, False if shutdown was requested.
    """
    while now < target:
        delay = (target - now).total_seconds()
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(shutdown_event.wait(), timeout=delay)
        if shutdown_event.is_set():
            return False
        now = clock()
    return not shutdown_event.is_set()


class RefreshScheduler:
    """Owns a background aligned refresh loop for one consumer.

    Args:
        refresh: Async callable performing one data refresh.
        interval_min: Boundary spacing in minutes (divisor of 60).
        run_immediately: Refresh once as soon as the loop starts.
        clock: Returns the current time.  Injected for tests.
    """

    def __init__(
        self,
        refresh: RefreshFn,
        *,
        interval_min: int = 15,
        run_immediately: bool = False,
        clock: Clock = _local_now,
    ) -> None:
        self._refresh = refresh
        self._interval_min = interval_min
        self._run_immediately = run_immediately
        self._clock = clock
        self._shutdown = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while the background loop task is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the loop on the running event loop.  No-op if running."""
        if self.running:
            return
        self._shutdown.clear()
        self._task = asyncio.create_task(
            run_aligned_loop(
                refresh=self._refresh,
                shutdown_event=self._shutdown,
                interval_min=self._interval_min,
                run_immediately=self._run_immediately,
                clock=self._clock,
            )
        )

    async def stop(self) -> None:
        """Stop the loop and wait for it to finish.  Safe to call twice."""
        self._shutdown.set()
        task, self._task = self._task, None
        if task is not None:
            await task

    async def __aenter__(self) -> RefreshScheduler:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()
