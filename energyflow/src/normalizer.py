"""
Pure normalizer that converts raw meter samples into canonical records.

Takes MeterReading values as delivered by the dashboard's data layer, maps
legacy role names, resolves the import/export direction from the source tag,
converts watts (or quarter-hour kWh, averaged to watts) to kilowatts, and
drops anything that cannot contribute a non-negative power value.
``normalize`` then folds the records into a BuildingSnapshot via the
aggregator.

Missing data is the only failure class and always means zero: unknown roles,
negative or non-finite samples, and absent export/import pairs never raise.

This is a pure module: no side effects, no I/O, no clock.

CHANGELOG:
- 2026-10-19: Derive power from interval energy samples (STORY-114)
- 2026-10-19: Add latest_readings and quarter-hour energy conversion (STORY-107)
- 2026-10-19: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from energyflow.src.aggregator import aggregate
from energyflow.src.models import (
    BuildingSnapshot,
    Direction,
    MeterReading,
    MeterRole,
    NormalizedReading,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Role and direction mapping
# ---------------------------------------------------------------------------

_ROLE_ALIASES: dict[str, MeterRole] = {
    "total_meter": MeterRole.TOTAL_GRID,
    "solar_meter": MeterRole.SOLAR,
    "apartment_meter": MeterRole.APARTMENT,
    "heating_meter": MeterRole.HEATING,
    "other_meter": MeterRole.OTHER,
}
"""Maps legacy meter_type values from the meters table -> MeterRole."""

_FLOW_ROLES = frozenset({MeterRole.TOTAL_GRID, MeterRole.SOLAR, MeterRole.CHARGER})
"""Roles that feed the flow model. The rest belong to billing allocation."""

_BIDIRECTIONAL_ROLES = frozenset({MeterRole.TOTAL_GRID, MeterRole.SOLAR})


def resolve_role(role: str) -> MeterRole | None:
    """Return the MeterRole for a raw role string, or None if unknown."""
    key = role.strip().lower()
    if key in _ROLE_ALIASES:
        return _ROLE_ALIASES[key]
    try:
        return MeterRole(key)
    except ValueError:
        return None


def resolve_direction(source_tag: str) -> Direction:
    """Return the direction encoded in a source tag.

    ``"export"`` and legacy tags ending in ``_export`` (``total_meter_export``,
    ``solar_meter_export``) are export; everything else, including an empty
    tag, is import.
    """
    tag = source_tag.strip().lower()
    if tag == Direction.EXPORT or tag.endswith("_export"):
        return Direction.EXPORT
    return Direction.IMPORT


# ---------------------------------------------------------------------------
# Unit helpers
# ---------------------------------------------------------------------------


def power_w_from_interval_kwh(kwh: float, interval_min: int = 15) -> float:
    """Convert an energy delta over a metering interval to average watts.

    The metering backend stores quarter-hour consumption; 0.25 kWh over
    15 minutes is an average of 1000 W.
    """
    if interval_min <= 0:
        raise ValueError("interval_min must be > 0")
    return kwh / (interval_min / 60) * 1000


def reading_power_w(reading: MeterReading) -> float:
    """Watts carried by a reading.

    Instantaneous ``power_w`` wins; otherwise ``energy_kwh`` is spread over
    the reading's interval.  A reading with neither is zero.
    """
    if reading.power_w is not None:
        return reading.power_w
    if reading.energy_kwh is not None:
        return power_w_from_interval_kwh(reading.energy_kwh, reading.interval_min)
    logger.debug("Meter '%s': no power or energy value", reading.meter_id)
    return 0.0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_reading(reading: MeterReading) -> NormalizedReading | None:
    """Convert one raw sample into a canonical record.

    Returns:
        A NormalizedReading, or ``None`` when the reading's role does not feed
        the flow model.  Negative or non-finite power contributes zero.
    """
    role = resolve_role(reading.role)
    if role is None:
        logger.debug(
            "Meter '%s': unknown role '%s', ignoring", reading.meter_id, reading.role
        )
        return None
    if role not in _FLOW_ROLES:
        return None

    # Chargers have no export side.
    direction = (
        resolve_direction(reading.source_tag)
        if role in _BIDIRECTIONAL_ROLES
        else Direction.IMPORT
    )

    power_w = reading_power_w(reading)
    if not math.isfinite(power_w) or power_w < 0:
        logger.warning(
            "Meter '%s': power %r W is not a non-negative number, using 0",
            reading.meter_id,
            power_w,
        )
        power_w = 0.0

    return NormalizedReading(
        meter_id=reading.meter_id,
        role=role,
        direction=direction,
        power_kw=power_w / 1000,
    )


def latest_readings(readings: Iterable[MeterReading]) -> list[MeterReading]:
    """Keep only the newest sample per ``(meter_id, direction)``.

    Readings without a timestamp rank below timestamped ones; among equals
    the later one in the input wins.  Output order follows first appearance
    of each key.
    """
    latest: dict[tuple[str, Direction], MeterReading] = {}
    for reading in readings:
        key = (reading.meter_id, resolve_direction(reading.source_tag))
        current = latest.get(key)
        if current is None or _sort_key(reading) >= _sort_key(current):
            latest[key] = reading
    return list(latest.values())


def _sort_key(reading: MeterReading) -> tuple[bool, float]:
    if reading.timestamp is None:
        return (False, 0.0)
    return (True, reading.timestamp.timestamp())


def normalize(readings: Iterable[MeterReading]) -> BuildingSnapshot:
    """Convert one building's raw samples at one instant into a snapshot.

    Args:
        readings: Raw readings for a single building, already filtered to
            that building by the caller.

    Returns:
        A BuildingSnapshot.  A meter with no reading contributes zero and a
        role with no meters yields ``0.0`` for its fields.
    """
    records = (normalize_reading(r) for r in readings)
    return aggregate(r for r in records if r is not None)
